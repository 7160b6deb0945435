"""
Pipeline Runner Module
======================

Turn loop for a single map and an experiment runner over generated maps.
"""

import json
import time
import traceback
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field, asdict, replace
from pathlib import Path
from typing import Dict, List, Optional, Callable

import numpy as np
from loguru import logger

from ..config import Config
from ..terrain import GridMap, MapGenerator, save_map
from ..environment import Environment, EnergyDepletedError
from ..planning import RobotController, AgentState
from ..metrics import (
    compute_path_metrics, compute_backtracking_stats, RunResult, RunClassifier, RunStatus
)


class Simulation:
    """
    Turn-driven simulation of one or more independent agents.

    Each turn every unfinished agent runs one decision cycle, then the
    environment advances its turn counter. Agents share the world but
    nothing else.
    """

    def __init__(self, env: Environment, config: Optional[Config] = None):
        self.env = env
        self.config = config or env.config
        self.controllers: Dict[str, RobotController] = {}
        self.classifier = RunClassifier()
        self._depleted: Dict[str, bool] = {}
        self._end_turn: Dict[str, int] = {}

    @classmethod
    def from_map(cls, grid_map: GridMap, config: Optional[Config] = None,
                 agent_id: Optional[str] = None) -> 'Simulation':
        """Environment plus one agent on the given map"""
        config = config or Config()
        sim = cls(Environment(grid_map, config), config)
        sim.add_agent(agent_id or config.simulation.agent_id)
        return sim

    def add_agent(self, agent_id: str) -> RobotController:
        controller = RobotController.spawn(self.env, agent_id, self.config)
        self.controllers[agent_id] = controller
        self._depleted[agent_id] = False
        return controller

    def _is_active(self, agent_id: str) -> bool:
        return (
            not self.controllers[agent_id].is_finished
            and not self.env.is_at_target(agent_id)
            and not self._depleted[agent_id]
        )

    def _active(self) -> List[RobotController]:
        return [c for agent_id, c in self.controllers.items() if self._is_active(agent_id)]

    def _record_end_turns(self):
        """Remember the turn at which each agent dropped out of the loop"""
        for agent_id in self.controllers:
            if agent_id not in self._end_turn and not self._is_active(agent_id):
                self._end_turn[agent_id] = self.env.turn()

    def run(self, callback: Optional[Callable[['Simulation'], None]] = None) -> Dict[str, RunResult]:
        """
        Run until every agent finished or ran dry, or the turn budget is spent.

        Args:
            callback: Called after every turn with the simulation

        Returns:
            RunResult per agent id
        """
        if not self.controllers:
            raise ValueError("Simulation has no agents")

        t0 = time.perf_counter()
        delay = self.config.simulation.step_delay_s

        while not self.env.is_over():
            active = self._active()
            if not active:
                break

            for controller in active:
                try:
                    controller.step()
                except EnergyDepletedError as e:
                    logger.warning(f"[{controller.agent_id}] {e}")
                    self._depleted[controller.agent_id] = True
                    # The failed action still applied the terrain effect
                    controller.record_action()
                    continue

                # Arrival: one more cycle, which issues no action, to reach FINISHED
                if self.env.is_at_target(controller.agent_id) and not controller.is_finished:
                    controller.step()

            self.env.next_turn()
            self._record_end_turns()

            if callback is not None:
                callback(self)
            if delay > 0:
                time.sleep(delay)

        elapsed = time.perf_counter() - t0
        results = {agent_id: self._build_result(c, elapsed) for agent_id, c in self.controllers.items()}

        for agent_id, result in results.items():
            if result.is_success:
                logger.info(f"[{agent_id}] reached the target in {result.turns} turns")
            else:
                logger.info(f"[{agent_id}] run ended: {result.status} after {result.turns} turns")

        return results

    def _build_result(self, controller: RobotController, elapsed: float) -> RunResult:
        """Build final result for one agent"""
        stats = controller.stats
        goal = self.env.goal()

        planner = controller.planner
        last_plan_failed = (
            controller.state == AgentState.SCANNING
            and planner is not None
            and planner.last_stats is not None
            and not planner.last_stats.success
        )
        status, failure_type = self.classifier.classify(
            reached_goal=self.env.is_at_target(controller.agent_id),
            energy_depleted=self._depleted[controller.agent_id],
            last_plan_failed=last_plan_failed
        )

        metrics = compute_path_metrics(
            stats.executed_path,
            self.env.terrain,
            stats.energy_trace,
            lava_cost=self.config.terrain.lava_cost,
            normal_cost=self.config.terrain.normal_cost
        )

        return RunResult(
            status=status,
            failure_type=failure_type,
            path=list(stats.executed_path),
            metrics=metrics,
            backtracking=compute_backtracking_stats(stats.executed_path, goal),
            turns=self._end_turn.get(controller.agent_id, self.env.turn()),
            total_time_s=elapsed,
            replans=stats.replans,
            planning_failures=stats.planning_failures,
            blocked_moves=stats.blocked_moves,
            charging_turns=stats.charging_turns,
            chargers_discovered=stats.chargers_discovered,
            known_fraction=controller.belief.known_fraction if controller.belief is not None else 0.0,
            info={
                'cycles': stats.cycles,
                'transitions': stats.transitions,
                'destination_switches': stats.destination_switches,
                'final_state': controller.state.value
            }
        )


def simulate(grid_map: GridMap, config: Optional[Config] = None,
             callback: Optional[Callable[[Simulation], None]] = None) -> RunResult:
    """Run one agent on grid_map and return its result"""
    config = config or Config()
    sim = Simulation.from_map(grid_map, config)
    return sim.run(callback)[config.simulation.agent_id]


@dataclass
class ScenarioResult:
    """Result from a single scenario run"""
    seed: int
    methods: Dict[str, Dict] = field(default_factory=dict)
    runtimes: Dict[str, float] = field(default_factory=dict)
    success: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class AggregatedResults:
    """Aggregated results from multiple scenarios"""
    num_scenarios: int = 0
    methods: List[str] = field(default_factory=list)
    summary: Dict[str, Dict] = field(default_factory=dict)
    failure_counts: Dict[str, Dict] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return asdict(self)


class ExperimentRunner:
    """
    Runs the agent on generated maps under several decision-cycle
    timing models.

    Methods:
    - 'free_thinking': sensing, analysis and planning cost no turn
    - 'state_per_turn': only SCANNING -> ANALYZING and a full charger
      chain within a turn
    """

    METHODS = [
        'free_thinking',
        'state_per_turn',
    ]

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()

    def _method_config(self, method: str, seed: int) -> Config:
        if method not in self.METHODS:
            raise ValueError(f"Unknown method: {method}")
        agent = replace(self.config.agent, chain_free_states=(method == 'free_thinking'))
        return replace(self.config, agent=agent, random_seed=seed)

    def run_single_scenario(self,
                            seed: int,
                            methods: Optional[List[str]] = None,
                            save_assets: bool = True,
                            output_dir: Optional[str] = None) -> ScenarioResult:
        """
        Run a single generated scenario with all methods.

        Args:
            seed: Random seed for the map
            methods: List of methods to run (default: all)
            save_assets: Whether to save the map and paths
            output_dir: Directory for outputs

        Returns:
            ScenarioResult with all method results
        """
        methods = methods or self.METHODS
        result = ScenarioResult(seed=seed)

        try:
            grid_map = MapGenerator(self.config.map, seed).generate()
            logger.debug(f"[Seed {seed}] map generated: start={grid_map.start}, target={grid_map.target}")

            scenario_dir = None
            if output_dir:
                scenario_dir = Path(output_dir) / f'scenario_{seed:05d}'
                scenario_dir.mkdir(parents=True, exist_ok=True)
                if save_assets:
                    save_map(grid_map, scenario_dir / 'map.txt')

            paths = {}
            for method in methods:
                t0 = time.perf_counter()
                try:
                    run = simulate(grid_map.copy(), self._method_config(method, seed))
                    result.methods[method] = run.to_dict()
                    paths[f'path_{method}'] = run.path
                    logger.info(f"[Seed {seed}] {method}: {run.status} in {run.turns} turns")
                except Exception as e:
                    result.methods[method] = {'status': 'error', 'error': str(e)}
                    logger.error(f"[Seed {seed}] {method}: ERROR - {e}")
                result.runtimes[method] = time.perf_counter() - t0

            if save_assets and scenario_dir and paths:
                np.savez_compressed(
                    str(scenario_dir / 'paths.npz'),
                    **{k: np.array(v) for k, v in paths.items() if v}
                )

            if scenario_dir:
                with open(scenario_dir / 'logs.json', 'w') as f:
                    json.dump(result.to_dict(), f, indent=2, default=str)

            result.success = True

        except Exception as e:
            result.error = str(e)
            result.success = False
            logger.error(f"[Seed {seed}] SCENARIO ERROR: {e}\n{traceback.format_exc()}")

        return result

    def run_suite(self,
                  num_scenarios: int = 10,
                  seed_base: int = 42,
                  methods: Optional[List[str]] = None,
                  output_dir: str = 'results',
                  parallel: bool = False,
                  max_workers: int = 4) -> AggregatedResults:
        """
        Run full experiment suite.

        Args:
            num_scenarios: Number of scenarios to run
            seed_base: Base seed for reproducibility
            methods: Methods to compare
            output_dir: Output directory
            parallel: Use parallel execution
            max_workers: Number of parallel workers

        Returns:
            AggregatedResults with all statistics
        """
        methods = methods or self.METHODS
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        all_results: List[ScenarioResult] = []
        logger.info(f"Running {num_scenarios} scenarios, methods={methods}, output={output_path}")

        if parallel and max_workers > 1:
            with ProcessPoolExecutor(max_workers=max_workers) as executor:
                futures = {
                    executor.submit(
                        self.run_single_scenario,
                        seed=seed_base + i,
                        methods=methods,
                        output_dir=str(output_path)
                    ): seed_base + i
                    for i in range(num_scenarios)
                }

                for future in as_completed(futures):
                    seed = futures[future]
                    try:
                        all_results.append(future.result())
                        logger.info(f"[{len(all_results)}/{num_scenarios}] Seed {seed} done")
                    except Exception as e:
                        logger.error(f"[{len(all_results)}/{num_scenarios}] Seed {seed}: ERROR - {e}")
        else:
            for i in range(num_scenarios):
                all_results.append(self.run_single_scenario(
                    seed=seed_base + i,
                    methods=methods,
                    output_dir=str(output_path)
                ))

        aggregated = self._aggregate_results(all_results, methods)

        with open(output_path / 'aggregated_results.json', 'w') as f:
            json.dump(aggregated.to_dict(), f, indent=2, default=str)

        return aggregated

    def _aggregate_results(self,
                           results: List[ScenarioResult],
                           methods: List[str]) -> AggregatedResults:
        """Aggregate results from multiple scenarios"""
        agg = AggregatedResults(num_scenarios=len(results), methods=list(methods))

        for method in methods:
            turns = []
            replans = []
            runtimes = []
            successes = 0
            failures = {
                RunStatus.OUT_OF_ENERGY: 0,
                RunStatus.TIMEOUT: 0,
                RunStatus.UNREACHABLE: 0,
                'error': 0
            }

            for result in results:
                m = result.methods.get(method)
                if m is None:
                    continue
                status = m.get('status', 'error')
                if status == RunStatus.SUCCESS:
                    successes += 1
                    turns.append(m['turns'])
                    replans.append(m['replans'])
                else:
                    failures[status if status in failures else 'error'] += 1
                if method in result.runtimes:
                    runtimes.append(result.runtimes[method])

            n = len(results)
            agg.summary[method] = {
                'success_rate': successes / n * 100 if n else 0.0,
                'turns_mean': float(np.mean(turns)) if turns else None,
                'turns_std': float(np.std(turns)) if turns else None,
                'replans_mean': float(np.mean(replans)) if replans else None,
                'runtime_mean_s': float(np.mean(runtimes)) if runtimes else None,
            }
            agg.failure_counts[method] = failures

        return agg
