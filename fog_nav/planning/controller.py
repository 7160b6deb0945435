"""
Robot Controller Module
=======================

Finite-state controller that sequences sensing, goal selection,
planning and movement for one agent.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple, List, Optional, Deque, Dict, Callable

from loguru import logger

from ..config import Config
from ..environment import Environment, BeliefMap, InvalidMoveError
from ..terrain import Direction
from .astar import AStarPlanner
from .goal_selector import GoalSelector


class AgentState(Enum):
    """Controller execution state"""
    SCANNING = 'scanning'
    ANALYZING = 'analyzing'
    PLANNING = 'planning'
    MOVING = 'moving'
    CHARGING = 'charging'
    FINISHED = 'finished'


class _Outcome(Enum):
    """What a state handler did to the current decision cycle"""
    FREE = 0    # no turn consumed, keep thinking
    ACTED = 1   # a move or stay was issued
    WAIT = 2    # nothing more to do this cycle


@dataclass
class ControllerState:
    """Bookkeeping of the controller, exposed for metrics"""
    executed_path: List[Tuple[int, int]] = field(default_factory=list)
    energy_trace: List[int] = field(default_factory=list)

    # Counters
    cycles: int = 0
    transitions: int = 0
    replans: int = 0
    planning_failures: int = 0
    blocked_moves: int = 0
    charging_turns: int = 0
    chargers_discovered: int = 0
    destination_switches: int = 0


class RobotController:
    """
    Decision subsystem of one agent.

    States:
    - SCANNING: sense the local view, update the belief map
    - ANALYZING: finish at the target, charge on a charger, or pick a
      destination and decide whether the committed path still holds
    - PLANNING: A* to the destination on the belief map
    - MOVING: execute one queued move after a legality check
    - CHARGING: stay on the charger until energy is full
    - FINISHED: terminal

    step() runs one decision cycle as a loop over states. By default the
    cycle keeps going until a move or stay was issued, planning failed,
    or the agent finished. With agent.chain_free_states disabled only
    SCANNING -> ANALYZING and CHARGING(full) -> SCANNING chain inside a
    cycle; every other transition ends it.
    """

    def __init__(self, env: Environment, agent_id: str, config: Optional[Config] = None):
        """
        Initialize controller.

        Args:
            env: Environment the agent is registered in
            agent_id: Registered agent id
            config: Configuration object
        """
        self.env = env
        self.agent_id = agent_id
        self.config = config or env.config

        self.radius = self.config.agent.sensing_radius
        self.max_energy = self.config.energy.max_energy

        # Created on the first sensing step, once the grid size is known
        self._belief: Optional[BeliefMap] = None
        self._planner: Optional[AStarPlanner] = None
        self._selector: Optional[GoalSelector] = None

        self._state = AgentState.SCANNING
        self._path: Deque[Direction] = deque()
        self._destination: Optional[Tuple[int, int]] = None

        self.stats = ControllerState()
        self.stats.executed_path.append(env.position(agent_id))
        self.stats.energy_trace.append(env.energy(agent_id))

        self._handlers: Dict[AgentState, Callable[[], _Outcome]] = {
            AgentState.SCANNING: self._handle_scanning,
            AgentState.ANALYZING: self._handle_analyzing,
            AgentState.PLANNING: self._handle_planning,
            AgentState.MOVING: self._handle_moving,
            AgentState.CHARGING: self._handle_charging,
            AgentState.FINISHED: self._handle_finished,
        }

    @classmethod
    def spawn(cls, env: Environment, agent_id: str, config: Optional[Config] = None) -> 'RobotController':
        """Register a new agent in env and return its controller"""
        env.add_agent(agent_id)
        return cls(env, agent_id, config)

    # ==================== Properties ====================

    @property
    def state(self) -> AgentState:
        return self._state

    @property
    def belief(self) -> Optional[BeliefMap]:
        return self._belief

    @property
    def planner(self) -> Optional[AStarPlanner]:
        return self._planner

    @property
    def path(self) -> Tuple[Direction, ...]:
        return tuple(self._path)

    @property
    def destination(self) -> Optional[Tuple[int, int]]:
        return self._destination

    @property
    def known_chargers(self) -> Tuple[Tuple[int, int], ...]:
        return self._belief.known_chargers if self._belief is not None else ()

    @property
    def is_finished(self) -> bool:
        return self._state == AgentState.FINISHED

    @property
    def position(self) -> Tuple[int, int]:
        return self.env.position(self.agent_id)

    @property
    def energy(self) -> int:
        return self.env.energy(self.agent_id)

    # ==================== Decision Cycle ====================

    def step(self) -> AgentState:
        """Run one decision cycle; returns the state it ends in"""
        self.stats.cycles += 1
        max_transitions = self.config.agent.max_transitions_per_cycle
        eager = self.config.agent.chain_free_states

        for _ in range(max_transitions):
            before = self._state
            outcome = self._handlers[before]()
            self.stats.transitions += 1

            if outcome is not _Outcome.FREE:
                break
            if not eager and not self._is_free_chain(before, self._state):
                break
        else:
            logger.debug(f"[{self.agent_id}] cycle stopped after {max_transitions} transitions")

        return self._state

    @staticmethod
    def _is_free_chain(before: AgentState, after: AgentState) -> bool:
        if before == AgentState.SCANNING:
            return True
        return before == AgentState.CHARGING and after == AgentState.SCANNING

    def _transition(self, new_state: AgentState):
        if new_state != self._state:
            logger.debug(f"[{self.agent_id}] {self._state.name} -> {new_state.name}")
        self._state = new_state

    # ==================== States ====================

    def _handle_scanning(self) -> _Outcome:
        if self._belief is None:
            self._init_memory()

        position = self.position
        view = self.env.local_view(self.agent_id, self.radius)
        discovered = self._belief.observe(view, position, self.radius)
        self.stats.chargers_discovered += len(discovered)

        self._transition(AgentState.ANALYZING)
        return _Outcome.FREE

    def _handle_analyzing(self) -> _Outcome:
        position = self.position
        energy = self.energy
        mission_target = tuple(self.env.goal())

        if position == mission_target:
            logger.info(f"[{self.agent_id}] Target {mission_target} reached with energy {energy}")
            self._path.clear()
            self._transition(AgentState.FINISHED)
            return _Outcome.FREE

        destination = self._selector.select_destination(
            position, energy, mission_target, self._belief.known_chargers
        )

        if destination == position and self._selector.wants_to_charge(position, energy):
            logger.info(f"[{self.agent_id}] On charger at {position} with energy {energy}, recharging")
            self._path.clear()
            self._transition(AgentState.CHARGING)
            return _Outcome.FREE

        changed = destination != self._destination
        if changed or not self._path or self._is_path_blocked(position):
            if changed and self._destination is not None:
                self.stats.destination_switches += 1
                kind = 'target' if destination == mission_target else 'charger'
                logger.info(f"[{self.agent_id}] Destination -> {kind} {destination} (energy {energy})")
            self._destination = destination
            self._transition(AgentState.PLANNING)
        else:
            self._transition(AgentState.MOVING)
        return _Outcome.FREE

    def _handle_planning(self) -> _Outcome:
        position = self.position
        self._path = self._planner.find_path(position, self._destination)
        self.stats.replans += 1

        if self._path:
            stats = self._planner.last_stats
            logger.info(
                f"[{self.agent_id}] Planned {len(self._path)} moves to {self._destination} "
                f"(cost {stats.path_cost:g})"
            )
            self._transition(AgentState.MOVING)
            return _Outcome.FREE

        self.stats.planning_failures += 1
        logger.info(f"[{self.agent_id}] No path to {self._destination}, scanning again next turn")
        self._transition(AgentState.SCANNING)
        return _Outcome.WAIT

    def _handle_moving(self) -> _Outcome:
        if not self._path:
            self._transition(AgentState.SCANNING)
            return _Outcome.FREE

        direction = self._path.popleft()

        if not self.env.can_move_to(self.agent_id, direction):
            self._abort_path(direction)
            return _Outcome.FREE

        try:
            self.env.move_robot(self.agent_id, direction)
        except InvalidMoveError:
            self._abort_path(direction)
            return _Outcome.FREE

        self.record_action()
        self._transition(AgentState.SCANNING)
        return _Outcome.ACTED

    def _handle_charging(self) -> _Outcome:
        energy = self.energy
        if energy >= self.max_energy:
            logger.info(f"[{self.agent_id}] Battery full ({energy}), resuming mission")
            self._transition(AgentState.SCANNING)
            return _Outcome.FREE

        self.env.move_robot(self.agent_id, Direction.NONE)
        self.stats.charging_turns += 1
        self.record_action()
        return _Outcome.ACTED

    def _handle_finished(self) -> _Outcome:
        return _Outcome.WAIT

    # ==================== Helpers ====================

    def _init_memory(self):
        self._belief = BeliefMap.from_dimensions(self.env.grid_dimensions())
        self._planner = AStarPlanner(self._belief, self.config)
        self._selector = GoalSelector(self._belief, self.config)

    def _is_path_blocked(self, position: Tuple[int, int]) -> bool:
        """Next queued move leads into a cell now known to be OBSTACLE"""
        if not self._path:
            return False
        x, y = self._path[0].apply(position)
        return self._belief.in_bounds(x, y) and self._belief.is_blocked(x, y)

    def _abort_path(self, direction: Direction):
        logger.warning(
            f"[{self.agent_id}] Path blocked unexpectedly moving {direction.name} "
            f"from {self.position}, re-evaluating"
        )
        self._path.clear()
        self.stats.blocked_moves += 1
        self._transition(AgentState.SCANNING)

    def record_action(self):
        """Append the current position and energy to the executed trace"""
        self.stats.executed_path.append(self.position)
        self.stats.energy_trace.append(self.energy)
