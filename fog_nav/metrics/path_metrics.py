"""
Path Metrics Module
===================

Metrics tracking for executed routes and run classification.
"""

import numpy as np
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, field

from ..terrain import Terrain


@dataclass
class PathMetrics:
    """
    Metrics for an executed route.

    Tracks:
    - Moves and stays
    - Terrain breakdown of entered cells
    - Energy statistics
    """

    moves: int = 0
    stays: int = 0
    weighted_cost: float = 0.0  # planner cost of the cells entered

    # Energy stats
    energy_trace: List[int] = field(default_factory=list)

    # Per-terrain counts of entered cells
    terrain_steps: Dict[str, int] = field(default_factory=dict)

    def add_step(self, terrain: Terrain, cost: float):
        """Add one displacing move into a cell of the given terrain"""
        self.moves += 1
        self.weighted_cost += cost
        name = terrain.name.lower()
        self.terrain_steps[name] = self.terrain_steps.get(name, 0) + 1

    @property
    def lava_steps(self) -> int:
        return self.terrain_steps.get('lava', 0)

    @property
    def min_energy(self) -> int:
        return int(min(self.energy_trace)) if self.energy_trace else 0

    @property
    def final_energy(self) -> int:
        return int(self.energy_trace[-1]) if self.energy_trace else 0

    @property
    def mean_energy(self) -> float:
        return float(np.mean(self.energy_trace)) if self.energy_trace else 0.0

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization"""
        return {
            'moves': self.moves,
            'stays': self.stays,
            'weighted_cost': self.weighted_cost,
            'lava_steps': self.lava_steps,
            'min_energy': self.min_energy,
            'final_energy': self.final_energy,
            'mean_energy': self.mean_energy,
            'terrain_steps': dict(self.terrain_steps)
        }


def compute_path_metrics(path: List[Tuple[int, int]],
                         terrain: np.ndarray,
                         energy_trace: Optional[List[int]] = None,
                         lava_cost: float = 100.0,
                         normal_cost: float = 1.0) -> PathMetrics:
    """
    Compute metrics for an executed route.

    Args:
        path: Positions after every action, start included; repeated
            positions are stays
        terrain: Ground-truth terrain grid, indexed [y, x]
        energy_trace: Energy after every action, initial value included
        lava_cost: Cost of entering lava
        normal_cost: Cost of entering any other traversable cell

    Returns:
        PathMetrics object
    """
    metrics = PathMetrics(energy_trace=list(energy_trace or []))

    for prev, cur in zip(path, path[1:]):
        if tuple(prev) == tuple(cur):
            metrics.stays += 1
            continue
        cell = Terrain(int(terrain[cur[1], cur[0]]))
        metrics.add_step(cell, lava_cost if cell == Terrain.LAVA else normal_cost)

    return metrics


@dataclass
class BacktrackingStats:
    """Statistics about moves that increase the distance to the target"""
    backtracking_moves: int = 0
    total_moves: int = 0
    backtrack_ratio: float = 0.0
    min_dist_to_goal: int = 0
    max_dist_to_goal: int = 0
    distance_progress_ratio: float = 0.0  # How much closer we got vs moves made


def compute_backtracking_stats(path: List[Tuple[int, int]],
                               goal: Tuple[int, int]) -> BacktrackingStats:
    """
    Compute backtracking statistics for a path.

    Backtracking = moves that increase the Manhattan distance to the goal.

    Args:
        path: List of (x, y) positions
        goal: Goal position

    Returns:
        BacktrackingStats object
    """
    if not path:
        return BacktrackingStats()

    gx, gy = goal

    def dist_to_goal(p):
        return abs(p[0] - gx) + abs(p[1] - gy)

    total = 0
    back = 0
    prev = path[0]
    prev_d = dist_to_goal(prev)
    min_d = max_d = start_d = prev_d

    for cur in path[1:]:
        if tuple(cur) == tuple(prev):
            continue
        total += 1
        cur_d = dist_to_goal(cur)

        if cur_d > prev_d:  # Moving away from goal
            back += 1

        min_d = min(min_d, cur_d)
        max_d = max(max_d, cur_d)
        prev, prev_d = cur, cur_d

    ratio = back / total if total else 0.0
    progress = start_d - dist_to_goal(path[-1])

    return BacktrackingStats(
        backtracking_moves=back,
        total_moves=total,
        backtrack_ratio=ratio,
        min_dist_to_goal=min_d,
        max_dist_to_goal=max_d,
        distance_progress_ratio=progress / total if total else 0.0
    )


class RunStatus:
    """Enumeration of run status types"""
    SUCCESS = 'success'
    OUT_OF_ENERGY = 'out_of_energy'
    TIMEOUT = 'timeout'
    UNREACHABLE = 'unreachable'


@dataclass
class RunResult:
    """Complete result of a simulation run"""
    status: str
    failure_type: Optional[str] = None

    # Path data
    path: List[Tuple[int, int]] = field(default_factory=list)

    # Metrics
    metrics: Optional[PathMetrics] = None
    backtracking: Optional[BacktrackingStats] = None

    # Timing
    turns: int = 0
    total_time_s: float = 0.0

    # Controller stats
    replans: int = 0
    planning_failures: int = 0
    blocked_moves: int = 0
    charging_turns: int = 0
    chargers_discovered: int = 0
    known_fraction: float = 0.0

    # Additional info
    info: Dict = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status == RunStatus.SUCCESS

    def to_dict(self) -> Dict:
        return {
            'status': self.status,
            'failure_type': self.failure_type,
            'path_length': len(self.path),
            'metrics': self.metrics.to_dict() if self.metrics else None,
            'backtracking': {
                'backtrack_ratio': self.backtracking.backtrack_ratio,
                'backtracking_moves': self.backtracking.backtracking_moves,
                'min_dist_to_goal': self.backtracking.min_dist_to_goal,
            } if self.backtracking else None,
            'turns': self.turns,
            'total_time_s': self.total_time_s,
            'replans': self.replans,
            'planning_failures': self.planning_failures,
            'blocked_moves': self.blocked_moves,
            'charging_turns': self.charging_turns,
            'chargers_discovered': self.chargers_discovered,
            'known_fraction': self.known_fraction,
            'info': self.info
        }


class RunClassifier:
    """
    Classifies run outcomes.

    Categories:
    - success: Reached goal
    - out_of_energy: Environment refused an action for lack of energy
    - unreachable: Turn budget spent with the last plans failing
    - timeout: Turn budget spent while still making plans
    """

    def classify(self,
                 reached_goal: bool,
                 energy_depleted: bool = False,
                 last_plan_failed: bool = False) -> Tuple[str, Optional[str]]:
        """
        Classify run outcome.

        Returns:
            Tuple of (status, failure_type)
        """
        if reached_goal:
            return RunStatus.SUCCESS, None

        if energy_depleted:
            return RunStatus.OUT_OF_ENERGY, 'energy_depleted'

        if last_plan_failed:
            return RunStatus.UNREACHABLE, 'no_path'

        return RunStatus.TIMEOUT, 'max_turns'
