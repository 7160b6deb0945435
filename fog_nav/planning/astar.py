"""
A* Planner Module
=================

Weighted A* over an agent's belief map, 4-connected.
"""

import heapq
from collections import deque
from dataclasses import dataclass, field
from typing import Tuple, List, Optional, Deque, Iterable

from loguru import logger

from ..config import Config
from ..environment import BeliefMap, UNKNOWN
from ..terrain import Terrain, Direction, TerrainProperties


@dataclass
class PlannerStats:
    """Statistics from a planning run"""
    nodes_expanded: int = 0
    nodes_created: int = 0
    frontier_peak: int = 0
    path_length: int = 0
    path_cost: float = 0.0
    success: bool = False
    reason: str = ''


@dataclass
class _NodeArena:
    """
    Search nodes stored column-wise; a node is its integer handle.

    parent[-1 for the root] points back toward the start.
    """
    xs: List[int] = field(default_factory=list)
    ys: List[int] = field(default_factory=list)
    g: List[float] = field(default_factory=list)
    parent: List[int] = field(default_factory=list)

    def add(self, x: int, y: int, g: float, parent: int) -> int:
        self.xs.append(x)
        self.ys.append(y)
        self.g.append(g)
        self.parent.append(parent)
        return len(self.xs) - 1

    def __len__(self) -> int:
        return len(self.xs)


def manhattan(a: Tuple[int, int], b: Tuple[int, int]) -> int:
    """Manhattan distance between two cells"""
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


class AStarPlanner:
    """
    A* planner over a belief map.

    - Neighbors expanded in LEFT, RIGHT, UP, DOWN order
    - Known OBSTACLE cells are never expanded
    - Unknown cells cost unknown_cost (optimistic, 1 by default)
    - Edge cost is the movement cost of the entered cell
    - Manhattan heuristic (consistent while every edge costs >= 1)
    - Frontier ordered by (f, insertion sequence) for reproducible ties

    An unreachable goal yields an empty path, not an error.
    """

    def __init__(self, belief: BeliefMap, config: Optional[Config] = None):
        """
        Initialize A* planner.

        Args:
            belief: Belief map searched by every call
            config: Configuration object (movement costs)
        """
        self.belief = belief
        self.config = config or Config()

        costs = TerrainProperties.cost_table(
            normal_cost=self.config.terrain.normal_cost,
            lava_cost=self.config.terrain.lava_cost
        )
        self._cost_by_value = {int(t): c for t, c in costs.items()}
        self._cost_by_value[UNKNOWN] = self.config.terrain.unknown_cost

        # Last planning stats
        self.last_stats: Optional[PlannerStats] = None

    def cell_cost(self, x: int, y: int) -> float:
        """Cost of entering (x, y) according to the belief map"""
        return self._cost_by_value[int(self.belief.cells[y, x])]

    def find_path(self, start: Tuple[int, int], goal: Tuple[int, int]) -> Deque[Direction]:
        """
        Find a minimum-cost move sequence from start to goal.

        Args:
            start: Start position (x, y)
            goal: Goal position (x, y)

        Returns:
            Moves to execute in order; empty if goal is unreachable on the
            current belief map (or start == goal, see last_stats.success)
        """
        stats = PlannerStats()
        self.last_stats = stats
        belief = self.belief

        if not belief.in_bounds(*start) or not belief.in_bounds(*goal):
            stats.reason = 'out_of_bounds'
            logger.debug(f"[A*] start {start} or goal {goal} outside the map")
            return deque()

        if start == goal:
            stats.success = True
            stats.reason = 'already_there'
            return deque()

        cells = belief.cells
        width, height = belief.width, belief.height
        cost_by_value = self._cost_by_value
        obstacle = int(Terrain.OBSTACLE)
        gx, gy = goal

        arena = _NodeArena()
        best_g = {}
        closed = set()
        open_set = []
        seq = 0

        root = arena.add(start[0], start[1], 0.0, -1)
        best_g[start] = 0.0
        heapq.heappush(open_set, (float(manhattan(start, goal)), seq, root))

        while open_set:
            stats.frontier_peak = max(stats.frontier_peak, len(open_set))
            _, _, handle = heapq.heappop(open_set)
            x, y = arena.xs[handle], arena.ys[handle]

            if (x, y) in closed:
                continue
            g = arena.g[handle]
            # Stale entry superseded by a cheaper route
            if g > best_g[(x, y)]:
                continue
            closed.add((x, y))
            stats.nodes_expanded += 1

            # Goal check
            if x == gx and y == gy:
                path = self._reconstruct_path(arena, handle)
                stats.nodes_created = len(arena)
                stats.path_length = len(path)
                stats.path_cost = g
                stats.success = True
                stats.reason = 'success'
                logger.debug(
                    f"[A*] {start} -> {goal}: {len(path)} moves, cost {g:g}, "
                    f"{stats.nodes_expanded} expanded"
                )
                return path

            # Expand neighbors
            for move in Direction.moves():
                nx, ny = x + move.dx, y + move.dy
                if nx < 0 or ny < 0 or nx >= width or ny >= height:
                    continue
                if (nx, ny) in closed:
                    continue
                value = int(cells[ny, nx])
                if value == obstacle:
                    continue

                tentative_g = g + cost_by_value[value]
                if tentative_g >= best_g.get((nx, ny), float('inf')):
                    continue
                best_g[(nx, ny)] = tentative_g

                child = arena.add(nx, ny, tentative_g, handle)
                seq += 1
                h = abs(nx - gx) + abs(ny - gy)
                heapq.heappush(open_set, (tentative_g + h, seq, child))

        # No path found
        stats.nodes_created = len(arena)
        stats.reason = 'no_path'
        logger.debug(f"[A*] no path {start} -> {goal} after {stats.nodes_expanded} expansions")
        return deque()

    def _reconstruct_path(self, arena: _NodeArena, handle: int) -> Deque[Direction]:
        """Walk back-references from goal to start, then reverse"""
        moves = []
        while arena.parent[handle] != -1:
            parent = arena.parent[handle]
            moves.append(Direction.from_delta(
                arena.xs[handle] - arena.xs[parent],
                arena.ys[handle] - arena.ys[parent]
            ))
            handle = parent
        moves.reverse()
        return deque(moves)

    def path_cost(self, start: Tuple[int, int], path: Iterable[Direction]) -> float:
        """Weighted cost of a move sequence on the current belief map"""
        return sum(self.cell_cost(x, y) for x, y in path_cells(start, path)[1:])


def path_cells(start: Tuple[int, int], path: Iterable[Direction]) -> List[Tuple[int, int]]:
    """Cells visited by a move sequence, start included"""
    cells = [tuple(start)]
    for move in path:
        cells.append(move.apply(cells[-1]))
    return cells
