"""
Terrain Generator Module
========================

Procedural generation of grid maps with walls, lava pools and chargers.
Single Responsibility: Only generates terrain and start/target placement.
"""

import numpy as np
from scipy.ndimage import label
from typing import Tuple, Optional

from loguru import logger

from .types import Terrain
from .loader import GridMap
from ..config import MapConfig


class MapGenerator:
    """
    Procedural map generator for fog-of-war navigation scenarios.

    Creates grids with:
    - Straight wall segments
    - Scattered single-cell obstacles
    - Round lava pools
    - Charging cells
    - Start on the left edge region, target on the right

    Maps are regenerated until start and target are connected through
    traversable cells (4-connectivity).
    """

    def __init__(self, config: Optional[MapConfig] = None, seed: Optional[int] = None):
        self.config = config or MapConfig()
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.width = self.config.width
        self.height = self.config.height

    def generate(self) -> GridMap:
        """
        Generate a connected map.

        Raises:
            RuntimeError: if no connected layout was found in max_attempts
        """
        for attempt in range(1, self.config.max_attempts + 1):
            start, target = generate_start_target(self.width, self.height, self.rng)
            terrain = self._generate_terrain(start, target)

            if is_connected(terrain, start, target):
                logger.debug(f"Generated {self.width}x{self.height} map in {attempt} attempt(s)")
                return GridMap(terrain=terrain, start=start, target=target)

        raise RuntimeError(
            f"No connected map after {self.config.max_attempts} attempts (seed={self.seed})"
        )

    def _generate_terrain(self, start: Tuple[int, int], target: Tuple[int, int]) -> np.ndarray:
        """Generate terrain layer"""
        terrain = np.full((self.height, self.width), Terrain.EMPTY, dtype=np.int8)

        # 1. Walls
        self._add_walls(terrain)

        # 2. Scattered obstacles
        self._add_scattered_obstacles(terrain)

        # 3. Lava pools
        self._add_lava_pools(terrain)

        # 4. Chargers on free cells
        self._add_chargers(terrain, start, target)

        terrain[start[1], start[0]] = Terrain.START
        terrain[target[1], target[0]] = Terrain.TARGET

        return terrain

    def _add_walls(self, terrain: np.ndarray):
        """Add horizontal and vertical wall segments"""
        num_walls = self.rng.integers(*self.config.num_walls, endpoint=True)

        for _ in range(num_walls):
            length = int(self.rng.integers(*self.config.wall_length, endpoint=True))
            x = int(self.rng.integers(0, self.width))
            y = int(self.rng.integers(0, self.height))
            if self.rng.random() < 0.5:
                terrain[y, x:min(self.width, x + length)] = Terrain.OBSTACLE
            else:
                terrain[y:min(self.height, y + length), x] = Terrain.OBSTACLE

    def _add_scattered_obstacles(self, terrain: np.ndarray):
        """Add randomly scattered single-cell obstacles"""
        mask = self.rng.random(terrain.shape) < self.config.obstacle_density
        terrain[mask] = Terrain.OBSTACLE

    def _add_lava_pools(self, terrain: np.ndarray):
        """Add round lava pools"""
        num_pools = self.rng.integers(*self.config.num_lava_pools, endpoint=True)

        for _ in range(num_pools):
            cx = int(self.rng.integers(0, self.width))
            cy = int(self.rng.integers(0, self.height))
            r = int(self.rng.integers(*self.config.lava_pool_radius, endpoint=True))

            y, x = np.ogrid[:self.height, :self.width]
            mask = (np.abs(x - cx) + np.abs(y - cy)) <= r
            terrain[mask & (terrain == Terrain.EMPTY)] = Terrain.LAVA

    def _add_chargers(self, terrain: np.ndarray, start: Tuple[int, int], target: Tuple[int, int]):
        """Place chargers on empty cells, away from start and target"""
        num_chargers = int(self.rng.integers(*self.config.num_chargers, endpoint=True))

        free = np.argwhere(terrain == Terrain.EMPTY)
        free = [
            (int(x), int(y)) for y, x in free
            if (x, y) != start and (x, y) != target
        ]
        if not free:
            return

        picks = self.rng.choice(len(free), size=min(num_chargers, len(free)), replace=False)
        for i in picks:
            x, y = free[int(i)]
            terrain[y, x] = Terrain.CHARGER


def is_connected(terrain: np.ndarray, a: Tuple[int, int], b: Tuple[int, int]) -> bool:
    """True if a and b lie in the same 4-connected traversable component"""
    labels, _ = label(terrain != Terrain.OBSTACLE)
    la = labels[a[1], a[0]]
    return la != 0 and la == labels[b[1], b[0]]


def generate_start_target(width: int, height: int,
                          rng: np.random.Generator) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """
    Generate distinct start and target positions.

    Start: left quarter of the map
    Target: right quarter of the map
    """
    quarter = max(1, width // 4)

    start = (
        int(rng.integers(0, quarter)),
        int(rng.integers(0, height))
    )

    target = (
        int(rng.integers(width - quarter, width)),
        int(rng.integers(0, height))
    )

    return start, target
