"""
Belief Map Module
=================

An agent's private memory of the grid, built from bounded local
sensing. Cells start unknown; an observed cell keeps its terrain until
the same cell is observed again. Nothing is ever forgotten.
"""

import numpy as np
from typing import Tuple, Optional, List

from loguru import logger

from ..terrain import Terrain

UNKNOWN = -1


class BeliefMap:
    """
    Per-agent terrain knowledge.

    Features:
    - Unknown cells stored as UNKNOWN (-1)
    - Monotonic: known cells never revert to unknown
    - Known chargers registered once, in first-seen order
    """

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid belief map size: {width}x{height}")
        self.width = width
        self.height = height
        self._cells = np.full((height, width), UNKNOWN, dtype=np.int8)
        self._chargers: List[Tuple[int, int]] = []
        self._charger_set = set()

    @classmethod
    def from_dimensions(cls, dimensions: Tuple[int, int]) -> 'BeliefMap':
        """Create from the environment's (width, height)"""
        width, height = dimensions
        return cls(int(width), int(height))

    # ==================== Updates ====================

    def observe(self, view: np.ndarray, center: Tuple[int, int], radius: int) -> List[Tuple[int, int]]:
        """
        Write a square sensor snapshot into the map.

        Args:
            view: (2r+1, 2r+1) array of terrain values, indexed [dy, dx]
            center: Global coordinate of the view's middle cell
            radius: Sensing radius r

        Returns:
            Chargers discovered by this observation
        """
        size = 2 * radius + 1
        if view.shape != (size, size):
            raise ValueError(f"View shape {view.shape} does not match radius {radius}")

        cx, cy = center
        x0, y0 = cx - radius, cy - radius
        gx0, gx1 = max(0, x0), min(self.width, x0 + size)
        gy0, gy1 = max(0, y0), min(self.height, y0 + size)
        if gx0 >= gx1 or gy0 >= gy1:
            return []

        window = view[gy0 - y0:gy1 - y0, gx0 - x0:gx1 - x0]
        self._cells[gy0:gy1, gx0:gx1] = window

        discovered = []
        ys, xs = np.nonzero(window == Terrain.CHARGER)
        for wy, wx in zip(ys, xs):
            pos = (int(wx) + gx0, int(wy) + gy0)
            if self._add_charger(pos):
                discovered.append(pos)
        return discovered

    def _add_charger(self, pos: Tuple[int, int]) -> bool:
        if pos in self._charger_set:
            return False
        self._charger_set.add(pos)
        self._chargers.append(pos)
        logger.info(f"Discovered new charger at {pos}")
        return True

    # ==================== Queries ====================

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_known(self, x: int, y: int) -> bool:
        return bool(self._cells[y, x] != UNKNOWN)

    def terrain_at(self, x: int, y: int) -> Optional[Terrain]:
        """Known terrain, or None if the cell was never observed"""
        value = int(self._cells[y, x])
        return None if value == UNKNOWN else Terrain(value)

    def is_blocked(self, x: int, y: int) -> bool:
        """True only for cells known to be OBSTACLE"""
        return bool(self._cells[y, x] == Terrain.OBSTACLE)

    def is_charger(self, pos: Tuple[int, int]) -> bool:
        return bool(self._cells[pos[1], pos[0]] == Terrain.CHARGER)

    @property
    def known_chargers(self) -> Tuple[Tuple[int, int], ...]:
        return tuple(self._chargers)

    @property
    def known_fraction(self) -> float:
        """Share of cells observed at least once"""
        return float(np.count_nonzero(self._cells != UNKNOWN)) / self._cells.size

    @property
    def cells(self) -> np.ndarray:
        """Read-only view of the raw array (UNKNOWN = -1)"""
        view = self._cells.view()
        view.flags.writeable = False
        return view

    def as_array(self) -> np.ndarray:
        return self._cells.copy()
