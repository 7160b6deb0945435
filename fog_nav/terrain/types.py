"""
Terrain Types Module
====================

Defines terrain and direction enumerations and utilities.
"""

from enum import Enum, IntEnum
from typing import Dict, Tuple


class Terrain(IntEnum):
    """
    Terrain type enumeration.

    Values are integers for efficient numpy array storage.
    """
    EMPTY = 0
    OBSTACLE = 1
    LAVA = 2
    CHARGER = 3
    START = 4
    TARGET = 5

    @property
    def symbol(self) -> str:
        """Map-file symbol"""
        return _SYMBOLS[self]

    @classmethod
    def from_symbol(cls, symbol: str) -> 'Terrain':
        """Get terrain type from its map symbol (KeyError if unknown)"""
        return _FROM_SYMBOL[symbol]

    def is_traversable(self) -> bool:
        """Check if terrain is traversable"""
        return self != Terrain.OBSTACLE


_SYMBOLS: Dict[Terrain, str] = {
    Terrain.EMPTY: '.',
    Terrain.OBSTACLE: '#',
    Terrain.LAVA: 'L',
    Terrain.CHARGER: 'C',
    Terrain.START: 'S',
    Terrain.TARGET: 'T',
}
_FROM_SYMBOL: Dict[str, Terrain] = {s: t for t, s in _SYMBOLS.items()}


class Direction(Enum):
    """Axis-aligned moves; NONE is the stay-in-place action"""
    LEFT = (-1, 0)
    RIGHT = (1, 0)
    UP = (0, -1)
    DOWN = (0, 1)
    NONE = (0, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    def apply(self, pos: Tuple[int, int]) -> Tuple[int, int]:
        """Coordinate reached by taking this move from pos"""
        return (pos[0] + self.dx, pos[1] + self.dy)

    @classmethod
    def from_delta(cls, dx: int, dy: int) -> 'Direction':
        """Direction for a unit coordinate delta"""
        return cls((dx, dy))

    @classmethod
    def moves(cls) -> Tuple['Direction', ...]:
        """The four displacing moves, in expansion order"""
        return (cls.LEFT, cls.RIGHT, cls.UP, cls.DOWN)


class TerrainProperties:
    """
    Static terrain properties lookup.

    Provides fast access to terrain-specific parameters.
    """

    # Planner movement cost of entering a cell
    MOVEMENT_COST = {
        Terrain.EMPTY: 1.0,
        Terrain.OBSTACLE: float('inf'),
        Terrain.LAVA: 100.0,
        Terrain.CHARGER: 1.0,
        Terrain.START: 1.0,
        Terrain.TARGET: 1.0
    }

    @classmethod
    def cost_table(cls, normal_cost: float = 1.0, lava_cost: float = 100.0) -> Dict[Terrain, float]:
        """Movement costs with the configurable values substituted"""
        table = {t: (normal_cost if c == 1.0 else c) for t, c in cls.MOVEMENT_COST.items()}
        table[Terrain.LAVA] = lava_cost
        return table
