"""
Map Loader Module
=================

Reads and writes the plain-text map format: one row per line, one
symbol per cell (see Terrain.symbol). Spaces are ignored.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Union

import numpy as np

from .types import Terrain


class MapFormatError(ValueError):
    """Raised when a map file cannot be parsed"""


@dataclass
class GridMap:
    """Ground-truth grid with its start and target cells"""
    terrain: np.ndarray  # (height, width) Terrain values, indexed [y, x]
    start: Tuple[int, int]
    target: Tuple[int, int]

    @property
    def width(self) -> int:
        return int(self.terrain.shape[1])

    @property
    def height(self) -> int:
        return int(self.terrain.shape[0])

    def chargers(self) -> List[Tuple[int, int]]:
        """All CHARGER cells in row-major order"""
        ys, xs = np.nonzero(self.terrain == Terrain.CHARGER)
        return [(int(x), int(y)) for y, x in zip(ys, xs)]

    def copy(self) -> 'GridMap':
        return GridMap(self.terrain.copy(), self.start, self.target)


def parse_map(text: str) -> GridMap:
    """
    Parse map text into a GridMap.

    Raises:
        MapFormatError: empty map, ragged rows, unknown symbols, or
            not exactly one start and one target
    """
    rows = [line.replace(' ', '') for line in text.splitlines()]
    rows = [row for row in rows if row]
    if not rows:
        raise MapFormatError("map is empty")

    width = len(rows[0])
    terrain = np.zeros((len(rows), width), dtype=np.int8)
    starts, targets = [], []

    for y, row in enumerate(rows):
        if len(row) != width:
            raise MapFormatError(f"row {y} has {len(row)} cells, expected {width}")
        for x, symbol in enumerate(row):
            try:
                cell = Terrain.from_symbol(symbol)
            except KeyError:
                raise MapFormatError(f"unknown symbol {symbol!r} at ({x}, {y})") from None
            terrain[y, x] = cell
            if cell == Terrain.START:
                starts.append((x, y))
            elif cell == Terrain.TARGET:
                targets.append((x, y))

    if len(starts) != 1:
        raise MapFormatError(f"expected exactly one start, found {len(starts)}")
    if len(targets) != 1:
        raise MapFormatError(f"expected exactly one target, found {len(targets)}")

    return GridMap(terrain=terrain, start=starts[0], target=targets[0])


def load_map(path: Union[str, Path]) -> GridMap:
    """Load a map file"""
    with open(path, 'r', encoding='utf-8') as f:
        return parse_map(f.read())


def map_to_string(terrain: np.ndarray) -> str:
    """Render a terrain array back to map text"""
    return '\n'.join(
        ''.join(Terrain(int(v)).symbol for v in row) for row in terrain
    ) + '\n'


def save_map(grid_map: GridMap, path: Union[str, Path]):
    """Write a GridMap in the text format"""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(map_to_string(grid_map.terrain))
