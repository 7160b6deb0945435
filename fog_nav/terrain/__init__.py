"""
Terrain Module
==============

Terrain and direction types, map files, and procedural map generation.
"""

from .types import Terrain, Direction, TerrainProperties
from .loader import GridMap, MapFormatError, parse_map, load_map, map_to_string, save_map
from .generator import MapGenerator, generate_start_target, is_connected

__all__ = [
    'Terrain',
    'Direction',
    'TerrainProperties',
    'GridMap',
    'MapFormatError',
    'parse_map',
    'load_map',
    'map_to_string',
    'save_map',
    'MapGenerator',
    'generate_start_target',
    'is_connected',
]
