"""
Fog-of-War Grid Navigation
==========================

A single agent crosses a 2D grid toward a target while seeing only a
small square around itself, paying extra to cross lava and spending an
energy budget it can refill at chargers it has discovered.

Key Features:
- Monotonic belief map built from bounded local sensing
- Weighted A* over the belief map (unknown cells assumed passable)
- Energy-aware goal selection between target and nearest known charger
- Finite-state controller with replanning on newly revealed obstacles
- Reference environment, map files, map generator and experiment runner

Version: 1.0.0
"""

__version__ = "1.0.0"

from .config import Config, configure_logging
from .terrain import Terrain, Direction, GridMap, load_map, parse_map
from .environment import Environment, BeliefMap
from .energy import EnergyModel
from .planning import AStarPlanner, GoalSelector, RobotController, AgentState
from .metrics import RunResult, RunStatus
from .pipeline import Simulation, simulate, ExperimentRunner

__all__ = [
    'Config', 'configure_logging',
    'Terrain', 'Direction', 'GridMap', 'load_map', 'parse_map',
    'Environment', 'BeliefMap',
    'EnergyModel',
    'AStarPlanner', 'GoalSelector', 'RobotController', 'AgentState',
    'RunResult', 'RunStatus',
    'Simulation', 'simulate', 'ExperimentRunner',
]
