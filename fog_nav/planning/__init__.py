"""
Planning Module
===============

Path planning, goal selection and the agent's state machine.
"""

from .astar import AStarPlanner, PlannerStats, manhattan, path_cells
from .goal_selector import GoalSelector, nearest_charger
from .controller import RobotController, ControllerState, AgentState

__all__ = [
    'AStarPlanner',
    'PlannerStats',
    'manhattan',
    'path_cells',
    'GoalSelector',
    'nearest_charger',
    'RobotController',
    'ControllerState',
    'AgentState',
]
