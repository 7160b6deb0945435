"""
Environment Module
==================

Ground-truth world, agent belief maps, and environment errors.
"""

from .world import Environment, AgentBody, extract_view
from .belief import BeliefMap, UNKNOWN
from .errors import SimulationError, UnknownAgentError, InvalidMoveError, EnergyDepletedError

__all__ = [
    'Environment',
    'AgentBody',
    'extract_view',
    'BeliefMap',
    'UNKNOWN',
    'SimulationError',
    'UnknownAgentError',
    'InvalidMoveError',
    'EnergyDepletedError',
]
