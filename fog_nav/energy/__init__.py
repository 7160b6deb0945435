"""
Energy Module
=============

Terrain effects on the agent's energy budget.
"""

from .model import EnergyModel, EnergyUpdate

__all__ = [
    'EnergyModel',
    'EnergyUpdate',
]
