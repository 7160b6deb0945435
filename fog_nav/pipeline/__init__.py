"""
Pipeline Module
===============

Simulation turn loop and experiment orchestration.
"""

from .runner import Simulation, simulate, ExperimentRunner, ScenarioResult, AggregatedResults

__all__ = [
    'Simulation',
    'simulate',
    'ExperimentRunner',
    'ScenarioResult',
    'AggregatedResults',
]
