"""
Configuration Module
====================

Centralized configuration management for fog-of-war grid navigation.
"""

from .settings import (
    Config,
    AgentConfig,
    TerrainConfig,
    EnergyConfig,
    SimulationConfig,
    MapConfig,
    VisualizationConfig,
    load_config,
    save_config,
)
from .log_setup import configure_logging

__all__ = [
    'Config',
    'AgentConfig',
    'TerrainConfig',
    'EnergyConfig',
    'SimulationConfig',
    'MapConfig',
    'VisualizationConfig',
    'load_config',
    'save_config',
    'configure_logging',
]
