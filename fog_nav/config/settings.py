"""
Configuration Settings Module
==============================

Dataclass-based configuration with validation and defaults.
Follows Single Responsibility Principle - only handles configuration.
"""

import json
from dataclasses import dataclass, field, fields, asdict, is_dataclass
from pathlib import Path
from typing import Dict, Optional, Any, Union


@dataclass
class AgentConfig:
    """Decision subsystem parameters"""
    sensing_radius: int = 3  # cells, square window of side 2r+1
    energy_threshold: int = 40  # below this, divert to nearest known charger

    # Decision cycle
    chain_free_states: bool = True  # think through states until an action is issued
    max_transitions_per_cycle: int = 16


@dataclass
class TerrainConfig:
    """Planner movement costs"""
    normal_cost: float = 1.0
    lava_cost: float = 100.0
    unknown_cost: float = 1.0  # optimistic


@dataclass
class EnergyConfig:
    """Energy effects applied by the environment"""
    initial_energy: int = 100
    max_energy: int = 100
    charger_gain: int = 20
    lava_drain: int = 20
    move_cost: int = 1


@dataclass
class SimulationConfig:
    """Turn loop settings"""
    max_turns: int = 200
    step_delay_s: float = 0.0
    agent_id: str = 'Robby'


@dataclass
class MapConfig:
    """Map generation configuration"""
    width: int = 20
    height: int = 20

    # Generation parameters
    num_walls: tuple = (2, 5)  # min, max
    wall_length: tuple = (3, 10)
    obstacle_density: float = 0.08
    num_lava_pools: tuple = (1, 4)
    lava_pool_radius: tuple = (1, 2)
    num_chargers: tuple = (1, 3)
    max_attempts: int = 50


@dataclass
class VisualizationConfig:
    """Visualization configuration"""
    enabled: bool = True

    # Colors, indexed by terrain value (EMPTY, OBSTACLE, LAVA, CHARGER, START, TARGET)
    terrain_colors: tuple = ('white', 'black', 'orangered', 'gold', 'limegreen', 'royalblue')
    unknown_color: str = 'lightgray'
    path_color: str = 'purple'
    figure_size: tuple = (12, 6)
    dpi: int = 100


@dataclass
class Config:
    """
    Master configuration class combining all sub-configurations.

    Usage:
        config = Config()
        config = Config(agent=AgentConfig(sensing_radius=5))
        config = Config.from_dict({'energy': {'initial_energy': 30}})
    """
    agent: AgentConfig = field(default_factory=AgentConfig)
    terrain: TerrainConfig = field(default_factory=TerrainConfig)
    energy: EnergyConfig = field(default_factory=EnergyConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    map: MapConfig = field(default_factory=MapConfig)
    visualization: VisualizationConfig = field(default_factory=VisualizationConfig)

    # Global settings
    random_seed: Optional[int] = None
    verbose: bool = False

    def validate(self) -> 'Config':
        """Check value ranges, raising ValueError on the first violation"""
        if self.agent.sensing_radius < 1:
            raise ValueError(f"sensing_radius must be >= 1, got {self.agent.sensing_radius}")
        if self.agent.max_transitions_per_cycle < 2:
            raise ValueError("max_transitions_per_cycle must be >= 2")
        if not 0 < self.agent.energy_threshold <= self.energy.max_energy:
            raise ValueError(
                f"energy_threshold must be in (0, {self.energy.max_energy}], "
                f"got {self.agent.energy_threshold}"
            )
        if not 0 < self.energy.initial_energy <= self.energy.max_energy:
            raise ValueError("initial_energy must be in (0, max_energy]")
        # Admissibility of the Manhattan heuristic needs a minimum edge cost of 1
        if min(self.terrain.normal_cost, self.terrain.lava_cost, self.terrain.unknown_cost) < 1.0:
            raise ValueError("movement costs must be >= 1")
        if self.simulation.max_turns <= 0:
            raise ValueError("max_turns must be positive")
        if self.map.width < 2 or self.map.height < 1:
            raise ValueError("map must be at least 2x1 cells")
        return self

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Config':
        """Create Config from (possibly nested, possibly partial) dictionary"""
        config = cls()
        for key, value in d.items():
            if not hasattr(config, key):
                raise ValueError(f"Unknown config key: {key}")
            current = getattr(config, key)
            if is_dataclass(current) and isinstance(value, dict):
                _merge_section(current, value, key)
            else:
                setattr(config, key, value)
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Export config to dictionary"""
        return asdict(self)


def _merge_section(section, values: Dict[str, Any], name: str):
    known = {f.name: f for f in fields(section)}
    for key, value in values.items():
        if key not in known:
            raise ValueError(f"Unknown config key: {name}.{key}")
        # JSON has no tuples
        if isinstance(getattr(section, key), tuple) and isinstance(value, list):
            value = tuple(value)
        setattr(section, key, value)


def load_config(path: Union[str, Path]) -> Config:
    """Load a JSON config file on top of the defaults"""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return Config.from_dict(data).validate()


def save_config(config: Config, path: Union[str, Path]):
    """Write config as JSON"""
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(config.to_dict(), f, indent=2)
