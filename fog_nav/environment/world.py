"""
Environment World Module
========================

Main environment class holding the ground-truth grid and the agents'
physical state. Agents only see it through read-only sensing views and
change it through a single entry point (move_robot).
"""

import numpy as np
from pathlib import Path
from typing import Tuple, Optional, Dict, Union
from dataclasses import dataclass

from loguru import logger

from ..config import Config
from ..energy import EnergyModel, EnergyUpdate
from ..terrain import Terrain, Direction, GridMap, load_map
from .errors import UnknownAgentError, InvalidMoveError, EnergyDepletedError


@dataclass
class AgentBody:
    """Physical state of one agent, owned by the environment"""
    agent_id: str
    x: int
    y: int
    energy: int
    steps: int = 0          # actions executed (moves and stays)

    @property
    def position(self) -> Tuple[int, int]:
        return (self.x, self.y)


def extract_view(grid: np.ndarray, center: Tuple[int, int], radius: int) -> np.ndarray:
    """
    Square (2r+1)x(2r+1) window of grid centred on center.

    Cells beyond the grid are reported as OBSTACLE.
    """
    height, width = grid.shape
    size = 2 * radius + 1
    view = np.full((size, size), Terrain.OBSTACLE, dtype=np.int8)

    cx, cy = center
    x0, y0 = cx - radius, cy - radius
    gx0, gx1 = max(0, x0), min(width, x0 + size)
    gy0, gy1 = max(0, y0), min(height, y0 + size)

    if gx0 < gx1 and gy0 < gy1:
        view[gy0 - y0:gy1 - y0, gx0 - x0:gx1 - x0] = grid[gy0:gy1, gx0:gx1]
    return view


class Environment:
    """
    Complete world environment for grid navigation.

    Contains:
    - Terrain grid (ground truth)
    - Start and target positions
    - Registered agents (position, energy)
    - Turn counter

    Provides:
    - Local sensing views
    - Move legality checks
    - Move execution with terrain energy effects
    """

    def __init__(self, grid_map: GridMap, config: Optional[Config] = None):
        """
        Initialize environment.

        Args:
            grid_map: Ground-truth map
            config: Configuration object
        """
        self.config = config or Config()
        self._map = grid_map
        self.energy_model = EnergyModel(self.config)
        self.max_turns = self.config.simulation.max_turns

        self._agents: Dict[str, AgentBody] = {}
        self._turn = 0

    @classmethod
    def from_file(cls, path: Union[str, Path], config: Optional[Config] = None) -> 'Environment':
        """Create environment from a map file"""
        return cls(load_map(path), config)

    # ==================== Property Access ====================

    @property
    def terrain(self) -> np.ndarray:
        """Terrain grid, indexed [y, x]"""
        return self._map.terrain

    @property
    def grid_map(self) -> GridMap:
        return self._map

    @property
    def width(self) -> int:
        return self._map.width

    @property
    def height(self) -> int:
        return self._map.height

    def grid_dimensions(self) -> Tuple[int, int]:
        """(width, height)"""
        return (self._map.width, self._map.height)

    def start(self) -> Tuple[int, int]:
        return self._map.start

    def goal(self) -> Tuple[int, int]:
        """Fixed mission target"""
        return self._map.target

    # ==================== Agents ====================

    def add_agent(self, agent_id: str) -> AgentBody:
        """Place a new agent on the start cell with the initial energy"""
        if agent_id in self._agents:
            raise ValueError(f"Agent already registered: {agent_id}")
        sx, sy = self._map.start
        body = AgentBody(agent_id, sx, sy, self.config.energy.initial_energy)
        self._agents[agent_id] = body
        logger.debug(f"Agent {agent_id} placed at {body.position} with energy {body.energy}")
        return body

    def agent(self, agent_id: str) -> AgentBody:
        body = self._agents.get(agent_id)
        if body is None:
            raise UnknownAgentError(f"Robot unknown: {agent_id}")
        return body

    @property
    def agent_ids(self) -> Tuple[str, ...]:
        return tuple(self._agents)

    def position(self, agent_id: str) -> Tuple[int, int]:
        return self.agent(agent_id).position

    def energy(self, agent_id: str) -> int:
        return self.agent(agent_id).energy

    def is_at_target(self, agent_id: str) -> bool:
        return self.is_target(*self.position(agent_id))

    # ==================== Cell Queries ====================

    def is_in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_valid(self, x: int, y: int) -> bool:
        """Check if cell is in bounds and traversable"""
        return self.is_in_bounds(x, y) and self.terrain[y, x] != Terrain.OBSTACLE

    def terrain_at(self, x: int, y: int) -> Terrain:
        if not self.is_in_bounds(x, y):
            return Terrain.OBSTACLE
        return Terrain(int(self.terrain[y, x]))

    def is_target(self, x: int, y: int) -> bool:
        return (x, y) == self._map.target

    # ==================== Agent Contract ====================

    def local_view(self, agent_id: str, radius: int) -> np.ndarray:
        """Square sensor snapshot centred on the agent (copy)"""
        return extract_view(self.terrain, self.position(agent_id), radius)

    def can_move_to(self, agent_id: str, direction: Direction) -> bool:
        """Legality precheck without side effects"""
        body = self.agent(agent_id)
        if direction == Direction.NONE:
            return True
        x, y = direction.apply(body.position)
        return self.is_valid(x, y)

    def move_robot(self, agent_id: str, direction: Direction) -> EnergyUpdate:
        """
        Execute a move (or a NONE stay).

        The occupied cell's terrain effect is applied first; the agent
        then moves if it has energy left.

        Raises:
            InvalidMoveError: target cell is an obstacle or off the grid
            EnergyDepletedError: no energy left after the terrain effect
        """
        body = self.agent(agent_id)

        if not self.can_move_to(agent_id, direction):
            raise InvalidMoveError(f"Invalid move: {direction.name} from {body.position}")

        update = self.energy_model.terrain_effect(body.energy, self.terrain_at(body.x, body.y))
        body.energy = update.after

        if body.energy <= 0:
            raise EnergyDepletedError(f"No energy: {agent_id} at {body.position}")

        self.energy_model.charge_move(update, direction)
        body.x, body.y = direction.apply(body.position)
        body.energy = update.after
        body.steps += 1
        return update

    # ==================== Turns ====================

    def turn(self) -> int:
        return self._turn

    def next_turn(self):
        self._turn += 1

    def is_over(self) -> bool:
        return self._turn >= self.max_turns
