"""
Energy Model Module
===================

Terrain effects on an agent's energy budget. Applied by the
environment when a move (or a stay) is executed, never by the planner.
"""

from dataclasses import dataclass
from typing import Dict

from ..config import Config
from ..terrain import Terrain, Direction


@dataclass
class EnergyUpdate:
    """Detailed energy change for one executed action"""
    before: int = 0
    terrain_gain: int = 0    # Charger refill (after capping)
    terrain_drain: int = 0   # Lava burn (after flooring)
    move_cost: int = 0
    after: int = 0

    @property
    def delta(self) -> int:
        return self.after - self.before

    def to_dict(self) -> Dict[str, int]:
        return {
            'before': self.before,
            'terrain_gain': self.terrain_gain,
            'terrain_drain': self.terrain_drain,
            'move_cost': self.move_cost,
            'after': self.after,
            'delta': self.delta
        }


class EnergyModel:
    """
    Grid energy rules.

    For an action issued while standing on a cell:
    1. Terrain effect of the occupied cell: CHARGER refills (capped at
       max_energy), LAVA burns (floored at 0).
    2. If energy is left, a displacing move costs move_cost; a stay is free.
    """

    def __init__(self, config: Config):
        self.config = config
        self.max_energy = config.energy.max_energy

    def terrain_effect(self, energy: int, terrain: Terrain) -> EnergyUpdate:
        """Apply the occupied cell's effect only"""
        update = EnergyUpdate(before=energy, after=energy)

        if terrain == Terrain.CHARGER:
            after = min(self.max_energy, energy + self.config.energy.charger_gain)
            update.terrain_gain = after - energy
            update.after = after
        elif terrain == Terrain.LAVA:
            after = max(0, energy - self.config.energy.lava_drain)
            update.terrain_drain = energy - after
            update.after = after

        return update

    def charge_move(self, update: EnergyUpdate, direction: Direction) -> EnergyUpdate:
        """Add the displacement cost to an update that left energy > 0"""
        if direction != Direction.NONE:
            update.move_cost = self.config.energy.move_cost
            update.after = max(0, update.after - update.move_cost)
        return update
