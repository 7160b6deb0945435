"""
Goal Selector Module
====================

Energy-aware arbitration between the mission target and the nearest
known charger.
"""

from typing import Tuple, Optional, Sequence

from ..config import Config
from ..environment import BeliefMap
from .astar import manhattan


def nearest_charger(position: Tuple[int, int],
                    chargers: Sequence[Tuple[int, int]]) -> Optional[Tuple[int, int]]:
    """Closest charger by Manhattan distance; ties keep the first found"""
    best = None
    best_dist = None
    for charger in chargers:
        dist = manhattan(position, charger)
        if best_dist is None or dist < best_dist:
            best, best_dist = charger, dist
    return best


class GoalSelector:
    """
    Chooses the single active destination for a decision cycle.

    Rules, first match wins:
    1. Standing on a known CHARGER with energy below full -> own cell
       (stay and charge)
    2. Energy below the threshold and a charger is known -> nearest charger
    3. Otherwise -> mission target

    The result depends only on the arguments and the belief map, so an
    unchanged situation never flips the destination between cycles.
    """

    def __init__(self, belief: BeliefMap, config: Optional[Config] = None):
        self.belief = belief
        self.config = config or Config()
        self.energy_threshold = self.config.agent.energy_threshold
        self.max_energy = self.config.energy.max_energy

    def select_destination(self,
                           position: Tuple[int, int],
                           energy: int,
                           mission_target: Tuple[int, int],
                           known_chargers: Sequence[Tuple[int, int]]) -> Tuple[int, int]:
        position = tuple(position)

        if energy < self.max_energy and self.belief.is_charger(position):
            return position

        if energy < self.energy_threshold and known_chargers:
            return nearest_charger(position, known_chargers)

        return tuple(mission_target)

    def wants_to_charge(self, position: Tuple[int, int], energy: int) -> bool:
        """True when the stay-and-charge rule applies"""
        return energy < self.max_energy and self.belief.is_charger(tuple(position))
