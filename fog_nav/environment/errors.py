"""
Environment errors.
"""


class SimulationError(RuntimeError):
    """Base class for errors raised by the environment"""


class UnknownAgentError(SimulationError):
    """Agent id was never registered (configuration error)"""


class InvalidMoveError(SimulationError):
    """Move into an obstacle or off the grid"""


class EnergyDepletedError(SimulationError):
    """Agent has no usable energy left to act"""
