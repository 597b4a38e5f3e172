"""Errors raised by the grid epidemic simulator."""


class SimulationError(Exception):
    """Base class for all simulator errors."""


class InvalidSizeError(SimulationError, ValueError):
    """Population size cannot be laid out as a square grid."""


class InvalidParameterError(SimulationError, ValueError):
    """A disease parameter is out of range or not recognized."""
