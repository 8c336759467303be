"""
Error taxonomy for the simulation.

None of these are recoverable: InvalidParameter is raised before any
simulation starts, the other two indicate a defect in the caller or the core.
"""


class SimulationError(Exception):
    """Base class for all simulation errors."""


class InvalidParameter(SimulationError, ValueError):
    """Non-positive rate/mean or a malformed probability distribution."""


class InvariantViolation(SimulationError, RuntimeError):
    """Core state would become inconsistent (e.g. double-assigning a busy server)."""


class Exhausted(SimulationError, IndexError):
    """Extracting from an empty EventQueue."""
