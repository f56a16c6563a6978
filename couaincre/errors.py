"""
Exception hierarchy for Couaincre.

Configuration errors are raised for invalid user input (empty formulas,
literals outside the declared variable range, unknown heuristic or counter
names). Invariant violations signal a bug in the decomposition engine and
should never be observed for valid inputs.
"""


class CouaincreError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(CouaincreError, ValueError):
    """Invalid input or configuration; the run cannot proceed."""


class InvariantViolation(CouaincreError, RuntimeError):
    """Internal consistency check failed during decomposition."""


class CounterError(CouaincreError, RuntimeError):
    """The external model counter could not be executed."""
