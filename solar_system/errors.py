"""Exceptions and warnings raised by the simulation core."""


class SimulationError(Exception):
    """Base class for simulation errors."""


class ConfigurationError(SimulationError, ValueError):
    """Invalid value supplied at construction or through a control call."""


class NumericalDegeneracyWarning(RuntimeWarning):
    """A body sits on top of its attractor and received no acceleration."""


def require_count(value, label: str, minimum: int = 1) -> int:
    """Return ``value`` as an int, or raise ConfigurationError unless it is an integer >= minimum."""
    if isinstance(value, bool):
        raise ConfigurationError(f"{label} must be an integer >= {minimum}, got {value!r}")
    try:
        count = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ConfigurationError(
            f"{label} must be an integer >= {minimum}, got {value!r}"
        ) from None
    if count != value or count < minimum:
        raise ConfigurationError(f"{label} must be an integer >= {minimum}, got {value!r}")
    return count
