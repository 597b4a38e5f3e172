import math
from numbers import Integral, Real
from typing import Any

from omegaconf import DictConfig

from ..exceptions import InvalidParameterError, InvalidSizeError
from .logging import log_call


@log_call
def check_probability(name: str, value: Any) -> float:
    """Return ``value`` as a float, or raise if it is not a probability."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidParameterError(f"{name} must be a real number, got {value!r}")
    value = float(value)
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise InvalidParameterError(f"{name} must be between 0 and 1, got {value}")
    return value


@log_call
def check_duration(name: str, value: Any) -> int:
    """Return ``value`` as an int, or raise if it is not a positive round count."""
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise InvalidParameterError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise InvalidParameterError(f"{name} must be positive, got {value}")
    return int(value)


@log_call
def check_grid_size(size: Any) -> int:
    """Return the grid side length for ``size`` individuals.

    Sizes that are not positive perfect squares are rejected rather than
    rounded down.
    """
    if isinstance(size, bool) or not isinstance(size, Integral):
        raise InvalidSizeError(f"population size must be an integer, got {size!r}")
    if size <= 0:
        raise InvalidSizeError(f"population size must be positive, got {size}")
    side = math.isqrt(int(size))
    if side * side != size:
        raise InvalidSizeError(
            f"population size {size} is not a perfect square "
            f"(nearest smaller grid is {side}x{side}={side * side})"
        )
    return side


@log_call
def validate_config(cfg: DictConfig) -> None:
    """Validation for simulation configs."""
    # core imports this module
    from ..core.data_structures import ParameterSet

    check_grid_size(cfg.population.size)
    ParameterSet.from_mapping(cfg.disease)
    if cfg.simulation.n_rounds < 0:
        raise ValueError("n_rounds must be non-negative")
