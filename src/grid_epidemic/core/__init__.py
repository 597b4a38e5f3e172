"""Core data structures."""

from .data_structures import (
    HealthState,
    Individual,
    ParameterSet,
    Population,
    STATE_LABELS,
    as_parameter_set,
)

__all__ = [
    "HealthState",
    "Individual",
    "ParameterSet",
    "Population",
    "STATE_LABELS",
    "as_parameter_set",
]
