"""
Data structures for the grid epidemic simulation.

The population is stored column-wise: one numpy array per attribute, indexed
by individual id. ``Individual`` objects are read-only snapshots of a single
row, so callers refer to agents by their stable integer id rather than by
object identity.
"""

import dataclasses
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Iterator, Mapping, Optional, Union

import numpy as np
import pandas as pd

from ..exceptions import InvalidParameterError
from ..utils.logging import log_call
from ..utils.validation import check_duration, check_probability


class HealthState(IntEnum):
    """Disease state of an individual, stored as an int8 code."""

    HEALTHY = 0
    EXPOSED = 1
    INFECTED = 2
    RECOVERED = 3

    @property
    @log_call
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    @log_call
    def parse(cls, value: Union["HealthState", int, str]) -> "HealthState":
        """Accept a state, its integer code or its lower-case label."""
        if isinstance(value, str):
            try:
                return cls[value.upper()]
            except KeyError:
                raise ValueError(f"Unknown health state {value!r}") from None
        return cls(value)


STATE_LABELS = tuple(state.label for state in HealthState)


@dataclass(frozen=True)
class Individual:
    """Snapshot of one agent at the time it was read from a population."""

    id: int
    x: float
    y: float
    state: HealthState
    days_exposed: int = 0
    days_infected: int = 0
    quarantined: bool = False
    newly_exposed: bool = False
    newly_infected: bool = False


@dataclass(eq=False)
class Population:
    """
    Ordered, fixed-size population laid out on a 2-D plane.

    Parameters
    ----------
    x, y : np.ndarray
        Fixed positions in the normalized [0, 100) square
    state : np.ndarray
        int8 ``HealthState`` codes
    days_exposed, days_infected : np.ndarray
        Rounds spent in the current exposed / infected state
    quarantined, newly_exposed, newly_infected : np.ndarray
        Boolean flags per individual

    Only ``x`` and ``y`` are required; the remaining columns default to a
    fully healthy population.
    """

    x: np.ndarray
    y: np.ndarray
    state: Optional[np.ndarray] = None
    days_exposed: Optional[np.ndarray] = None
    days_infected: Optional[np.ndarray] = None
    quarantined: Optional[np.ndarray] = None
    newly_exposed: Optional[np.ndarray] = None
    newly_infected: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        # Positions are private read-only copies
        self.x = np.array(self.x, dtype=float)
        self.y = np.array(self.y, dtype=float)
        self.x.flags.writeable = False
        self.y.flags.writeable = False
        n = len(self.x)
        if len(self.y) != n:
            raise ValueError(
                f"x and y must have the same length ({n} != {len(self.y)})"
            )
        if self.state is not None:
            codes = np.asarray(self.state)
            unknown = ~np.isin(codes, [int(s) for s in HealthState])
            if unknown.any():
                raise ValueError(
                    "Unknown health state code(s): "
                    f"{sorted(set(codes[unknown].tolist()))}"
                )

        defaults = {
            "state": (np.int8, HealthState.HEALTHY),
            "days_exposed": (np.int32, 0),
            "days_infected": (np.int32, 0),
            "quarantined": (bool, False),
            "newly_exposed": (bool, False),
            "newly_infected": (bool, False),
        }
        for name, (dtype, fill) in defaults.items():
            column = getattr(self, name)
            if column is None:
                column = np.full(n, fill, dtype=dtype)
            else:
                column = np.asarray(column, dtype=dtype)
                if column.shape != (n,):
                    raise ValueError(
                        f"{name} has shape {column.shape}, expected ({n},)"
                    )
            setattr(self, name, column)
        self._check_consistency()

    def _check_consistency(self) -> None:
        """Raise if counters or flags contradict the health states."""
        exposed = self.state == HealthState.EXPOSED
        infected = self.state == HealthState.INFECTED
        for name in ("days_exposed", "days_infected"):
            if (getattr(self, name) < 0).any():
                raise ValueError(f"{name} must be non-negative")
        rules = (
            ("days_exposed", exposed),
            ("days_infected", infected),
            ("quarantined", infected),
            ("newly_exposed", exposed),
            ("newly_infected", infected),
        )
        for name, allowed in rules:
            offending = np.flatnonzero(getattr(self, name).astype(bool) & ~allowed)
            if offending.size:
                raise ValueError(
                    f"{name} is set for individual(s) {offending.tolist()} "
                    f"outside the matching health state"
                )

    @classmethod
    @log_call
    def from_positions(cls, x, y) -> "Population":
        """Create an all-healthy population at the given positions."""
        return cls(x=x, y=y)

    @property
    @log_call
    def size(self) -> int:
        return len(self.x)

    def __len__(self) -> int:
        return len(self.x)

    def __getitem__(self, individual_id: int) -> Individual:
        idx = self._check_id(individual_id)
        return Individual(
            id=idx,
            x=float(self.x[idx]),
            y=float(self.y[idx]),
            state=HealthState(int(self.state[idx])),
            days_exposed=int(self.days_exposed[idx]),
            days_infected=int(self.days_infected[idx]),
            quarantined=bool(self.quarantined[idx]),
            newly_exposed=bool(self.newly_exposed[idx]),
            newly_infected=bool(self.newly_infected[idx]),
        )

    def __iter__(self) -> Iterator[Individual]:
        for idx in range(len(self)):
            yield self[idx]

    def _check_id(self, individual_id: int) -> int:
        idx = int(individual_id)
        if idx < 0 or idx >= len(self):
            raise IndexError(f"Individual id {individual_id} out of range")
        return idx

    @property
    @log_call
    def ids(self) -> np.ndarray:
        return np.arange(len(self))

    @property
    @log_call
    def positions(self) -> np.ndarray:
        """Positions as an (n, 2) array."""
        return np.column_stack((self.x, self.y))

    @log_call
    def mask(self, state: Union[HealthState, int, str]) -> np.ndarray:
        """Boolean mask of individuals currently in ``state``."""
        return self.state == HealthState.parse(state)

    @log_call
    def count(self, state: Union[HealthState, int, str]) -> int:
        return int(np.count_nonzero(self.mask(state)))

    @log_call
    def set_state(
        self,
        individual_id: int,
        state: Union[HealthState, int, str],
        days_exposed: int = 0,
        days_infected: int = 0,
    ) -> None:
        """
        Force an individual into ``state``.

        Counters that do not belong to the new state are zeroed and the
        display markers are cleared, so the population invariants hold after
        the call.
        """
        idx = self._check_id(individual_id)
        state = HealthState.parse(state)
        self.state[idx] = state
        self.days_exposed[idx] = (
            days_exposed if state == HealthState.EXPOSED else 0
        )
        self.days_infected[idx] = (
            days_infected if state == HealthState.INFECTED else 0
        )
        self.quarantined[idx] = False
        self.newly_exposed[idx] = False
        self.newly_infected[idx] = False

    @log_call
    def copy(self) -> "Population":
        return Population(
            **{f.name: getattr(self, f.name).copy()
               for f in dataclasses.fields(self)}
        )

    @log_call
    def to_frame(self) -> pd.DataFrame:
        """One row per individual, with state labels instead of codes."""
        frame = pd.DataFrame({
            "id": self.ids,
            "x": self.x,
            "y": self.y,
            "state": pd.Categorical.from_codes(
                self.state.astype(int), categories=list(STATE_LABELS)
            ),
            "days_exposed": self.days_exposed,
            "days_infected": self.days_infected,
            "quarantined": self.quarantined,
            "newly_exposed": self.newly_exposed,
            "newly_infected": self.newly_infected,
        })
        return frame.set_index("id")


# camelCase keys used by the browser front end
_CAMEL_CASE_KEYS = {
    "infectionRate": "infection_rate",
    "incubationTime": "incubation_time",
    "recoveryTime": "recovery_time",
    "reinfectionProbability": "reinfection_probability",
    "quarantineThreshold": "quarantine_threshold",
    "quarantineReductionFactor": "quarantine_reduction_factor",
}


@dataclass(frozen=True)
class ParameterSet:
    """
    Tunable disease parameters, validated on construction.

    Parameters
    ----------
    infection_rate : float, default=0.3
        Per-contact transmission probability
    incubation_time : int, default=5
        Rounds spent exposed before becoming infected
    recovery_time : int, default=14
        Rounds spent infected before recovering
    reinfection_probability : float, default=0.01
        Per-round chance that a recovered individual becomes healthy again
    quarantine_threshold : float, default=0.1
        Infected fraction at which quarantine activates
    quarantine_reduction_factor : float, default=0.3
        Multiplier on ``infection_rate`` while quarantine is active

    Raises
    ------
    InvalidParameterError
        If a probability lies outside [0, 1] or a duration is not a positive
        integer.
    """

    infection_rate: float = 0.3
    incubation_time: int = 5
    recovery_time: int = 14
    reinfection_probability: float = 0.01
    quarantine_threshold: float = 0.1
    quarantine_reduction_factor: float = 0.3

    def __post_init__(self) -> None:
        for name in ("infection_rate", "reinfection_probability",
                     "quarantine_threshold", "quarantine_reduction_factor"):
            value = check_probability(name, getattr(self, name))
            object.__setattr__(self, name, value)
        for name in ("incubation_time", "recovery_time"):
            value = check_duration(name, getattr(self, name))
            object.__setattr__(self, name, value)

    @classmethod
    @log_call
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "ParameterSet":
        """
        Build a parameter set from a configuration record.

        Both snake_case field names and the camelCase keys of the original
        UI are accepted; missing keys take their defaults.
        """
        values: Dict[str, Any] = {}
        for key, value in mapping.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name not in _FIELD_NAMES:
                raise InvalidParameterError(f"Unknown parameter {key!r}")
            if name in values:
                raise InvalidParameterError(f"Parameter {name!r} given twice")
            values[name] = value
        return cls(**values)

    @log_call
    def replace(self, **changes: Any) -> "ParameterSet":
        """Return a new, validated parameter set with ``changes`` applied."""
        unknown = set(changes) - _FIELD_NAMES
        if unknown:
            raise InvalidParameterError(
                f"Unknown parameter(s): {', '.join(sorted(unknown))}"
            )
        return dataclasses.replace(self, **changes)

    @log_call
    def effective_infection_rate(self, quarantine_active: bool) -> float:
        if quarantine_active:
            return self.infection_rate * self.quarantine_reduction_factor
        return self.infection_rate

    @log_call
    def as_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


_FIELD_NAMES = frozenset(f.name for f in dataclasses.fields(ParameterSet))

ParameterLike = Union[ParameterSet, Mapping[str, Any]]


@log_call
def as_parameter_set(params: Optional[ParameterLike]) -> ParameterSet:
    """Coerce ``None`` or a mapping into a ``ParameterSet``."""
    if params is None:
        return ParameterSet()
    if isinstance(params, ParameterSet):
        return params
    return ParameterSet.from_mapping(params)
