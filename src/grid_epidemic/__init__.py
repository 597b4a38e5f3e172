"""Grid epidemic simulator package."""

from typing import List

from .exceptions import InvalidParameterError, InvalidSizeError, SimulationError
from .core.data_structures import (
    HealthState,
    Individual,
    ParameterSet,
    Population,
    STATE_LABELS,
)
from .population_factory import create_population, grid_side
from .epidemic_engine import (
    CONTACT_RADIUS,
    advance_round,
    find_exposures,
    quarantine_active,
)
from .statistics import (
    TRACKED_STATS,
    StatisticsRecord,
    compute_statistics,
    statistics_frame,
    summarize_history,
)
from .simulation import EpidemicSimulation

__all__: List[str] = [
    # Errors
    "SimulationError",
    "InvalidSizeError",
    "InvalidParameterError",
    # Data structures
    "HealthState",
    "Individual",
    "ParameterSet",
    "Population",
    "STATE_LABELS",
    # Population factory
    "create_population",
    "grid_side",
    # Epidemic engine
    "CONTACT_RADIUS",
    "advance_round",
    "find_exposures",
    "quarantine_active",
    # Statistics reducer
    "TRACKED_STATS",
    "StatisticsRecord",
    "compute_statistics",
    "statistics_frame",
    "summarize_history",
    # Driver
    "EpidemicSimulation",
]
__version__ = "0.1.0"
