"""
Statistics reducer for the grid epidemic simulation.

Counts individuals per health state for one round, and turns a series of
round records into tables for charting and reporting.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd

from .core.data_structures import HealthState, Population, STATE_LABELS
from .utils.logging import log_call

# (chart label, record field) pairs offered to charting collaborators
TRACKED_STATS: List[Tuple[str, str]] = [
    ("Healthy", "healthy"),
    ("Exposed", "exposed"),
    ("Infected", "infected"),
    ("Recovered", "recovered"),
]


@dataclass(frozen=True)
class StatisticsRecord:
    """Per-state counts for one round."""

    round: int
    healthy: int
    exposed: int
    infected: int
    recovered: int

    @property
    @log_call
    def total(self) -> int:
        return self.healthy + self.exposed + self.infected + self.recovered

    @log_call
    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


@log_call
def compute_statistics(population: Population, round_index: int) -> StatisticsRecord:
    """
    Count individuals by state.

    Parameters
    ----------
    population : Population
        Population to summarize; not modified
    round_index : int
        Round number stored on the record

    Returns
    -------
    record : StatisticsRecord
        Counts whose sum equals the population size
    """
    counts = np.bincount(
        population.state.astype(np.intp), minlength=len(HealthState)
    )
    return StatisticsRecord(
        round=int(round_index),
        **{label: int(counts[state]) for state, label
           in zip(HealthState, STATE_LABELS)}
    )


@log_call
def statistics_frame(records: Sequence[StatisticsRecord]) -> pd.DataFrame:
    """Series of records as a DataFrame indexed by round."""
    columns = ["round"] + list(STATE_LABELS)
    frame = pd.DataFrame([r.as_dict() for r in records], columns=columns)
    return frame.astype(int).set_index("round")


@log_call
def summarize_history(records: Sequence[StatisticsRecord]) -> Dict[str, Any]:
    """
    Summary of a run's statistics series.

    Returns
    -------
    summary : dict
        ``n_rounds`` (rounds advanced after round 0 of the series),
        ``population_size``, ``final`` counts, ``peak_infected`` and
        ``peak_round``. Empty input gives an empty dict.
    """
    if not records:
        return {}

    frame = statistics_frame(records)
    final = records[-1]
    peak_round = int(frame["infected"].idxmax())
    return {
        "n_rounds": int(frame.index.max() - frame.index.min()),
        "population_size": final.total,
        "final": {label: int(frame[label].iloc[-1]) for label in STATE_LABELS},
        "peak_infected": int(frame["infected"].max()),
        "peak_round": peak_round,
    }
