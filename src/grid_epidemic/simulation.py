"""
Headless driver for the grid epidemic simulation.

``EpidemicSimulation`` holds the current population, the parameter set and
the statistics recorded so far, and advances the population one round per
call. Round 0 is the freshly created population.
"""

import logging
from typing import Any, List, Optional

import numpy as np
import pandas as pd
from omegaconf import DictConfig

from .core.data_structures import (
    HealthState,
    ParameterLike,
    ParameterSet,
    Population,
    as_parameter_set,
)
from .epidemic_engine import advance_round
from .population_factory import DEFAULT_POPULATION_SIZE, create_population, grid_side
from .statistics import (
    StatisticsRecord,
    compute_statistics,
    statistics_frame,
    summarize_history,
)
from .utils.logging import log_call

logger = logging.getLogger(__name__)


class EpidemicSimulation:
    """
    Runs the epidemic engine round by round and keeps the statistics series.

    Parameters
    ----------
    size : int, default=1600
        Population size; must be a positive perfect square
    params : ParameterSet or mapping, optional
        Disease parameters. Defaults to ``ParameterSet()``.
    random_seed : int, optional
        Seed for patient zero and all transmission/reinfection draws

    Attributes
    ----------
    population : Population
        Current population
    params : ParameterSet
        Parameters used for the next round
    history : list of StatisticsRecord
        One record per round, starting with round 0
    """

    def __init__(
        self,
        size: int = DEFAULT_POPULATION_SIZE,
        params: Optional[ParameterLike] = None,
        random_seed: Optional[int] = None
    ):
        """Initialize the simulation with a fresh population."""
        grid_side(size)
        self.size = size
        self.params = as_parameter_set(params)
        self.random_seed = random_seed
        self.rng = np.random.RandomState(random_seed)
        self.population: Population = create_population(size, rng=self.rng)
        self.history: List[StatisticsRecord] = [
            compute_statistics(self.population, 0)
        ]

    @classmethod
    @log_call
    def from_config(cls, cfg: DictConfig) -> "EpidemicSimulation":
        """Build a simulation from a validated config (see ``load_config``)."""
        return cls(
            size=cfg.population.size,
            params=ParameterSet.from_mapping(cfg.disease),
            random_seed=cfg.population.random_seed,
        )

    @property
    @log_call
    def current_round(self) -> int:
        return self.history[-1].round

    @property
    @log_call
    def is_extinct(self) -> bool:
        """True once nobody is exposed or infected."""
        return (
            self.population.count(HealthState.EXPOSED) == 0
            and self.population.count(HealthState.INFECTED) == 0
        )

    @log_call
    def run_turn(self) -> StatisticsRecord:
        """Advance one round and record its statistics."""
        self.population = advance_round(self.population, self.params, rng=self.rng)
        record = compute_statistics(self.population, self.current_round + 1)
        self.history.append(record)
        return record

    @log_call
    def run(
        self,
        n_rounds: int,
        stop_when_extinct: bool = False
    ) -> List[StatisticsRecord]:
        """
        Advance up to ``n_rounds`` rounds.

        Returns the records produced by this call. With
        ``stop_when_extinct``, stops early once no individual is exposed or
        infected.
        """
        if n_rounds < 0:
            raise ValueError("n_rounds must be non-negative")

        records = []
        for _ in range(n_rounds):
            if stop_when_extinct and self.is_extinct:
                logger.info(
                    "Epidemic extinct at round %d, stopping early",
                    self.current_round
                )
                break
            records.append(self.run_turn())
        return records

    @log_call
    def update_parameters(self, **changes: Any) -> ParameterSet:
        """Apply validated parameter changes from the next round on."""
        self.params = self.params.replace(**changes)
        return self.params

    @log_call
    def reset(self, size: Optional[int] = None) -> None:
        """Start over with a fresh population and an empty history."""
        if size is not None:
            grid_side(size)
            self.size = size
        self.population = create_population(self.size, rng=self.rng)
        self.history = [compute_statistics(self.population, 0)]

    @log_call
    def to_frame(self) -> pd.DataFrame:
        return statistics_frame(self.history)

    @log_call
    def summary(self) -> dict:
        return summarize_history(self.history)
