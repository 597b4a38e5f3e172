"""
Population factory for the grid epidemic simulation.

Builds a square-grid population of healthy individuals and infects a single
randomly chosen "patient zero".
"""

from typing import Optional

import numpy as np

from .core.data_structures import HealthState, Population
from .utils.logging import log_call
from .utils.validation import check_grid_size

DEFAULT_POPULATION_SIZE = 1600
WORLD_SIZE = 100.0


@log_call
def grid_side(size: int) -> int:
    """
    Side length of the square grid holding ``size`` individuals.

    Raises
    ------
    InvalidSizeError
        If ``size`` is not a positive perfect square.
    """
    return check_grid_size(size)


@log_call
def create_population(
    size: int = DEFAULT_POPULATION_SIZE,
    random_seed: Optional[int] = None,
    rng=None
) -> Population:
    """
    Create a grid population with exactly one infected individual.

    Individual ``i`` is placed at grid cell ``(i mod s, i div s)`` scaled
    into the [0, 100) square, where ``s = sqrt(size)``.

    Parameters
    ----------
    size : int, default=1600
        Number of individuals; must be a positive perfect square
    random_seed : int, optional
        Seed for choosing patient zero. Ignored if ``rng`` is given.
    rng : np.random.Generator or np.random.RandomState, optional
        Source of randomness. Defaults to the global numpy stream.

    Returns
    -------
    population : Population
        Fresh population, all healthy except patient zero

    Raises
    ------
    InvalidSizeError
        If ``size`` is not a positive perfect square.

    Examples
    --------
    >>> pop = create_population(400, random_seed=7)
    >>> pop.count("infected")
    1
    """
    side = grid_side(size)
    if rng is None:
        rng = np.random.RandomState(random_seed) if random_seed is not None else np.random

    ids = np.arange(size)
    population = Population.from_positions(
        x=WORLD_SIZE * (ids % side) / side,
        y=WORLD_SIZE * (ids // side) / side,
    )

    patient_zero = int(rng.choice(size))
    population.state[patient_zero] = HealthState.INFECTED
    population.days_infected[patient_zero] = 0
    return population
