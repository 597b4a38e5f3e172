"""
Epidemic engine for the grid simulation.

Advances a population by one round of the healthy -> exposed -> infected ->
recovered -> healthy state machine. Transmission happens between infected
and healthy individuals within ``CONTACT_RADIUS`` of each other, and the
per-contact transmission probability is throttled while the infected
fraction of the population is at or above the quarantine threshold.

Individuals exposed during a round are not advanced in that same round:
they start the next round with ``days_exposed == 0``.
"""

import logging
from typing import Optional

import numpy as np
from scipy.spatial.distance import cdist  # type: ignore

from .core.data_structures import (
    HealthState,
    ParameterLike,
    ParameterSet,
    Population,
    as_parameter_set,
)
from .utils.logging import log_call
from .utils.validation import check_probability

logger = logging.getLogger(__name__)

CONTACT_RADIUS = 6.0


@log_call
def quarantine_active(population: Population, params: ParameterSet) -> bool:
    """
    Whether quarantine applies to the coming round.

    Quarantine is active when the infected fraction is at least
    ``params.quarantine_threshold``. An empty population is never in
    quarantine.
    """
    if population.size == 0:
        return False
    fraction_infected = population.count(HealthState.INFECTED) / population.size
    return bool(fraction_infected >= params.quarantine_threshold)


@log_call
def find_exposures(
    population: Population,
    infection_rate: float,
    rng=None,
    contact_radius: float = CONTACT_RADIUS
) -> np.ndarray:
    """
    Ids of healthy individuals infected by a nearby contact this round.

    Every infected/healthy pair closer than ``contact_radius`` gets one
    Bernoulli trial with success probability ``infection_rate``. A healthy
    individual is exposed if any of its trials succeeds, so each id appears
    at most once in the result.

    Parameters
    ----------
    population : Population
        Population to scan; not modified
    infection_rate : float
        Per-contact transmission probability
    rng : np.random.Generator or np.random.RandomState, optional
        Source of randomness. Defaults to the global numpy stream.
    contact_radius : float, default=6.0
        Maximum distance at which transmission can occur

    Returns
    -------
    exposed_ids : np.ndarray
        Sorted ids of newly exposed individuals

    Raises
    ------
    InvalidParameterError
        If ``infection_rate`` is not a probability.
    """
    infection_rate = check_probability("infection_rate", infection_rate)
    if rng is None:
        rng = np.random

    infected_ids = np.flatnonzero(population.state == HealthState.INFECTED)
    healthy_ids = np.flatnonzero(population.state == HealthState.HEALTHY)
    if infected_ids.size == 0 or healthy_ids.size == 0:
        return np.array([], dtype=int)

    positions = population.positions
    distances = cdist(positions[infected_ids], positions[healthy_ids])
    _, contact_cols = np.nonzero(distances <= contact_radius)

    # One trial per infected/healthy pair in contact
    success = rng.random(contact_cols.size) < infection_rate
    return np.unique(healthy_ids[contact_cols[success]])


def _commit_exposures(population: Population, exposed_ids: np.ndarray) -> None:
    population.state[exposed_ids] = HealthState.EXPOSED
    population.days_exposed[exposed_ids] = 0
    population.newly_exposed[exposed_ids] = True


def _advance_states(
    population: Population,
    params: ParameterSet,
    skip: np.ndarray,
    rng
) -> None:
    # Masks are taken before any transition so each individual runs one branch
    exposed = (population.state == HealthState.EXPOSED) & ~skip
    infected = population.state == HealthState.INFECTED
    recovered = population.state == HealthState.RECOVERED

    population.days_exposed[exposed] += 1
    becomes_infected = exposed & (
        population.days_exposed >= params.incubation_time
    )

    population.days_infected[infected] += 1
    becomes_recovered = infected & (
        population.days_infected >= params.recovery_time
    )

    recovered_ids = np.flatnonzero(recovered)
    loses_immunity = rng.random(recovered_ids.size) < params.reinfection_probability
    becomes_healthy = recovered_ids[loses_immunity]

    population.state[becomes_infected] = HealthState.INFECTED
    population.days_exposed[becomes_infected] = 0
    population.days_infected[becomes_infected] = 0
    population.newly_infected[becomes_infected] = True

    population.state[becomes_recovered] = HealthState.RECOVERED
    population.days_infected[becomes_recovered] = 0
    population.quarantined[becomes_recovered] = False

    population.state[becomes_healthy] = HealthState.HEALTHY


@log_call
def advance_round(
    population: Population,
    params: Optional[ParameterLike] = None,
    rng=None
) -> Population:
    """
    Advance ``population`` by one round, in place.

    The round runs four steps in order: quarantine determination, the
    exposure pass over all infected/healthy contacts, committing the new
    exposures, and the per-individual state advance.

    Parameters
    ----------
    population : Population
        Population to advance
    params : ParameterSet or mapping, optional
        Disease parameters; mappings are validated through
        ``ParameterSet.from_mapping``. Defaults to ``ParameterSet()``.
    rng : np.random.Generator or np.random.RandomState, optional
        Source of randomness. Defaults to the global numpy stream.

    Returns
    -------
    population : Population
        The same object, advanced by one round

    Raises
    ------
    InvalidParameterError
        If ``params`` is a mapping with invalid or unknown entries.
    """
    params = as_parameter_set(params)
    if rng is None:
        rng = np.random
    if population.size == 0:
        return population

    # Display markers only last for the round in which they were set
    population.newly_exposed[:] = False
    population.newly_infected[:] = False

    active = quarantine_active(population, params)
    infection_rate = params.effective_infection_rate(active)
    population.quarantined[population.state == HealthState.INFECTED] = active
    if active:
        logger.debug(
            "Quarantine active, infection rate reduced to %.4f", infection_rate
        )

    exposed_ids = find_exposures(population, infection_rate, rng=rng)
    _commit_exposures(population, exposed_ids)
    logger.debug("%d new exposures", exposed_ids.size)

    skip = np.zeros(population.size, dtype=bool)
    skip[exposed_ids] = True
    _advance_states(population, params, skip, rng)
    return population
