"""
Shared test fixtures.

Provides small seeded populations and parameter sets so individual test
modules do not rebuild them.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from grid_epidemic.core.data_structures import (  # noqa: E402
    ParameterSet,
    Population
)
from grid_epidemic.population_factory import create_population  # noqa: E402


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: longer multi-round simulation runs"
    )


@pytest.fixture
def default_params():
    """Parameter set with the COVID-19 defaults."""
    return ParameterSet()


@pytest.fixture
def small_population():
    """Seeded 10x10 population with one patient zero."""
    return create_population(100, random_seed=42)


@pytest.fixture
def medium_population():
    """Seeded 40x40 population with one patient zero."""
    return create_population(1600, random_seed=42)


@pytest.fixture
def sparse_grid():
    """2x2 grid whose closest pair is 50 units apart."""
    return Population.from_positions(
        x=[0.0, 50.0, 0.0, 50.0],
        y=[0.0, 0.0, 50.0, 50.0]
    )


@pytest.fixture
def line_population():
    """Five individuals in a row, 5 units apart."""
    return Population.from_positions(
        x=np.arange(5) * 5.0,
        y=np.zeros(5)
    )


@pytest.fixture
def rng():
    return np.random.RandomState(1234)
