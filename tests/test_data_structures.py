import math

import numpy as np
import pandas as pd
import pytest

from grid_epidemic.core.data_structures import (
    HealthState,
    Individual,
    ParameterSet,
    Population,
    STATE_LABELS,
    as_parameter_set,
)
from grid_epidemic.exceptions import InvalidParameterError


class TestHealthState:

    def test_labels(self):
        assert STATE_LABELS == ("healthy", "exposed", "infected", "recovered")
        assert HealthState.INFECTED.label == "infected"

    def test_parse(self):
        assert HealthState.parse("exposed") is HealthState.EXPOSED
        assert HealthState.parse(3) is HealthState.RECOVERED
        assert HealthState.parse(HealthState.HEALTHY) is HealthState.HEALTHY
        with pytest.raises(ValueError):
            HealthState.parse("zombie")


class TestPopulation:

    def test_defaults_are_healthy(self, sparse_grid):
        assert len(sparse_grid) == 4
        assert sparse_grid.size == 4
        assert sparse_grid.count("healthy") == 4
        assert not sparse_grid.quarantined.any()
        assert not sparse_grid.days_exposed.any()
        assert not sparse_grid.days_infected.any()

    def test_mismatched_lengths_raise(self):
        with pytest.raises(ValueError):
            Population(x=[0.0, 1.0], y=[0.0])
        with pytest.raises(ValueError):
            Population(x=[0.0, 1.0], y=[0.0, 1.0], state=[0])

    def test_unknown_state_code_raises(self):
        with pytest.raises(ValueError, match="Unknown health state"):
            Population(x=[0.0, 50.0], y=[0.0, 0.0], state=[0, 9])
        with pytest.raises(ValueError):
            Population(x=[0.0], y=[0.0], state=[-1])

    @pytest.mark.parametrize("column, state", [
        ("days_exposed", HealthState.HEALTHY),
        ("days_exposed", HealthState.INFECTED),
        ("days_infected", HealthState.EXPOSED),
        ("days_infected", HealthState.RECOVERED),
        ("quarantined", HealthState.HEALTHY),
        ("quarantined", HealthState.EXPOSED),
        ("newly_exposed", HealthState.INFECTED),
        ("newly_infected", HealthState.RECOVERED),
    ])
    def test_column_outside_its_state_raises(self, column, state):
        with pytest.raises(ValueError, match=column):
            Population(x=[0.0], y=[0.0], state=[state], **{column: [1]})

    def test_quarantined_healthy_with_days_infected_raises(self):
        with pytest.raises(ValueError):
            Population(
                x=[0.0], y=[0.0], state=[0],
                days_infected=[3], quarantined=[True]
            )

    def test_negative_counters_raise(self):
        with pytest.raises(ValueError, match="non-negative"):
            Population(x=[0.0], y=[0.0], state=[1], days_exposed=[-2])

    def test_consistent_columns_accepted(self):
        population = Population(
            x=[0.0, 10.0, 20.0],
            y=[0.0, 0.0, 0.0],
            state=[1, 2, 3],
            days_exposed=[2, 0, 0],
            days_infected=[0, 4, 0],
            quarantined=[False, True, False],
            newly_exposed=[True, False, False],
            newly_infected=[False, True, False],
        )
        assert population[1].quarantined
        assert population[1].days_infected == 4
        assert population.count("recovered") == 1

    def test_positions_are_read_only(self, sparse_grid):
        with pytest.raises(ValueError):
            sparse_grid.x[0] = 42.0
        with pytest.raises(ValueError):
            sparse_grid.y[0] = 42.0

    def test_positions_are_not_shared_with_input(self):
        x = np.array([0.0, 5.0])
        population = Population.from_positions(x, [0.0, 0.0])
        x[0] = 99.0
        assert population.x[0] == 0.0
        assert x.flags.writeable

    def test_getitem_returns_snapshot(self, sparse_grid):
        sparse_grid.set_state(2, HealthState.INFECTED, days_infected=3)
        person = sparse_grid[2]
        assert isinstance(person, Individual)
        assert person == Individual(
            id=2, x=0.0, y=50.0, state=HealthState.INFECTED, days_infected=3
        )
        # Snapshots do not track later changes
        sparse_grid.set_state(2, "recovered")
        assert person.state is HealthState.INFECTED
        assert sparse_grid[2].state is HealthState.RECOVERED

    def test_getitem_out_of_range(self, sparse_grid):
        with pytest.raises(IndexError):
            sparse_grid[4]
        with pytest.raises(IndexError):
            sparse_grid[-1]

    def test_iteration_preserves_id_order(self, sparse_grid):
        assert [p.id for p in sparse_grid] == [0, 1, 2, 3]
        assert np.array_equal(sparse_grid.ids, np.arange(4))

    def test_set_state_zeroes_foreign_counters(self, sparse_grid):
        sparse_grid.set_state(0, "exposed", days_exposed=2, days_infected=7)
        assert sparse_grid.days_exposed[0] == 2
        assert sparse_grid.days_infected[0] == 0

        sparse_grid.quarantined[0] = True
        sparse_grid.set_state(0, "healthy", days_exposed=2)
        assert sparse_grid.days_exposed[0] == 0
        assert not sparse_grid.quarantined[0]

    def test_mask_and_count(self, sparse_grid):
        sparse_grid.set_state(1, "infected")
        sparse_grid.set_state(3, "infected")
        assert sparse_grid.count(HealthState.INFECTED) == 2
        assert sparse_grid.mask("infected").tolist() == [False, True, False, True]

    def test_copy_is_independent(self, sparse_grid):
        clone = sparse_grid.copy()
        clone.set_state(0, "infected")
        assert sparse_grid.count("infected") == 0
        assert clone.count("infected") == 1
        assert np.array_equal(clone.positions, sparse_grid.positions)
        assert not clone.x.flags.writeable

    def test_positions_shape(self, sparse_grid):
        assert sparse_grid.positions.shape == (4, 2)
        assert sparse_grid.positions[3].tolist() == [50.0, 50.0]

    def test_to_frame(self, sparse_grid):
        sparse_grid.set_state(1, "infected")
        frame = sparse_grid.to_frame()
        assert isinstance(frame, pd.DataFrame)
        assert list(frame.index) == [0, 1, 2, 3]
        assert frame.loc[1, "state"] == "infected"
        assert frame.loc[0, "state"] == "healthy"
        assert set(frame.columns) >= {
            "x", "y", "state", "quarantined", "newly_exposed", "newly_infected"
        }

    def test_empty_population(self):
        empty = Population.from_positions([], [])
        assert len(empty) == 0
        assert empty.count("infected") == 0
        assert list(empty) == []


class TestParameterSet:

    def test_defaults(self, default_params):
        assert default_params.infection_rate == 0.3
        assert default_params.incubation_time == 5
        assert default_params.recovery_time == 14
        assert default_params.reinfection_probability == 0.01
        assert default_params.quarantine_threshold == 0.1
        assert default_params.quarantine_reduction_factor == 0.3

    @pytest.mark.parametrize("name", [
        "infection_rate",
        "reinfection_probability",
        "quarantine_threshold",
        "quarantine_reduction_factor",
    ])
    @pytest.mark.parametrize("value", [-0.1, 1.01, math.nan, "0.5", True])
    def test_invalid_probabilities(self, name, value):
        with pytest.raises(InvalidParameterError):
            ParameterSet(**{name: value})

    @pytest.mark.parametrize("name", ["incubation_time", "recovery_time"])
    @pytest.mark.parametrize("value", [0, -3, 2.5, None])
    def test_invalid_durations(self, name, value):
        with pytest.raises(InvalidParameterError):
            ParameterSet(**{name: value})

    def test_boundaries_accepted(self):
        params = ParameterSet(
            infection_rate=1.0,
            incubation_time=1,
            recovery_time=1,
            reinfection_probability=0.0,
            quarantine_threshold=0.0,
            quarantine_reduction_factor=1,
        )
        assert params.quarantine_reduction_factor == 1.0
        assert isinstance(params.quarantine_reduction_factor, float)

    def test_numpy_scalars_accepted(self):
        params = ParameterSet(
            infection_rate=np.float64(0.25), recovery_time=np.int64(7)
        )
        assert params.infection_rate == 0.25
        assert params.recovery_time == 7

    def test_is_immutable(self, default_params):
        with pytest.raises(AttributeError):
            default_params.infection_rate = 0.9

    def test_from_mapping_camel_case(self):
        params = ParameterSet.from_mapping({
            "infectionRate": 0.5,
            "incubationTime": 3,
            "recoveryTime": 10,
            "reinfectionProbability": 0.0,
            "quarantineThreshold": 0.2,
            "quarantineReductionFactor": 0.5,
        })
        assert params == ParameterSet(
            infection_rate=0.5,
            incubation_time=3,
            recovery_time=10,
            reinfection_probability=0.0,
            quarantine_threshold=0.2,
            quarantine_reduction_factor=0.5,
        )

    def test_from_mapping_snake_case_partial(self):
        params = ParameterSet.from_mapping({"infection_rate": 0.9})
        assert params.infection_rate == 0.9
        assert params.recovery_time == 14

    def test_from_mapping_rejects_unknown_and_duplicate_keys(self):
        with pytest.raises(InvalidParameterError):
            ParameterSet.from_mapping({"infectionChance": 70})
        with pytest.raises(InvalidParameterError):
            ParameterSet.from_mapping({"infectionRate": 0.1, "infection_rate": 0.2})

    def test_replace_validates(self, default_params):
        updated = default_params.replace(infection_rate=0.6)
        assert updated.infection_rate == 0.6
        assert default_params.infection_rate == 0.3
        with pytest.raises(InvalidParameterError):
            default_params.replace(recovery_time=0)
        with pytest.raises(InvalidParameterError):
            default_params.replace(contact_radius=10)

    def test_effective_infection_rate(self):
        params = ParameterSet(infection_rate=0.5, quarantine_reduction_factor=0.2)
        assert params.effective_infection_rate(False) == 0.5
        assert params.effective_infection_rate(True) == pytest.approx(0.1)

    def test_as_parameter_set(self, default_params):
        assert as_parameter_set(None) == default_params
        assert as_parameter_set(default_params) is default_params
        assert as_parameter_set({"recoveryTime": 3}).recovery_time == 3
