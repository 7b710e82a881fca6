"""Transition construction, aggregation and evaluation tests."""

from __future__ import annotations

import json

import hypothesis
from hypothesis import strategies as st
import numpy as np
import pytest

from robust_mdp.core.errors import (
    DomainError,
    InvalidArgumentError,
    OutOfRangeError,
    PreconditionError,
    RobustMDPError,
)
from robust_mdp.core.transition import Transition

_probabilities = st.floats(min_value=1e-3, max_value=1.0, allow_nan=False)
_rewards = st.floats(min_value=-100.0, max_value=100.0, allow_nan=False)


def test_compute_value_matches_hand_checked_expectation() -> None:
    transition = Transition(indices=[0, 1], probabilities=[0.5, 0.5], rewards=[1.0, 1.0])
    assert abs(transition.compute_value([0.0, 0.0], discount=1.0) - 1.0) <= 1e-12


def test_compute_value_discounts_successor_values() -> None:
    transition = Transition(indices=[0, 2], probabilities=[0.25, 0.75], rewards=[1.0, 2.0])
    values = [10.0, -5.0, 4.0]
    expected = 0.25 * (1.0 + 0.9 * 10.0) + 0.75 * (2.0 + 0.9 * 4.0)
    assert abs(transition.compute_value(values, discount=0.9) - expected) <= 1e-12


def test_compute_value_on_empty_transition_fails() -> None:
    with pytest.raises(PreconditionError):
        Transition().compute_value([0.0])


def test_compute_value_rejects_short_value_function() -> None:
    transition = Transition(indices=[3], probabilities=[1.0])
    with pytest.raises(OutOfRangeError):
        transition.compute_value([0.0, 0.0])


def test_add_sample_keeps_indices_sorted_and_unique() -> None:
    transition = Transition()
    transition.add_sample(4, 0.1, 1.0)
    transition.add_sample(1, 0.2, 2.0)
    transition.add_sample(3, 0.3, 3.0)
    transition.add_sample(1, 0.4, 4.0)

    assert transition.indices == (1, 3, 4)
    assert transition.size() == 3
    assert transition.max_index() == 4
    assert np.isclose(transition.probabilities[0], 0.6)
    assert np.isclose(transition.rewards[0], (0.2 * 2.0 + 0.4 * 4.0) / 0.6)


def test_add_sample_merge_uses_probability_weighted_reward() -> None:
    transition = Transition()
    transition.add_sample(2, 0.25, 4.0)
    transition.add_sample(2, 0.75, 0.0)
    assert transition.probabilities == (1.0,)
    assert abs(transition.rewards[0] - 1.0) <= 1e-12


@hypothesis.given(
    dest=st.integers(min_value=0, max_value=50),
    p1=_probabilities,
    r1=_rewards,
    p2=_probabilities,
    r2=_rewards,
)
def test_add_sample_aggregation_is_order_independent(
    dest: int, p1: float, r1: float, p2: float, r2: float
) -> None:
    forward = Transition()
    forward.add_sample(dest, p1, r1)
    forward.add_sample(dest, p2, r2)

    backward = Transition()
    backward.add_sample(dest, p2, r2)
    backward.add_sample(dest, p1, r1)

    assert forward == backward
    assert forward.probabilities == (p1 + p2,)
    assert np.isclose(forward.rewards[0], (p1 * r1 + p2 * r2) / (p1 + p2))


def test_add_sample_rejects_negative_inputs() -> None:
    transition = Transition()
    with pytest.raises(InvalidArgumentError):
        transition.add_sample(-1, 0.5, 0.0)
    with pytest.raises(InvalidArgumentError):
        transition.add_sample(0, -0.5, 0.0)


def test_add_sample_rejects_non_finite_inputs() -> None:
    transition = Transition(indices=[0], probabilities=[1.0])
    for probability, reward in ((float("nan"), 0.0), (float("inf"), 0.0), (0.5, float("nan"))):
        with pytest.raises(InvalidArgumentError):
            transition.add_sample(1, probability, reward)
    assert transition.indices == (0,)
    assert transition.probabilities == (1.0,)


def test_add_sample_ignores_zero_probability() -> None:
    transition = Transition()
    transition.add_sample(0, 0.0, 3.0)
    assert transition.empty()
    assert transition.max_index() == -1


def test_constructor_aggregates_unsorted_duplicates() -> None:
    transition = Transition(
        indices=[2, 0, 2],
        probabilities=[0.2, 0.5, 0.3],
        rewards=[1.0, 0.0, 2.0],
    )
    assert transition.indices == (0, 2)
    assert np.allclose(transition.probabilities, (0.5, 0.5))
    assert np.isclose(transition.rewards[1], (0.2 * 1.0 + 0.3 * 2.0) / 0.5)


def test_constructor_rejects_mismatched_lengths() -> None:
    with pytest.raises(InvalidArgumentError):
        Transition(indices=[0, 1], probabilities=[1.0])


def test_from_probabilities_uses_implicit_indices_and_zero_rewards() -> None:
    transition = Transition.from_probabilities([0.1, 0.0, 0.9])
    assert transition.indices == (0, 2)
    assert transition.rewards == (0.0, 0.0)


@hypothesis.given(st.lists(_probabilities, min_size=1, max_size=20))
def test_normalize_sums_to_one(probabilities: list[float]) -> None:
    transition = Transition.from_probabilities(probabilities)
    transition.normalize()
    assert abs(transition.sum_probabilities() - 1.0) <= 1e-9
    assert transition.is_normalized()


def test_normalize_zero_mass_fails() -> None:
    with pytest.raises(DomainError):
        Transition().normalize()


def test_is_normalized_uses_tolerance() -> None:
    assert Transition(indices=[0, 1], probabilities=[0.5, 0.5 + 1e-7]).is_normalized()
    assert not Transition(indices=[0, 1], probabilities=[0.5, 0.4]).is_normalized()


def test_dense_vectors_fill_missing_states_with_zero() -> None:
    transition = Transition(indices=[1, 3], probabilities=[0.4, 0.6], rewards=[2.0, -1.0])
    assert np.array_equal(transition.probabilities_vector(5), [0.0, 0.4, 0.0, 0.6, 0.0])
    assert np.array_equal(transition.rewards_vector(4), [0.0, 2.0, 0.0, -1.0])


def test_dense_vector_requires_size_above_max_index() -> None:
    transition = Transition(indices=[1, 3], probabilities=[0.4, 0.6])
    with pytest.raises(OutOfRangeError):
        transition.probabilities_vector(3)
    with pytest.raises(OutOfRangeError):
        transition.rewards_vector(0)


def test_probabilities_addto_dense_vector_and_transition() -> None:
    transition = Transition(indices=[0, 2], probabilities=[0.5, 0.5], rewards=[1.0, 3.0])

    dense = np.zeros(3)
    transition.probabilities_addto(0.5, dense)
    assert np.allclose(dense, [0.25, 0.0, 0.25])

    target = Transition(indices=[2], probabilities=[0.5], rewards=[1.0])
    transition.probabilities_addto(0.5, target)
    assert target.indices == (0, 2)
    assert np.allclose(target.probabilities, (0.25, 0.75))
    assert np.isclose(target.rewards[1], (0.5 * 1.0 + 0.25 * 3.0) / 0.75)


def test_mean_reward_and_reward_accessors() -> None:
    transition = Transition(indices=[0, 1], probabilities=[0.25, 0.75], rewards=[4.0, 0.0])
    assert abs(transition.mean_reward() - 1.0) <= 1e-12

    transition.set_reward(1, 4.0)
    assert transition.get_reward(1) == 4.0
    assert abs(transition.mean_reward() - 4.0) <= 1e-12
    with pytest.raises(OutOfRangeError):
        transition.get_reward(2)


def test_to_json_uses_export_field_names() -> None:
    transition = Transition(indices=[0, 3], probabilities=[0.3, 0.7], rewards=[1.0, 2.0])
    payload = json.loads(transition.to_json(outcomeid=2))
    assert payload == {
        "outcomeid": 2,
        "idStatesTo": [0, 3],
        "probabilities": [0.3, 0.7],
        "rewards": [1.0, 2.0],
    }
    assert json.loads(transition.to_json())["outcomeid"] is None


@hypothesis.given(
    st.dictionaries(
        keys=st.integers(min_value=0, max_value=100),
        values=st.tuples(_probabilities, _rewards),
        max_size=15,
    )
)
def test_json_roundtrip_reproduces_transition(samples: dict[int, tuple[float, float]]) -> None:
    transition = Transition()
    for index, (probability, reward) in samples.items():
        transition.add_sample(index, probability, reward)

    loaded = Transition.from_json(transition.to_json())
    assert loaded.indices == transition.indices
    assert loaded.probabilities == transition.probabilities
    assert loaded.rewards == transition.rewards


def test_errors_are_catchable_as_builtins() -> None:
    with pytest.raises(ValueError):
        Transition(indices=[0], probabilities=[])
    with pytest.raises(ArithmeticError):
        Transition().normalize()
    with pytest.raises(IndexError):
        Transition().probabilities_vector(-1)
    with pytest.raises(RobustMDPError):
        Transition().compute_value([])
