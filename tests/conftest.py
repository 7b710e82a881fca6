"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from robust_mdp.core.transition import Transition

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def zero_values() -> list[float]:
    return [0.0, 0.0, 0.0]


@pytest.fixture
def reward_outcomes() -> list[Transition]:
    """Three deterministic outcomes worth 2.0, 5.0 and -1.0 under V=0."""
    return [
        Transition(indices=[0], probabilities=[1.0], rewards=[2.0]),
        Transition(indices=[1], probabilities=[1.0], rewards=[5.0]),
        Transition(indices=[2], probabilities=[1.0], rewards=[-1.0]),
    ]
