"""Robust action variants and nature constraints."""

from typing import Union

from robust_mdp.robust.discrete import DiscreteOutcomeAction
from robust_mdp.robust.nature import (
    NATURE_CONSTRAINTS,
    NatureConstraint,
    NatureSolution,
    Objective,
    worst_case_l1,
)
from robust_mdp.robust.outcomes import BaseAction, OutcomeManager
from robust_mdp.robust.regular import RegularAction
from robust_mdp.robust.weighted import WeightedOutcomeAction, l1_outcome_action

Action = Union[RegularAction, DiscreteOutcomeAction, WeightedOutcomeAction]

__all__ = [
    "Action",
    "BaseAction",
    "DiscreteOutcomeAction",
    "NATURE_CONSTRAINTS",
    "NatureConstraint",
    "NatureSolution",
    "Objective",
    "OutcomeManager",
    "RegularAction",
    "WeightedOutcomeAction",
    "l1_outcome_action",
    "worst_case_l1",
]
