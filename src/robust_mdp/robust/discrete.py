"""Robust action with a finite set of adversarial outcomes."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from robust_mdp.core.errors import OutOfRangeError, PreconditionError
from robust_mdp.core.transition import Transition
from robust_mdp.robust.outcomes import OutcomeManager


class DiscreteOutcomeAction(OutcomeManager):
    """Action whose outcome is one of ``n`` unweighted transitions.

    Nature picks a single outcome; ties are resolved in favour of the smallest
    outcome index.
    """

    def outcome_values(self, valuefunction: Sequence[float], discount: float) -> np.ndarray:
        """Value of every outcome, in outcome order."""
        if not self._outcomes:
            raise PreconditionError("Action has no outcomes.")
        return np.array(
            [outcome.compute_value(valuefunction, discount) for outcome in self._outcomes],
            dtype=np.float64,
        )

    def value(self, valuefunction: Sequence[float], discount: float) -> float:
        return self.average(valuefunction, discount)

    def maximal(self, valuefunction: Sequence[float], discount: float) -> tuple[int, float]:
        values = self.outcome_values(valuefunction, discount)
        index = int(np.argmax(values))
        return index, float(values[index])

    def minimal(self, valuefunction: Sequence[float], discount: float) -> tuple[int, float]:
        values = self.outcome_values(valuefunction, discount)
        index = int(np.argmin(values))
        return index, float(values[index])

    def average(self, valuefunction: Sequence[float], discount: float) -> float:
        return float(np.mean(self.outcome_values(valuefunction, discount)))

    def fixed(self, valuefunction: Sequence[float], discount: float, outcome_id: int) -> float:
        if not self._outcomes:
            raise PreconditionError("Action has no outcomes.")
        if not self.is_outcome_correct(outcome_id):
            raise OutOfRangeError(
                f"Outcome {outcome_id} out of range for {len(self._outcomes)} outcomes."
            )
        return self._outcomes[outcome_id].compute_value(valuefunction, discount)

    def is_outcome_correct(self, outcome_id: int) -> bool:
        return 0 <= outcome_id < len(self._outcomes)

    def mean_reward(self, outcome_id: int) -> float:
        return self.get_outcome(outcome_id).mean_reward()

    def mean_transition(self, outcome_id: int) -> Transition:
        return self.get_outcome(outcome_id).copy()
