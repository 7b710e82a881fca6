"""Robust action with a continuous ambiguity set over weighted outcomes."""

from __future__ import annotations

import logging
import math
from typing import Sequence

import numpy as np

from robust_mdp.core.errors import (
    DomainError,
    InvalidArgumentError,
    OutOfRangeError,
    PreconditionError,
)
from robust_mdp.core.transition import TOLERANCE, Transition
from robust_mdp.robust.nature import NatureConstraint, Objective, worst_case_l1
from robust_mdp.robust.outcomes import OutcomeManager

logger = logging.getLogger(__name__)


class WeightedOutcomeAction(OutcomeManager):
    """Action whose outcome distribution is chosen by nature within a budget.

    The ambiguity set is parametrized by a baseline distribution ``d`` over the
    outcomes and a threshold ``t``; for the L1 nature constraint the
    worst case is::

        min { u @ v : ||u - d||_1 <= t }

    where ``v`` are the values of the individual outcomes. The nature
    constraint is injected per instance.

    The baseline distribution always has one entry per outcome and is uniform
    by default (see :meth:`create_outcome`).
    """

    def __init__(
        self,
        outcomes: Sequence[Transition] | None = None,
        nature: NatureConstraint = worst_case_l1,
        threshold: float = 0.0,
        distribution: Sequence[float] | None = None,
    ) -> None:
        super().__init__(outcomes)
        self.nature = nature
        self._threshold = 0.0
        self.threshold = threshold
        count = len(self._outcomes)
        self._distribution = (
            np.full(count, 1.0 / count) if count else np.zeros(0, dtype=np.float64)
        )
        if distribution is not None:
            self.set_distribution(distribution)

    @property
    def threshold(self) -> float:
        return self._threshold

    @threshold.setter
    def threshold(self, threshold: float) -> None:
        threshold = float(threshold)
        if not math.isfinite(threshold) or threshold < 0.0:
            raise InvalidArgumentError(f"threshold must be finite and non-negative, got {threshold}.")
        self._threshold = threshold

    def get_threshold(self) -> float:
        return self.threshold

    def set_threshold(self, threshold: float) -> None:
        self.threshold = threshold

    def get_distribution(self) -> np.ndarray:
        """Copy of the baseline distribution over outcomes."""
        return self._distribution.copy()

    def outcome_values(self, valuefunction: Sequence[float], discount: float) -> np.ndarray:
        if not self._outcomes:
            raise PreconditionError("Action has no outcomes.")
        return np.array(
            [outcome.compute_value(valuefunction, discount) for outcome in self._outcomes],
            dtype=np.float64,
        )

    def value(self, valuefunction: Sequence[float], discount: float) -> float:
        return self.average(valuefunction, discount)

    def maximal(
        self, valuefunction: Sequence[float], discount: float
    ) -> tuple[np.ndarray, float]:
        """Most favourable distribution in the ambiguity set and its value."""
        return self._solve(valuefunction, discount, Objective.MAXIMIZE)

    def minimal(
        self, valuefunction: Sequence[float], discount: float
    ) -> tuple[np.ndarray, float]:
        """Least favourable distribution in the ambiguity set and its value."""
        return self._solve(valuefunction, discount, Objective.MINIMIZE)

    def average(self, valuefunction: Sequence[float], discount: float) -> float:
        """Value under the baseline distribution, without nature."""
        values = self.outcome_values(valuefunction, discount)
        return float(np.dot(self._distribution, values))

    def fixed(
        self,
        valuefunction: Sequence[float],
        discount: float,
        outcome_id: Sequence[float],
    ) -> float:
        """Value under the explicit outcome distribution ``outcome_id``."""
        values = self.outcome_values(valuefunction, discount)
        dist = self._checked_distribution(outcome_id)
        return float(np.dot(dist, values))

    def create_outcome(
        self, outcomeid: int | None = None, weight: float | None = None
    ) -> Transition:
        """Grow the outcomes so that ``outcomeid`` is valid and return it.

        Without ``weight`` an existing outcome is returned unchanged. Otherwise
        every new outcome gets weight ``u = 1 / (n + 1)``, where ``n`` is
        ``outcomeid``, and the ``m`` existing weights are rescaled to sum to
        ``m * u``::

            d_i' = d_i * (m * u) / sum(d)

        When the existing weights sum to zero the distribution becomes uniform.
        The result is computed aside and committed only on success.

        With ``weight`` the nominal weight of ``outcomeid`` is overwritten and
        new intermediate outcomes get weight 0. This does *not* renormalize, so
        the distribution may no longer sum to one until
        :meth:`normalize_distribution` is called.
        """
        if outcomeid is None:
            outcomeid = len(self._outcomes)
        if outcomeid < 0:
            raise OutOfRangeError(f"Outcome id must be non-negative, got {outcomeid}.")
        if weight is not None:
            return self._create_weighted_outcome(outcomeid, float(weight))
        if outcomeid < len(self._outcomes):
            return self._outcomes[outcomeid]

        old_count = len(self._outcomes)
        new_count = outcomeid + 1
        uniform = 1.0 / new_count
        old_sum = float(self._distribution.sum())

        scratch = np.empty(new_count, dtype=np.float64)
        if old_sum > 0.0:
            scratch[:old_count] = self._distribution * (old_count * uniform / old_sum)
            scratch[old_count:] = uniform
        else:
            if old_count:
                logger.debug(
                    "Baseline weights sum to zero; resetting to uniform over %d outcomes.",
                    new_count,
                )
            scratch[:] = uniform

        new_outcomes = [Transition() for _ in range(new_count - old_count)]
        self._outcomes.extend(new_outcomes)
        self._distribution = scratch
        return self._outcomes[outcomeid]

    def set_distribution(self, distribution: Sequence[float]) -> None:
        """Replace the baseline distribution after checking it is valid."""
        self._distribution = self._checked_distribution(distribution).copy()

    def set_weight(self, outcomeid: int, weight: float) -> None:
        """Overwrite a single baseline weight without any normalization check."""
        if not (0 <= outcomeid < len(self._outcomes)):
            raise OutOfRangeError(
                f"Outcome {outcomeid} out of range for {len(self._outcomes)} outcomes."
            )
        weight = float(weight)
        if not math.isfinite(weight):
            raise InvalidArgumentError(f"weight must be finite, got {weight}.")
        self._distribution[outcomeid] = weight

    def normalize_distribution(self) -> None:
        """Scale baseline weights to sum to one; fails on zero total weight."""
        total = float(self._distribution.sum())
        if total == 0.0:
            raise DomainError("Cannot normalize a distribution that sums to zero.")
        self._distribution = self._distribution / total

    def is_distribution_normalized(self) -> bool:
        return abs(float(self._distribution.sum()) - 1.0) < TOLERANCE

    def uniform_distribution(self) -> None:
        """Reset the baseline to uniform and the threshold to zero."""
        count = len(self._outcomes)
        self._distribution = (
            np.full(count, 1.0 / count) if count else np.zeros(0, dtype=np.float64)
        )
        self._threshold = 0.0

    def is_outcome_correct(self, outcome_id: Sequence[float]) -> bool:
        return len(outcome_id) == len(self._outcomes)

    def mean_reward(self, outcome_id: Sequence[float]) -> float:
        """Reward of the outcomes averaged with the weights ``outcome_id``."""
        dist = self._sized_distribution(outcome_id)
        return float(
            sum(weight * outcome.mean_reward() for weight, outcome in zip(dist, self._outcomes))
        )

    def mean_transition(self, outcome_id: Sequence[float]) -> Transition:
        """Transition mixing the outcomes with the weights ``outcome_id``."""
        dist = self._sized_distribution(outcome_id)
        result = Transition()
        for weight, outcome in zip(dist, self._outcomes):
            outcome.probabilities_addto(float(weight), result)
        return result

    def __str__(self) -> str:
        return f"{len(self._outcomes)} / {self._distribution.shape[0]}"

    def _solve(
        self, valuefunction: Sequence[float], discount: float, objective: Objective
    ) -> tuple[np.ndarray, float]:
        values = self.outcome_values(valuefunction, discount)
        solution = self.nature(values, self._distribution, self._threshold, objective)
        dist = np.asarray(solution.distribution, dtype=np.float64)
        return dist, float(np.dot(dist, values))

    def _create_weighted_outcome(self, outcomeid: int, weight: float) -> Transition:
        weight = float(weight)
        if not math.isfinite(weight) or weight < 0.0:
            raise InvalidArgumentError(f"weight must be finite and non-negative, got {weight}.")
        old_count = len(self._outcomes)
        scratch = np.zeros(max(old_count, outcomeid + 1), dtype=np.float64)
        scratch[:old_count] = self._distribution
        scratch[outcomeid] = weight

        while len(self._outcomes) <= outcomeid:
            self._outcomes.append(Transition())
        self._distribution = scratch
        return self._outcomes[outcomeid]

    def _sized_distribution(self, distribution: Sequence[float]) -> np.ndarray:
        dist = np.asarray(distribution, dtype=np.float64)
        if dist.ndim != 1 or dist.shape[0] != len(self._outcomes):
            raise InvalidArgumentError(
                f"Distribution length {dist.shape[0] if dist.ndim else 0} does not "
                f"match outcome count {len(self._outcomes)}."
            )
        if not np.all(np.isfinite(dist)):
            raise InvalidArgumentError("Distribution has non-finite entries.")
        return dist

    def _checked_distribution(self, distribution: Sequence[float]) -> np.ndarray:
        dist = self._sized_distribution(distribution)
        if np.any(dist < 0.0):
            raise InvalidArgumentError("Distribution has negative entries.")
        if abs(float(dist.sum()) - 1.0) > TOLERANCE:
            raise InvalidArgumentError(
                f"Distribution must sum to 1, got {float(dist.sum()):.6g}."
            )
        return dist


def l1_outcome_action(
    outcomes: Sequence[Transition] | None = None,
    threshold: float = 0.0,
    distribution: Sequence[float] | None = None,
) -> WeightedOutcomeAction:
    """Weighted action with an L1 ambiguity set around the baseline."""
    return WeightedOutcomeAction(
        outcomes=outcomes,
        nature=worst_case_l1,
        threshold=threshold,
        distribution=distribution,
    )
