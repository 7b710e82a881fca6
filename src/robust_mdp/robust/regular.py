"""Regular (non-robust) action with a single outcome."""

from __future__ import annotations

from typing import Sequence

from robust_mdp.core.errors import OutOfRangeError
from robust_mdp.core.transition import Transition
from robust_mdp.robust.outcomes import BaseAction


class RegularAction(BaseAction):
    """Action of a regular MDP: one transition and no uncertainty.

    The robust evaluation methods all reduce to :meth:`value`; the outcome id
    is trivial and always ``0``.
    """

    def __init__(self, outcome: Transition | None = None) -> None:
        super().__init__()
        self._outcome = outcome.copy() if outcome is not None else Transition()

    def value(self, valuefunction: Sequence[float], discount: float) -> float:
        return self._outcome.compute_value(valuefunction, discount)

    def average(self, valuefunction: Sequence[float], discount: float) -> float:
        return self.value(valuefunction, discount)

    def maximal(self, valuefunction: Sequence[float], discount: float) -> tuple[int, float]:
        return 0, self.value(valuefunction, discount)

    def minimal(self, valuefunction: Sequence[float], discount: float) -> tuple[int, float]:
        return 0, self.value(valuefunction, discount)

    def fixed(
        self, valuefunction: Sequence[float], discount: float, outcome_id: int = 0
    ) -> float:
        self._check_outcome(outcome_id)
        return self.value(valuefunction, discount)

    def get_outcome(self, outcomeid: int = 0) -> Transition:
        self._check_outcome(outcomeid)
        return self._outcome

    def __getitem__(self, outcomeid: int) -> Transition:
        return self.get_outcome(outcomeid)

    def get_outcomes(self) -> list[Transition]:
        return [self._outcome]

    def create_outcome(self, outcomeid: int = 0) -> Transition:
        """Return the single outcome; only id ``0`` exists."""
        return self.get_outcome(outcomeid)

    def outcome_count(self) -> int:
        return 1

    def normalize(self) -> None:
        self._outcome.normalize()

    def is_outcome_correct(self, outcome_id: int) -> bool:
        return outcome_id == 0

    def mean_reward(self, outcome_id: int = 0) -> float:
        return self._outcome.mean_reward()

    def mean_transition(self, outcome_id: int = 0) -> Transition:
        return self._outcome.copy()

    def __str__(self) -> str:
        return "1(reg)"

    def _check_outcome(self, outcomeid: int) -> None:
        if outcomeid != 0:
            raise OutOfRangeError(
                f"Regular actions only have outcome 0, got {outcomeid}."
            )
