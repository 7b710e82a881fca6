"""Shared action capability and outcome management."""

from __future__ import annotations

import abc
import json
from typing import Any, Sequence

from robust_mdp.core.errors import OutOfRangeError
from robust_mdp.core.transition import Transition


class BaseAction(abc.ABC):
    """Capability shared by every action variant.

    An action can be invalid, in which case planners must exclude it from any
    search over actions. Invalid actions usually come from incomplete
    sampling of a domain. Actions are constructed valid.
    """

    def __init__(self) -> None:
        self._valid = True

    def is_valid(self) -> bool:
        return self._valid

    def set_validity(self, validity: bool) -> None:
        self._valid = bool(validity)

    @abc.abstractmethod
    def value(self, valuefunction: Sequence[float], discount: float) -> float:
        """Nominal value of the action."""

    @abc.abstractmethod
    def average(self, valuefunction: Sequence[float], discount: float) -> float:
        """Value under the nominal weighting of outcomes."""

    @abc.abstractmethod
    def maximal(self, valuefunction: Sequence[float], discount: float) -> tuple[Any, float]:
        """Outcome id and value of the most favourable outcome."""

    @abc.abstractmethod
    def minimal(self, valuefunction: Sequence[float], discount: float) -> tuple[Any, float]:
        """Outcome id and value of the least favourable outcome."""

    @abc.abstractmethod
    def fixed(self, valuefunction: Sequence[float], discount: float, outcome_id: Any) -> float:
        """Value for a caller-chosen outcome id."""

    @abc.abstractmethod
    def get_outcomes(self) -> list[Transition]:
        """Outcomes of the action."""

    @abc.abstractmethod
    def outcome_count(self) -> int:
        """Number of outcomes."""

    def to_dict(self, actionid: int | None = None) -> dict[str, Any]:
        return {
            "actionid": actionid,
            "outcomes": [
                outcome.to_dict(outcomeid=outcomeid)
                for outcomeid, outcome in enumerate(self.get_outcomes())
            ],
        }

    def to_json(self, actionid: int | None = None) -> str:
        """JSON export; ``actionid`` is ``null`` when not provided."""
        return json.dumps(self.to_dict(actionid=actionid))


class OutcomeManager(BaseAction):
    """Ordered list of outcome transitions used by robust actions."""

    def __init__(self, outcomes: Sequence[Transition] | None = None) -> None:
        super().__init__()
        self._outcomes: list[Transition] = [
            outcome.copy() for outcome in (outcomes or ())
        ]

    def create_outcome(self, outcomeid: int | None = None) -> Transition:
        """Grow the outcome list so that ``outcomeid`` is valid and return it.

        Missing intermediate outcomes are created empty. ``None`` appends a new
        outcome at the end.
        """
        if outcomeid is None:
            outcomeid = len(self._outcomes)
        if outcomeid < 0:
            raise OutOfRangeError(f"Outcome id must be non-negative, got {outcomeid}.")
        while len(self._outcomes) <= outcomeid:
            self._outcomes.append(Transition())
        return self._outcomes[outcomeid]

    def add_outcome(self, outcomeid: int, transition: Transition) -> None:
        """Set outcome ``outcomeid`` to a copy of ``transition``.

        Intermediate outcomes are created empty through :meth:`create_outcome`.
        """
        self.create_outcome(outcomeid)
        self._outcomes[outcomeid] = transition.copy()

    def append_outcome(self, transition: Transition) -> None:
        self.add_outcome(len(self._outcomes), transition)

    def get_outcome(self, outcomeid: int) -> Transition:
        if not (0 <= outcomeid < len(self._outcomes)):
            raise OutOfRangeError(
                f"Outcome {outcomeid} out of range for {len(self._outcomes)} outcomes."
            )
        return self._outcomes[outcomeid]

    def __getitem__(self, outcomeid: int) -> Transition:
        return self.get_outcome(outcomeid)

    def get_outcomes(self) -> list[Transition]:
        return list(self._outcomes)

    def outcome_count(self) -> int:
        return len(self._outcomes)

    def __len__(self) -> int:
        return self.outcome_count()

    def normalize(self) -> None:
        """Normalize the transition probabilities of every outcome."""
        for outcome in self._outcomes:
            outcome.normalize()

    def __str__(self) -> str:
        return str(len(self._outcomes))
