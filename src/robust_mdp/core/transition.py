"""Sparse transition probabilities and rewards from a single state."""

from __future__ import annotations

from bisect import bisect_left
import json
import logging
import math
from typing import Any, Sequence

import numpy as np

from robust_mdp.core.errors import (
    DomainError,
    InvalidArgumentError,
    OutOfRangeError,
    PreconditionError,
)

# Tolerance used when checking that a distribution sums to one.
TOLERANCE = 1e-5

logger = logging.getLogger(__name__)


class Transition:
    """Sparse distribution over destination states with associated rewards.

    Destination indices are kept sorted and unique; the probabilities and
    rewards are parallel to them. Samples are best added with increasing
    indices, although any order yields the same final state.

    Probabilities are not required to sum to one until :meth:`normalize` is
    called.
    """

    def __init__(
        self,
        indices: Sequence[int] | None = None,
        probabilities: Sequence[float] | None = None,
        rewards: Sequence[float] | None = None,
    ) -> None:
        self._indices: list[int] = []
        self._probabilities: list[float] = []
        self._rewards: list[float] = []

        indices = list(indices) if indices is not None else []
        probabilities = list(probabilities) if probabilities is not None else []
        rewards = list(rewards) if rewards is not None else [0.0] * len(indices)
        if not (len(indices) == len(probabilities) == len(rewards)):
            raise InvalidArgumentError(
                "indices, probabilities and rewards must have the same length "
                f"(got {len(indices)}, {len(probabilities)}, {len(rewards)})."
            )
        for index, probability, reward in zip(indices, probabilities, rewards):
            self.add_sample(index, probability, reward)

    @classmethod
    def from_probabilities(cls, probabilities: Sequence[float]) -> "Transition":
        """Create a transition with implicit indices ``0..n-1`` and zero rewards."""
        return cls(indices=range(len(probabilities)), probabilities=probabilities)

    def add_sample(self, stateid: int, probability: float, reward: float) -> None:
        """Add probability mass (and reward) for a transition to ``stateid``.

        When ``stateid`` already exists the probabilities are summed and the
        reward becomes the probability-weighted average::

            p' = p + probability
            r' = (p * r + probability * reward) / p'

        Zero-probability samples carry no mass and are ignored.
        """
        stateid = int(stateid)
        probability = float(probability)
        reward = float(reward)
        if stateid < 0:
            raise InvalidArgumentError(f"State id must be non-negative, got {stateid}.")
        if not math.isfinite(probability) or probability < 0.0:
            raise InvalidArgumentError(
                f"Probability must be finite and non-negative, got {probability}."
            )
        if not math.isfinite(reward):
            raise InvalidArgumentError(f"Reward must be finite, got {reward}.")
        if probability == 0.0:
            return

        position = bisect_left(self._indices, stateid)
        if position < len(self._indices) and self._indices[position] == stateid:
            old_probability = self._probabilities[position]
            old_reward = self._rewards[position]
            new_probability = old_probability + probability
            self._probabilities[position] = new_probability
            self._rewards[position] = (
                old_probability * old_reward + probability * reward
            ) / new_probability
            return

        self._indices.insert(position, stateid)
        self._probabilities.insert(position, probability)
        self._rewards.insert(position, reward)

    @property
    def indices(self) -> tuple[int, ...]:
        return tuple(self._indices)

    @property
    def probabilities(self) -> tuple[float, ...]:
        return tuple(self._probabilities)

    @property
    def rewards(self) -> tuple[float, ...]:
        return tuple(self._rewards)

    def size(self) -> int:
        """Number of destination states with positive probability."""
        return len(self._indices)

    def __len__(self) -> int:
        return self.size()

    def empty(self) -> bool:
        return not self._indices

    def max_index(self) -> int:
        """Largest destination index, or -1 for an empty transition."""
        return self._indices[-1] if self._indices else -1

    def get_reward(self, sampleid: int) -> float:
        self._check_sample(sampleid)
        return self._rewards[sampleid]

    def set_reward(self, sampleid: int, reward: float) -> None:
        """Overwrite the reward of the ``sampleid``-th stored destination."""
        self._check_sample(sampleid)
        self._rewards[sampleid] = float(reward)

    def sum_probabilities(self) -> float:
        return float(sum(self._probabilities))

    def is_normalized(self) -> bool:
        return abs(self.sum_probabilities() - 1.0) < TOLERANCE

    def normalize(self) -> None:
        """Scale probabilities to sum to one; fails when the total mass is zero."""
        total = self.sum_probabilities()
        if total == 0.0:
            raise DomainError("Cannot normalize a transition with zero total probability.")
        self._probabilities = [probability / total for probability in self._probabilities]
        logger.debug("Normalized transition over %d states (sum=%.6g).", self.size(), total)

    def compute_value(self, valuefunction: Sequence[float], discount: float = 1.0) -> float:
        """Expected one-step return against ``valuefunction``.

        Args:
            valuefunction: Values indexed by destination state.
            discount: Discount factor applied to the successor values.

        Returns:
            ``sum_i p_i * (r_i + discount * valuefunction[s_i])``.
        """
        if self.empty():
            raise PreconditionError("Cannot compute the value of an empty transition.")
        values = np.asarray(valuefunction, dtype=np.float64)
        if values.shape[0] <= self.max_index():
            raise OutOfRangeError(
                f"Value function of size {values.shape[0]} does not cover "
                f"state {self.max_index()}."
            )
        indices = np.asarray(self._indices, dtype=np.int64)
        probabilities = np.asarray(self._probabilities, dtype=np.float64)
        rewards = np.asarray(self._rewards, dtype=np.float64)
        return float(np.dot(probabilities, rewards + discount * values[indices]))

    def mean_reward(self) -> float:
        """Probability-weighted reward (assumes normalized probabilities)."""
        return float(np.dot(self._probabilities, self._rewards)) if self._indices else 0.0

    def probabilities_addto(self, scale: float, target: np.ndarray | "Transition") -> None:
        """Add scaled probabilities into ``target``.

        A dense numpy vector receives the probabilities only and is modified in
        place. A :class:`Transition` receives scaled samples with their rewards.
        """
        if isinstance(target, Transition):
            for index, probability, reward in zip(
                self._indices, self._probabilities, self._rewards
            ):
                target.add_sample(index, scale * probability, reward)
            return

        if target.shape[0] <= self.max_index():
            raise OutOfRangeError(
                f"Target vector of size {target.shape[0]} does not cover "
                f"state {self.max_index()}."
            )
        for index, probability in zip(self._indices, self._probabilities):
            target[index] += scale * probability

    def probabilities_vector(self, size: int) -> np.ndarray:
        """Dense probabilities of length ``size``, zeros for missing states."""
        self._check_dense_size(size)
        dense = np.zeros(size, dtype=np.float64)
        dense[self._indices] = self._probabilities
        return dense

    def rewards_vector(self, size: int) -> np.ndarray:
        """Dense rewards of length ``size``, zeros for missing states."""
        self._check_dense_size(size)
        dense = np.zeros(size, dtype=np.float64)
        dense[self._indices] = self._rewards
        return dense

    def to_dict(self, outcomeid: int | None = None) -> dict[str, Any]:
        return {
            "outcomeid": outcomeid,
            "idStatesTo": list(self._indices),
            "probabilities": list(self._probabilities),
            "rewards": list(self._rewards),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Transition":
        try:
            return cls(
                indices=[int(index) for index in payload["idStatesTo"]],
                probabilities=[float(p) for p in payload["probabilities"]],
                rewards=[float(r) for r in payload["rewards"]],
            )
        except KeyError as exc:
            raise InvalidArgumentError(f"Transition payload missing key {exc}.") from exc

    def to_json(self, outcomeid: int | None = None) -> str:
        """JSON export; ``outcomeid`` is ``null`` when not provided."""
        return json.dumps(self.to_dict(outcomeid=outcomeid))

    @classmethod
    def from_json(cls, text: str) -> "Transition":
        return cls.from_dict(json.loads(text))

    def copy(self) -> "Transition":
        duplicate = Transition()
        duplicate._indices = list(self._indices)
        duplicate._probabilities = list(self._probabilities)
        duplicate._rewards = list(self._rewards)
        return duplicate

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Transition):
            return NotImplemented
        return (
            self._indices == other._indices
            and self._probabilities == other._probabilities
            and self._rewards == other._rewards
        )

    def __repr__(self) -> str:
        return (
            f"Transition(indices={self._indices}, "
            f"probabilities={self._probabilities}, rewards={self._rewards})"
        )

    def _check_sample(self, sampleid: int) -> None:
        if not (0 <= sampleid < len(self._indices)):
            raise OutOfRangeError(
                f"Sample {sampleid} out of range for transition of size {self.size()}."
            )

    def _check_dense_size(self, size: int) -> None:
        if size <= self.max_index():
            raise OutOfRangeError(
                f"Size {size} must exceed the maximal index {self.max_index()}."
            )
