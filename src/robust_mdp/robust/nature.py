"""Nature constraints: adversarial selection of outcome distributions.

A nature constraint receives per-outcome values ``z``, a baseline
distribution ``q`` and a budget ``t`` and returns the distribution chosen by
nature inside the ambiguity set together with the resulting objective. The
direction of the optimization is always passed explicitly as an
:class:`Objective`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Callable, Sequence

import numpy as np

from robust_mdp.core.errors import InvalidArgumentError
from robust_mdp.core.transition import TOLERANCE

logger = logging.getLogger(__name__)


class Objective(Enum):
    """Direction in which nature optimizes the expected value."""

    MINIMIZE = "minimize"
    MAXIMIZE = "maximize"


@dataclass(frozen=True)
class NatureSolution:
    """Distribution selected by nature and the value it attains."""

    distribution: np.ndarray
    objective: float


NatureConstraint = Callable[
    [Sequence[float], Sequence[float], float, Objective], NatureSolution
]


def worst_case_l1(
    values: Sequence[float],
    baseline: Sequence[float],
    threshold: float,
    objective: Objective,
) -> NatureSolution:
    """Optimize ``p @ values`` subject to ``||p - baseline||_1 <= threshold``.

    For :attr:`Objective.MINIMIZE`, outcomes are sorted by value and mass is
    moved greedily from the highest-valued outcomes into the lowest-valued
    one. Moving ``delta`` of mass consumes ``2 * delta`` of the budget, so at
    most ``threshold / 2`` is moved. :attr:`Objective.MAXIMIZE` runs the same
    procedure on the negated values.

    Ties are broken towards the outcome with the smallest index.

    Args:
        values: Value of each outcome.
        baseline: Nominal distribution over outcomes; must sum to one.
        threshold: L1 radius of the ambiguity set; non-negative.
        objective: Whether nature minimizes or maximizes.

    Returns:
        The selected distribution and ``sum_i p_i * values_i``.
    """
    z = np.asarray(values, dtype=np.float64)
    q = np.asarray(baseline, dtype=np.float64)
    if not isinstance(objective, Objective):
        raise InvalidArgumentError(f"objective must be an Objective, got {objective!r}.")
    _validate_inputs(z, q, threshold)

    oriented = z if objective is Objective.MINIMIZE else -z
    order = np.argsort(oriented, kind="stable")
    distribution = q.copy()

    best = order[0]
    epsilon = min(threshold / 2.0, 1.0 - distribution[best])
    epsilon = max(0.0, min(epsilon, float(distribution.sum() - distribution[best])))
    distribution[best] += epsilon

    for k in order[:0:-1]:
        if epsilon <= 0.0:
            break
        withdrawn = min(epsilon, distribution[k])
        distribution[k] -= withdrawn
        epsilon -= withdrawn

    value = float(np.dot(distribution, z))
    logger.debug(
        "worst_case_l1(%s): n=%d threshold=%.6g objective=%.6g",
        objective.value,
        z.shape[0],
        threshold,
        value,
    )
    return NatureSolution(distribution=distribution, objective=value)


NATURE_CONSTRAINTS: dict[str, NatureConstraint] = {
    "worst_case_l1": worst_case_l1,
}


def resolve_nature(name: str) -> NatureConstraint:
    """Look up a nature constraint by its configuration name."""
    try:
        return NATURE_CONSTRAINTS[name]
    except KeyError as exc:
        known = ", ".join(sorted(NATURE_CONSTRAINTS))
        raise InvalidArgumentError(
            f"Unknown nature constraint {name!r}. Expected one of: {known}."
        ) from exc


def nature_name(nature: NatureConstraint) -> str:
    """Reverse lookup of :func:`resolve_nature`."""
    for name, candidate in NATURE_CONSTRAINTS.items():
        if candidate is nature:
            return name
    raise InvalidArgumentError(f"Nature constraint {nature!r} is not registered.")


def _validate_inputs(z: np.ndarray, q: np.ndarray, threshold: float) -> None:
    if z.ndim != 1 or q.ndim != 1:
        raise InvalidArgumentError("values and baseline must be one-dimensional.")
    if z.shape[0] != q.shape[0]:
        raise InvalidArgumentError(
            f"values and baseline lengths differ ({z.shape[0]} != {q.shape[0]})."
        )
    if z.shape[0] == 0:
        raise InvalidArgumentError("values and baseline must be non-empty.")
    if not np.isfinite(threshold) or threshold < 0.0:
        raise InvalidArgumentError(f"threshold must be finite and non-negative, got {threshold}.")
    if not (np.all(np.isfinite(z)) and np.all(np.isfinite(q))):
        raise InvalidArgumentError("values and baseline must be finite.")
    if np.any(q < 0.0):
        raise InvalidArgumentError("baseline distribution has negative entries.")
    if abs(float(q.sum()) - 1.0) > TOLERANCE:
        raise InvalidArgumentError(
            f"baseline distribution must sum to 1, got {float(q.sum()):.6g}."
        )
