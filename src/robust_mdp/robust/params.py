"""Action/problem schema and YAML helpers for robust action evaluation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from robust_mdp.core.transition import Transition
from robust_mdp.robust import Action
from robust_mdp.robust.discrete import DiscreteOutcomeAction
from robust_mdp.robust.nature import nature_name, resolve_nature
from robust_mdp.robust.regular import RegularAction
from robust_mdp.robust.weighted import WeightedOutcomeAction

ACTION_KINDS: tuple[str, ...] = ("regular", "discrete", "weighted")


def transition_to_dict(transition: Transition) -> dict[str, Any]:
    return {
        "indices": list(transition.indices),
        "probabilities": list(transition.probabilities),
        "rewards": list(transition.rewards),
    }


def transition_from_dict(payload: dict[str, Any]) -> Transition:
    indices = [int(index) for index in payload.get("indices", [])]
    probabilities = [float(p) for p in payload.get("probabilities", [])]
    raw_rewards = payload.get("rewards")
    rewards = [float(r) for r in raw_rewards] if raw_rewards is not None else None
    return Transition(indices=indices, probabilities=probabilities, rewards=rewards)


def action_to_dict(action: Action) -> dict[str, Any]:
    """Convert an action to a plain dict."""
    payload: dict[str, Any] = {
        "kind": _action_kind(action),
        "valid": action.is_valid(),
        "outcomes": [transition_to_dict(outcome) for outcome in action.get_outcomes()],
    }
    if isinstance(action, WeightedOutcomeAction):
        payload["nature"] = nature_name(action.nature)
        payload["threshold"] = action.threshold
        payload["distribution"] = [float(w) for w in action.get_distribution()]
    return payload


def action_from_dict(payload: dict[str, Any]) -> Action:
    """Create an action from a plain dict."""
    kind = payload.get("kind", "regular")
    outcomes = [transition_from_dict(item) for item in payload.get("outcomes", [])]

    action: Action
    if kind == "regular":
        if len(outcomes) > 1:
            raise ValueError(
                f"Regular actions have exactly one outcome, got {len(outcomes)}."
            )
        action = RegularAction(outcomes[0] if outcomes else None)
    elif kind == "discrete":
        action = DiscreteOutcomeAction(outcomes)
    elif kind == "weighted":
        distribution = payload.get("distribution")
        action = WeightedOutcomeAction(
            outcomes,
            nature=resolve_nature(str(payload.get("nature", "worst_case_l1"))),
            threshold=float(payload.get("threshold", 0.0)),
            distribution=(
                [float(w) for w in distribution] if distribution is not None else None
            ),
        )
    else:
        raise ValueError(f"Unknown action kind {kind!r}. Expected one of {ACTION_KINDS}.")

    action.set_validity(bool(payload.get("valid", True)))
    return action


@dataclass(frozen=True)
class EvaluationProblem:
    """A single action evaluated against a value function."""

    discount: float
    valuefunction: tuple[float, ...]
    action: Action

    def validate(self) -> None:
        if not (0.0 <= self.discount <= 1.0):
            raise ValueError("discount must be in [0, 1].")
        if not self.valuefunction:
            raise ValueError("valuefunction must be non-empty.")

    def to_dict(self) -> dict[str, Any]:
        """Convert problem object to a plain dict."""
        return {
            "discount": self.discount,
            "valuefunction": list(self.valuefunction),
            "action": action_to_dict(self.action),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "EvaluationProblem":
        """Create problem object from a plain dict."""
        action_payload = payload["action"]
        if not isinstance(action_payload, dict):
            raise ValueError("Expected a mapping under 'action'.")
        return cls(
            discount=float(payload["discount"]),
            valuefunction=tuple(float(v) for v in payload["valuefunction"]),
            action=action_from_dict(action_payload),
        )


def save_problem(problem: EvaluationProblem, output_path: Path) -> None:
    """Serialize an evaluation problem to YAML."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(yaml.safe_dump(problem.to_dict(), sort_keys=False))


def load_problem(path: Path) -> EvaluationProblem:
    """Load an evaluation problem from YAML."""
    payload = yaml.safe_load(path.read_text())
    if not isinstance(payload, dict):
        raise ValueError("Expected a mapping in evaluation problem YAML.")
    return EvaluationProblem.from_dict(payload)


def evaluate_problem(problem: EvaluationProblem) -> dict[str, Any]:
    """Evaluate the action of ``problem`` under every robust mode."""
    problem.validate()
    action = problem.action
    valuefunction = list(problem.valuefunction)
    max_outcome, max_value = action.maximal(valuefunction, problem.discount)
    min_outcome, min_value = action.minimal(valuefunction, problem.discount)
    return {
        "kind": _action_kind(action),
        "valid": action.is_valid(),
        "average": action.average(valuefunction, problem.discount),
        "maximal": {"outcome": _encode_outcome(max_outcome), "value": max_value},
        "minimal": {"outcome": _encode_outcome(min_outcome), "value": min_value},
        "action": action.to_dict(),
    }


def _encode_outcome(outcome: Any) -> Any:
    if isinstance(outcome, int):
        return outcome
    return [float(weight) for weight in outcome]


def _action_kind(action: Action) -> str:
    if isinstance(action, RegularAction):
        return "regular"
    if isinstance(action, DiscreteOutcomeAction):
        return "discrete"
    if isinstance(action, WeightedOutcomeAction):
        return "weighted"
    raise TypeError(f"Unsupported action type: {type(action).__name__}")
