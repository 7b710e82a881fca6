"""Evaluate one robust action against a value function and report its values."""

from __future__ import annotations

import argparse
from dataclasses import replace
import json
import logging
from pathlib import Path

from robust_mdp.core.errors import RobustMDPError
from robust_mdp.core.logging_config import configure_logging
from robust_mdp.robust.params import evaluate_problem, load_problem

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Evaluate a robust MDP action.")
    parser.add_argument(
        "--problem-path",
        type=Path,
        required=True,
        help="Path to the evaluation problem YAML (discount, valuefunction, action).",
    )
    parser.add_argument("--discount", type=float, default=None)
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Optional path for the JSON evaluation report.",
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    configure_logging(args.log_level)

    problem = load_problem(args.problem_path)
    if args.discount is not None:
        problem = replace(problem, discount=args.discount)

    if not problem.action.is_valid():
        logger.warning("Action in %s is marked invalid; planners skip it.", args.problem_path)
        return 1

    try:
        report = evaluate_problem(problem)
    except RobustMDPError as exc:
        logger.error("Evaluation failed: %s", exc)
        return 1

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(
            json.dumps(report, indent=2, sort_keys=True) + "\n", encoding="utf-8"
        )
        logger.info("Report written to %s", args.output)

    print(f"Action kind: {report['kind']} (outcomes={problem.action.outcome_count()})")
    print(f"Average: {report['average']:.6f}")
    print(f"Maximal: {report['maximal']['value']:.6f} at {report['maximal']['outcome']}")
    print(f"Minimal: {report['minimal']['value']:.6f} at {report['minimal']['outcome']}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
