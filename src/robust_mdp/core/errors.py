"""Error taxonomy shared by transitions, actions and nature constraints."""

from __future__ import annotations


class RobustMDPError(Exception):
    """Base class for all errors raised by the robust MDP core."""


class InvalidArgumentError(RobustMDPError, ValueError):
    """Malformed input, e.g. a distribution with the wrong length or sum."""


class DomainError(RobustMDPError, ArithmeticError):
    """Operation undefined for the current values, e.g. normalizing zero mass."""


class OutOfRangeError(RobustMDPError, IndexError):
    """Unknown outcome id or an undersized dense-vector request."""


class PreconditionError(RobustMDPError, RuntimeError):
    """Evaluation requested on an object that cannot produce a value."""
