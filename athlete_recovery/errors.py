"""Exceptions raised by the athlete recovery engine."""

import numbers


class RecoveryEngineError(Exception):
    """Base error for the recovery engine."""


class InputError(RecoveryEngineError, ValueError):
    """Missing or out-of-range input, rejected before any computation."""


class ProviderError(RecoveryEngineError):
    """A metric sample provider failed to supply samples."""


class ComputationError(RecoveryEngineError):
    """A derived value left its documented bounds."""


def check_bounds(name: str, value: float, lower: float, upper: float) -> float:
    """Fail loudly when a derived value is outside [lower, upper]."""
    if value != value or value < lower or value > upper:  # NaN fails the first test
        raise ComputationError(f"{name}={value!r} outside [{lower}, {upper}]")
    return value


def require_number(name: str, value, lower: float = 0.0, upper: float = float("inf")) -> float:
    """Reject non-numeric or out-of-range inputs before any computation."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InputError(f"{name} must be a number, got {value!r}")
    if value != value or not lower <= value <= upper:
        raise InputError(f"{name}={value!r} outside [{lower}, {upper}]")
    return float(value)
