"""
Range checks shared by every component.

All helpers raise InvalidArgumentError and return the (possibly converted)
value so they can be used inline. NaN never passes a range check.
"""
from __future__ import annotations
import math
from typing import Optional, Sequence

from .errors import InvalidArgumentError


def require_not_none(value, name: str):
    if value is None:
        raise InvalidArgumentError(f"{name} should not be None")
    return value


def in_range(value: float, name: str, lo: float, hi: float) -> float:
    """Inclusive range check: lo <= value <= hi."""
    if not (lo <= value <= hi):
        raise InvalidArgumentError(
            f"{name} should be between {lo} and {hi}, inclusive (got {value})")
    return value


def fraction(value: float, name: str) -> float:
    return in_range(value, name, 0.0, 1.0)


def positive(value: float, name: str) -> float:
    if not (value > 0.0):
        raise InvalidArgumentError(f"{name} should be positive (got {value})")
    return value


def non_negative(value: float, name: str) -> float:
    if not (value >= 0.0):
        raise InvalidArgumentError(
            f"{name} should not be negative (got {value})")
    return value


def index(value: int, name: str, count: int) -> int:
    """Slot index check: 0 <= value < count."""
    if not (0 <= value < count):
        raise InvalidArgumentError(
            f"{name} should be between 0 and {count - 1}, inclusive (got {value})")
    return value


def non_zero_vector(vector: Sequence[float], name: str,
                    length: Optional[int] = None) -> Sequence[float]:
    require_not_none(vector, name)
    if length is not None and len(vector) != length:
        raise InvalidArgumentError(
            f"{name} should have {length} components (got {len(vector)})")
    if not all(math.isfinite(c) for c in vector):
        raise InvalidArgumentError(f"{name} should be finite (got {vector})")
    if all(c == 0.0 for c in vector):
        raise InvalidArgumentError(f"{name} should not be zero")
    return vector
