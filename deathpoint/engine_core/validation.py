"""
Input validation for numbers coming from users and stored snapshots.

Numbers arrive as whatever the shell parsed (int, float, occasionally
something else). These helpers decide what is acceptable and convert
it to the integers the game stores.
"""

from __future__ import annotations
import math
from numbers import Real
from typing import Any

from ..exceptions import ValidationError


def is_finite_number(value: Any) -> bool:
    """True for real, finite numbers. Booleans are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(value)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (2.5 -> 3), unlike round()."""
    return int(math.floor(value + 0.5))


def coerce_max_score(value: Any) -> int:
    """
    Validate a ceiling and turn it into a positive integer.

    Raises:
        ValidationError: not a finite number greater than zero
    """
    if not is_finite_number(value) or value <= 0:
        raise ValidationError("Max score must be a number greater than 0.")
    return max(1, round_half_up(value))


def coerce_delta(value: Any) -> int:
    """
    Validate a score addition.

    Whole floats (5.0) are accepted; fractional ones are not.

    Raises:
        ValidationError: not a finite positive whole number
    """
    if not is_finite_number(value) or value <= 0:
        raise ValidationError("Score to add must be a positive number.")
    if value != int(value):
        raise ValidationError("Score to add must be a whole number.")
    return int(value)


def coerce_score(value: Any) -> int:
    """Validate an edited score: a non-negative whole number."""
    if not is_finite_number(value) or value < 0:
        raise ValidationError("Score must be a non-negative number.")
    if value != int(value):
        raise ValidationError("Score must be a whole number.")
    return int(value)


def coerce_turn(value: Any) -> int:
    """Validate an edited turn number: a whole number >= 1."""
    if not is_finite_number(value) or value < 1:
        raise ValidationError("Turn must be a number >= 1.")
    if value != int(value):
        raise ValidationError("Turn must be a whole number.")
    return int(value)
