from __future__ import annotations

from typing import Any, Sequence

from ..core.exceptions import ValidationError


def require_whole_number(value: Any, field_name: str) -> int:
    """Ids and minor-unit amounts: ``10.0`` passes, ``10.9`` does not."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} is required")
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field_name} must be a whole number")
    if number != value:
        raise ValidationError(f"{field_name} must be a whole number")
    return number


def require_non_negative(value: int, field_name: str) -> int:
    number = require_whole_number(value, field_name)
    if number < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return number


def require_positive(value: float, field_name: str) -> float:
    if value is None or value <= 0:
        raise ValidationError(f"{field_name} must be greater than zero")
    return value


def require_ids(values: Sequence[int], field_name: str) -> list[int]:
    try:
        ids = [int(v) for v in values or []]
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be integers")
    if not ids:
        raise ValidationError(f"{field_name} must not be empty")
    return ids
