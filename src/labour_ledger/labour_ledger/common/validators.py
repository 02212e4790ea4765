from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, TypeVar

from ..core.constants import MAX_INT_COLUMN, MAX_REFERENCE_ID, MAX_SALARY_TOTAL, MONEY_STEP
from ..core.enums import choices
from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)

_DIGITS = re.compile(r"[0-9]+")


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} must be a non-empty string")
    return value.strip()


def is_reference_id(value: Any) -> bool:
    """Reference ids are positive signed-INT keys, given as int or digit string."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return 0 < value <= MAX_REFERENCE_ID
    if isinstance(value, str):
        text = value.strip()
        return bool(_DIGITS.fullmatch(text)) and 0 < int(text) <= MAX_REFERENCE_ID
    return False


def require_reference_id(value: Any, field_name: str) -> int:
    if not is_reference_id(value):
        raise ValidationError(f"Invalid {field_name}")
    return int(value)


def require_choice(value: Any, enum_cls: type[E], field_name: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"{field_name} must be one of: {choices(enum_cls)}")


def _to_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return Decimal(str(value))
    return None


def require_non_negative(value: Any, field_name: str, *, maximum: Decimal = MAX_SALARY_TOTAL) -> Decimal:
    """Money amounts: JSON numbers only, converted to Decimal without float drift.

    Amounts are stored with two decimal places, so finer values and values
    above ``maximum`` are rejected rather than rounded by the store.
    """
    amount = _to_decimal(value)
    if amount is None:
        raise ValidationError(f"{field_name} must be a number")
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    if amount > maximum:
        raise ValidationError(f"{field_name} cannot exceed {maximum}")
    if amount != amount.quantize(MONEY_STEP):
        raise ValidationError(f"{field_name} cannot have more than two decimal places")
    return amount


def require_non_negative_int(value: Any, field_name: str) -> int:
    amount = _to_decimal(value)
    if amount is None or amount != amount.to_integral_value():
        raise ValidationError(f"{field_name} must be a whole number")
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    if amount > MAX_INT_COLUMN:
        raise ValidationError(f"{field_name} cannot exceed {MAX_INT_COLUMN}")
    return int(amount)


def parse_decimal(value: Any) -> Decimal:
    """Normalize a stored numeric column (Decimal, int, float or str)."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid decimal value: {value!r}")
