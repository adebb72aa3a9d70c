from __future__ import annotations

import math
import re
from typing import Any


NON_DIGIT_RE = re.compile(r"\D")

# Maximum price: $9,999,999.99
# Rejects nonsensical prices and fees before they reach pricing
MAX_MONEY_AMOUNT = 9_999_999.99


class ValidationError(ValueError):
    """400-level input problem."""


def normalize_phone(phone: str | None) -> str:
    """Strip everything but digits so "(555) 010-2000" and "5550102000" compare equal."""
    if not phone:
        return ""
    return NON_DIGIT_RE.sub("", phone)


def clean_str(value: Any, field: str, *, required: bool = False, max_length: int | None = None) -> str | None:
    if value is None:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    s = str(value).strip()
    if required and not s:
        raise ValidationError(f"{field} is required")
    if max_length is not None and len(s) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return s


def parse_positive_int(value: Any, field: str) -> int:
    """
    Strict integer parse for quantities.

    Booleans and floats are rejected even when they look integral ("2.0", True).
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        parsed = int(value.strip())
    else:
        raise ValidationError(f"{field} must be an integer")
    if parsed <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return parsed


def parse_non_negative_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")
    if value < 0:
        raise ValidationError(f"{field} must not be negative")
    return value


def parse_amount(value: Any, field: str, *, minimum: float = 0.0, maximum: float = MAX_MONEY_AMOUNT) -> float:
    """Money and rate inputs: finite numbers within [minimum, maximum]."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not math.isfinite(amount):
        raise ValidationError(f"{field} must be a finite number")
    if amount < minimum:
        raise ValidationError(f"{field} must be at least {minimum:g}")
    if amount > maximum:
        raise ValidationError(f"{field} must be at most {maximum:g}")
    return amount


def parse_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(f"{field} must be a boolean")
