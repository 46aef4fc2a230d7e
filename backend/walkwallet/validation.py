from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from typing import Any

from walkwallet.money import quantize


# Upper bound for any single monetary field (Numeric(10, 2))
MAX_AMOUNT = Decimal("99999999.99")
# Steps reported for a single walk
MAX_STEPS = 1_000_000


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""


def require_json_object(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def coerce_int(key: str, value: Any, *, minimum: int | None = None, maximum: int | None = None) -> int:
    """
    Strict integer parsing: rejects bools, floats with fractions,
    scientific notation and decimal strings.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{key} must be an integer, not a decimal")
        result = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    else:
        raise ValidationError(f"{key} must be an integer")

    if minimum is not None and result < minimum:
        raise ValidationError(f"{key} must be >= {minimum}")
    if maximum is not None and result > maximum:
        raise ValidationError(f"{key} cannot exceed {maximum}")
    return result


def coerce_amount(key: str, value: Any, *, allow_zero: bool = True) -> Decimal:
    """Parse a non-negative monetary / distance value into a 2dp Decimal."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, str) and not value.strip():
        raise ValidationError(f"{key} must be a number")
    try:
        dec = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{key} must be a number")
    if not dec.is_finite():
        raise ValidationError(f"{key} must be a finite number")

    dec = quantize(dec)
    if dec < 0:
        raise ValidationError(f"{key} must be >= 0")
    if not allow_zero and dec == 0:
        raise ValidationError(f"{key} must be > 0")
    if dec > MAX_AMOUNT:
        raise ValidationError(f"{key} cannot exceed {MAX_AMOUNT}")
    return dec


def require_fields(payload: dict, *keys: str) -> None:
    missing = [k for k in keys if payload.get(k) is None]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def require_string(key: str, value: Any, *, max_length: int = 255) -> str:
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{key} is required")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return value


def to_json_text(key: str, value: Any) -> str | None:
    """
    Normalize an optional JSON-ish field (location snapshot, metadata) for a
    Text column. Strings must already be valid JSON; dicts/lists are dumped.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            json.loads(value)
        except ValueError:
            raise ValidationError(f"{key} must be valid JSON")
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    raise ValidationError(f"{key} must be a JSON object")


def from_json_text(text: str | None):
    """Inverse of to_json_text for serialization; non-JSON text passes through."""
    if text is None:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


def parse_limit(raw: Any, default: int, *, maximum: int = 100) -> int:
    """Query-string ?limit= helper: absent means default, capped at maximum."""
    if raw is None or raw == "":
        return default
    return min(coerce_int("limit", raw, minimum=1), maximum)
