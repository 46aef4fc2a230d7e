# Overview: Decimal helpers for coin/currency amounts (two fractional digits).

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize(value) -> Decimal:
    """Round to two places. Accepts Decimal, int, or numeric str."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def money_str(value) -> str:
    """Wire format for monetary values: "15.00", "-50.00"."""
    return f"{quantize(value):.2f}"
