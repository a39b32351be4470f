"""Decimal helpers shared by the oracle and risk code — no I/O."""
from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal(0)
ONE = Decimal(1)
HUNDRED = Decimal(100)

DEFAULT_TOKEN_DECIMALS = 6


def to_decimal(value: Any) -> Decimal | None:
    """Convert a number or numeric string to a finite Decimal.

    Floats go through ``repr`` so 0.1 becomes Decimal("0.1") rather than its
    binary expansion. Returns None for anything unparsable or non-finite.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not result.is_finite():
        return None
    return result


def scale_by_exponent(raw: int | str, expo: int) -> Decimal:
    """Exact ``raw * 10**expo``, as used by fixed-point oracle payloads."""
    return Decimal(int(raw)).scaleb(int(expo))


def micro_to_base(amount: Any, decimals: int = DEFAULT_TOKEN_DECIMALS) -> Decimal:
    """Convert an amount in the smallest unit to whole tokens.

    Examples:
        "1000000" → Decimal("1")  (6 decimals)
    """
    value = to_decimal(amount)
    if value is None:
        return ZERO
    return value.scaleb(-decimals)


def base_to_micro(amount: Any, decimals: int = DEFAULT_TOKEN_DECIMALS) -> Decimal:
    """Convert whole tokens to the smallest unit, truncated to an integer."""
    value = to_decimal(amount)
    if value is None:
        return ZERO
    return value.scaleb(decimals).to_integral_value(rounding=ROUND_DOWN)


def percent(value: Decimal) -> Decimal:
    return value * HUNDRED
