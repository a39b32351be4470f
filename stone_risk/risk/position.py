"""Per-position health math — pure functions, no I/O.

Every function here returns None ("not applicable") instead of raising when
its inputs cannot describe a live borrow position: no collateral, no debt,
a non-positive price, a threshold outside (0, 1], or a non-numeric value.
The collateral-at-risk simulator runs these in a loop over a whole market
and one malformed row must not abort the batch.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any

from ..models import HealthStatus, LiquidationParams, Position, PositionType
from ..numeric import HUNDRED, ONE, ZERO, to_decimal

# Amounts at or below this many micro units count as zero (rounding dust)
DUST_THRESHOLD = Decimal(100)


def _amounts(position: Position) -> tuple[Decimal, Decimal] | None:
    # Rows that are not Position-like (None, raw mappings) are not applicable
    collateral = to_decimal(getattr(position, "collateral_amount", None))
    debt = to_decimal(getattr(position, "debt_amount", None))
    if collateral is None or debt is None or collateral <= ZERO or debt <= ZERO:
        return None
    return collateral, debt


def _threshold(value: Any) -> Decimal | None:
    if isinstance(value, LiquidationParams):
        value = value.liquidation_threshold
    threshold = to_decimal(value)
    if threshold is None or not (ZERO < threshold <= ONE):
        return None
    return threshold


def _price(value: Any) -> Decimal | None:
    price = to_decimal(value)
    if price is None or price <= ZERO:
        return None
    return price


def ltv(position: Position, price: Any) -> Decimal | None:
    """Loan-to-value: ``debt / (collateral * price)``."""
    amounts = _amounts(position)
    unit_price = _price(price)
    if amounts is None or unit_price is None:
        return None
    collateral, debt = amounts
    return debt / (collateral * unit_price)


def is_liquidatable(position: Position, price: Any, threshold: Any) -> bool:
    """True when the position's LTV is at or above the liquidation threshold."""
    current = ltv(position, price)
    limit = _threshold(threshold)
    if current is None or limit is None:
        return False
    return current >= limit


def liquidation_price(position: Position, threshold: Any) -> Decimal | None:
    """Collateral price at which the position becomes liquidatable.

    liquidation_price = debt / (collateral * threshold)
    """
    amounts = _amounts(position)
    limit = _threshold(threshold)
    if amounts is None or limit is None:
        return None
    collateral, debt = amounts
    return debt / (collateral * limit)


def liquidation_price_drop_percent(
    position: Position, price: Any, threshold: Any
) -> Decimal | None:
    """Signed percent move in ``price`` that makes the position liquidatable.

    Returns 0 when the position is already liquidatable, otherwise a negative
    number; healthier positions give a larger magnitude.
    """
    current = ltv(position, price)
    limit = _threshold(threshold)
    if current is None or limit is None:
        return None
    if current >= limit:
        return ZERO

    target = liquidation_price(position, limit)
    return (target / _price(price) - ONE) * HUNDRED


def health_factor(position: Position, price: Any, threshold: Any) -> Decimal | None:
    """Health factor = (collateral * price * threshold) / debt.

    None when there is no debt (nothing to liquidate).
    """
    amounts = _amounts(position)
    unit_price = _price(price)
    limit = _threshold(threshold)
    if amounts is None or unit_price is None or limit is None:
        return None
    collateral, debt = amounts
    return collateral * unit_price * limit / debt


def health_status(factor: Decimal | None) -> HealthStatus:
    if factor is None:
        return HealthStatus.NO_POSITION
    if factor >= 2:
        return HealthStatus.HEALTHY
    if factor >= Decimal("1.5"):
        return HealthStatus.MODERATE
    if factor >= Decimal("1.2"):
        return HealthStatus.AT_RISK
    if factor >= 1:
        return HealthStatus.DANGER
    return HealthStatus.LIQUIDATABLE


def _above_dust(amount: Any) -> bool:
    value = to_decimal(amount)
    return value is not None and value > DUST_THRESHOLD


def position_type(
    collateral_micro: Any, debt_micro: Any, supply_micro: Any
) -> PositionType:
    """Classify a user's position in a market from raw micro-unit amounts.

    - 'borrow': collateral and/or debt above dust
    - 'supply': supplied liquidity above dust
    - 'both':   both of the above
    """
    is_borrower = _above_dust(collateral_micro) or _above_dust(debt_micro)
    is_supplier = _above_dust(supply_micro)

    if is_borrower and is_supplier:
        return PositionType.BOTH
    if is_borrower:
        return PositionType.BORROW
    if is_supplier:
        return PositionType.SUPPLY
    return PositionType.NONE


def has_active_debt(debt_micro: Any) -> bool:
    return _above_dust(debt_micro)
