"""Collateral-at-risk simulation over a market's positions."""
from __future__ import annotations

import logging
from decimal import ROUND_CEILING, Decimal
from typing import Any, Iterable, Sequence

from ..models import CollateralRiskPoint, Position
from ..numeric import HUNDRED, ONE, ZERO, to_decimal
from .position import _amounts, _threshold, liquidation_price_drop_percent, ltv

logger = logging.getLogger(__name__)

RISK_BUCKET_PERCENT = Decimal(5)


def price_drop_range(
    min_drop: int = -90, max_drop: int = 0, step: int = 5
) -> list[Decimal]:
    """Shock grid from ``min_drop`` to ``max_drop`` inclusive, e.g. -90, -85, … 0."""
    if step <= 0:
        raise ValueError("step must be positive")
    return [Decimal(d) for d in range(min_drop, max_drop + 1, step)]


def simulate_collateral_at_risk(
    positions: Sequence[Position],
    price: Any,
    liquidation_threshold: Any,
    price_drops: Iterable[Any] | None = None,
) -> list[CollateralRiskPoint]:
    """Collateral that would be liquidatable at each hypothetical price drop.

    For every drop ``d`` the collateral price becomes ``price * (1 + d/100)``
    and each position with collateral and debt is re-checked against the
    threshold. Cost is O(len(drops) * len(positions)).

    Degenerate input (no positions, zero price, threshold outside (0, 1])
    gives all-zero points; positions that cannot be evaluated are skipped.
    """
    drops = price_drop_range() if price_drops is None else list(price_drops)
    current_price = to_decimal(price)
    threshold = _threshold(liquidation_threshold)

    points: list[CollateralRiskPoint] = []
    for raw_drop in drops:
        drop = to_decimal(raw_drop)
        if drop is None:
            logger.debug("Skipping non-numeric price drop %r", raw_drop)
            continue

        total = ZERO
        if current_price is not None and threshold is not None:
            adjusted_price = current_price * (ONE + drop / HUNDRED)
            for position in positions:
                position_ltv = ltv(position, adjusted_price)
                if position_ltv is not None and position_ltv >= threshold:
                    total += _amounts(position)[0]

        points.append(CollateralRiskPoint(price_drop_percent=drop, collateral_at_risk=total))

    return points


def collateral_risk_to_usd(
    points: Sequence[CollateralRiskPoint], price: Any
) -> list[CollateralRiskPoint]:
    """Re-express every point's collateral in USD at the current price."""
    unit_price = to_decimal(price)
    if unit_price is None:
        unit_price = ZERO
    return [
        CollateralRiskPoint(
            price_drop_percent=point.price_drop_percent,
            collateral_at_risk=point.collateral_at_risk * unit_price,
        )
        for point in points
    ]


def aggregate_by_risk_level(
    positions: Sequence[Position],
    price: Any,
    liquidation_threshold: Any,
) -> dict[Decimal, Decimal]:
    """Group collateral by the price drop that liquidates it.

    Drops are rounded up (toward zero) to a 5% step, e.g. -12.3 → -10.
    Already-liquidatable positions land in the 0 bucket; positions without
    collateral or debt are left out.
    """
    levels: dict[Decimal, Decimal] = {}
    for position in positions:
        drop = liquidation_price_drop_percent(position, price, liquidation_threshold)
        if drop is None:
            continue
        key = (drop / RISK_BUCKET_PERCENT).to_integral_value(rounding=ROUND_CEILING)
        key = key * RISK_BUCKET_PERCENT + ZERO  # normalise -0 to 0
        levels[key] = levels.get(key, ZERO) + _amounts(position)[0]
    return levels
