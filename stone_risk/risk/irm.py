"""Kinked (two-slope) interest rate model — pure functions, no I/O.

Below the optimal utilization the rate climbs gently along ``slope_1``;
above it the rate climbs along the much steeper ``slope_2``:

    u <= optimal:  rate = base + (u / optimal) * slope_1
    u >  optimal:  rate = base + slope_1 + ((u - optimal) / (1 - optimal)) * slope_2

Both branches meet at ``base + slope_1`` so the curve is continuous at the kink.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from ..models import IRMCurvePoint, IRMParams
from ..numeric import HUNDRED, ONE, ZERO, to_decimal

DEFAULT_OPTIMAL_UTILIZATION = Decimal("0.9")
DEFAULT_CURVE_POINTS = 101


def _valid_params(params: IRMParams) -> bool:
    values = (params.base_rate, params.slope_1, params.slope_2, params.optimal_utilization)
    if any(not isinstance(v, Decimal) or not v.is_finite() for v in values):
        return False
    if params.base_rate < 0 or params.slope_1 < 0 or params.slope_2 < 0:
        return False
    return ZERO <= params.optimal_utilization <= ONE


def calculate_rate(utilization: Any, params: IRMParams) -> Decimal | None:
    """Borrow rate for a utilization in [0, 1].

    Returns None when the utilization is not a number in [0, 1] or the
    parameters are out of range.
    """
    util = to_decimal(utilization)
    if util is None or not (ZERO <= util <= ONE) or not _valid_params(params):
        return None

    base = params.base_rate
    optimal = params.optimal_utilization

    if optimal == ZERO:
        # No "below optimal" region: slope_2 applies from zero
        return base + params.slope_1 + util * params.slope_2

    if util <= optimal:
        return base + (util / optimal) * params.slope_1

    # optimal == 1 never reaches here since util <= 1
    return base + params.slope_1 + ((util - optimal) / (ONE - optimal)) * params.slope_2


def rate_at_target(params: IRMParams) -> Decimal | None:
    """Rate at the optimal (target) utilization, i.e. the kink."""
    return calculate_rate(params.optimal_utilization, params)


def supply_rate(
    utilization: Any, params: IRMParams, reserve_factor: Any = ZERO
) -> Decimal | None:
    """Supplier rate: borrow rate scaled by utilization and the protocol's cut."""
    rate = calculate_rate(utilization, params)
    factor = to_decimal(reserve_factor)
    if rate is None or factor is None or not (ZERO <= factor <= ONE):
        return None
    return rate * to_decimal(utilization) * (ONE - factor)


def curve_sample(
    params: IRMParams, num_points: int = DEFAULT_CURVE_POINTS
) -> list[IRMCurvePoint]:
    """Evenly spaced curve points over [0, 1] inclusive, both axes in percent.

    Every point is evaluated through ``calculate_rate`` so the kink is exact.
    """
    if num_points < 2 or not _valid_params(params):
        return []

    points: list[IRMCurvePoint] = []
    last = Decimal(num_points - 1)
    for i in range(num_points):
        utilization = Decimal(i) / last
        rate = calculate_rate(utilization, params)
        if rate is None:
            continue
        points.append(
            IRMCurvePoint(
                utilization_percent=utilization * HUNDRED,
                rate_percent=rate * HUNDRED,
            )
        )
    return points


def borrow_to_target(
    current_utilization: Any,
    target_utilization: Any,
    total_supply: Any,
    price: Any,
) -> Decimal | None:
    """USD amount that must be borrowed to move utilization to target.

    Positive means more borrowing is needed; negative means utilization is
    already above target.
    """
    current = to_decimal(current_utilization)
    target = to_decimal(target_utilization)
    supply = to_decimal(total_supply)
    unit_price = to_decimal(price)
    if current is None or target is None or supply is None or unit_price is None:
        return None
    return (target - current) * supply * unit_price


def _param(raw: Mapping[str, Any], key: str, default: Decimal) -> Decimal:
    value = to_decimal(raw.get(key))
    return default if value is None else value


def parse_irm_params(raw: Mapping[str, Any]) -> IRMParams:
    """Normalize IRM params from the nested ``{"linear": {...}}`` or flat shape.

    Missing fields default to 0, except ``optimal_utilization`` (0.9).
    """
    linear = raw.get("linear")
    if isinstance(linear, Mapping):
        raw = linear

    return IRMParams(
        base_rate=_param(raw, "base_rate", ZERO),
        slope_1=_param(raw, "slope_1", ZERO),
        slope_2=_param(raw, "slope_2", ZERO),
        optimal_utilization=_param(
            raw, "optimal_utilization", DEFAULT_OPTIMAL_UTILIZATION
        ),
    )
