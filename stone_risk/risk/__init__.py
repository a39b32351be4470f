"""Pure risk math: interest rate curve, position health, collateral at risk."""
from .collateral import (
    aggregate_by_risk_level,
    collateral_risk_to_usd,
    price_drop_range,
    simulate_collateral_at_risk,
)
from .irm import (
    borrow_to_target,
    calculate_rate,
    curve_sample,
    parse_irm_params,
    rate_at_target,
    supply_rate,
)
from .position import (
    has_active_debt,
    health_factor,
    health_status,
    is_liquidatable,
    liquidation_price,
    liquidation_price_drop_percent,
    ltv,
    position_type,
)

__all__ = [
    "aggregate_by_risk_level",
    "borrow_to_target",
    "calculate_rate",
    "collateral_risk_to_usd",
    "curve_sample",
    "has_active_debt",
    "health_factor",
    "health_status",
    "is_liquidatable",
    "liquidation_price",
    "liquidation_price_drop_percent",
    "ltv",
    "parse_irm_params",
    "position_type",
    "price_drop_range",
    "rate_at_target",
    "simulate_collateral_at_risk",
    "supply_rate",
]
