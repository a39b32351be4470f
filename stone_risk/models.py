"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping

_EMPTY: Mapping = MappingProxyType({})


# ---------------------------------------------------------------------------
# Prices and oracles
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PriceQuote:
    """One price observation for one asset."""

    denom: str
    value: Decimal
    confidence: Decimal = Decimal(0)
    published_at: int = 0


@dataclass(frozen=True)
class PythPrice:
    """A single Hermes price entry, already scaled by its exponent."""

    feed_id: str
    price: Decimal
    confidence: Decimal
    expo: int
    publish_time: int


@dataclass(frozen=True)
class OracleConfig:
    """Oracle contract configuration as returned by its ``config`` query."""

    owner: str
    price_source_address: str
    max_confidence_ratio: Decimal | None = None


@dataclass(frozen=True)
class PriceFeed:
    """One configured denom → feed id mapping on an oracle contract."""

    denom: str
    feed_id: str


@dataclass(frozen=True)
class DenomInfo:
    """What a chain denom stands for: display symbol, price-lookup denom, decimals."""

    symbol: str
    chain_denom: str
    name: str = ""
    decimals: int = 6


@dataclass(frozen=True)
class OracleRequirement:
    """Which denoms a consumer needs priced by one oracle contract."""

    address: str
    denoms: tuple[str, ...] = ()


@dataclass(frozen=True)
class OracleSourceState:
    """Aggregated result of one refresh against one oracle contract.

    A queried denom ends up in exactly one of ``prices`` or ``price_errors``.
    """

    address: str
    config: OracleConfig | None = None
    config_error: str | None = None
    price_feeds: tuple[PriceFeed, ...] = ()
    price_feeds_error: str | None = None
    prices: Mapping[str, PriceQuote] = field(default_factory=lambda: _EMPTY)
    price_errors: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    last_refreshed_at: float | None = None


class FreshnessClass(str, Enum):
    FRESH = "fresh"
    WARNING = "warning"
    STALE = "stale"
    ERROR = "error"
    LOADING = "loading"


@dataclass(frozen=True)
class PriceFeedSnapshot:
    """Published state of the plain price-feed aggregator."""

    prices: Mapping[str, PriceQuote] = field(default_factory=lambda: _EMPTY)
    raw_prices: Mapping[str, PythPrice] = field(default_factory=lambda: _EMPTY)
    error: str | None = None
    last_updated: float | None = None
    is_stale: bool = False


# ---------------------------------------------------------------------------
# Positions and market parameters
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Position:
    """One borrower's exposure in one market, in base units."""

    collateral_amount: Decimal = Decimal(0)
    debt_amount: Decimal = Decimal(0)


@dataclass(frozen=True)
class LiquidationParams:
    liquidation_threshold: Decimal


@dataclass(frozen=True)
class IRMParams:
    """Two-slope interest rate curve parameters (decimals, 0.02 = 2%)."""

    base_rate: Decimal = Decimal(0)
    slope_1: Decimal = Decimal(0)
    slope_2: Decimal = Decimal(0)
    optimal_utilization: Decimal = Decimal("0.9")


@dataclass(frozen=True)
class IRMCurvePoint:
    utilization_percent: Decimal
    rate_percent: Decimal


@dataclass(frozen=True)
class CollateralRiskPoint:
    """Collateral that becomes liquidatable at one hypothetical price drop."""

    price_drop_percent: Decimal
    collateral_at_risk: Decimal


class HealthStatus(str, Enum):
    HEALTHY = "Healthy"
    MODERATE = "Moderate"
    AT_RISK = "At Risk"
    DANGER = "Danger"
    LIQUIDATABLE = "Liquidatable"
    NO_POSITION = "No Position"


class PositionType(str, Enum):
    NONE = "none"
    SUPPLY = "supply"
    BORROW = "borrow"
    BOTH = "both"


# ---------------------------------------------------------------------------
# History and reporting
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MarketSnapshot:
    """Point-in-time market state row from the historical store."""

    id: str
    market_id: str
    timestamp: int
    block_height: int = 0
    borrow_rate: Decimal = Decimal(0)
    liquidity_rate: Decimal = Decimal(0)
    utilization: Decimal = Decimal(0)
    borrow_index: Decimal = Decimal(1)
    liquidity_index: Decimal = Decimal(1)


@dataclass(frozen=True)
class DenomStatus:
    """Price and freshness of one denom on a market's oracle."""

    denom: str
    price: Decimal | None
    freshness: FreshnessClass
    age_seconds: int | None = None
    error: str | None = None
    symbol: str | None = None
    reference_price: Decimal | None = None
    reference_confidence: Decimal | None = None


@dataclass(frozen=True)
class MarketReport:
    """Everything the report view shows for one market."""

    market_id: str
    oracle_address: str
    collateral: DenomStatus
    debt: DenomStatus
    oracle_price: Decimal | None = None
    reference_price: Decimal | None = None
    reference_deviation_percent: Decimal | None = None
    rate_at_target: Decimal | None = None
    config_error: str | None = None
