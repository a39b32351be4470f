"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .models import DenomInfo, IRMParams
from .numeric import to_decimal
from .risk.irm import parse_irm_params

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PollingConfig:
    oracle_refresh_seconds: float = 10.0
    price_feed_refresh_seconds: float = 15.0
    report_interval_seconds: float = 60.0


@dataclass(frozen=True)
class FreshnessConfig:
    fresh_seconds: int = 60
    stale_seconds: int = 300


@dataclass(frozen=True)
class ChainConfig:
    lcd_endpoints: tuple[str, ...] = ()
    request_timeout: int = 30


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feeds: dict[str, str] = field(default_factory=dict)
    request_timeout: int = 10


@dataclass(frozen=True)
class MarketConfig:
    market_id: str = ""
    oracle_address: str = ""
    collateral_denom: str = ""
    debt_denom: str = ""
    liquidation_threshold: Decimal = Decimal("0.85")
    irm: IRMParams = field(default_factory=IRMParams)


@dataclass(frozen=True)
class RetentionConfig:
    database_path: str = "snapshots.db"
    prune_every_heights: int = 1000
    delete_batch_size: int = 100


@dataclass(frozen=True)
class AppConfig:
    polling: PollingConfig = field(default_factory=PollingConfig)
    freshness: FreshnessConfig = field(default_factory=FreshnessConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    pyth: PythConfig = field(default_factory=PythConfig)
    markets: tuple[MarketConfig, ...] = ()
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    denoms: dict[str, DenomInfo] = field(default_factory=dict)

    def market(self, market_id: str) -> MarketConfig:
        for market in self.markets:
            if market.market_id == market_id:
                return market
        raise KeyError(f"Unknown market '{market_id}'")


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_polling(raw: dict[str, Any]) -> PollingConfig:
    return PollingConfig(
        oracle_refresh_seconds=float(raw.get("oracle_refresh_seconds", 10.0)),
        price_feed_refresh_seconds=float(raw.get("price_feed_refresh_seconds", 15.0)),
        report_interval_seconds=float(raw.get("report_interval_seconds", 60.0)),
    )


def _build_freshness(raw: dict[str, Any]) -> FreshnessConfig:
    return FreshnessConfig(
        fresh_seconds=int(raw.get("fresh_seconds", 60)),
        stale_seconds=int(raw.get("stale_seconds", 300)),
    )


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    return ChainConfig(
        lcd_endpoints=tuple(raw.get("lcd_endpoints", [])),
        request_timeout=int(raw.get("request_timeout", 30)),
    )


def _build_pyth(raw: dict[str, Any]) -> PythConfig:
    return PythConfig(
        hermes_url=raw.get("hermes_url", PythConfig.hermes_url),
        feeds=dict(raw.get("feeds", {})),
        request_timeout=int(raw.get("request_timeout", 10)),
    )


def _build_markets(raw: list[dict[str, Any]]) -> tuple[MarketConfig, ...]:
    markets: list[MarketConfig] = []
    for m in raw:
        threshold = to_decimal(str(m.get("liquidation_threshold", "0.85")))
        markets.append(
            MarketConfig(
                market_id=str(m.get("market_id", "")),
                oracle_address=m.get("oracle_address", ""),
                collateral_denom=m.get("collateral_denom", ""),
                debt_denom=m.get("debt_denom", ""),
                liquidation_threshold=threshold if threshold is not None else Decimal(0),
                irm=parse_irm_params(m.get("irm", {}) or {}),
            )
        )
    return tuple(markets)


def _build_denoms(raw: dict[str, Any]) -> dict[str, DenomInfo]:
    denoms: dict[str, DenomInfo] = {}
    for denom, entry in raw.items():
        entry = entry or {}
        denoms[str(denom)] = DenomInfo(
            symbol=str(entry.get("symbol", "")),
            chain_denom=str(entry.get("chain_denom", "")),
            name=str(entry.get("name", "")),
            decimals=int(entry.get("decimals", 6)),
        )
    return denoms


def _build_retention(raw: dict[str, Any]) -> RetentionConfig:
    return RetentionConfig(
        database_path=raw.get("database_path", "snapshots.db"),
        prune_every_heights=int(raw.get("prune_every_heights", 1000)),
        delete_batch_size=int(raw.get("delete_batch_size", 100)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        polling=_build_polling(raw.get("polling", {})),
        freshness=_build_freshness(raw.get("freshness", {})),
        chain=_build_chain(raw.get("chain", {})),
        pyth=_build_pyth(raw.get("pyth", {})),
        markets=_build_markets(raw.get("markets", [])),
        retention=_build_retention(raw.get("retention", {})),
        denoms=_build_denoms(raw.get("denoms") or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.markets:
        raise ValueError("At least one market must be configured")

    if not cfg.chain.lcd_endpoints:
        raise ValueError("At least one LCD endpoint must be configured")

    if cfg.freshness.fresh_seconds >= cfg.freshness.stale_seconds:
        raise ValueError("freshness.fresh_seconds must be below stale_seconds")

    for denom, info in cfg.denoms.items():
        if not info.symbol or not info.chain_denom:
            raise ValueError(f"Denom '{denom}' needs both symbol and chain_denom")

    seen: set[str] = set()
    for market in cfg.markets:
        if not market.market_id:
            raise ValueError("Every market needs a market_id")
        if market.market_id in seen:
            raise ValueError(f"Duplicate market '{market.market_id}'")
        seen.add(market.market_id)
        if not market.oracle_address:
            raise ValueError(f"Market '{market.market_id}' has no oracle address")
        if not (Decimal(0) < market.liquidation_threshold <= Decimal(1)):
            raise ValueError(
                f"Market '{market.market_id}' liquidation_threshold must be in (0, 1]"
            )
