"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from decimal import Decimal
from pathlib import Path

import pytest

from stone_risk.config import (
    AppConfig,
    ChainConfig,
    FreshnessConfig,
    MarketConfig,
    PollingConfig,
    PythConfig,
    RetentionConfig,
)
from stone_risk.models import IRMParams, Position


# ---------------------------------------------------------------------------
# Market fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_irm() -> IRMParams:
    return IRMParams(
        base_rate=Decimal("0.02"),
        slope_1=Decimal("0.04"),
        slope_2=Decimal("0.75"),
        optimal_utilization=Decimal("0.9"),
    )


@pytest.fixture()
def btc_price() -> Decimal:
    return Decimal("89539.3")


@pytest.fixture()
def sample_position() -> Position:
    return Position(collateral_amount=Decimal("1"), debt_amount=Decimal("70000"))


@pytest.fixture()
def sample_positions() -> list[Position]:
    return [
        Position(collateral_amount=Decimal("1"), debt_amount=Decimal("70000")),
        Position(collateral_amount=Decimal("2.5"), debt_amount=Decimal("150000")),
        Position(collateral_amount=Decimal("0.4"), debt_amount=Decimal("28000")),
        Position(collateral_amount=Decimal("10"), debt_amount=Decimal("0")),
    ]


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        lcd_endpoints=("https://lcd1.example.com", "https://lcd2.example.com"),
        request_timeout=5,
    )


@pytest.fixture()
def sample_pyth_config() -> PythConfig:
    return PythConfig(
        hermes_url="https://hermes.example.com/v2/updates/price/latest",
        feeds={"ubtc": "0xAAA111", "uusdc": "bbb222"},
    )


@pytest.fixture()
def sample_market(sample_irm: IRMParams) -> MarketConfig:
    return MarketConfig(
        market_id="btc-usdc",
        oracle_address="neutron1oracleaddress000000000000000000xyz",
        collateral_denom="ubtc",
        debt_denom="uusdc",
        liquidation_threshold=Decimal("0.86"),
        irm=sample_irm,
    )


@pytest.fixture()
def sample_app_config(
    sample_chain_config: ChainConfig,
    sample_pyth_config: PythConfig,
    sample_market: MarketConfig,
    tmp_path: Path,
) -> AppConfig:
    return AppConfig(
        polling=PollingConfig(),
        freshness=FreshnessConfig(),
        chain=sample_chain_config,
        pyth=sample_pyth_config,
        markets=(sample_market,),
        retention=RetentionConfig(database_path=str(tmp_path / "snapshots.db")),
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    polling:
      oracle_refresh_seconds: 5
    freshness:
      fresh_seconds: 60
      stale_seconds: 300
    chain:
      lcd_endpoints: ["https://lcd.example.com"]
      request_timeout: 10
    pyth:
      hermes_url: "https://hermes.example.com"
      feeds: {ubtc: "aaa", uusdc: "bbb"}
    markets:
      - market_id: btc-usdc
        oracle_address: "neutron1oracle"
        collateral_denom: ubtc
        debt_denom: uusdc
        liquidation_threshold: "0.86"
        irm:
          linear:
            base_rate: "0.02"
            slope_1: "0.04"
            slope_2: "0.75"
            optimal_utilization: "0.9"
    retention:
      database_path: "history.db"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file

