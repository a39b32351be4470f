"""Unit tests for position risk math."""
from __future__ import annotations

from decimal import Decimal

import pytest

from stone_risk.models import HealthStatus, LiquidationParams, Position, PositionType
from stone_risk.risk.position import (
    has_active_debt,
    health_factor,
    health_status,
    is_liquidatable,
    liquidation_price,
    liquidation_price_drop_percent,
    ltv,
    position_type,
)

THRESHOLD = Decimal("0.86")


class TestLtv:
    def test_reference_position_is_healthy(self, sample_position: Position, btc_price: Decimal) -> None:
        value = ltv(sample_position, btc_price)
        assert value == pytest.approx(Decimal("0.782"), abs=Decimal("0.001"))
        assert not is_liquidatable(sample_position, btc_price, THRESHOLD)

    def test_twenty_percent_drop_is_liquidatable(self, sample_position: Position, btc_price: Decimal) -> None:
        shocked = btc_price * Decimal("0.8")
        assert ltv(sample_position, shocked) == pytest.approx(Decimal("0.977"), abs=Decimal("0.001"))
        assert is_liquidatable(sample_position, shocked, THRESHOLD)

    def test_exactly_at_threshold_is_liquidatable(self) -> None:
        position = Position(collateral_amount=Decimal(1), debt_amount=Decimal(86))
        assert is_liquidatable(position, Decimal(100), THRESHOLD)

    @pytest.mark.parametrize(
        "position",
        [
            Position(collateral_amount=Decimal(0), debt_amount=Decimal(10)),
            Position(collateral_amount=Decimal(1), debt_amount=Decimal(0)),
            Position(collateral_amount=Decimal(-1), debt_amount=Decimal(10)),
        ],
    )
    def test_not_applicable_positions(self, position: Position) -> None:
        assert ltv(position, Decimal(100)) is None
        assert not is_liquidatable(position, Decimal(100), THRESHOLD)
        assert liquidation_price(position, THRESHOLD) is None

    def test_non_position_rows_are_not_applicable(self) -> None:
        for row in (None, {"collateral_amount": Decimal(1), "debt_amount": Decimal(10)}, object()):
            assert ltv(row, Decimal(100)) is None  # type: ignore[arg-type]
            assert liquidation_price(row, THRESHOLD) is None  # type: ignore[arg-type]
            assert not is_liquidatable(row, Decimal(100), THRESHOLD)  # type: ignore[arg-type]

    @pytest.mark.parametrize("price", [Decimal(0), Decimal(-5), "abc", None])
    def test_bad_price(self, sample_position: Position, price: object) -> None:
        assert ltv(sample_position, price) is None

    @pytest.mark.parametrize("threshold", [Decimal(0), Decimal("1.1"), Decimal(-1)])
    def test_bad_threshold(self, sample_position: Position, btc_price: Decimal, threshold: Decimal) -> None:
        assert not is_liquidatable(sample_position, btc_price, threshold)
        assert liquidation_price(sample_position, threshold) is None
        assert liquidation_price_drop_percent(sample_position, btc_price, threshold) is None


class TestLiquidationPrice:
    def test_liquidation_price(self, sample_position: Position) -> None:
        assert liquidation_price(sample_position, THRESHOLD) == Decimal(70000) / THRESHOLD

    def test_round_trip_reaches_threshold(self, sample_positions: list[Position]) -> None:
        for position in sample_positions[:3]:
            price = liquidation_price(position, THRESHOLD)
            assert ltv(position, price) == pytest.approx(THRESHOLD, abs=Decimal("1e-20"))

    def test_drop_percent(self, sample_position: Position, btc_price: Decimal) -> None:
        drop = liquidation_price_drop_percent(sample_position, btc_price, THRESHOLD)
        assert drop == pytest.approx(Decimal("-9.095"), abs=Decimal("0.001"))
        shocked = btc_price * (1 + drop / 100)
        assert ltv(sample_position, shocked) == pytest.approx(THRESHOLD, abs=Decimal("1e-20"))

    def test_accepts_liquidation_params(self, sample_position: Position) -> None:
        params = LiquidationParams(liquidation_threshold=THRESHOLD)
        assert liquidation_price(sample_position, params) == liquidation_price(sample_position, THRESHOLD)
        assert liquidation_price(sample_position, LiquidationParams(Decimal("1.5"))) is None

    def test_already_liquidatable_drop_is_zero(self, sample_position: Position) -> None:
        assert liquidation_price_drop_percent(sample_position, Decimal(50000), THRESHOLD) == 0

    def test_healthier_position_needs_bigger_drop(self, btc_price: Decimal) -> None:
        risky = Position(collateral_amount=Decimal(1), debt_amount=Decimal(70000))
        safe = Position(collateral_amount=Decimal(1), debt_amount=Decimal(30000))
        assert liquidation_price_drop_percent(safe, btc_price, THRESHOLD) < liquidation_price_drop_percent(
            risky, btc_price, THRESHOLD
        )


class TestHealth:
    def test_health_factor(self) -> None:
        position = Position(collateral_amount=Decimal(2), debt_amount=Decimal(100))
        assert health_factor(position, Decimal(100), Decimal("0.8")) == Decimal("1.6")

    def test_no_debt_has_no_health_factor(self) -> None:
        position = Position(collateral_amount=Decimal(2), debt_amount=Decimal(0))
        assert health_factor(position, Decimal(100), THRESHOLD) is None
        assert health_status(None) == HealthStatus.NO_POSITION

    @pytest.mark.parametrize(
        ("factor", "status"),
        [
            ("2.5", HealthStatus.HEALTHY),
            ("2", HealthStatus.HEALTHY),
            ("1.5", HealthStatus.MODERATE),
            ("1.3", HealthStatus.AT_RISK),
            ("1", HealthStatus.DANGER),
            ("0.99", HealthStatus.LIQUIDATABLE),
        ],
    )
    def test_status_tiers(self, factor: str, status: HealthStatus) -> None:
        assert health_status(Decimal(factor)) == status


class TestPositionType:
    @pytest.mark.parametrize(
        ("collateral", "debt", "supply", "expected"),
        [
            ("0", "0", "0", PositionType.NONE),
            ("100", "50", "99", PositionType.NONE),
            ("1000000", "0", "0", PositionType.BORROW),
            ("0", "0", "5000", PositionType.SUPPLY),
            ("1000000", "500000", "5000", PositionType.BOTH),
        ],
    )
    def test_classification(self, collateral: str, debt: str, supply: str, expected: PositionType) -> None:
        assert position_type(collateral, debt, supply) == expected

    def test_has_active_debt_ignores_dust(self) -> None:
        assert not has_active_debt("100")
        assert has_active_debt("101")
        assert not has_active_debt(None)
