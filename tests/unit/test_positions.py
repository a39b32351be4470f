"""Unit tests for the YAML position source."""
from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from stone_risk.models import Position
from stone_risk.positions import StaticPositionSource


class TestStaticPositionSource:
    @pytest.mark.asyncio
    async def test_loads_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "positions.yaml"
        path.write_text(
            "markets:\n"
            "  btc-usdc:\n"
            "    - {collateral: \"1\", debt: \"70000\"}\n"
            "    - {collateral: 0.5}\n"
            "    - {collateral: \"abc\", debt: 1}\n"
            "    - just-a-string\n"
        )
        source = StaticPositionSource.from_yaml(path)

        positions = await source.fetch_positions("btc-usdc")

        assert positions == [
            Position(collateral_amount=Decimal(1), debt_amount=Decimal(70000)),
            Position(collateral_amount=Decimal("0.5"), debt_amount=Decimal(0)),
        ]

    @pytest.mark.asyncio
    async def test_unknown_market_is_empty(self) -> None:
        source = StaticPositionSource({})
        assert await source.fetch_positions("nope") == []

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            StaticPositionSource.from_yaml(tmp_path / "missing.yaml")
