"""Static position source backed by a YAML file.

Stands in for a live "liquidatable positions" query. File shape::

    markets:
      atom-usdc:
        - {collateral: "1.5", debt: "7000"}
        - {collateral: "20", debt: "0"}

Amounts are whole tokens (collateral) and debt-token units.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

import yaml

from .models import Position
from .numeric import to_decimal

logger = logging.getLogger(__name__)


def _parse_position(raw: Any) -> Position | None:
    if not isinstance(raw, Mapping):
        return None
    collateral = to_decimal(raw.get("collateral", 0))
    debt = to_decimal(raw.get("debt", 0))
    if collateral is None or debt is None:
        return None
    return Position(collateral_amount=collateral, debt_amount=debt)


class StaticPositionSource:
    """Serves a fixed set of positions per market."""

    def __init__(self, positions: Mapping[str, Sequence[Position]]) -> None:
        self._positions = {market: list(rows) for market, rows in positions.items()}

    @classmethod
    def from_yaml(cls, path: str | Path) -> StaticPositionSource:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Positions file not found: {path}")

        with open(path) as f:
            raw = yaml.safe_load(f) or {}

        positions: dict[str, list[Position]] = {}
        for market_id, rows in (raw.get("markets") or {}).items():
            parsed: list[Position] = []
            for i, row in enumerate(rows or []):
                position = _parse_position(row)
                if position is None:
                    logger.warning("Skipping malformed position #%d in %s", i, market_id)
                    continue
                parsed.append(position)
            positions[str(market_id)] = parsed

        logger.info("Loaded positions for %d market(s) from %s", len(positions), path)
        return cls(positions)

    async def fetch_positions(self, market_id: str) -> list[Position]:
        return list(self._positions.get(market_id, []))
