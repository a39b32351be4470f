"""Position source protocol — open borrow positions per market."""
from typing import Protocol

from ..models import Position


class PositionSource(Protocol):
    """Abstract interface for listing a market's open positions."""

    async def fetch_positions(self, market_id: str) -> list[Position]: ...
