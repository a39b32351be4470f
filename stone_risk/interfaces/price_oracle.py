"""Price feed protocol — batched price lookups by feed id."""
from typing import Protocol

from ..models import PythPrice


class PriceFeedSource(Protocol):
    """Abstract interface for fetching current prices for a batch of feeds."""

    async def fetch_quotes(self, feed_ids: list[str]) -> dict[str, PythPrice]: ...
