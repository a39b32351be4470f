"""Snapshot store protocol — historical market rows."""
from typing import Protocol, Sequence

from ..models import MarketSnapshot


class SnapshotStore(Protocol):
    """Read/delete access to per-market snapshot rows keyed by (market, timestamp)."""

    def list_market_ids(self) -> list[str]: ...

    def snapshots_between(
        self, market_id: str, start: int, end: int
    ) -> list[MarketSnapshot]: ...

    def delete_snapshots(self, snapshot_ids: Sequence[str]) -> int: ...
