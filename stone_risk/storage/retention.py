"""Tiered downsampling of historical market snapshots.

Newest 24 hours are kept at full resolution. Older rows are reduced to one
per bucket, keeping the chronologically last row in each:

    1 to 7 days old    one per hour
    7 to 30 days old   one per 6 hours
    older than 30 days one per day

Deletion is destructive; there is no archive tier.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Sequence

from ..interfaces.snapshot_store import SnapshotStore
from ..models import MarketSnapshot

logger = logging.getLogger(__name__)

HOUR = 60 * 60
DAY = 24 * HOUR

DEFAULT_BATCH_SIZE = 100
DEFAULT_PRUNE_EVERY_HEIGHTS = 1000


@dataclass(frozen=True)
class RetentionTier:
    """Rows aged in ``[min_age_seconds, max_age_seconds)`` keep one per bucket.

    ``max_age_seconds=None`` means no upper age bound.
    """

    min_age_seconds: int
    max_age_seconds: int | None
    bucket_seconds: int

    def window(self, now: int) -> tuple[int, int]:
        """Timestamp range ``[start, end)`` this tier covers at ``now``."""
        start = 0 if self.max_age_seconds is None else now - self.max_age_seconds
        return start, now - self.min_age_seconds


DEFAULT_TIERS: tuple[RetentionTier, ...] = (
    RetentionTier(min_age_seconds=DAY, max_age_seconds=7 * DAY, bucket_seconds=HOUR),
    RetentionTier(min_age_seconds=7 * DAY, max_age_seconds=30 * DAY, bucket_seconds=6 * HOUR),
    RetentionTier(min_age_seconds=30 * DAY, max_age_seconds=None, bucket_seconds=DAY),
)


def redundant_snapshot_ids(
    snapshots: Sequence[MarketSnapshot], bucket_seconds: int
) -> list[str]:
    """Ids of every row except the last one in each ``timestamp // bucket`` group."""
    buckets: dict[int, list[MarketSnapshot]] = {}
    for snapshot in snapshots:
        buckets.setdefault(snapshot.timestamp // bucket_seconds, []).append(snapshot)

    ids: list[str] = []
    for rows in buckets.values():
        if len(rows) < 2:
            continue
        rows.sort(key=lambda s: (s.timestamp, s.id))
        ids.extend(s.id for s in rows[:-1])
    return ids


class SnapshotRetentionManager:
    """Sole deleter of snapshot rows; safe to run repeatedly."""

    def __init__(
        self,
        store: SnapshotStore,
        tiers: Sequence[RetentionTier] = DEFAULT_TIERS,
        batch_size: int = DEFAULT_BATCH_SIZE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._store = store
        self._tiers = tuple(tiers)
        self._batch_size = batch_size
        self._clock = clock

    def prune(self, now: int | None = None) -> int:
        """Prune every market; returns the number of rows deleted.

        Failures are logged and the run is abandoned with 0; the next run
        starts over.
        """
        now = int(self._clock() if now is None else now)
        started = time.monotonic()
        logger.info("Starting snapshot pruning")

        try:
            market_ids = self._store.list_market_ids()
            deleted = sum(self.prune_market(market_id, now) for market_id in market_ids)
        except Exception as e:
            logger.error("Error during snapshot pruning: %s", e)
            return 0

        logger.info(
            "Snapshot pruning complete: %d market(s), %d deleted in %.2fs",
            len(market_ids), deleted, time.monotonic() - started,
        )
        return deleted

    def on_block(self, height: int, schedule: PruneSchedule) -> int:
        """Prune when ``schedule`` says this block height is due; otherwise 0."""
        if not schedule.should_run(height):
            return 0
        logger.debug("Block %d reached prune interval", height)
        return self.prune()

    def prune_market(self, market_id: str, now: int) -> int:
        deleted = 0
        for tier in self._tiers:
            start, end = tier.window(now)
            deleted += self._prune_window(market_id, start, end, tier.bucket_seconds)
        return deleted

    def _prune_window(self, market_id: str, start: int, end: int, bucket_seconds: int) -> int:
        snapshots = self._store.snapshots_between(market_id, start, end)
        if len(snapshots) < 2:
            return 0

        ids = redundant_snapshot_ids(snapshots, bucket_seconds)
        deleted = 0
        for i in range(0, len(ids), self._batch_size):
            deleted += self._store.delete_snapshots(ids[i : i + self._batch_size])

        if deleted:
            logger.debug(
                "Pruned %d snapshot(s) of %s in [%d, %d) to %ds buckets",
                deleted, market_id, start, end, bucket_seconds,
            )
        return deleted


class PruneSchedule:
    """Block-height trigger: fires once every ``every`` heights.

    The first height seen is the baseline and never fires.
    """

    def __init__(self, every: int = DEFAULT_PRUNE_EVERY_HEIGHTS) -> None:
        self.every = every
        self._last_height: int | None = None

    def should_run(self, height: int) -> bool:
        if self._last_height is None:
            self._last_height = height
            return False
        if height - self._last_height >= self.every:
            self._last_height = height
            return True
        return False
