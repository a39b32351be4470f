"""Integration tests for the sqlite snapshot store and retention manager."""
from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from stone_risk.models import MarketSnapshot
from stone_risk.storage.retention import (
    DAY,
    HOUR,
    PruneSchedule,
    RetentionTier,
    SnapshotRetentionManager,
    redundant_snapshot_ids,
)
from stone_risk.storage.sqlite_store import SqliteSnapshotStore, snapshot_id

# Aligned to a day boundary so bucket edges are easy to reason about
NOW = 1_700_006_400


@pytest.fixture()
def store(tmp_path: Path) -> SqliteSnapshotStore:
    return SqliteSnapshotStore(tmp_path / "data" / "snapshots.db")


def _snapshot(market_id: str, timestamp: int, **kwargs) -> MarketSnapshot:
    return MarketSnapshot(
        id=snapshot_id(market_id, timestamp),
        market_id=market_id,
        timestamp=timestamp,
        **kwargs,
    )


def _seed(store: SqliteSnapshotStore, market_id: str, timestamps: list[int]) -> None:
    for ts in timestamps:
        store.save_snapshot(_snapshot(market_id, ts))


class TestSqliteSnapshotStore:
    def test_round_trip_keeps_decimals_exact(self, store: SqliteSnapshotStore) -> None:
        snap = _snapshot(
            "m1", NOW, block_height=42,
            borrow_rate=Decimal("0.043500000000000001"), utilization=Decimal("0.9"),
        )
        store.save_snapshot(snap)

        rows = store.snapshots_between("m1", NOW, NOW + 1)

        assert rows == [snap]

    def test_range_is_half_open_and_ordered(self, store: SqliteSnapshotStore) -> None:
        _seed(store, "m1", [NOW + 30, NOW, NOW + 10, NOW + 60])
        rows = store.snapshots_between("m1", NOW, NOW + 60)
        assert [r.timestamp for r in rows] == [NOW, NOW + 10, NOW + 30]

    def test_list_delete_count(self, store: SqliteSnapshotStore) -> None:
        _seed(store, "m2", [NOW])
        _seed(store, "m1", [NOW, NOW + 1])

        assert store.list_market_ids() == ["m1", "m2"]
        assert store.count_snapshots() == 3
        assert store.delete_snapshots([snapshot_id("m1", NOW), "missing"]) == 1
        assert store.count_snapshots("m1") == 1
        assert store.delete_snapshots([]) == 0


class TestRedundantSnapshotIds:
    def test_keeps_last_per_bucket(self) -> None:
        snaps = [_snapshot("m", ts) for ts in [0, 10, 59, 60, 200]]
        ids = redundant_snapshot_ids(snaps, bucket_seconds=60)
        assert ids == ["m:0", "m:10"]


class TestRetentionTier:
    def test_windows(self) -> None:
        tier = RetentionTier(min_age_seconds=DAY, max_age_seconds=7 * DAY, bucket_seconds=HOUR)
        assert tier.window(NOW) == (NOW - 7 * DAY, NOW - DAY)
        open_tier = RetentionTier(min_age_seconds=30 * DAY, max_age_seconds=None, bucket_seconds=DAY)
        assert open_tier.window(NOW) == (0, NOW - 30 * DAY)


class TestSnapshotRetentionManager:
    def _populate(self, store: SqliteSnapshotStore) -> None:
        recent = [NOW - m * 60 for m in range(1, 30)]  # newest hour, every minute
        two_days = NOW - 2 * DAY
        one_hour_tier = [two_days + m * 600 for m in range(12)]  # 2 hours, every 10 min
        ten_days = NOW - 10 * DAY
        six_hour_tier = [ten_days + h * HOUR for h in range(12)]  # 12 hourly rows
        sixty_days = NOW - 60 * DAY
        daily_tier = [sixty_days + h * 4 * HOUR for h in range(12)]  # 2 days of 4h rows
        _seed(store, "m1", recent + one_hour_tier + six_hour_tier + daily_tier)

    def test_prunes_each_tier_to_one_per_bucket(self, store: SqliteSnapshotStore) -> None:
        self._populate(store)
        manager = SnapshotRetentionManager(store, clock=lambda: NOW)

        deleted = manager.prune()

        # 12 -> 2 hourly, 12 -> 2 six-hourly, 12 -> 2 daily, newest 24h untouched
        assert deleted == 30
        assert store.count_snapshots("m1") == 29 + 6
        assert len(store.snapshots_between("m1", NOW - DAY, NOW)) == 29

    def test_keeps_chronologically_last_in_bucket(self, store: SqliteSnapshotStore) -> None:
        base = NOW - 3 * DAY
        _seed(store, "m1", [base + 60, base + 1200, base + 3000])
        SnapshotRetentionManager(store, clock=lambda: NOW).prune()
        assert [s.timestamp for s in store.snapshots_between("m1", 0, NOW)] == [base + 3000]

    def test_idempotent(self, store: SqliteSnapshotStore) -> None:
        self._populate(store)
        manager = SnapshotRetentionManager(store, clock=lambda: NOW)

        assert manager.prune() > 0
        assert manager.prune() == 0

    def test_deletes_in_batches(self) -> None:
        store = MagicMock()
        store.list_market_ids.return_value = ["m1"]
        base = NOW - 3 * DAY
        rows = [_snapshot("m1", base + i) for i in range(251)]
        store.snapshots_between.side_effect = lambda market_id, start, end: [
            r for r in rows if start <= r.timestamp < end
        ]
        store.delete_snapshots.side_effect = lambda ids: len(ids)

        deleted = SnapshotRetentionManager(store, batch_size=100, clock=lambda: NOW).prune()

        assert deleted == 250
        sizes = [len(call.args[0]) for call in store.delete_snapshots.call_args_list]
        assert sizes == [100, 100, 50]

    def test_failure_is_logged_and_swallowed(self, caplog: pytest.LogCaptureFixture) -> None:
        store = MagicMock()
        store.list_market_ids.side_effect = RuntimeError("database is locked")

        assert SnapshotRetentionManager(store, clock=lambda: NOW).prune() == 0
        assert "database is locked" in caplog.text

    def test_invalid_batch_size(self, store: SqliteSnapshotStore) -> None:
        with pytest.raises(ValueError):
            SnapshotRetentionManager(store, batch_size=0)


class TestPruneSchedule:
    def test_first_height_is_baseline(self) -> None:
        schedule = PruneSchedule(every=1000)
        assert not schedule.should_run(5000)
        assert not schedule.should_run(5999)
        assert schedule.should_run(6000)
        assert not schedule.should_run(6500)
        assert schedule.should_run(7001)

    def test_on_block_triggers_prune(self, store: SqliteSnapshotStore) -> None:
        base = NOW - 3 * DAY
        _seed(store, "m1", [base, base + 60])
        manager = SnapshotRetentionManager(store, clock=lambda: NOW)
        schedule = PruneSchedule(every=10)

        assert manager.on_block(100, schedule) == 0
        assert store.count_snapshots() == 2
        assert manager.on_block(110, schedule) == 1
        assert store.count_snapshots() == 1
