"""Historical snapshot storage and retention."""
from .retention import DEFAULT_TIERS, PruneSchedule, RetentionTier, SnapshotRetentionManager
from .sqlite_store import SqliteSnapshotStore

__all__ = [
    "DEFAULT_TIERS",
    "PruneSchedule",
    "RetentionTier",
    "SnapshotRetentionManager",
    "SqliteSnapshotStore",
]
