"""SQLite-backed store for per-market snapshot rows."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from decimal import Decimal
from pathlib import Path
from typing import Iterator, Sequence

from ..models import MarketSnapshot

logger = logging.getLogger(__name__)

_DECIMAL_COLUMNS = (
    "borrow_rate",
    "liquidity_rate",
    "utilization",
    "borrow_index",
    "liquidity_index",
)


def snapshot_id(market_id: str, timestamp: int) -> str:
    return f"{market_id}:{timestamp}"


class SqliteSnapshotStore:
    """Snapshot rows keyed by ``(market_id, timestamp)``.

    Timestamps are Unix seconds. Decimal columns are stored as TEXT so
    values round-trip exactly.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_database()

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _initialize_database(self) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS market_snapshots (
                    id TEXT PRIMARY KEY,
                    market_id TEXT NOT NULL,
                    timestamp INTEGER NOT NULL,
                    block_height INTEGER NOT NULL DEFAULT 0,
                    borrow_rate TEXT NOT NULL DEFAULT '0',
                    liquidity_rate TEXT NOT NULL DEFAULT '0',
                    utilization TEXT NOT NULL DEFAULT '0',
                    borrow_index TEXT NOT NULL DEFAULT '1',
                    liquidity_index TEXT NOT NULL DEFAULT '1',
                    UNIQUE (market_id, timestamp)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_snapshots_market_time
                ON market_snapshots (market_id, timestamp)
            """)

    @staticmethod
    def _row_to_snapshot(row: sqlite3.Row) -> MarketSnapshot:
        return MarketSnapshot(
            id=row["id"],
            market_id=row["market_id"],
            timestamp=int(row["timestamp"]),
            block_height=int(row["block_height"]),
            **{column: Decimal(row[column]) for column in _DECIMAL_COLUMNS},
        )

    def save_snapshot(self, snapshot: MarketSnapshot) -> None:
        """Insert or replace one row."""
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO market_snapshots (
                    id, market_id, timestamp, block_height, borrow_rate,
                    liquidity_rate, utilization, borrow_index, liquidity_index
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    snapshot.id,
                    snapshot.market_id,
                    int(snapshot.timestamp),
                    int(snapshot.block_height),
                    *(str(getattr(snapshot, column)) for column in _DECIMAL_COLUMNS),
                ),
            )

    def list_market_ids(self) -> list[str]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT DISTINCT market_id FROM market_snapshots ORDER BY market_id"
            ).fetchall()
        return [row["market_id"] for row in rows]

    def snapshots_between(
        self, market_id: str, start: int, end: int
    ) -> list[MarketSnapshot]:
        """Rows with ``start <= timestamp < end``, oldest first."""
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM market_snapshots
                WHERE market_id = ? AND timestamp >= ? AND timestamp < ?
                ORDER BY timestamp ASC, id ASC
                """,
                (market_id, int(start), int(end)),
            ).fetchall()
        return [self._row_to_snapshot(row) for row in rows]

    def delete_snapshots(self, snapshot_ids: Sequence[str]) -> int:
        """Delete rows by id; returns how many were actually removed."""
        if not snapshot_ids:
            return 0
        placeholders = ",".join("?" for _ in snapshot_ids)
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"DELETE FROM market_snapshots WHERE id IN ({placeholders})",
                tuple(snapshot_ids),
            )
            return cursor.rowcount

    def count_snapshots(self, market_id: str | None = None) -> int:
        with self._get_connection() as conn:
            if market_id is None:
                row = conn.execute("SELECT COUNT(*) AS n FROM market_snapshots").fetchone()
            else:
                row = conn.execute(
                    "SELECT COUNT(*) AS n FROM market_snapshots WHERE market_id = ?",
                    (market_id,),
                ).fetchone()
        return int(row["n"])
