from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from earningswatch.core.logger import get_logger
from earningswatch.core.models import StoredEvent
from earningswatch.errors import StoreConflictError, StoreError
from earningswatch.store.gateway import EventStore, parse_records

log = get_logger("store.sqlite")


@dataclass
class SQLiteEventStore(EventStore):
    """Local SQLite stand-in for the blob store.

    Features:
    - Every overwrite appends a versioned snapshot; reads return the newest
    - Conditional overwrite keyed by version (optimistic concurrency)
    - Pruning of old snapshots

    Usage:
        store = SQLiteEventStore(path=Path("events.sqlite3"))
        store.init()

        version, events = store.read_versioned()
        store.overwrite_if_version(events, expected_version=version)
    """

    path: Path = Path("earningswatch.sqlite3")

    def connect(self) -> sqlite3.Connection:
        """Create a database connection."""
        conn = sqlite3.connect(self.path)
        conn.execute("PRAGMA journal_mode=WAL;")
        return conn

    def init(self) -> None:
        """Initialize database schema."""
        try:
            with self.connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS event_snapshots (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        version INTEGER NOT NULL UNIQUE,
                        payload TEXT NOT NULL,
                        written_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )
                log.debug("Database schema initialized")
        except sqlite3.Error as e:
            raise StoreError(f"Failed to initialize {self.path}: {e}") from e

    def _latest(self, conn: sqlite3.Connection) -> tuple[int, list]:
        row = conn.execute(
            "SELECT version, payload FROM event_snapshots ORDER BY version DESC LIMIT 1"
        ).fetchone()
        if row is None:
            return 0, []
        records = json.loads(row[1])
        return int(row[0]), records if isinstance(records, list) else []

    def read_versioned(self) -> tuple[int, list[StoredEvent]]:
        """Return ``(version, events)``; version is 0 before the first write."""
        try:
            with self.connect() as conn:
                version, records = self._latest(conn)
        except (sqlite3.Error, ValueError) as e:
            raise StoreError(f"Failed to read events: {e}") from e
        return version, parse_records(records)

    def read_latest(self) -> list[StoredEvent]:
        return self.read_versioned()[1]

    def _write(self, events: list[StoredEvent], expected_version: Optional[int]) -> int:
        payload = json.dumps([e.to_dict() for e in events])
        try:
            with self.connect() as conn:
                conn.execute("BEGIN IMMEDIATE")
                current, _ = self._latest(conn)
                if expected_version is not None and current != expected_version:
                    raise StoreConflictError(
                        f"Store moved from version {expected_version} to {current}"
                    )
                conn.execute(
                    "INSERT INTO event_snapshots(version, payload) VALUES(?, ?)",
                    (current + 1, payload),
                )
                return current + 1
        except (sqlite3.Error, ValueError) as e:
            raise StoreError(f"Failed to write events: {e}") from e

    def overwrite_all(self, events: list[StoredEvent]) -> None:
        version = self._write(events, None)
        log.debug(f"Saved {len(events)} events as version {version}")

    def overwrite_if_version(self, events: list[StoredEvent], expected_version: int) -> int:
        """Write only if nobody else wrote since ``expected_version`` was read.

        Returns:
            The new version

        Raises:
            StoreConflictError: if the stored version is no longer ``expected_version``
        """
        return self._write(events, expected_version)

    def prune(self, keep: int = 10) -> int:
        """Delete all but the newest ``keep`` snapshots.

        Returns:
            Number of deleted snapshots
        """
        with self.connect() as conn:
            cur = conn.execute(
                """
                DELETE FROM event_snapshots
                WHERE version NOT IN (
                    SELECT version FROM event_snapshots ORDER BY version DESC LIMIT ?
                )
                """,
                (max(keep, 1),),
            )
            deleted = cur.rowcount
            if deleted > 0:
                log.info(f"Pruned {deleted} old snapshots")
            return deleted
