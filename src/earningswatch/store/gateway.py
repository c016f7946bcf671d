from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable

from earningswatch.config import Settings
from earningswatch.core.logger import get_logger
from earningswatch.core.models import StoredEvent
from earningswatch.errors import StoreConfigError

log = get_logger("store")


class EventStore(ABC):
    """Blob store holding the whole earnings-event collection.

    Both calls are atomic on their own but not as a pair: a read followed by
    an overwrite can lose a concurrent writer's change (last writer wins).
    """

    @abstractmethod
    def read_latest(self) -> list[StoredEvent]:
        raise NotImplementedError

    @abstractmethod
    def overwrite_all(self, events: list[StoredEvent]) -> None:
        """Replace the stored collection. Raises ``StoreError`` on failure."""
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self) -> "EventStore":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def parse_records(records: Iterable[Any]) -> list[StoredEvent]:
    """Turn raw stored records into events, dropping anything that isn't an object."""
    return [StoredEvent.from_dict(r) for r in records if isinstance(r, dict)]


def build_store(settings: Settings) -> EventStore:
    """Create the configured store backend.

    Raises:
        StoreConfigError: if the backend's location or credential is missing
    """
    if not settings.store_configured:
        log.error("Event store is not configured")
        raise StoreConfigError("Missing credentials")

    if settings.store_backend == "sqlite":
        from earningswatch.store.sqlite import SQLiteEventStore

        store = SQLiteEventStore(path=Path(settings.store_path))
        store.init()
        return store

    from earningswatch.store.jsonbin import JsonBinStore

    return JsonBinStore(
        bin_id=settings.jsonbin_bin_id,
        master_key=settings.jsonbin_master_key,
        base_url=settings.jsonbin_base_url,
        timeout=settings.http_timeout,
    )
