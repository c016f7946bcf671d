"""Merge new earnings facts into the stored, date-ordered event collection."""
from __future__ import annotations

import re
from datetime import date
from typing import Any, Optional

from earningswatch.core.logger import get_logger
from earningswatch.core.models import DEFAULT_TIME, EarningsFact, StoredEvent
from earningswatch.core.timeutils import parse_date
from earningswatch.errors import EventValidationError
from earningswatch.store.gateway import EventStore

log = get_logger("events")

SYMBOL_PATTERN = re.compile(r"^[A-Za-z0-9.\-]{1,10}$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def default_domain(symbol: str) -> str:
    return f"{symbol.lower()}.com"


def validate_event_input(symbol: Any, date: Any) -> tuple[str, str]:
    """Check user-supplied symbol and date before anything is stored.

    Returns:
        The stripped ``(symbol, date)``

    Raises:
        EventValidationError: with the message shown to the caller
    """
    symbol = symbol.strip() if isinstance(symbol, str) else ""
    date = date.strip() if isinstance(date, str) else ""
    if not symbol or not date:
        raise EventValidationError("Symbol and date required")
    if not SYMBOL_PATTERN.match(symbol):
        raise EventValidationError(f"Invalid symbol: {symbol}")
    if not DATE_PATTERN.match(date):
        raise EventValidationError(f"Invalid date: {date}")
    try:
        parse_date(date)
    except ValueError:
        raise EventValidationError(f"Invalid date: {date}") from None
    return symbol, date


def canonical_event(
    symbol: str,
    date: str,
    name: Optional[str] = None,
    time: Optional[str] = None,
    domain: Optional[str] = None,
) -> StoredEvent:
    """Uppercase the symbol and fill in name/time/domain defaults."""
    symbol = symbol.strip()
    return StoredEvent(
        symbol=symbol.upper(),
        name=name or symbol,
        date=date.strip(),
        time=time or DEFAULT_TIME,
        domain=domain or default_domain(symbol),
    )


def _sort_key(event: StoredEvent) -> date:
    try:
        return parse_date(event.date)
    except ValueError:
        # Legacy records with unreadable dates sink to the end.
        return date.max


def sort_events(events: list[StoredEvent]) -> list[StoredEvent]:
    """Ascending by date; ties keep their existing order."""
    return sorted(events, key=_sort_key)


def merge_event(
    events: list[StoredEvent], new: StoredEvent
) -> tuple[list[StoredEvent], bool]:
    """Add ``new`` unless its ``(symbol, date)`` is already present.

    Returns:
        ``(events, added)``. On a duplicate the input list comes back
        untouched and ``added`` is False.
    """
    symbol = new.symbol.upper()
    if any(e.symbol.upper() == symbol and e.date == new.date for e in events):
        return events, False
    return sort_events([*events, new]), True


class EventService:
    """Read-modify-write of the event collection through an ``EventStore``.

    There is no locking: two concurrent ``add_event`` calls can read the same
    snapshot and the second overwrite wins.
    """

    def __init__(self, store: EventStore):
        self.store = store

    def list_events(self) -> list[StoredEvent]:
        return self.store.read_latest()

    def add_event(
        self,
        symbol: str,
        date: str,
        name: Optional[str] = None,
        time: Optional[str] = None,
        domain: Optional[str] = None,
    ) -> list[StoredEvent]:
        """Merge one event and persist; returns the full collection."""
        new = canonical_event(symbol, date, name=name, time=time, domain=domain)
        events = self.store.read_latest()

        merged, added = merge_event(events, new)
        if not added:
            log.debug(f"Duplicate event {new.symbol} {new.date}, skipping")
            return events

        self.store.overwrite_all(merged)
        log.info(f"Event added: {new.symbol} {new.date} (total {len(merged)})")
        return merged

    def add_fact(self, fact: EarningsFact, domain: Optional[str] = None) -> list[StoredEvent]:
        """Store a resolved earnings fact."""
        return self.add_event(
            fact.symbol, fact.date, name=fact.name, time=fact.time, domain=domain
        )
