from __future__ import annotations

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def iso(dt: datetime) -> str:
    """UTC ISO 8601 with millisecond precision and a ``Z`` suffix."""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_to_date(ts: float) -> str:
    """Epoch seconds -> ``YYYY-MM-DD`` in UTC."""
    return datetime.fromtimestamp(float(ts), tz=timezone.utc).date().isoformat()


def epoch_to_iso(ts: float) -> str:
    return iso(datetime.fromtimestamp(float(ts), tz=timezone.utc))


def normalize_timestamp(value: str) -> str:
    """Best-effort conversion of a provider timestamp to UTC ISO 8601.

    Handles ISO strings (with or without ``T``/offset, naive ones read as UTC)
    and Alpha Vantage's compact ``YYYYMMDDTHHMMSS``. Anything else is
    returned unchanged.
    """
    raw = str(value or "").strip()
    if not raw:
        return raw
    for parse in (
        lambda s: datetime.fromisoformat(s.replace("Z", "+00:00")),
        lambda s: datetime.strptime(s, "%Y%m%dT%H%M%S"),
        lambda s: datetime.strptime(s, "%Y%m%dT%H%M"),
    ):
        try:
            dt = parse(raw)
        except ValueError:
            continue
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return iso(dt)
    return raw


def parse_date(value: str) -> date:
    """Parse the calendar date at the start of an ISO 8601 string.

    Raises:
        ValueError: if ``value`` does not start with ``YYYY-MM-DD``
    """
    return date.fromisoformat(str(value).strip()[:10])
