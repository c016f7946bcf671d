from __future__ import annotations

from typing import Any, Optional

import httpx

from earningswatch.core.logger import get_logger
from earningswatch.core.models import StoredEvent
from earningswatch.core.retry import RetryableError, with_retry
from earningswatch.errors import StoreConfigError, StoreError
from earningswatch.store.gateway import EventStore, parse_records

log = get_logger("store.jsonbin")


class JsonBinStore(EventStore):
    """JSONBin.io bin holding the event collection as a JSON array.

    ``GET {base}/b/{bin}/latest`` reads, ``PUT {base}/b/{bin}`` overwrites.
    Transport errors, 429 and 5xx are retried with backoff; anything left
    over surfaces as ``StoreError``.

    Usage:
        with JsonBinStore(bin_id="...", master_key="...") as store:
            events = store.read_latest()
    """

    def __init__(
        self,
        bin_id: str,
        master_key: str,
        base_url: str = "https://api.jsonbin.io/v3",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not bin_id or not master_key:
            raise StoreConfigError("Missing credentials")

        self.url = f"{base_url.rstrip('/')}/b/{bin_id}"
        self.client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"X-Master-Key": master_key},
        )

    def close(self) -> None:
        self.client.close()

    def _check(self, response: httpx.Response, action: str) -> None:
        if response.status_code == 429 or response.status_code >= 500:
            raise RetryableError(f"{action}: HTTP {response.status_code}")
        if not response.is_success:
            raise StoreError(f"{action}: HTTP {response.status_code}")

    @with_retry(max_attempts=3)
    def _get_latest(self) -> Any:
        response = self.client.get(f"{self.url}/latest")
        self._check(response, "read")
        return response.json()

    @with_retry(max_attempts=3)
    def _put(self, payload: list[dict[str, str]]) -> None:
        response = self.client.put(self.url, json=payload)
        self._check(response, "write")

    def read_latest(self) -> list[StoredEvent]:
        log.debug("Loading events from JSONBin")
        try:
            body = self._get_latest()
        except (httpx.HTTPError, RetryableError, ValueError) as e:
            raise StoreError(f"Failed to read events: {e}") from e

        record = body.get("record") if isinstance(body, dict) else None
        if isinstance(record, list):
            events = parse_records(record)
        elif isinstance(record, dict) and isinstance(record.get("data"), list):
            events = parse_records(record["data"])
        else:
            events = []

        log.debug(f"Loaded {len(events)} events")
        return events

    def overwrite_all(self, events: list[StoredEvent]) -> None:
        log.debug(f"Saving {len(events)} events to JSONBin")
        try:
            self._put([e.to_dict() for e in events])
        except (httpx.HTTPError, RetryableError) as e:
            raise StoreError(f"Failed to write events: {e}") from e
        log.debug("Saved successfully")
