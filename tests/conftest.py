"""Pytest configuration and fixtures for earningswatch tests."""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator, Optional

import httpx
import pytest

# Keep provider keys from the developer's shell out of the tests
for _var in (
    "FMP_API_KEY",
    "POLYGON_API_KEY",
    "FINNHUB_API_KEY",
    "ALPHAVANTAGE_KEY",
    "JSONBIN_BIN_ID",
    "JSONBIN_MASTER_KEY",
    "STORE_BACKEND",
    "STORE_PATH",
    "DEBUG_LOGS",
):
    os.environ.pop(_var, None)

from earningswatch.config import Settings
from earningswatch.providers.base import make_http_client
from earningswatch.store.sqlite import SQLiteEventStore


class FakeUpstream:
    """Routes outbound httpx requests to canned responses and records every call.

    Usage:
        upstream = FakeUpstream()
        upstream.add("https://api.example.com/v1/thing", json={"ok": True})
        client = httpx.Client(transport=upstream.transport)
    """

    def __init__(self) -> None:
        self.routes: list[tuple[httpx.URL, dict[str, str], Callable[[httpx.Request], httpx.Response]]] = []
        self.calls: list[httpx.Request] = []

    def add(
        self,
        url: str,
        *,
        params: Optional[dict[str, str]] = None,
        json: Any = None,
        text: Optional[str] = None,
        status: int = 200,
        exc: Optional[Exception] = None,
    ) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            if exc is not None:
                raise exc
            if text is not None:
                return httpx.Response(status, text=text)
            return httpx.Response(status, json=json)

        self.routes.append((httpx.URL(url), params or {}, respond))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        for url, params, respond in self.routes:
            if (
                request.url.host == url.host
                and request.url.path == url.path
                and all(request.url.params.get(k) == v for k, v in params.items())
            ):
                return respond(request)
        return httpx.Response(404, json={"error": "not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def hosts(self) -> list[str]:
        return [r.url.host for r in self.calls]


def make_settings(**overrides: Any) -> Settings:
    """Settings with every provider disabled unless overridden."""
    values: dict[str, Any] = {
        "fmp_api_key": "",
        "polygon_api_key": "",
        "finnhub_api_key": "",
        "alphavantage_key": "",
        "jsonbin_bin_id": "",
        "jsonbin_master_key": "",
        "store_backend": "jsonbin",
        "debug_logs": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def http_client(upstream: FakeUpstream) -> Generator[httpx.Client, None, None]:
    client = make_http_client(timeout=5.0, transport=upstream.transport)
    yield client
    client.close()


@pytest.fixture
def temp_db() -> Generator[Path, None, None]:
    """Create a temporary database file."""
    with tempfile.NamedTemporaryFile(suffix=".sqlite3", delete=False) as f:
        db_path = Path(f.name)
    yield db_path
    for suffix in ("", "-wal", "-shm"):
        p = Path(f"{db_path}{suffix}")
        if p.exists():
            p.unlink()


@pytest.fixture
def sqlite_store(temp_db: Path) -> SQLiteEventStore:
    """Create a SQLiteEventStore with a temporary database."""
    s = SQLiteEventStore(path=temp_db)
    s.init()
    return s


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()
