"""HTTP surface consumed by the calendar UI."""
from __future__ import annotations

from typing import Any, Iterator, Optional

import httpx
from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from earningswatch.config import ProviderKey, Settings, get_settings
from earningswatch.core.logger import get_logger, set_correlation_id
from earningswatch.core.timeutils import iso, utcnow
from earningswatch.errors import EventValidationError, StoreConfigError, StoreError
from earningswatch.events import EventService, validate_event_input
from earningswatch.resolver import normalize_ticker, resolve_earnings, resolve_news
from earningswatch.store.gateway import EventStore, build_store

log = get_logger("api")


def get_app_settings() -> Settings:
    return get_settings()


def get_transport() -> Optional[httpx.BaseTransport]:
    """Outbound transport for provider calls; tests override this."""
    return None


def get_event_store(settings: Settings = Depends(get_app_settings)) -> Iterator[EventStore]:
    store = build_store(settings)
    try:
        yield store
    finally:
        store.close()


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message})


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def create_app() -> FastAPI:
    app = FastAPI(
        title="earningswatch",
        description="Earnings dates and news sentiment aggregated from several providers.",
        version="0.1.0",
    )

    @app.exception_handler(StoreConfigError)
    async def _store_config_error(request: Request, exc: StoreConfigError) -> JSONResponse:
        log.error(f"Event store misconfigured: {exc}")
        return _error(500, "Missing credentials")

    @app.exception_handler(StoreError)
    async def _store_error(request: Request, exc: StoreError) -> JSONResponse:
        log.error(f"Event store failure: {exc}")
        return _error(500, "Server error")

    @app.get("/api/health")
    def health(settings: Settings = Depends(get_app_settings)):
        return {
            "status": "ok",
            "timestamp": iso(utcnow()),
            "env": {
                "hasAlphaVantageKey": settings.has_credential(ProviderKey.ALPHAVANTAGE),
                "hasJsonBinId": bool(settings.jsonbin_bin_id),
                "hasJsonBinKey": bool(settings.jsonbin_master_key),
                "storeBackend": settings.store_backend,
                "debugEnabled": settings.debug_logs,
            },
        }

    @app.get("/api/events")
    def list_events(store: EventStore = Depends(get_event_store)):
        return [e.to_dict() for e in EventService(store).list_events()]

    @app.post("/api/events")
    def add_event(
        body: Any = Body(None),
        store: EventStore = Depends(get_event_store),
    ):
        fields = body if isinstance(body, dict) else {}
        try:
            symbol, date = validate_event_input(fields.get("symbol"), fields.get("date"))
        except EventValidationError as e:
            return _error(400, str(e))

        events = EventService(store).add_event(
            symbol,
            date,
            name=_optional_text(fields.get("name")),
            time=_optional_text(fields.get("time")),
            domain=_optional_text(fields.get("domain")),
        )
        return [e.to_dict() for e in events]

    @app.get("/api/earnings")
    def earnings(
        symbol: Optional[str] = Query(None),
        settings: Settings = Depends(get_app_settings),
        transport: Optional[httpx.BaseTransport] = Depends(get_transport),
    ):
        ticker = normalize_ticker(symbol)
        if not ticker:
            return _error(400, "Missing symbol parameter")

        set_correlation_id()
        result = resolve_earnings(ticker, settings=settings, transport=transport)
        if not result.found:
            return _error(404, f"No earnings data found for {ticker}")
        return result.value.to_dict()

    @app.get("/api/news")
    def news(
        symbol: Optional[str] = Query(None),
        settings: Settings = Depends(get_app_settings),
        transport: Optional[httpx.BaseTransport] = Depends(get_transport),
    ):
        ticker = normalize_ticker(symbol)
        if not ticker:
            return _error(400, "Missing symbol parameter")

        set_correlation_id()
        result = resolve_news(ticker, settings=settings, transport=transport)
        items = result.value or []
        return {"news": [item.to_dict() for item in items]}

    return app


app = create_app()
