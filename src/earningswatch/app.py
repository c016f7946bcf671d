from __future__ import annotations

import json
from typing import Optional

import typer

from earningswatch.config import ProviderKey, Settings, get_settings
from earningswatch.core.logger import get_logger, set_correlation_id, setup_logging
from earningswatch.errors import EventValidationError, StoreError
from earningswatch.events import EventService, validate_event_input
from earningswatch.resolver import resolve_earnings, resolve_news
from earningswatch.store.gateway import build_store

log = get_logger("cli")
cli_app = typer.Typer(help="Earnings dates and news sentiment from several data providers.")


def _init() -> Settings:
    """Load configuration and set up logging for one command."""
    try:
        settings = get_settings()
    except Exception as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=1)
    setup_logging(settings.log_level, json_output=settings.log_json)
    set_correlation_id()
    return settings


def _print(data) -> None:
    typer.echo(json.dumps(data, indent=2))


@cli_app.command()
def earnings(symbol: str = typer.Argument(..., help="Ticker, e.g. NVDA")):
    """Resolve the next earnings date for SYMBOL."""
    settings = _init()
    result = resolve_earnings(symbol, settings=settings)
    for attempt in result.attempts:
        log.debug(f"{attempt.provider}: {attempt.outcome} {attempt.detail or ''}")
    if not result.found:
        typer.echo(f"No earnings data found for {result.symbol}", err=True)
        raise typer.Exit(code=2)
    _print(result.value.to_dict())


@cli_app.command()
def news(symbol: str = typer.Argument(..., help="Ticker, e.g. NVDA")):
    """Fetch recent news for SYMBOL with sentiment."""
    settings = _init()
    result = resolve_news(symbol, settings=settings)
    _print({"news": [item.to_dict() for item in result.value or []]})


@cli_app.command()
def events():
    """List stored earnings events."""
    settings = _init()
    try:
        with build_store(settings) as store:
            stored = EventService(store).list_events()
    except StoreError as e:
        log.error(f"Event store error: {e}")
        raise typer.Exit(code=1)
    _print([e.to_dict() for e in stored])


@cli_app.command()
def add(
    symbol: str = typer.Argument(..., help="Ticker, e.g. NVDA"),
    date: Optional[str] = typer.Option(None, "--date", help="YYYY-MM-DD; resolved from providers if omitted"),
    name: Optional[str] = typer.Option(None, "--name"),
    time: Optional[str] = typer.Option(None, "--time"),
    domain: Optional[str] = typer.Option(None, "--domain", help="Company web domain for the logo"),
):
    """Add an earnings event, resolving the date when --date is not given."""
    settings = _init()

    if date is None:
        result = resolve_earnings(symbol, settings=settings)
        if not result.found:
            typer.echo(f"No earnings data found for {result.symbol}", err=True)
            raise typer.Exit(code=2)
        fact = result.value
        date, name, time = fact.date, name or fact.name, time or fact.time
        log.info(f"{fact.symbol}: {fact.date} via {fact.source}")

    try:
        symbol, date = validate_event_input(symbol, date)
    except EventValidationError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)

    try:
        with build_store(settings) as store:
            stored = EventService(store).add_event(symbol, date, name=name, time=time, domain=domain)
    except StoreError as e:
        log.error(f"Event store error: {e}")
        raise typer.Exit(code=1)
    _print([e.to_dict() for e in stored])


@cli_app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
):
    """Run the HTTP API."""
    import uvicorn

    settings = _init()
    log.info(f"Serving on {host}:{port} (store: {settings.store_backend})")
    uvicorn.run("earningswatch.api:app", host=host, port=port, log_config=None)


@cli_app.command()
def validate():
    """Validate configuration and report which providers are enabled."""
    setup_logging("INFO")

    try:
        settings = get_settings()
        log.info("Configuration validation passed!")
        for key, value in settings.credentials().items():
            if value:
                log.info(f"  {key.name}: key configured")
            elif key is ProviderKey.ALPHAVANTAGE:
                log.warning(f"  {key.name}: key NOT configured (earnings adapter will raise)")
            else:
                log.info(f"  {key.name}: not configured, provider skipped")

        if settings.store_configured:
            log.info(f"  Store: {settings.store_backend} configured")
        else:
            log.warning(f"  Store: {settings.store_backend} NOT configured")

        log.info(
            f"  Sentiment: divisor={settings.sentiment_divisor}, "
            f"threshold={settings.sentiment_threshold}"
        )
    except Exception as e:
        log.error(f"Configuration validation failed: {e}")
        raise typer.Exit(code=1)


def main() -> None:
    cli_app()


if __name__ == "__main__":
    main()
