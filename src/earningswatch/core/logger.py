from __future__ import annotations

import json
import logging
import os
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler

# Context variable for correlation ID
_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Get the current correlation ID."""
    return _correlation_id.get()


def set_correlation_id(cid: Optional[str] = None) -> str:
    """Set a correlation ID for request tracing.

    Args:
        cid: Correlation ID to set. If None, generates a new UUID.

    Returns:
        The correlation ID that was set.
    """
    if cid is None:
        cid = str(uuid.uuid4())[:8]
    _correlation_id.set(cid)
    return cid


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter for production use."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        cid = get_correlation_id()
        if cid:
            log_data["correlation_id"] = cid

        for key in ("symbol", "provider", "outcome", "error", "error_type"):
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class ContextFilter(logging.Filter):
    """Filter that adds context fields to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Set up logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: If True, use JSON structured format (for production)
        log_file: Optional file path to write logs to

    Examples:
        # DEBUG_LOGS=true
        setup_logging("DEBUG")

        # Production with JSON output
        setup_logging("INFO", json_output=True)
    """
    if os.getenv("LOG_JSON", "").lower() in ("1", "true", "yes"):
        json_output = True

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = []

    if json_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_time=True,
            show_path=False,
        )
        console_handler.setFormatter(logging.Formatter("%(message)s"))

    console_handler.addFilter(ContextFilter())
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        root.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``earningswatch`` namespace.

    Args:
        name: Component name (e.g., "resolver", "providers.earnings", "store")
    """
    return logging.getLogger(f"earningswatch.{name}")


def _emit(logger: logging.Logger, level: int, message: str, fields: dict[str, Any]) -> None:
    record = logger.makeRecord(
        logger.name,
        level,
        "(provider)",
        0,
        message,
        args=(),
        exc_info=None,
    )
    for key, value in fields.items():
        setattr(record, key, value)
    logger.handle(record)


def log_provider_failure(
    logger: logging.Logger,
    provider: str,
    symbol: str,
    error: Exception,
) -> None:
    """Record an adapter failure that the fallback chain swallowed.

    Logged at WARNING so a dead provider stays visible without DEBUG_LOGS.
    """
    if not logger.isEnabledFor(logging.WARNING):
        return
    _emit(
        logger,
        logging.WARNING,
        f"[{provider}] {symbol} failed: {error}",
        {
            "provider": provider,
            "symbol": symbol,
            "outcome": "error",
            "error": str(error),
            "error_type": type(error).__name__,
        },
    )


def log_provider_outcome(
    logger: logging.Logger,
    provider: str,
    symbol: str,
    outcome: str,
    **kwargs: Any,
) -> None:
    """Trace one adapter call (ok / empty / skipped). DEBUG only."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    parts = [f"[{provider}]", symbol, outcome]
    for key, value in kwargs.items():
        if value is not None:
            parts.append(f"{key}={value}")
    _emit(
        logger,
        logging.DEBUG,
        " ".join(parts),
        {"provider": provider, "symbol": symbol, "outcome": outcome},
    )
