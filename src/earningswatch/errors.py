from __future__ import annotations


class ProviderError(Exception):
    """Base exception for upstream data provider failures."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ProviderConfigError(ProviderError):
    """A provider that needs a credential was invoked without one."""
    pass


class ProviderResponseError(ProviderError):
    """Non-2xx status, upstream error payload, rate limit or malformed body."""
    pass


class StoreError(Exception):
    """Raised when the durable event store cannot be read or written."""
    pass


class StoreConfigError(StoreError):
    """Raised when the event store location or credential is missing."""
    pass


class StoreConflictError(StoreError):
    """Raised by a conditional write when the stored version moved on."""
    pass


class EventValidationError(ValueError):
    """Symbol or date of a new event is missing or malformed."""
    pass
