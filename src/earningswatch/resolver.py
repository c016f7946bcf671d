"""Fallback-chain resolution over an ordered list of provider adapters.

Adapters are tried one at a time in priority order; the first usable result
wins and nothing after it runs. Any exception from an adapter is logged and
the chain moves on, so one provider's outage never fails the resolution.
Running out of adapters is an ordinary "not found" result, not an error.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, Sequence, TypeVar

import httpx

from earningswatch.config import Settings, get_settings
from earningswatch.core.logger import get_logger, log_provider_failure, log_provider_outcome
from earningswatch.core.models import EarningsFact, NewsItem, ProviderAttempt
from earningswatch.providers.base import Provider, make_http_client
from earningswatch.providers.earnings import EARNINGS_CHAIN
from earningswatch.providers.news import NEWS_CHAIN
from earningswatch.sentiment.base import SentimentClient
from earningswatch.sentiment.lexicon import Lexicon, LexiconSentiment

log = get_logger("resolver")

T = TypeVar("T")


def normalize_ticker(ticker: object) -> str:
    return str(ticker or "").strip().upper()


@dataclass(frozen=True)
class Resolution(Generic[T]):
    """Outcome of one resolution: the winning value (or None) and the call log."""

    symbol: str
    value: Optional[T] = None
    provider: Optional[str] = None
    attempts: tuple[ProviderAttempt, ...] = ()

    @property
    def found(self) -> bool:
        return self.value is not None

    @property
    def tried(self) -> list[str]:
        return [a.provider for a in self.attempts]


class FallbackResolver(Generic[T]):
    """Try ``providers`` in order until one yields a value ``accept`` approves.

    Usage:
        resolver = FallbackResolver(providers, accept=lambda fact: bool(fact.date))
        result = resolver.resolve("nvda")
        if result.found:
            print(result.provider, result.value)
    """

    def __init__(
        self,
        providers: Sequence[Provider],
        accept: Callable[[T], bool],
        kind: str = "resolve",
    ):
        self.providers = list(providers)
        self.accept = accept
        self.kind = kind

    def resolve(self, ticker: str) -> Resolution[T]:
        symbol = normalize_ticker(ticker)
        if not symbol:
            return Resolution(symbol=symbol)

        log.debug(f"[{self.kind}] resolving {symbol} via {[p.name for p in self.providers]}")
        attempts: list[ProviderAttempt] = []

        for provider in self.providers:
            try:
                value = provider.resolve(symbol)
            except Exception as e:
                log_provider_failure(log, provider.name, symbol, e)
                attempts.append(ProviderAttempt(provider.name, "error", str(e)))
                continue

            if value is not None and self.accept(value):
                log_provider_outcome(log, provider.name, symbol, "ok")
                attempts.append(ProviderAttempt(provider.name, "ok"))
                log.info(f"[{self.kind}] {symbol} resolved by {provider.name}")
                return Resolution(
                    symbol=symbol,
                    value=value,
                    provider=provider.name,
                    attempts=tuple(attempts),
                )

            outcome = "empty" if provider.configured else "skipped"
            log_provider_outcome(log, provider.name, symbol, outcome)
            attempts.append(ProviderAttempt(provider.name, outcome))

        log.info(f"[{self.kind}] {symbol}: no provider returned data")
        return Resolution(symbol=symbol, attempts=tuple(attempts))


def _has_date(fact: EarningsFact) -> bool:
    return bool(fact.date)


def _has_items(items: list[NewsItem]) -> bool:
    return len(items) > 0


def _api_key(settings: Settings, provider_cls: type[Provider]) -> str:
    if provider_cls.key is None:
        return ""
    return settings.credentials()[provider_cls.key]


def make_scorer(settings: Settings) -> LexiconSentiment:
    """Scorer calibrated from settings; unset term lists keep the built-in tables."""
    tables = {}
    if settings.positive_terms:
        tables["positive"] = settings.positive_terms
    if settings.negative_terms:
        tables["negative"] = settings.negative_terms
    return LexiconSentiment(
        Lexicon(
            divisor=settings.sentiment_divisor,
            threshold=settings.sentiment_threshold,
            **tables,
        )
    )


def earnings_resolver(settings: Settings, client: httpx.Client) -> FallbackResolver[EarningsFact]:
    providers = [cls(client, _api_key(settings, cls)) for cls in EARNINGS_CHAIN]
    return FallbackResolver(providers, accept=_has_date, kind="earnings")


def news_resolver(
    settings: Settings,
    client: httpx.Client,
    scorer: Optional[SentimentClient] = None,
) -> FallbackResolver[list[NewsItem]]:
    scorer = scorer or make_scorer(settings)
    providers = []
    for cls in NEWS_CHAIN:
        providers.append(
            cls(
                client,
                _api_key(settings, cls),
                scorer=scorer,
                limit=settings.news_limit,
                lookback_days=settings.news_lookback_days,
            )
        )
    return FallbackResolver(providers, accept=_has_items, kind="news")


def resolve_earnings(
    ticker: str,
    settings: Optional[Settings] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> Resolution[EarningsFact]:
    """Resolve the next earnings date for ``ticker`` with a fresh HTTP client."""
    settings = settings or get_settings()
    with make_http_client(settings.http_timeout, transport) as client:
        return earnings_resolver(settings, client).resolve(ticker)


def resolve_news(
    ticker: str,
    settings: Optional[Settings] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> Resolution[list[NewsItem]]:
    """Resolve recent scored news for ``ticker`` with a fresh HTTP client."""
    settings = settings or get_settings()
    with make_http_client(settings.http_timeout, transport) as client:
        return news_resolver(settings, client).resolve(ticker)
