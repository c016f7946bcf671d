"""Common plumbing for upstream data provider adapters."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional
from urllib.parse import quote

import httpx

from earningswatch.config import ProviderKey
from earningswatch.core.logger import get_logger, log_provider_failure
from earningswatch.core.models import EarningsFact, NewsItem, SentimentResult
from earningswatch.core.timeutils import parse_date
from earningswatch.sentiment.base import SentimentClient
from earningswatch.sentiment.lexicon import LexiconSentiment

log = get_logger("providers")

# Local failures an adapter converts into "no result".
ADAPTER_ERRORS = (
    httpx.HTTPError,
    ValueError,
    KeyError,
    TypeError,
    IndexError,
    AttributeError,
    OverflowError,  # out-of-range epoch
    OSError,
)

USER_AGENT = "Mozilla/5.0 (compatible; earningswatch/1.0)"


def make_http_client(timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    """HTTP client shared by every adapter in one resolution."""
    return httpx.Client(
        timeout=timeout,
        transport=transport,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json, text/csv, */*"},
        follow_redirects=True,
    )


def path_segment(ticker: str) -> str:
    return quote(ticker, safe="")


class Provider(ABC):
    """One upstream data source.

    ``key`` names the credential the adapter needs, if any. Adapters with a
    missing key are not an error: ``resolve`` returns None without touching
    the network.
    """

    name: str = ""
    key: Optional[ProviderKey] = None

    def __init__(self, client: httpx.Client, api_key: str = ""):
        self.client = client
        self.api_key = api_key

    @property
    def configured(self) -> bool:
        return self.key is None or bool(self.api_key)

    def _get(self, url: str, params: Optional[dict[str, Any]] = None) -> Optional[httpx.Response]:
        """GET ``url``; None on any non-2xx status."""
        response = self.client.get(url, params=params)
        if not response.is_success:
            log.debug(f"[{self.name}] HTTP {response.status_code} for {url}")
            return None
        return response

    def _get_json(self, url: str, params: Optional[dict[str, Any]] = None) -> Any:
        response = self._get(url, params)
        if response is None:
            return None
        return response.json()


class EarningsProvider(Provider):
    """Resolves one ticker to its next earnings date."""

    def resolve(self, ticker: str) -> Optional[EarningsFact]:
        if not self.configured:
            log.debug(f"[{self.name}] no {self.key.name} key, skipping")
            return None
        try:
            return self._fetch(ticker)
        except ADAPTER_ERRORS as e:
            log_provider_failure(log, self.name, ticker, e)
            return None

    @abstractmethod
    def _fetch(self, ticker: str) -> Optional[EarningsFact]:
        raise NotImplementedError

    def _fact(
        self,
        ticker: str,
        date: Any,
        *,
        symbol: Optional[str] = None,
        name: Optional[str] = None,
        time: Optional[str] = None,
        **extras: Any,
    ) -> Optional[EarningsFact]:
        """Build a fact; a missing or unparseable date means "not found"."""
        if not date:
            return None
        day = parse_date(str(date)).isoformat()
        return EarningsFact(
            symbol=(symbol or ticker).upper(),
            name=name or ticker,
            date=day,
            time=time or "TBD",
            source=self.name,
            extras={k: v for k, v in extras.items() if v is not None},
        )


class NewsProvider(Provider):
    """Resolves one ticker to a short list of recent articles.

    ``native_sentiment`` marks the provider whose upstream labels are used
    as-is. Every other provider scores its text with ``scorer``.
    """

    native_sentiment: bool = False

    def __init__(
        self,
        client: httpx.Client,
        api_key: str = "",
        scorer: Optional[SentimentClient] = None,
        limit: int = 5,
        lookback_days: int = 7,
    ):
        super().__init__(client, api_key)
        self.scorer = scorer or LexiconSentiment()
        self.limit = limit
        self.lookback_days = lookback_days

    def resolve(self, ticker: str) -> Optional[list[NewsItem]]:
        if not self.configured:
            log.debug(f"[{self.name}] no {self.key.name} key, skipping")
            return None
        try:
            items = self._fetch(ticker)
        except ADAPTER_ERRORS as e:
            log_provider_failure(log, self.name, ticker, e)
            return None
        if not items:
            return None
        return items[: self.limit]

    @abstractmethod
    def _fetch(self, ticker: str) -> Optional[list[NewsItem]]:
        raise NotImplementedError

    def _scored(
        self,
        *,
        headline: str,
        summary: str,
        url: str,
        source: str,
        published_at: str,
        text: str,
    ) -> NewsItem:
        result: SentimentResult = self.scorer.analyze(text)
        return NewsItem(
            headline=headline,
            summary=summary,
            url=url,
            source=source,
            published_at=published_at,
            sentiment=result.sentiment,
            sentiment_score=result.score,
        )
