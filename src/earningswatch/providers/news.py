"""News adapters.

Alpha Vantage ships its own per-ticker sentiment and is the only adapter
whose items skip local scoring. Finnhub, FMP and Yahoo only return text,
which goes through the shared lexicon scorer.
"""
from __future__ import annotations

from datetime import timedelta
from typing import Any, Optional

from earningswatch.config import ProviderKey
from earningswatch.core.models import NewsItem, Sentiment
from earningswatch.core.timeutils import epoch_to_iso, normalize_timestamp, utcnow
from earningswatch.providers.base import NewsProvider
from earningswatch.sentiment.lexicon import DEFAULT_THRESHOLD, label_for

ALPHAVANTAGE_URL = "https://www.alphavantage.co/query"
FINNHUB_URL = "https://finnhub.io/api/v1/company-news"
FMP_URL = "https://financialmodelingprep.com/api/v3/stock_news"
YAHOO_URL = "https://query2.finance.yahoo.com/v1/finance/search"

_NATIVE_LABELS: dict[str, Sentiment] = {
    "bullish": "positive",
    "somewhat-bullish": "positive",
    "somewhat_bullish": "positive",
    "positive": "positive",
    "neutral": "neutral",
    "somewhat-bearish": "negative",
    "somewhat_bearish": "negative",
    "bearish": "negative",
    "negative": "negative",
}


def map_native_sentiment(entry: Optional[dict[str, Any]]) -> tuple[Sentiment, float]:
    """Map an Alpha Vantage ``ticker_sentiment`` entry onto (label, score)."""
    if not entry:
        return "neutral", 0.0
    try:
        score = float(entry.get("ticker_sentiment_score") or 0)
    except (TypeError, ValueError):
        score = 0.0
    score = max(-1.0, min(1.0, score))
    raw_label = str(entry.get("ticker_sentiment_label") or "").strip().lower()
    label = _NATIVE_LABELS.get(raw_label) or label_for(score, DEFAULT_THRESHOLD)
    return label, score


class AlphaVantageNews(NewsProvider):
    name = "AlphaVantage"
    key = ProviderKey.ALPHAVANTAGE
    native_sentiment = True

    def _fetch(self, ticker: str) -> Optional[list[NewsItem]]:
        data = self._get_json(
            ALPHAVANTAGE_URL,
            {
                "function": "NEWS_SENTIMENT",
                "tickers": ticker,
                "limit": self.limit,
                "apikey": self.api_key,
            },
        )
        if not isinstance(data, dict):
            return None
        feed = data.get("feed")
        if not isinstance(feed, list) or not feed:
            return None

        items = []
        for item in feed[: self.limit]:
            match = next(
                (ts for ts in item.get("ticker_sentiment") or [] if ts.get("ticker") == ticker),
                None,
            )
            label, score = map_native_sentiment(match)
            items.append(
                NewsItem(
                    headline=item.get("title") or "",
                    summary=item.get("summary") or "",
                    url=item.get("url") or "",
                    source=item.get("source") or "",
                    published_at=normalize_timestamp(item.get("time_published") or ""),
                    sentiment=label,
                    sentiment_score=score,
                )
            )
        return items


class FinnhubNews(NewsProvider):
    """Finnhub company news over the last ``lookback_days`` days."""

    name = "Finnhub"
    key = ProviderKey.FINNHUB

    def _fetch(self, ticker: str) -> Optional[list[NewsItem]]:
        today = utcnow().date()
        data = self._get_json(
            FINNHUB_URL,
            {
                "symbol": ticker,
                "from": (today - timedelta(days=self.lookback_days)).isoformat(),
                "to": today.isoformat(),
                "token": self.api_key,
            },
        )
        if not isinstance(data, list) or not data:
            return None

        items = []
        for item in data[: self.limit]:
            headline = item.get("headline") or ""
            summary = item.get("summary") or ""
            ts = item.get("datetime")
            items.append(
                self._scored(
                    headline=headline,
                    summary=summary,
                    url=item.get("url") or "",
                    source=item.get("source") or "",
                    published_at=epoch_to_iso(ts) if ts is not None else "",
                    text=f"{headline} {summary}",
                )
            )
        return items


class FMPNews(NewsProvider):
    name = "FMP"
    key = ProviderKey.FMP

    def _fetch(self, ticker: str) -> Optional[list[NewsItem]]:
        data = self._get_json(
            FMP_URL, {"tickers": ticker, "limit": self.limit, "apikey": self.api_key}
        )
        if not isinstance(data, list) or not data:
            return None

        items = []
        for item in data[: self.limit]:
            title = item.get("title") or ""
            text = item.get("text") or ""
            items.append(
                self._scored(
                    headline=title,
                    summary=text,
                    url=item.get("url") or "",
                    source=item.get("site") or "",
                    published_at=normalize_timestamp(item.get("publishedDate") or ""),
                    text=f"{title} {text}",
                )
            )
        return items


class YahooNews(NewsProvider):
    """Yahoo Finance search (no key). Only titles are returned, so the title doubles as summary."""

    name = "Yahoo"

    def _fetch(self, ticker: str) -> Optional[list[NewsItem]]:
        data = self._get_json(YAHOO_URL, {"q": ticker, "newsCount": self.limit})
        if not isinstance(data, dict):
            return None
        news = data.get("news")
        if not isinstance(news, list) or not news:
            return None

        items = []
        for item in news[: self.limit]:
            title = item.get("title") or ""
            ts = item.get("providerPublishTime")
            items.append(
                self._scored(
                    headline=title,
                    summary=title,
                    url=item.get("link") or "",
                    source=item.get("publisher") or "",
                    published_at=epoch_to_iso(ts) if ts is not None else "",
                    text=title,
                )
            )
        return items


NEWS_CHAIN: tuple[type[NewsProvider], ...] = (
    AlphaVantageNews,
    FinnhubNews,
    FMPNews,
    YahooNews,
)
