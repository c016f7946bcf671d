from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

Sentiment = Literal["positive", "neutral", "negative"]

DEFAULT_TIME = "TBD"


@dataclass(frozen=True)
class EarningsFact:
    """One symbol's next earnings report, whichever provider supplied it."""

    symbol: str
    date: str  # YYYY-MM-DD
    name: str = ""
    time: str = DEFAULT_TIME
    source: str = ""
    extras: dict[str, Any] = field(default_factory=dict)  # eps, epsEstimated, ...

    def __post_init__(self) -> None:
        if not self.name:
            object.__setattr__(self, "name", self.symbol)
        if not self.time:
            object.__setattr__(self, "time", DEFAULT_TIME)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "symbol": self.symbol,
            "name": self.name,
            "date": self.date,
            "time": self.time,
        }
        for key, value in self.extras.items():
            data.setdefault(key, value)
        data["source"] = self.source
        return data


@dataclass(frozen=True)
class StoredEvent:
    symbol: str
    name: str
    date: str
    time: str
    domain: str

    def to_dict(self) -> dict[str, str]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "date": self.date,
            "time": self.time,
            "domain": self.domain,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StoredEvent":
        """Build from a stored record, tolerating records written by older clients."""
        symbol = str(data.get("symbol") or "")
        return cls(
            symbol=symbol,
            name=str(data.get("name") or symbol),
            date=str(data.get("date") or ""),
            time=str(data.get("time") or DEFAULT_TIME),
            domain=str(data.get("domain") or (f"{symbol.lower()}.com" if symbol else "")),
        )


@dataclass(frozen=True)
class SentimentResult:
    score: float  # -1..+1
    sentiment: Sentiment
    positive_count: int = 0
    negative_count: int = 0


@dataclass(frozen=True)
class NewsItem:
    headline: str
    summary: str
    url: str
    source: str
    published_at: str  # ISO 8601
    sentiment: Sentiment = "neutral"
    sentiment_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "headline": self.headline,
            "summary": self.summary,
            "url": self.url,
            "source": self.source,
            "publishedAt": self.published_at,
            "sentiment": self.sentiment,
            "sentimentScore": self.sentiment_score,
        }


@dataclass(frozen=True)
class ProviderAttempt:
    provider: str
    outcome: Literal["ok", "empty", "skipped", "error"]
    detail: Optional[str] = None
