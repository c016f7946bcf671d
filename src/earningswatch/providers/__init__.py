from __future__ import annotations

from .base import EarningsProvider, NewsProvider, Provider, make_http_client
from .earnings import (
    EARNINGS_CHAIN,
    AlphaVantageEarnings,
    FMPEarnings,
    MarketDataEarnings,
    PolygonEarnings,
    YahooEarnings,
)
from .news import NEWS_CHAIN, AlphaVantageNews, FinnhubNews, FMPNews, YahooNews

__all__ = [
    "EARNINGS_CHAIN",
    "NEWS_CHAIN",
    "AlphaVantageEarnings",
    "AlphaVantageNews",
    "EarningsProvider",
    "FMPEarnings",
    "FMPNews",
    "FinnhubNews",
    "MarketDataEarnings",
    "NewsProvider",
    "PolygonEarnings",
    "Provider",
    "YahooEarnings",
    "YahooNews",
    "make_http_client",
]
