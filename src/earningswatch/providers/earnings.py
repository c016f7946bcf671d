"""Earnings-date adapters, one per upstream API.

Each adapter turns its provider's response shape into an ``EarningsFact``
or returns None. Only ``AlphaVantageEarnings`` raises: a missing key or an
upstream error payload surfaces as a ``ProviderError``.
"""
from __future__ import annotations

from typing import Optional

from earningswatch.config import ProviderKey
from earningswatch.core.models import EarningsFact
from earningswatch.core.timeutils import epoch_to_date
from earningswatch.errors import ProviderConfigError, ProviderResponseError
from earningswatch.providers.base import EarningsProvider, path_segment

FMP_URL = "https://financialmodelingprep.com/api/v3/earning_calendar"
YAHOO_URL = "https://query2.finance.yahoo.com/v10/finance/quoteSummary/{ticker}"
POLYGON_URL = "https://api.polygon.io/vX/reference/financials"
MARKETDATA_URL = "https://api.marketdata.app/v1/stocks/earnings/{ticker}"
ALPHAVANTAGE_URL = "https://www.alphavantage.co/query"


class FMPEarnings(EarningsProvider):
    """Financial Modeling Prep earnings calendar. First entry is the next report."""

    name = "FMP"
    key = ProviderKey.FMP

    def _fetch(self, ticker: str) -> Optional[EarningsFact]:
        data = self._get_json(FMP_URL, {"symbol": ticker, "apikey": self.api_key})
        if not isinstance(data, list) or not data:
            return None
        earnings = data[0]
        return self._fact(
            ticker,
            earnings.get("date"),
            symbol=earnings.get("symbol"),
            time=earnings.get("time"),
            eps=earnings.get("eps"),
            epsEstimated=earnings.get("epsEstimated"),
        )


class YahooEarnings(EarningsProvider):
    """Yahoo Finance quoteSummary (unofficial, no key).

    The earnings block sits under
    ``quoteSummary.result[0].calendarEvents.earnings.earningsDate[0].raw``
    and any level of it may be missing.
    """

    name = "Yahoo"

    def _fetch(self, ticker: str) -> Optional[EarningsFact]:
        data = self._get_json(
            YAHOO_URL.format(ticker=path_segment(ticker)),
            {"modules": "calendarEvents"},
        )
        if not isinstance(data, dict):
            return None
        results = (data.get("quoteSummary") or {}).get("result") or []
        if not results:
            return None
        earnings = ((results[0] or {}).get("calendarEvents") or {}).get("earnings") or {}
        dates = earnings.get("earningsDate") or []
        if not dates or not isinstance(dates[0], dict) or dates[0].get("raw") is None:
            return None
        return self._fact(ticker, epoch_to_date(dates[0]["raw"]))


class PolygonEarnings(EarningsProvider):
    """Polygon.io financials; the latest filing date stands in for the report date."""

    name = "Polygon"
    key = ProviderKey.POLYGON

    def _fetch(self, ticker: str) -> Optional[EarningsFact]:
        data = self._get_json(
            POLYGON_URL, {"ticker": ticker, "limit": 1, "apiKey": self.api_key}
        )
        if not isinstance(data, dict):
            return None
        results = data.get("results") or []
        if not results:
            return None
        result = results[0]
        return self._fact(ticker, result.get("filing_date") or result.get("end_date"))


class MarketDataEarnings(EarningsProvider):
    name = "MarketData"

    def _fetch(self, ticker: str) -> Optional[EarningsFact]:
        data = self._get_json(MARKETDATA_URL.format(ticker=path_segment(ticker)))
        if not isinstance(data, dict):
            return None
        report_dates = data.get("reportDate") or []
        if not report_dates:
            return None
        report_times = data.get("reportTime") or []
        return self._fact(
            ticker,
            epoch_to_date(report_dates[0]),
            time=report_times[0] if report_times else None,
        )


class AlphaVantageEarnings(EarningsProvider):
    """Alpha Vantage EARNINGS_CALENDAR (CSV).

    Unlike its siblings this adapter treats a missing key as misconfiguration
    and raises ``ProviderConfigError``. Upstream errors raise
    ``ProviderResponseError``; the fallback chain absorbs both.
    """

    name = "AlphaVantage"
    key = ProviderKey.ALPHAVANTAGE

    def resolve(self, ticker: str) -> Optional[EarningsFact]:
        if not self.api_key:
            raise ProviderConfigError(self.name, "Missing ALPHAVANTAGE_KEY")
        return self._fetch(ticker)

    def _fetch(self, ticker: str) -> Optional[EarningsFact]:
        response = self.client.get(
            ALPHAVANTAGE_URL,
            params={
                "function": "EARNINGS_CALENDAR",
                "symbol": ticker,
                "horizon": "3month",
                "apikey": self.api_key,
            },
        )
        if not response.is_success:
            raise ProviderResponseError(self.name, f"HTTP {response.status_code}")

        text = response.text
        if "Error Message" in text or "Invalid API call" in text:
            raise ProviderResponseError(self.name, "API error")
        if "premium" in text:
            raise ProviderResponseError(self.name, "Rate limit reached")

        lines = text.strip().splitlines()
        if len(lines) <= 1:
            return None

        fields = [f.strip() for f in lines[1].split(",")]
        if len(fields) < 3:
            return None
        symbol, name, report_date = fields[0], fields[1], fields[2]
        if not report_date or report_date == "None":
            return None

        try:
            return self._fact(ticker, report_date, symbol=symbol, name=name)
        except ValueError as e:
            raise ProviderResponseError(self.name, f"bad reportDate {report_date!r}") from e


# Most structured/reliable first, unofficial endpoints later.
EARNINGS_CHAIN: tuple[type[EarningsProvider], ...] = (
    FMPEarnings,
    YahooEarnings,
    PolygonEarnings,
    MarketDataEarnings,
    AlphaVantageEarnings,
)
