"""Tests for fallback-chain resolution."""
import pytest

from conftest import make_settings
from earningswatch.core.models import EarningsFact, NewsItem
from earningswatch.providers import earnings as E
from earningswatch.providers import news as N
from earningswatch.resolver import (
    FallbackResolver,
    make_scorer,
    normalize_ticker,
    resolve_earnings,
    resolve_news,
)

AV_CSV = "symbol,name,reportDate\nIBM,International Business Machines,2025-04-23\n"


class StubProvider:
    """Provider stand-in with a fixed answer and a call counter."""

    def __init__(self, name, value=None, exc=None, configured=True):
        self.name = name
        self.value = value
        self.exc = exc
        self.configured = configured
        self.calls = 0

    def resolve(self, ticker):
        self.calls += 1
        if self.exc is not None:
            raise self.exc
        return self.value


def fact(source: str) -> EarningsFact:
    return EarningsFact(symbol="NVDA", date="2025-02-26", source=source)


class TestFallbackResolver:
    def test_first_success_short_circuits(self):
        a = StubProvider("A", value=fact("A"))
        b = StubProvider("B", value=fact("B"))

        result = FallbackResolver([a, b], accept=lambda f: bool(f.date)).resolve("nvda")

        assert result.found
        assert result.provider == "A"
        assert result.value.source == "A"
        assert a.calls == 1
        assert b.calls == 0

    def test_order_of_attempts(self):
        a = StubProvider("A")
        b = StubProvider("B", configured=False)
        c = StubProvider("C", exc=RuntimeError("boom"))
        d = StubProvider("D", value=fact("D"))

        result = FallbackResolver([a, b, c, d], accept=lambda f: True).resolve("NVDA")

        assert result.tried == ["A", "B", "C", "D"]
        assert [attempt.outcome for attempt in result.attempts] == ["empty", "skipped", "error", "ok"]
        assert result.attempts[2].detail == "boom"
        assert result.provider == "D"

    def test_all_fail_is_not_found(self):
        providers = [
            StubProvider("A", exc=ValueError("bad json")),
            StubProvider("B"),
            StubProvider("C", exc=Exception("anything")),
        ]

        result = FallbackResolver(providers, accept=lambda f: True).resolve("NVDA")

        assert not result.found
        assert result.value is None
        assert result.provider is None
        assert all(p.calls == 1 for p in providers)

    def test_rejected_value_keeps_going(self):
        a = StubProvider("A", value=[])
        b = StubProvider("B", value=["item"])

        result = FallbackResolver([a, b], accept=lambda items: len(items) > 0).resolve("NVDA")

        assert result.provider == "B"

    @pytest.mark.parametrize("ticker", ["", "   ", None])
    def test_empty_ticker_makes_no_calls(self, ticker):
        a = StubProvider("A", value=fact("A"))

        result = FallbackResolver([a], accept=lambda f: True).resolve(ticker)

        assert not result.found
        assert a.calls == 0

    def test_ticker_is_normalized(self):
        assert normalize_ticker("  brk.b ") == "BRK.B"


class TestResolveEarnings:
    def test_first_configured_provider_wins(self, upstream):
        upstream.add(E.FMP_URL, json=[{"symbol": "NVDA", "date": "2025-02-26", "time": "amc"}])
        settings = make_settings(fmp_api_key="k", alphavantage_key="k")

        result = resolve_earnings("nvda", settings=settings, transport=upstream.transport)

        assert result.value.source == "FMP"
        assert upstream.hosts == ["financialmodelingprep.com"]

    def test_unkeyed_providers_are_skipped(self, upstream):
        upstream.add(
            E.YAHOO_URL.format(ticker="NVDA"),
            json={"quoteSummary": {"result": [{"calendarEvents": {"earnings": {"earningsDate": [{"raw": 1739404800}]}}}]}},
        )

        result = resolve_earnings("NVDA", settings=make_settings(), transport=upstream.transport)

        assert result.value.source == "Yahoo"
        assert result.value.date == "2025-02-13"
        assert upstream.hosts == ["query2.finance.yahoo.com"]
        assert [(a.provider, a.outcome) for a in result.attempts] == [("FMP", "skipped"), ("Yahoo", "ok")]

    def test_only_last_provider_has_data(self, upstream):
        upstream.add(E.FMP_URL, json=[])
        upstream.add(E.POLYGON_URL, json={"results": []})
        upstream.add(E.ALPHAVANTAGE_URL, text=AV_CSV)
        settings = make_settings(fmp_api_key="k", polygon_api_key="k", alphavantage_key="k")

        result = resolve_earnings("IBM", settings=settings, transport=upstream.transport)

        assert result.found
        assert result.value.source == "AlphaVantage"
        assert result.value.date == "2025-04-23"
        assert result.tried == ["FMP", "Yahoo", "Polygon", "MarketData", "AlphaVantage"]

    def test_everything_down_is_not_found(self, upstream):
        upstream.add(E.FMP_URL, status=500, json={})
        upstream.add(E.ALPHAVANTAGE_URL, status=500, text="error")
        settings = make_settings(fmp_api_key="k", alphavantage_key="k")

        result = resolve_earnings("NVDA", settings=settings, transport=upstream.transport)

        assert not result.found
        assert result.attempts[-1].provider == "AlphaVantage"
        assert result.attempts[-1].outcome == "error"

    def test_missing_alphavantage_key_is_absorbed(self, upstream):
        result = resolve_earnings("NVDA", settings=make_settings(), transport=upstream.transport)

        assert not result.found
        assert result.attempts[-1].outcome == "error"
        assert "ALPHAVANTAGE_KEY" in result.attempts[-1].detail


class TestResolveNews:
    def test_alphavantage_first(self, upstream):
        upstream.add(
            N.ALPHAVANTAGE_URL,
            json={"feed": [{"title": "T", "summary": "S", "url": "u", "source": "s", "time_published": "20240105T103000"}]},
        )
        upstream.add(N.YAHOO_URL, json={"news": [{"title": "should not be used"}]})
        settings = make_settings(alphavantage_key="k")

        result = resolve_news("NVDA", settings=settings, transport=upstream.transport)

        assert result.provider == "AlphaVantage"
        assert upstream.hosts == ["www.alphavantage.co"]

    def test_falls_through_to_yahoo(self, upstream):
        upstream.add(N.FINNHUB_URL, json=[])
        upstream.add(N.YAHOO_URL, json={"news": [{"title": f"Headline {n}"} for n in range(8)]})
        settings = make_settings(finnhub_api_key="k", news_limit=3)

        result = resolve_news("NVDA", settings=settings, transport=upstream.transport)

        assert result.provider == "Yahoo"
        assert len(result.value) == 3
        assert all(isinstance(item, NewsItem) for item in result.value)

    def test_nothing_anywhere(self, upstream):
        result = resolve_news("NVDA", settings=make_settings(), transport=upstream.transport)

        assert not result.found
        assert result.value is None

    def test_sentiment_calibration_comes_from_settings(self, upstream):
        upstream.add(N.YAHOO_URL, json={"news": [{"title": "Analyst upgrade"}]})
        settings = make_settings(sentiment_divisor=10.0)

        item = resolve_news("NVDA", settings=settings, transport=upstream.transport).value[0]

        assert item.sentiment_score == pytest.approx(0.1)
        assert item.sentiment == "neutral"


class TestMakeScorer:
    def test_builtin_tables_by_default(self):
        scorer = make_scorer(make_settings())

        assert scorer.analyze("record profit").sentiment == "positive"

    def test_term_lists_from_settings(self):
        scorer = make_scorer(make_settings(sentiment_positive_terms="moon", sentiment_negative_terms="rug"))

        assert scorer.analyze("to the moon").sentiment == "positive"
        assert scorer.analyze("rug pull").sentiment == "negative"
        assert scorer.analyze("record profit").sentiment == "neutral"

    def test_one_list_overridden_keeps_the_other(self):
        scorer = make_scorer(make_settings(sentiment_positive_terms="moon"))

        assert scorer.analyze("lawsuit").sentiment == "negative"
