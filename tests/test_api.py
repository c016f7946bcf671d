"""Tests for the HTTP API."""
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from conftest import FakeUpstream, make_settings
from earningswatch.api import create_app, get_app_settings, get_transport
from earningswatch.providers import earnings as E
from earningswatch.providers import news as N


@pytest.fixture
def make_client(upstream: FakeUpstream):
    """Build a TestClient wired to the given settings and the fake upstream."""

    def factory(settings):
        app = create_app()
        app.dependency_overrides[get_app_settings] = lambda: settings
        app.dependency_overrides[get_transport] = lambda: upstream.transport
        return TestClient(app)

    return factory


@pytest.fixture
def client(make_client, temp_db: Path) -> TestClient:
    return make_client(make_settings(store_backend="sqlite", store_path=str(temp_db)))


class TestEventsEndpoint:
    def test_empty_collection(self, client: TestClient):
        response = client.get("/api/events")

        assert response.status_code == 200
        assert response.json() == []

    def test_post_applies_defaults(self, client: TestClient):
        response = client.post("/api/events", json={"symbol": "nvda", "date": "2025-02-26"})

        assert response.status_code == 200
        assert response.json() == [
            {"symbol": "NVDA", "name": "nvda", "date": "2025-02-26", "time": "TBD", "domain": "nvda.com"}
        ]

    def test_duplicate_post_keeps_length(self, client: TestClient):
        client.post("/api/events", json={"symbol": "NVDA", "date": "2025-02-26"})
        response = client.post("/api/events", json={"symbol": "nvda", "date": "2025-02-26"})

        assert response.status_code == 200
        assert len(response.json()) == 1
        assert len(client.get("/api/events").json()) == 1

    def test_collection_is_date_ordered(self, client: TestClient):
        client.post("/api/events", json={"symbol": "AAPL", "date": "2025-01-30"})
        client.post("/api/events", json={"symbol": "NVDA", "date": "2025-02-26"})
        response = client.post("/api/events", json={"symbol": "MSFT", "date": "2025-01-29"})

        assert [e["symbol"] for e in response.json()] == ["MSFT", "AAPL", "NVDA"]

    @pytest.mark.parametrize(
        "body,message",
        [
            ({"date": "2025-02-26"}, "Symbol and date required"),
            ({"symbol": "NVDA"}, "Symbol and date required"),
            ({"symbol": "  ", "date": "2025-02-26"}, "Symbol and date required"),
            ({"symbol": "NV DA", "date": "2025-02-26"}, "Invalid symbol: NV DA"),
            ({"symbol": "NVDA", "date": "26/02/2025"}, "Invalid date: 26/02/2025"),
            ({"symbol": "NVDA", "date": "2025-02-30"}, "Invalid date: 2025-02-30"),
        ],
    )
    def test_post_validation(self, client: TestClient, body, message):
        response = client.post("/api/events", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": message}
        assert client.get("/api/events").json() == []

    @pytest.mark.parametrize(
        "body",
        [
            ["NVDA", "2025-02-26"],
            "NVDA",
            {"symbol": 123, "date": "2025-02-26"},
            {"symbol": "NVDA", "date": 20250226},
        ],
    )
    def test_post_malformed_body(self, client: TestClient, body):
        response = client.post("/api/events", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Symbol and date required"}

    def test_post_without_body(self, client: TestClient):
        response = client.post("/api/events")

        assert response.status_code == 400
        assert response.json() == {"error": "Symbol and date required"}

    def test_post_ignores_non_string_optionals(self, client: TestClient):
        response = client.post("/api/events", json={"symbol": "NVDA", "date": "2025-02-26", "name": 7, "time": " "})

        assert response.status_code == 200
        assert response.json()[0]["name"] == "NVDA"
        assert response.json()[0]["time"] == "TBD"

    def test_missing_store_credentials(self, make_client):
        client = make_client(make_settings())

        response = client.get("/api/events")

        assert response.status_code == 500
        assert response.json() == {"error": "Missing credentials"}


class TestEarningsEndpoint:
    def test_missing_symbol(self, client: TestClient):
        response = client.get("/api/earnings")

        assert response.status_code == 400
        assert response.json() == {"error": "Missing symbol parameter"}

    def test_found(self, client: TestClient, upstream: FakeUpstream):
        upstream.add(
            E.MARKETDATA_URL.format(ticker="NVDA"),
            json={"reportDate": [1741996800], "reportTime": ["after close"]},
        )

        response = client.get("/api/earnings", params={"symbol": "nvda"})

        assert response.status_code == 200
        assert response.json() == {
            "symbol": "NVDA",
            "name": "NVDA",
            "date": "2025-03-15",
            "time": "after close",
            "source": "MarketData",
        }

    def test_not_found(self, client: TestClient):
        response = client.get("/api/earnings", params={"symbol": "zzzz"})

        assert response.status_code == 404
        assert response.json() == {"error": "No earnings data found for ZZZZ"}


class TestNewsEndpoint:
    def test_missing_symbol(self, client: TestClient):
        assert client.get("/api/news").status_code == 400

    def test_no_news_is_empty_list(self, client: TestClient):
        response = client.get("/api/news", params={"symbol": "NVDA"})

        assert response.status_code == 200
        assert response.json() == {"news": []}

    def test_scored_items(self, client: TestClient, upstream: FakeUpstream):
        upstream.add(
            N.YAHOO_URL,
            json={"news": [{"title": "Record profit", "link": "u", "publisher": "p", "providerPublishTime": 1700000000}]},
        )

        news = client.get("/api/news", params={"symbol": "NVDA"}).json()["news"]

        assert news == [
            {
                "headline": "Record profit",
                "summary": "Record profit",
                "url": "u",
                "source": "p",
                "publishedAt": "2023-11-14T22:13:20.000Z",
                "sentiment": "positive",
                "sentimentScore": pytest.approx(2 / 3),
            }
        ]


class TestHealthEndpoint:
    def test_reports_configuration(self, make_client):
        client = make_client(make_settings(alphavantage_key="k", jsonbin_bin_id="b"))

        body = client.get("/api/health").json()

        assert body["status"] == "ok"
        assert body["timestamp"].endswith("Z")
        assert body["env"]["hasAlphaVantageKey"] is True
        assert body["env"]["hasJsonBinId"] is True
        assert body["env"]["hasJsonBinKey"] is False
