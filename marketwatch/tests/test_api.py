"""Tests for the dashboard HTTP API.

API keys are blanked so every provider is unconfigured and the app runs
entirely on mock data.

Covers:
- feed listing and detail (incl. unknown feed 404)
- global period toggle
- on-demand quote endpoint
- JSON encoding of non-finite changes
"""

from __future__ import annotations

import math

import pytest
from fastapi.testclient import TestClient

from marketwatch.config import FEEDS
from marketwatch.main import _json_safe, app


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr("marketwatch.providers.twelve_data.TWELVE_DATA_API_KEY", "")
    monkeypatch.setattr("marketwatch.providers.fred.FRED_API_KEY", "")
    with TestClient(app) as test_client:
        yield test_client


# ---------------------------------------------------------------------------
# Feeds
# ---------------------------------------------------------------------------


class TestFeeds:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_lists_every_configured_feed(self, client):
        body = client.get("/api/feeds").json()
        assert [f["name"] for f in body["feeds"]] == list(FEEDS)
        assert body["period"] == "recent"
        assert body["period_label"] == "24h"

    def test_refresh_now_fills_every_feed(self, client):
        resp = client.post("/api/admin/refresh-now")
        assert resp.status_code == 200
        results = resp.json()["results"]
        assert set(results) == set(FEEDS)
        assert all(r["has_errors"] is False for r in results.values())

    def test_feed_detail_after_refresh(self, client):
        client.post("/api/admin/refresh-now")
        body = client.get("/api/feeds/crypto").json()

        items = body["summary"]["items"]
        assert [i["identifier"] for i in items] == [s[0] for s in FEEDS["crypto"]["symbols"]]
        assert all(i["status"] == "mock" for i in items)
        assert all(i["display_value"].startswith("$") for i in items)
        assert body["summary"]["sentiment"] in {"positive", "neutral", "negative"}
        assert body["error_banner"] is False

    def test_unknown_feed_is_404(self, client):
        assert client.get("/api/feeds/commodities").status_code == 404


# ---------------------------------------------------------------------------
# Period toggle
# ---------------------------------------------------------------------------


class TestPeriod:
    def test_switch_to_year_to_date(self, client):
        resp = client.post("/api/period", json={"period": "year-to-date"})
        assert resp.status_code == 200
        assert resp.json() == {"period": "year-to-date", "period_label": "YTD"}

        assert client.get("/api/feeds").json()["period"] == "year-to-date"
        assert client.get("/api/feeds/bonds").json()["period"] == "year-to-date"

    def test_refresh_after_switch_uses_new_period(self, client):
        client.post("/api/period", json={"period": "year-to-date"})
        client.post("/api/admin/refresh-now")
        summary = client.get("/api/feeds/forex").json()["summary"]
        assert summary["period_label"] == "YTD"

    def test_invalid_period_rejected(self, client):
        assert client.post("/api/period", json={"period": "weekly"}).status_code == 422


# ---------------------------------------------------------------------------
# Quote
# ---------------------------------------------------------------------------


class TestQuote:
    def test_forex_quote(self, client):
        body = client.get("/api/quote/forex/EURUSD", params={"period": "year-to-date"}).json()
        assert body["identifier"] == "EURUSD"
        assert body["status"] == "mock"
        assert body["period_label"] == "YTD"
        assert len(body["display_value"].split(".")[1]) == 4

    def test_bond_quote(self, client):
        body = client.get("/api/quote/bond/us10y").json()
        assert body["identifier"] == "US10Y"
        assert body["display_value"].endswith("%")

    def test_unknown_category_rejected(self, client):
        assert client.get("/api/quote/commodity/GOLD").status_code == 422

    def test_identifier_from_another_category_rejected(self, client):
        client.post("/api/admin/refresh-now")
        resp = client.get("/api/quote/bond/BTC")
        assert resp.status_code == 400
        assert "BTC" in resp.json()["detail"]

    def test_same_identifier_keeps_its_own_category(self, client):
        client.post("/api/admin/refresh-now")
        body = client.get("/api/quote/crypto/BTC").json()
        assert body["category"] == "crypto"
        assert body["display_value"].startswith("$")


# ---------------------------------------------------------------------------
# JSON encoding
# ---------------------------------------------------------------------------


class TestJsonSafe:
    def test_infinities_become_strings(self):
        assert _json_safe({"a": [math.inf, -math.inf]}) == {"a": ["Infinity", "-Infinity"]}

    def test_nan_becomes_null(self):
        assert _json_safe({"avg": math.nan}) == {"avg": None}

    def test_finite_values_untouched(self):
        value = {"x": 1.5, "y": "text", "z": None, "n": 3}
        assert _json_safe(value) == value
