"""HTTP routes with the service layer replaced by fakes."""

import asyncio
from dataclasses import replace
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from api import app
from backend.app.api import routes_signals
from backend.app.services import signals as signal_service
from datahub import fetcher
from datahub.providers import MarketData
from engine import SentimentLabel, SentimentResult, Technicals, generate_quick_signal, generate_signal


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("WATCHLIST_PATH", str(tmp_path / "watchlist.json"))
    monkeypatch.setenv("OWNED_ASSETS_PATH", str(tmp_path / "owned_assets.json"))
    monkeypatch.delenv("CRON_SECRET", raising=False)
    return TestClient(app)


def _live_signal(symbol):
    technicals = Technicals(rsi=45, macd=0.4, macd_signal=0.36, macd_hist=0.04, sma20=99, sma50=97,
                            sma200=90, price=101, data_points=63)
    return signal_service.LiveSignal(
        symbol=symbol,
        quote=MarketData(price=101.0),
        technicals=technicals,
        signal=generate_quick_signal(technicals),
    )


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}
    assert client.get("/api/healthz").status_code == 200


def test_signals_requires_symbols(client):
    assert client.get("/signals").status_code == 400
    assert client.get("/signals", params={"symbols": " , "}).status_code == 400


def test_signals_empty_when_store_disabled(client):
    response = client.get("/signals", params={"symbols": "aapl,msft"})
    assert response.status_code == 200
    assert response.json() == {}


def test_signals_from_store(client, monkeypatch):
    class Store:
        async def get_signals(self, symbols):
            assert symbols == ["AAPL", "MSFT"]
            return {
                "AAPL": {
                    "signal": {"action": "HOLD", "confidence": 52, "rationale": ["Above 50-day SMA"]},
                    "sentiment": {"score": 0.1, "label": "Neutral", "rationale": "Mixed news."},
                    "updatedAt": None,
                }
            }

    monkeypatch.setattr(routes_signals, "signal_store", Store())
    data = client.get("/signals", params={"symbols": "aapl,msft"}).json()
    assert list(data) == ["AAPL"]
    assert data["AAPL"]["signal"]["confidence"] == 52
    assert data["AAPL"]["sentiment"]["label"] == "Neutral"


def test_live_signal_route(client, monkeypatch):
    async def fake_live(symbol, with_sentiment=False, store=None):
        return _live_signal(symbol) if symbol == "AAPL" else None

    monkeypatch.setattr(signal_service, "compute_live_signal", fake_live)
    response = client.get("/signals/aapl")
    assert response.status_code == 200
    body = response.json()
    assert body["symbol"] == "AAPL"
    assert body["signal"]["sentimentAnalyzed"] is False
    assert body["technicals"]["dataSufficiency"] == "partial"
    assert body["sentiment"] is None
    assert client.get("/signals/zzzz").status_code == 404


def test_live_signal_route_reports_stored_analysis(client, monkeypatch):
    analyzed_at = datetime(2024, 6, 28, 12, 0, tzinfo=timezone.utc)

    async def fake_live(symbol, with_sentiment=False, store=None):
        live = _live_signal(symbol)
        sentiment = SentimentResult(0.4, SentimentLabel.BULLISH, "Upbeat guidance.")
        return replace(
            live,
            signal=generate_signal(live.technicals, sentiment),
            sentiment=sentiment,
            sentiment_analyzed_at=analyzed_at,
            headlines_count=6,
        )

    monkeypatch.setattr(signal_service, "compute_live_signal", fake_live)
    body = client.get("/signals/aapl").json()
    assert body["signal"]["sentimentAnalyzed"] is True
    assert body["sentiment"]["label"] == "Bullish"
    assert body["headlinesCount"] == 6
    assert body["sentimentAnalyzedAt"].startswith("2024-06-28T12:00:00")


def test_sentiment_history_route(client, monkeypatch, fake_store):
    monkeypatch.setattr(routes_signals, "signal_store", fake_store)
    assert client.get("/signals/aapl/sentiment-history").json() == {"symbol": "AAPL", "entries": []}

    for score in (0.2, -0.6):
        label = SentimentLabel.BULLISH if score > 0 else SentimentLabel.BEARISH
        asyncio.run(fake_store.store_sentiment("AAPL", SentimentResult(score, label, "News."), ["a", "b", "c"]))

    body = client.get("/api/signals/AAPL/sentiment-history", params={"limit": 1}).json()
    assert [entry["score"] for entry in body["entries"]] == [-0.6]
    assert body["entries"][0]["headlinesCount"] == 3
    assert client.get("/signals/AAPL/sentiment-history", params={"limit": 0}).status_code == 422


def test_refresh_sentiment_route(client, monkeypatch):
    async def fake_refresh(symbol, store=None):
        return {
            "sentiment": SentimentResult(0.4, SentimentLabel.BULLISH, "Upbeat guidance."),
            "signal": None,
            "headlines_analyzed": 4,
            "stored_at": "2024-06-28T12:00:00+00:00",
        }

    monkeypatch.setattr(signal_service, "refresh_sentiment", fake_refresh)
    assert client.post("/refresh-sentiment", json={"symbol": "  "}).status_code == 400
    body = client.post("/refresh-sentiment", json={"symbol": "nvda"}).json()
    assert body["sentiment"] == {"score": 0.4, "label": "Bullish", "rationale": "Upbeat guidance."}
    assert body["signal"] is None
    assert body["headlinesAnalyzed"] == 4


def test_cron_requires_secret(client, monkeypatch):
    assert client.get("/cron/update-signals").status_code == 401
    monkeypatch.setenv("CRON_SECRET", "s3cret")
    assert client.get("/cron/update-signals", params={"secret": "wrong"}).status_code == 401
    assert client.post("/cron/update-signals", params={"secret": "s3cret"}).status_code == 500


def test_cron_runs_update(client, monkeypatch):
    class Store:
        available = True

    async def fake_update(store=None):
        return {
            "success": True,
            "timestamp": "2024-06-28T12:00:00+00:00",
            "results": [{"symbol": "AAPL", "status": "success"}, {"symbol": "TSLA", "status": "skipped",
                                                                    "error": "No quote data"}],
            "summary": {"total": 2, "success": 1, "skipped": 1, "errors": 0},
        }

    monkeypatch.setenv("CRON_SECRET", "s3cret")
    monkeypatch.setattr(routes_signals, "signal_store", Store())
    monkeypatch.setattr(signal_service, "update_tracked_signals", fake_update)
    body = client.post("/cron/update-signals", params={"secret": "s3cret"}).json()
    assert body["summary"] == {"total": 2, "success": 1, "skipped": 1, "errors": 0}
    assert body["results"][1]["error"] == "No quote data"


def test_market_routes(client, monkeypatch):
    async def fake_quotes(symbols):
        return {"AAPL": MarketData(price=190.0, change_percent=1.5, short_name="Apple Inc.")}

    async def fake_search(query):
        return [{"symbol": "SPY", "name": "SPDR S&P 500", "type": "ETF"},
                {"symbol": "^GSPC", "name": "S&P 500", "type": "EQUITY"}]

    monkeypatch.setattr(fetcher, "get_quotes", fake_quotes)
    monkeypatch.setattr(fetcher, "search_tickers", fake_search)

    assert client.get("/market-data").status_code == 400
    quotes = client.get("/market-data", params={"symbols": "AAPL"}).json()
    assert quotes["AAPL"]["changePercent"] == 1.5
    assert client.get("/search").json() == []
    assert [item["type"] for item in client.get("/search", params={"q": "s&p"}).json()] == ["etf", "index"]
    assert client.get("/crypto-search").status_code == 400


def test_performance_route(client, monkeypatch):
    async def fake_performances(symbols):
        return {symbol: {"perf1M": 2.5, "perf3M": -1.0, "perf6M": 12.0} for symbol in symbols}

    monkeypatch.setattr(fetcher, "get_performances", fake_performances)
    assert client.get("/performance").status_code == 400
    body = client.get("/performance", params={"symbols": "aapl, nvda"}).json()
    assert list(body) == ["AAPL", "NVDA"]
    assert body["NVDA"] == {"perf1M": 2.5, "perf3M": -1.0, "perf6M": 12.0}


def test_watchlist_crud(client):
    assert client.get("/watchlist").json()["symbols"] == []
    assert client.put("/watchlist", json={"symbols": ["aapl", "AAPL", "tsla"]}).json()["symbols"] == ["AAPL", "TSLA"]
    assert client.post("/watchlist", json={"symbol": "msft"}).json()["symbols"] == ["AAPL", "TSLA", "MSFT"]
    assert client.delete("/watchlist/tsla").json()["symbols"] == ["AAPL", "MSFT"]
    assert client.delete("/watchlist/tsla").status_code == 404


def test_owned_assets_crud(client):
    created = client.post(
        "/owned-assets",
        json={"symbol": "aapl", "name": "Apple Inc.", "type": "stock", "shares": 10, "avgCost": 150,
              "purchaseDate": "2024-01-05"},
    )
    assert created.status_code == 201
    asset = created.json()
    assert asset["symbol"] == "AAPL"

    patched = client.patch(f"/owned-assets/{asset['id']}", json={"shares": 12, "purchaseDate": "2024-01-08"})
    assert patched.json()["shares"] == 12
    assert patched.json()["purchaseDate"] == "2024-01-08"

    listing = client.get("/owned-assets").json()
    assert listing["totalInvested"] == 1800
    assert listing["uniqueSymbols"] == ["AAPL"]

    assert client.post("/owned-assets", json={"symbol": "X", "name": "X", "type": "bond", "shares": 1,
                                              "avgCost": 1, "purchaseDate": "2024-01-01"}).status_code == 422
    assert client.delete(f"/owned-assets/{asset['id']}").json()["assets"] == []
    assert client.patch("/owned-assets/asset-missing", json={"shares": 1}).status_code == 404


@pytest.mark.parametrize("field", ["symbol", "name", "type", "shares", "avgCost", "purchaseDate"])
def test_owned_asset_patch_rejects_null(client, field):
    created = client.post(
        "/owned-assets",
        json={"symbol": "msft", "name": "Microsoft", "type": "stock", "shares": 4, "avgCost": 300,
              "purchaseDate": "2024-02-01"},
    ).json()

    response = client.patch(f"/owned-assets/{created['id']}", json={field: None})
    assert response.status_code == 422

    listing = client.get("/owned-assets")
    assert listing.status_code == 200
    assert listing.json()["assets"][0]["symbol"] == "MSFT"
    assert listing.json()["totalInvested"] == 1200


def test_owned_asset_patch_blank_symbol_and_null_notes(client):
    created = client.post(
        "/owned-assets",
        json={"symbol": "nvda", "name": "NVIDIA", "type": "stock", "shares": 2, "avgCost": 100,
              "purchaseDate": "2024-03-01", "notes": "starter"},
    ).json()

    assert client.patch(f"/owned-assets/{created['id']}", json={"symbol": "  "}).status_code == 400
    cleared = client.patch(f"/owned-assets/{created['id']}", json={"notes": None})
    assert cleared.status_code == 200
    assert cleared.json()["notes"] is None
    assert cleared.json()["symbol"] == "NVDA"
