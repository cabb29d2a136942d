"""Shared fakes: an in-memory market-data provider, a scripted LLM client and a signal store."""

from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd
import pytest

from datahub.cache import MemoryCache
from datahub.providers import MarketData, MarketDataProvider, ProviderError
from infra.rate_limit import RateLimiter
from llm import LLMError


class FakeProvider(MarketDataProvider):
    name = "fake"

    def __init__(
        self,
        quotes: Optional[Dict[str, MarketData]] = None,
        closes: Optional[Dict[str, List[float]]] = None,
        search_quotes: Optional[List[Dict[str, Any]]] = None,
        news: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        self.quotes = quotes or {}
        self.closes = closes or {}
        self.search_quotes = search_quotes or []
        self.news = news or []
        self.calls: Dict[str, int] = {"quote": 0, "history": 0, "search": 0}

    def fetch_quote(self, symbol: str) -> MarketData:
        self.calls["quote"] += 1
        if symbol not in self.quotes:
            raise ProviderError(f"no quote for {symbol}")
        return self.quotes[symbol]

    def fetch_history(self, symbol: str, start: datetime, end: Optional[datetime], interval: str) -> pd.DataFrame:
        self.calls["history"] += 1
        values = self.closes.get(symbol)
        if values is None:
            raise ProviderError(f"no history for {symbol}")
        index = pd.date_range(end="2024-06-28", periods=len(values), freq="B")
        return pd.DataFrame({"Close": values}, index=index)

    def search(self, query: str, max_results: int = 10, news_count: int = 0) -> Dict[str, List[Dict[str, Any]]]:
        self.calls["search"] += 1
        return {"quotes": list(self.search_quotes), "news": list(self.news[:news_count] if news_count else [])}


class ScriptedLLM:
    """Stands in for ``LLMClient``; returns (or raises) a canned reply."""

    def __init__(self, reply: str = "", error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: List[str] = []

    def analyze_headlines(self, symbol: str, headlines: List[str]) -> str:
        self.calls.append(symbol)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeStore:
    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.tickers: Dict[str, Dict[str, Any]] = {}
        self.sentiments: Dict[str, Any] = {}
        self.history: List[Dict[str, Any]] = []

    async def save_ticker(self, symbol: str, document: Dict[str, Any]) -> None:
        self.tickers[symbol] = document

    async def store_sentiment(self, symbol, sentiment, headlines):
        analyzed_at = datetime(2024, 6, 28, 12, len(self.history))
        self.sentiments[symbol] = (sentiment, list(headlines))
        self.history.insert(
            0,
            {**sentiment.to_dict(), "symbol": symbol, "analyzedAt": analyzed_at, "headlinesCount": len(headlines)},
        )
        return analyzed_at

    async def get_sentiment(self, symbol):
        return next((entry for entry in self.history if entry["symbol"] == symbol), None)

    async def get_sentiment_history(self, symbol, max_entries=30):
        return [entry for entry in self.history if entry["symbol"] == symbol][:max_entries]


@pytest.fixture(autouse=True)
def no_rate_limits(monkeypatch):
    unlimited = RateLimiter({})
    monkeypatch.setattr("datahub.fetcher.rate_limiter", unlimited)
    monkeypatch.setattr("backend.app.core.sentiment.rate_limiter", unlimited)


@pytest.fixture
def memory_cache():
    return MemoryCache(default_ttl=300)


@pytest.fixture
def rising_closes():
    return [100.0 + i * 0.5 for i in range(60)]


@pytest.fixture
def provider(rising_closes):
    return FakeProvider(
        quotes={
            "AAPL": MarketData(price=135.0, change=1.2, change_percent=0.9, short_name="Apple Inc."),
            "TINY": MarketData(price=10.0, short_name="Tiny Corp"),
        },
        closes={"AAPL": rising_closes, "TINY": [10.0] * 20},
        search_quotes=[
            {"symbol": "AAPL", "shortname": "Apple Inc.", "quoteType": "EQUITY"},
            {"symbol": "SPY", "longname": "SPDR S&P 500 ETF", "quoteType": "ETF"},
            {"symbol": "AAPL240621C00150000", "quoteType": "OPTION"},
            {"symbol": "BTC-USD", "shortname": "Bitcoin USD", "quoteType": "CRYPTOCURRENCY"},
            {"symbol": "ETH-USD", "quoteType": "MUTUALFUND"},
        ],
        news=[
            {"title": "Apple unveils new iPhone lineup", "link": "https://example.com/1", "publisher": "Reuters",
             "providerPublishTime": 1719561600},
            {"title": "Fed holds rates steady", "link": "https://example.com/2", "publisher": "AP"},
            {"title": "AAPL shares climb after earnings beat", "link": "https://example.com/3"},
        ],
    )


@pytest.fixture
def make_llm():
    return ScriptedLLM


@pytest.fixture
def bullish_llm():
    return ScriptedLLM('{"score": 0.6, "label": "Bullish", "rationale": "iPhone demand beat estimates."}')


@pytest.fixture
def failing_llm():
    return ScriptedLLM(error=LLMError("upstream 500"))


@pytest.fixture
def fake_store():
    return FakeStore()
