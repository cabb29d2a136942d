"""Market-data fetcher against an in-memory provider."""

import pytest

from datahub import fetcher
from datahub.fetcher import select_headlines, sparkline_config


def test_select_headlines_matches_symbol_and_company():
    titles = ["Delta raises guidance", "DAL stock jumps", "Oil prices fall", ""]
    assert select_headlines("DAL", "Delta Air Lines", titles) == ["Delta raises guidance", "DAL stock jumps"]


def test_select_headlines_caps_at_ten_from_first_twenty():
    titles = [f"Apple headline {i}" for i in range(25)]
    assert select_headlines("AAPL", "Apple Inc.", titles) == titles[:10]


def test_select_headlines_falls_back_to_first_ten():
    titles = ["Fed holds rates", "", "Oil slides"] + [f"Market wrap {i}" for i in range(15)]
    selected = select_headlines("NVDA", "NVIDIA Corporation", titles)
    assert selected == [title for title in titles[:10] if title]
    assert "" not in selected


def test_sparkline_config_defaults_to_one_month():
    assert sparkline_config("5y") == (365 * 5, "1wk")
    assert sparkline_config("bogus") == (30, "1d")


@pytest.mark.asyncio
async def test_get_quote_is_cached(provider, memory_cache):
    first = await fetcher.get_quote("AAPL", provider=provider, cache=memory_cache)
    second = await fetcher.get_quote("AAPL", provider=provider, cache=memory_cache)
    assert first == second
    assert first.price == 135.0
    assert provider.calls["quote"] == 1


@pytest.mark.asyncio
async def test_get_quote_unknown_symbol_is_none(provider, memory_cache):
    assert await fetcher.get_quote("ZZZZ", provider=provider, cache=memory_cache) is None


@pytest.mark.asyncio
async def test_get_quotes_skips_missing(provider, memory_cache):
    quotes = await fetcher.get_quotes(["AAPL", "ZZZZ", "TINY"], provider=provider, cache=memory_cache)
    assert sorted(quotes) == ["AAPL", "TINY"]


@pytest.mark.asyncio
async def test_history_closes_are_cached(provider, memory_cache, rising_closes):
    closes = await fetcher.get_history_closes("AAPL", "3mo", provider=provider, cache=memory_cache)
    assert closes == rising_closes
    await fetcher.get_history_closes("AAPL", "3mo", provider=provider, cache=memory_cache)
    assert provider.calls["history"] == 1


@pytest.mark.asyncio
async def test_sparklines_empty_for_failures(provider, memory_cache):
    result = await fetcher.get_sparklines(["AAPL", "TINY", "NONE"], "1wk", provider=provider, cache=memory_cache)
    assert len(result["AAPL"]) == 60
    assert result["TINY"] == [10.0] * 20
    assert result["NONE"] == []


@pytest.mark.asyncio
async def test_performance_from_six_month_history(provider, memory_cache):
    result = await fetcher.get_performances(["AAPL", "ZZZZ"], provider=provider, cache=memory_cache)
    # Business days ending 2024-06-28; 2024-05-28 is the 37th close (118.0), 2024-04-08 the first (100.0)
    assert result["AAPL"]["perf1M"] == pytest.approx((129.5 - 118.0) / 118.0 * 100)
    assert result["AAPL"]["perf3M"] == pytest.approx(29.5)
    assert result["AAPL"]["perf6M"] == pytest.approx(29.5)
    assert result["ZZZZ"] == {"perf1M": 0.0, "perf3M": 0.0, "perf6M": 0.0}

    await fetcher.get_performance("AAPL", provider=provider, cache=memory_cache)
    assert provider.calls["history"] == 2


@pytest.mark.asyncio
async def test_search_tickers_keeps_equities_and_etfs(provider, memory_cache):
    matches = await fetcher.search_tickers("apple", provider=provider, cache=memory_cache)
    assert matches == [
        {"symbol": "AAPL", "name": "Apple Inc.", "type": "EQUITY"},
        {"symbol": "SPY", "name": "SPDR S&P 500 ETF", "type": "ETF"},
    ]


@pytest.mark.asyncio
async def test_search_crypto(provider, memory_cache):
    matches = await fetcher.search_crypto("usd", provider=provider, cache=memory_cache)
    assert matches == [
        {"symbol": "BTC-USD", "name": "Bitcoin USD"},
        {"symbol": "ETH-USD", "name": "ETH-USD"},
    ]


@pytest.mark.asyncio
async def test_get_news_limits_articles(provider):
    articles = await fetcher.get_news("AAPL", limit=2, provider=provider)
    assert [article.title for article in articles] == ["Apple unveils new iPhone lineup", "Fed holds rates steady"]
    assert articles[0].publisher == "Reuters"
    assert articles[0].published_at.year == 2024


@pytest.mark.asyncio
async def test_get_multiple_news(provider):
    news = await fetcher.get_multiple_news(["AAPL", "MSFT", "NVDA", "AMD"], provider=provider)
    assert list(news) == ["AAPL", "MSFT", "NVDA", "AMD"]
    assert all(len(items) == 2 for items in news.values())


@pytest.mark.asyncio
async def test_news_headlines_filtered_by_company(provider, memory_cache):
    headlines = await fetcher.get_news_headlines("AAPL", provider=provider, cache=memory_cache)
    assert headlines == ["Apple unveils new iPhone lineup", "AAPL shares climb after earnings beat"]
