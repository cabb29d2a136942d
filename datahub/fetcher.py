"""
Async market-data access with caching and rate limiting.

Provider SDK calls are blocking, so each one runs through ``asyncio.to_thread``
under the shared rate limiter. Reads go through an injected cache (the layered
``infra.cache_store.cache_manager`` unless one is passed in). Upstream failures
are logged and surface as ``None`` or empty results; nothing here raises for a
bad symbol.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from infra.cache_store import cache_manager
from infra.rate_limit import rate_limiter

from .cache import Cache, make_key
from .indicators import close_series_from_frame, closes_from_frame, period_performance
from .providers import MarketData, MarketDataProvider, NewsArticle, ProviderError, default_provider

logger = logging.getLogger(__name__)

HISTORY_PERIODS = {
    "1mo": 1,
    "3mo": 3,
    "6mo": 6,
    "1y": 12,
}

SPARKLINE_PERIODS: Dict[str, Tuple[int, str]] = {
    "1d": (5, "1d"),
    "1wk": (10, "1d"),
    "1mo": (30, "1d"),
    "6mo": (180, "1d"),
    "1y": (365, "1d"),
    "3y": (365 * 3, "1wk"),
    "5y": (365 * 5, "1wk"),
    "10y": (365 * 10, "1mo"),
    "max": (365 * 50, "1mo"),
}
DEFAULT_SPARKLINE_PERIOD = "1mo"

SPARKLINE_BATCH_SIZE = 5
PERFORMANCE_BATCH_SIZE = 5
NEWS_BATCH_SIZE = 3
SEARCH_LIMIT = 10
HEADLINE_POOL = 20
HEADLINE_LIMIT = 10

_default_provider: Optional[MarketDataProvider] = None


def _resolve(provider: Optional[MarketDataProvider], cache: Optional[Cache]) -> Tuple[MarketDataProvider, Cache]:
    global _default_provider
    if provider is None:
        if _default_provider is None:
            _default_provider = default_provider()
        provider = _default_provider
    return provider, cache if cache is not None else cache_manager


def _history_start(period: str, now: Optional[datetime] = None) -> datetime:
    months = HISTORY_PERIODS.get(period, HISTORY_PERIODS["3mo"])
    now = now or datetime.now(timezone.utc)
    return (pd.Timestamp(now) - pd.DateOffset(months=months)).to_pydatetime()


def sparkline_config(period: str) -> Tuple[int, str]:
    """Return ``(days, interval)`` for a sparkline period, 1mo when unknown."""
    return SPARKLINE_PERIODS.get(period, SPARKLINE_PERIODS[DEFAULT_SPARKLINE_PERIOD])


async def get_quote(
    symbol: str,
    *,
    provider: Optional[MarketDataProvider] = None,
    cache: Optional[Cache] = None,
) -> Optional[MarketData]:
    provider, cache = _resolve(provider, cache)
    key = make_key("quote", provider.name, symbol)
    cached = cache.get(key)
    if cached is not None:
        return MarketData(**cached)

    try:
        async with rate_limiter.limit(provider.name, symbol=symbol, endpoint="quote"):
            quote = await asyncio.to_thread(provider.fetch_quote, symbol)
    except ProviderError as exc:
        logger.warning("Quote unavailable for %s: %s", symbol, exc)
        return None

    cache.put(key, quote.to_dict(), getattr(cache, "ttl_quote", None))
    return quote


async def get_quotes(
    symbols: Sequence[str],
    *,
    provider: Optional[MarketDataProvider] = None,
    cache: Optional[Cache] = None,
    concurrency: int = 4,
) -> Dict[str, MarketData]:
    """Quotes for several symbols; symbols without data are left out."""
    semaphore = asyncio.Semaphore(max(1, concurrency))
    results: Dict[str, MarketData] = {}

    async def _worker(symbol: str) -> None:
        async with semaphore:
            quote = await get_quote(symbol, provider=provider, cache=cache)
            if quote is not None:
                results[symbol] = quote

    await asyncio.gather(*(_worker(symbol) for symbol in symbols))
    return results


async def _fetch_closes(
    symbol: str,
    start: datetime,
    interval: str,
    key: str,
    ttl: Optional[int],
    provider: MarketDataProvider,
    cache: Cache,
) -> List[float]:
    cached = cache.get(key)
    if cached is not None:
        return [float(value) for value in cached]

    try:
        async with rate_limiter.limit(provider.name, symbol=symbol, endpoint=f"history:{interval}"):
            df = await asyncio.to_thread(provider.fetch_history, symbol, start, None, interval)
    except ProviderError as exc:
        logger.warning("History unavailable for %s: %s", symbol, exc)
        return []

    closes = closes_from_frame(df)
    if closes:
        cache.put(key, closes, ttl)
    return closes


async def get_history_closes(
    symbol: str,
    period: str = "3mo",
    *,
    provider: Optional[MarketDataProvider] = None,
    cache: Optional[Cache] = None,
) -> List[float]:
    """Daily closes for ``period`` (1mo/3mo/6mo/1y), oldest first."""
    provider, cache = _resolve(provider, cache)
    period = period if period in HISTORY_PERIODS else "3mo"
    return await _fetch_closes(
        symbol,
        _history_start(period),
        "1d",
        make_key("history", provider.name, symbol, period),
        getattr(cache, "ttl_history", None),
        provider,
        cache,
    )


async def get_sparkline(
    symbol: str,
    period: str = DEFAULT_SPARKLINE_PERIOD,
    *,
    provider: Optional[MarketDataProvider] = None,
    cache: Optional[Cache] = None,
) -> List[float]:
    provider, cache = _resolve(provider, cache)
    days, interval = sparkline_config(period)
    start = datetime.now(timezone.utc) - timedelta(days=days)
    return await _fetch_closes(
        symbol,
        start,
        interval,
        make_key("sparkline", provider.name, symbol, period),
        getattr(cache, "ttl_quote", None),
        provider,
        cache,
    )


async def get_sparklines(
    symbols: Sequence[str],
    period: str = DEFAULT_SPARKLINE_PERIOD,
    *,
    provider: Optional[MarketDataProvider] = None,
    cache: Optional[Cache] = None,
) -> Dict[str, List[float]]:
    results: Dict[str, List[float]] = {}
    for i in range(0, len(symbols), SPARKLINE_BATCH_SIZE):
        batch = symbols[i:i + SPARKLINE_BATCH_SIZE]
        closes = await asyncio.gather(
            *(get_sparkline(symbol, period, provider=provider, cache=cache) for symbol in batch)
        )
        results.update(zip(batch, closes))
    return results


async def get_performance(
    symbol: str,
    *,
    provider: Optional[MarketDataProvider] = None,
    cache: Optional[Cache] = None,
) -> Dict[str, float]:
    """1M/3M/6M percent returns from six months of daily closes; zeros when unavailable."""
    provider, cache = _resolve(provider, cache)
    key = make_key("performance", provider.name, symbol)
    cached = cache.get(key)
    if cached is not None:
        return cached

    try:
        async with rate_limiter.limit(provider.name, symbol=symbol, endpoint="history:1d"):
            df = await asyncio.to_thread(provider.fetch_history, symbol, _history_start("6mo"), None, "1d")
    except ProviderError as exc:
        logger.warning("Performance unavailable for %s: %s", symbol, exc)
        return period_performance(pd.Series(dtype=float))

    performance = period_performance(close_series_from_frame(df))
    cache.put(key, performance, getattr(cache, "ttl_quote", None))
    return performance


async def get_performances(
    symbols: Sequence[str],
    *,
    provider: Optional[MarketDataProvider] = None,
    cache: Optional[Cache] = None,
) -> Dict[str, Dict[str, float]]:
    results: Dict[str, Dict[str, float]] = {}
    for i in range(0, len(symbols), PERFORMANCE_BATCH_SIZE):
        batch = symbols[i:i + PERFORMANCE_BATCH_SIZE]
        performances = await asyncio.gather(
            *(get_performance(symbol, provider=provider, cache=cache) for symbol in batch)
        )
        results.update(zip(batch, performances))
    return results


async def _search(
    query: str,
    provider: MarketDataProvider,
    news_count: int = 0,
) -> Dict[str, List[Dict[str, Any]]]:
    try:
        async with rate_limiter.limit(provider.name):
            return await asyncio.to_thread(provider.search, query, SEARCH_LIMIT * 2, news_count)
    except ProviderError as exc:
        logger.warning("Search failed for %r: %s", query, exc)
        return {"quotes": [], "news": []}


def _display_name(item: Dict[str, Any]) -> str:
    return item.get("shortname") or item.get("longname") or item.get("symbol") or ""


async def search_tickers(
    query: str,
    *,
    provider: Optional[MarketDataProvider] = None,
    cache: Optional[Cache] = None,
) -> List[Dict[str, str]]:
    """Stocks and ETFs matching ``query``, at most ten."""
    provider, cache = _resolve(provider, cache)
    key = make_key("search", provider.name, query)
    cached = cache.get(key)
    if cached is not None:
        return cached

    payload = await _search(query, provider)
    matches = [
        {
            "symbol": item["symbol"],
            "name": _display_name(item),
            "type": item.get("quoteType") or "EQUITY",
        }
        for item in payload["quotes"]
        if item.get("symbol") and item.get("quoteType") in {"EQUITY", "ETF"}
    ][:SEARCH_LIMIT]
    cache.put(key, matches, getattr(cache, "ttl_search", None))
    return matches


def _is_crypto(item: Dict[str, Any]) -> bool:
    quote_type = item.get("quoteType") or ""
    symbol = item.get("symbol") or ""
    if quote_type == "CRYPTOCURRENCY":
        return True
    return symbol.endswith("-USD") and "EQUITY" not in quote_type


async def search_crypto(
    query: str,
    *,
    provider: Optional[MarketDataProvider] = None,
    cache: Optional[Cache] = None,
) -> List[Dict[str, str]]:
    provider, cache = _resolve(provider, cache)
    key = make_key("crypto-search", provider.name, query)
    cached = cache.get(key)
    if cached is not None:
        return cached

    payload = await _search(query, provider)
    matches = [
        {"symbol": item["symbol"], "name": _display_name(item)}
        for item in payload["quotes"]
        if item.get("symbol") and _is_crypto(item)
    ][:SEARCH_LIMIT]
    cache.put(key, matches, getattr(cache, "ttl_search", None))
    return matches


async def get_news(
    symbol: str,
    limit: int = 3,
    *,
    provider: Optional[MarketDataProvider] = None,
) -> List[NewsArticle]:
    provider, _ = _resolve(provider, None)
    payload = await _search(symbol, provider, news_count=max(limit, 1))
    return [NewsArticle.from_yahoo(item) for item in payload["news"][:limit]]


async def get_multiple_news(
    symbols: Sequence[str],
    limit: int = 2,
    *,
    provider: Optional[MarketDataProvider] = None,
) -> Dict[str, List[NewsArticle]]:
    results: Dict[str, List[NewsArticle]] = {}
    for i in range(0, len(symbols), NEWS_BATCH_SIZE):
        batch = symbols[i:i + NEWS_BATCH_SIZE]
        articles = await asyncio.gather(*(get_news(symbol, limit, provider=provider) for symbol in batch))
        results.update(zip(batch, articles))
    return results


def select_headlines(symbol: str, company_name: Optional[str], titles: Sequence[str]) -> List[str]:
    """Pick headlines about ``symbol`` for sentiment analysis.

    Keeps titles mentioning the ticker, the company name or the first word of
    the company name, from the first twenty, capped at ten. When nothing
    matches, the first ten non-empty titles are used instead.
    """
    symbol_upper = symbol.upper()
    name_lower = (company_name or symbol).lower()
    first_word = name_lower.replace(",", " ").split()[0] if name_lower.strip() else name_lower

    selected: List[str] = []
    for title in titles[:HEADLINE_POOL]:
        if not title:
            continue
        title_lower = title.lower()
        if symbol_upper in title.upper() or name_lower in title_lower or first_word in title_lower:
            selected.append(title)
    if selected:
        return selected[:HEADLINE_LIMIT]

    logger.info("No headlines mention %s or %s, using all available", symbol, company_name)
    return [title for title in titles[:HEADLINE_LIMIT] if title]


async def get_news_headlines(
    symbol: str,
    *,
    provider: Optional[MarketDataProvider] = None,
    cache: Optional[Cache] = None,
) -> List[str]:
    provider, cache = _resolve(provider, cache)
    quote = await get_quote(symbol, provider=provider, cache=cache)
    company_name = quote.short_name if quote and quote.short_name else symbol

    payload = await _search(symbol, provider, news_count=HEADLINE_POOL)
    titles = [str(item.get("title") or "") for item in payload["news"]]
    if not titles:
        return []
    return select_headlines(symbol, company_name, titles)
