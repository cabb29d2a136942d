"""
Market-data provider adapters.

A provider answers four questions for the dashboard: the live quote, daily
history, symbol search and recent news. :class:`YFinanceProvider` is the
default; the fetcher only talks to the :class:`MarketDataProvider` interface,
so tests and alternative sources plug in without touching the rest.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pandas as pd
import yfinance as yf

logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """Raised by a provider when the upstream call fails or returns nothing usable."""


@dataclass(frozen=True)
class MarketData:
    price: float
    change_percent: float = 0.0
    change: float = 0.0
    volume: float = 0.0
    high: float = 0.0
    low: float = 0.0
    open: float = 0.0
    previous_close: float = 0.0
    fifty_two_week_high: float = 0.0
    fifty_two_week_low: float = 0.0
    avg_volume: float = 0.0
    short_name: Optional[str] = None

    @classmethod
    def from_yahoo(cls, info: Dict[str, Any]) -> "MarketData":
        """Build from a Yahoo quote payload; missing fields become 0."""

        def _num(*keys: str) -> float:
            for key in keys:
                value = info.get(key)
                if value is not None:
                    try:
                        return float(value)
                    except (TypeError, ValueError):
                        continue
            return 0.0

        return cls(
            price=_num("regularMarketPrice", "currentPrice"),
            change_percent=_num("regularMarketChangePercent"),
            change=_num("regularMarketChange"),
            volume=_num("regularMarketVolume"),
            high=_num("regularMarketDayHigh"),
            low=_num("regularMarketDayLow"),
            open=_num("regularMarketOpen"),
            previous_close=_num("regularMarketPreviousClose", "previousClose"),
            fifty_two_week_high=_num("fiftyTwoWeekHigh"),
            fifty_two_week_low=_num("fiftyTwoWeekLow"),
            avg_volume=_num("averageDailyVolume3Month", "averageDailyVolume10Day"),
            short_name=info.get("shortName") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NewsArticle:
    title: str
    link: str
    publisher: str
    published_at: datetime
    thumbnail: Optional[str] = None

    @classmethod
    def from_yahoo(cls, item: Dict[str, Any]) -> "NewsArticle":
        published_raw = item.get("providerPublishTime")
        if isinstance(published_raw, (int, float)):
            published_at = datetime.fromtimestamp(published_raw, tz=timezone.utc)
        else:
            published_at = datetime.now(timezone.utc)
        resolutions = (item.get("thumbnail") or {}).get("resolutions") or []
        thumbnail = resolutions[0].get("url") if resolutions else None
        return cls(
            title=str(item.get("title") or ""),
            link=str(item.get("link") or ""),
            publisher=str(item.get("publisher") or "Unknown"),
            published_at=published_at,
            thumbnail=thumbnail,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["published_at"] = self.published_at.isoformat()
        return payload


class MarketDataProvider(abc.ABC):
    """Interface every market-data source implements. Calls are blocking."""

    name: str

    @abc.abstractmethod
    def fetch_quote(self, symbol: str) -> MarketData:
        """Current quote for ``symbol``."""

    @abc.abstractmethod
    def fetch_history(
        self,
        symbol: str,
        start: datetime,
        end: Optional[datetime],
        interval: str,
    ) -> pd.DataFrame:
        """OHLCV frame indexed by timestamp."""

    @abc.abstractmethod
    def search(self, query: str, max_results: int = 10, news_count: int = 0) -> Dict[str, List[Dict[str, Any]]]:
        """Raw search payload with ``quotes`` and ``news`` lists."""


class YFinanceProvider(MarketDataProvider):
    """Free Yahoo Finance data through yfinance."""

    name = "yfinance"

    def fetch_quote(self, symbol: str) -> MarketData:
        try:
            info = yf.Ticker(symbol).info or {}
        except Exception as exc:
            raise ProviderError(f"yfinance quote failed for {symbol}: {exc}") from exc
        if not info:
            raise ProviderError(f"yfinance returned no quote for {symbol}")
        return MarketData.from_yahoo(info)

    def fetch_history(
        self,
        symbol: str,
        start: datetime,
        end: Optional[datetime],
        interval: str,
    ) -> pd.DataFrame:
        kwargs: Dict[str, object] = {
            "start": start,
            "interval": interval,
            "auto_adjust": False,
        }
        if end:
            kwargs["end"] = end
        logger.info("Fetching %s history via yfinance (%s)", symbol, interval)
        try:
            df = yf.Ticker(symbol).history(**kwargs)
        except Exception as exc:
            raise ProviderError(f"yfinance history failed for {symbol}: {exc}") from exc
        if df is None:
            return pd.DataFrame()
        return df

    def search(self, query: str, max_results: int = 10, news_count: int = 0) -> Dict[str, List[Dict[str, Any]]]:
        try:
            result = yf.Search(query, max_results=max_results, news_count=news_count)
        except Exception as exc:
            raise ProviderError(f"yfinance search failed for {query!r}: {exc}") from exc
        return {
            "quotes": list(result.quotes or []),
            "news": list(result.news or []),
        }


def default_provider() -> MarketDataProvider:
    return YFinanceProvider()
