from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from datahub.providers import MarketData, NewsArticle


class MarketDataOut(BaseModel):
    price: float
    change: float = 0.0
    changePercent: float = 0.0
    volume: float = 0.0
    high: float = 0.0
    low: float = 0.0
    open: float = 0.0
    previousClose: float = 0.0
    fiftyTwoWeekHigh: float = 0.0
    fiftyTwoWeekLow: float = 0.0
    avgVolume: float = 0.0
    shortName: Optional[str] = None

    @classmethod
    def from_market_data(cls, quote: MarketData) -> "MarketDataOut":
        return cls(
            price=quote.price,
            change=quote.change,
            changePercent=quote.change_percent,
            volume=quote.volume,
            high=quote.high,
            low=quote.low,
            open=quote.open,
            previousClose=quote.previous_close,
            fiftyTwoWeekHigh=quote.fifty_two_week_high,
            fiftyTwoWeekLow=quote.fifty_two_week_low,
            avgVolume=quote.avg_volume,
            shortName=quote.short_name,
        )


class SearchResult(BaseModel):
    symbol: str
    name: str
    type: Optional[str] = Field(None, description="EQUITY or ETF; absent for crypto")


class NewsItem(BaseModel):
    title: str
    link: str
    publisher: str
    publishedAt: datetime
    thumbnail: Optional[str] = None

    @classmethod
    def from_article(cls, article: NewsArticle) -> "NewsItem":
        return cls(
            title=article.title,
            link=article.link,
            publisher=article.publisher,
            publishedAt=article.published_at,
            thumbnail=article.thumbnail,
        )


class PerformanceOut(BaseModel):
    perf1M: float = 0.0
    perf3M: float = 0.0
    perf6M: float = 0.0
