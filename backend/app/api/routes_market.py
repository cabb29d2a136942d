from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from backend.app.api.deps import symbols_param
from backend.app.schemas import MarketDataOut, NewsItem, PerformanceOut, SearchResult
from datahub import fetcher
from datahub.fetcher import DEFAULT_SPARKLINE_PERIOD, SPARKLINE_PERIODS

router = APIRouter(tags=["market"])


def _search_type(item: Dict[str, str]) -> str:
    if item.get("type") == "ETF":
        return "etf"
    if item["symbol"].startswith("^"):
        return "index"
    return "stock"


@router.get("/market-data", response_model=Dict[str, MarketDataOut])
async def market_data(symbols: List[str] = Depends(symbols_param)) -> Dict[str, MarketDataOut]:
    quotes = await fetcher.get_quotes(symbols)
    return {symbol: MarketDataOut.from_market_data(quote) for symbol, quote in quotes.items()}


@router.get("/sparkline", response_model=Dict[str, List[float]])
async def sparkline(
    symbols: List[str] = Depends(symbols_param),
    period: str = Query(DEFAULT_SPARKLINE_PERIOD),
) -> Dict[str, List[float]]:
    if period not in SPARKLINE_PERIODS:
        period = DEFAULT_SPARKLINE_PERIOD
    return await fetcher.get_sparklines(symbols, period)


@router.get("/performance", response_model=Dict[str, PerformanceOut])
async def performance(symbols: List[str] = Depends(symbols_param)) -> Dict[str, PerformanceOut]:
    performances = await fetcher.get_performances(symbols)
    return {symbol: PerformanceOut(**values) for symbol, values in performances.items()}


@router.get("/search", response_model=List[SearchResult])
async def search(q: Optional[str] = Query(None)) -> List[SearchResult]:
    if not q:
        return []
    matches = await fetcher.search_tickers(q)
    return [SearchResult(symbol=item["symbol"], name=item["name"], type=_search_type(item)) for item in matches]


@router.get("/crypto-search", response_model=List[SearchResult])
async def crypto_search(q: Optional[str] = Query(None)) -> List[SearchResult]:
    if not q:
        raise HTTPException(status_code=400, detail="Missing query parameter")
    matches = await fetcher.search_crypto(q)
    return [SearchResult(symbol=item["symbol"], name=item["name"]) for item in matches]


@router.get("/news", response_model=Dict[str, List[NewsItem]])
async def news(
    symbols: List[str] = Depends(symbols_param),
    limit: int = Query(2, ge=1, le=20),
) -> Dict[str, List[NewsItem]]:
    articles = await fetcher.get_multiple_news(symbols, limit)
    return {symbol: [NewsItem.from_article(item) for item in items] for symbol, items in articles.items()}
