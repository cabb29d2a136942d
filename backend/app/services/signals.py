"""
Signal orchestration: quote, history, technicals, headlines, sentiment, signal.

``update_tracked_signals`` is the scheduled/cron job that refreshes every
tracked ticker into the signal store. ``compute_live_signal`` answers on
demand without persisting anything.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from pymongo.errors import PyMongoError

from backend.app.core.sentiment import analyze_sentiment
from backend.app.services.store import SignalStore, signal_store
from datahub.cache import Cache
from datahub.fetcher import get_history_closes, get_news_headlines, get_quote
from datahub.indicators import MacdSignalMode, calculate_technicals
from datahub.providers import MarketData, MarketDataProvider
from engine.analyzer import generate_quick_signal, generate_signal
from engine.models import SentimentResult, SignalResult, Technicals
from llm import LLMClient

logger = logging.getLogger(__name__)

DEFAULT_TRACKED_SYMBOLS: Dict[str, str] = {
    "AAPL": "Apple Inc.",
    "GOOGL": "Alphabet Inc.",
    "MSFT": "Microsoft Corporation",
    "NVDA": "NVIDIA Corporation",
    "TSLA": "Tesla, Inc.",
    "AMZN": "Amazon.com, Inc.",
    "META": "Meta Platforms, Inc.",
    "AMD": "Advanced Micro Devices",
}
MIN_HISTORY_POINTS = 50
SIGNAL_HISTORY_PERIOD = "3mo"
SYMBOL_DELAY_SECONDS = 0.5


def tracked_symbols() -> List[str]:
    raw = os.getenv("TRACKED_SYMBOLS")
    if not raw:
        return list(DEFAULT_TRACKED_SYMBOLS)
    symbols: List[str] = []
    for item in raw.split(","):
        norm = item.strip().upper()
        if norm and norm not in symbols:
            symbols.append(norm)
    return symbols


def macd_mode_from_env() -> MacdSignalMode:
    raw = (os.getenv("MACD_SIGNAL_MODE") or MacdSignalMode.APPROXIMATE.value).strip().lower()
    try:
        return MacdSignalMode(raw)
    except ValueError:
        logger.warning("Unknown MACD_SIGNAL_MODE %r, using approximate", raw)
        return MacdSignalMode.APPROXIMATE


@dataclass
class LiveSignal:
    symbol: str
    quote: MarketData
    technicals: Technicals
    signal: SignalResult
    sentiment: Optional[SentimentResult] = None
    headlines: List[str] = field(default_factory=list)
    as_of: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    sentiment_analyzed_at: Optional[datetime] = None
    headlines_count: Optional[int] = None


@dataclass
class RefreshOutcome:
    symbol: str
    status: str
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"symbol": self.symbol, "status": self.status}
        if self.error:
            payload["error"] = self.error
        return payload


async def compute_live_signal(
    symbol: str,
    with_sentiment: bool = False,
    *,
    store: SignalStore = signal_store,
    provider: Optional[MarketDataProvider] = None,
    cache: Optional[Cache] = None,
    client: Optional[LLMClient] = None,
) -> Optional[LiveSignal]:
    """Signal for ``symbol`` right now, or ``None`` when there is no quote or history.

    With ``with_sentiment`` the headlines are analyzed on the spot. Otherwise
    the latest stored analysis is scored when the store has one, and the
    quick signal is used when it does not. Nothing is persisted.
    """
    quote = await get_quote(symbol, provider=provider, cache=cache)
    if quote is None:
        return None
    closes = await get_history_closes(symbol, SIGNAL_HISTORY_PERIOD, provider=provider, cache=cache)
    if not closes:
        return None

    technicals = calculate_technicals(closes, quote.price, macd_mode=macd_mode_from_env())
    if not with_sentiment:
        stored = await store.get_sentiment(symbol)
        if not stored:
            return LiveSignal(symbol, quote, technicals, generate_quick_signal(technicals))
        sentiment = SentimentResult.from_dict(stored)
        return LiveSignal(
            symbol,
            quote,
            technicals,
            generate_signal(technicals, sentiment),
            sentiment=sentiment,
            sentiment_analyzed_at=stored.get("analyzedAt"),
            headlines_count=stored.get("headlinesCount"),
        )

    headlines = await get_news_headlines(symbol, provider=provider, cache=cache)
    sentiment = await analyze_sentiment(symbol, headlines, client)
    return LiveSignal(
        symbol,
        quote,
        technicals,
        generate_signal(technicals, sentiment),
        sentiment=sentiment,
        headlines=headlines,
        headlines_count=len(headlines),
    )


def _ticker_document(symbol: str, quote: MarketData, technicals: Technicals, live: LiveSignal) -> Dict[str, Any]:
    return {
        "name": DEFAULT_TRACKED_SYMBOLS.get(symbol) or quote.short_name or symbol,
        "marketData": {
            "price": quote.price,
            "changePercent": quote.change_percent,
            "change": quote.change,
            "volume": quote.volume,
            "rsi14": technicals.rsi,
            "macdHist": technicals.macd_hist,
        },
        "technicals": technicals.to_dict(),
        "sentiment": live.sentiment.to_dict() if live.sentiment else None,
        "signal": live.signal.to_dict(),
    }


async def refresh_symbol(
    symbol: str,
    *,
    store: SignalStore = signal_store,
    provider: Optional[MarketDataProvider] = None,
    cache: Optional[Cache] = None,
    client: Optional[LLMClient] = None,
) -> RefreshOutcome:
    """Recompute and persist one ticker; skipped when data is missing or too short."""
    quote = await get_quote(symbol, provider=provider, cache=cache)
    if quote is None:
        return RefreshOutcome(symbol, "skipped", "No quote data")

    closes = await get_history_closes(symbol, SIGNAL_HISTORY_PERIOD, provider=provider, cache=cache)
    if len(closes) < MIN_HISTORY_POINTS:
        return RefreshOutcome(symbol, "skipped", "Insufficient historical data")

    technicals = calculate_technicals(closes, quote.price, macd_mode=macd_mode_from_env())
    headlines = await get_news_headlines(symbol, provider=provider, cache=cache)
    sentiment = await analyze_sentiment(symbol, headlines, client)
    live = LiveSignal(
        symbol,
        quote,
        technicals,
        generate_signal(technicals, sentiment),
        sentiment=sentiment,
        headlines=headlines,
    )

    await store.save_ticker(symbol, _ticker_document(symbol, quote, technicals, live))
    await store.store_sentiment(symbol, sentiment, headlines)
    logger.info("Refreshed %s: %s (%d)", symbol, live.signal.action.value, live.signal.confidence)
    return RefreshOutcome(symbol, "success")


async def update_tracked_signals(
    symbols: Optional[Sequence[str]] = None,
    *,
    store: SignalStore = signal_store,
    provider: Optional[MarketDataProvider] = None,
    cache: Optional[Cache] = None,
    client: Optional[LLMClient] = None,
    delay: float = SYMBOL_DELAY_SECONDS,
) -> Dict[str, Any]:
    """Refresh every tracked symbol in turn and summarise the outcomes."""
    symbols = list(symbols) if symbols is not None else tracked_symbols()
    outcomes: List[RefreshOutcome] = []

    for index, symbol in enumerate(symbols):
        try:
            outcome = await refresh_symbol(symbol, store=store, provider=provider, cache=cache, client=client)
        except Exception as exc:  # pragma: no cover - unexpected failure per symbol
            logger.exception("Error processing %s", symbol)
            outcome = RefreshOutcome(symbol, "error", str(exc) or exc.__class__.__name__)
        outcomes.append(outcome)
        if index < len(symbols) - 1 and delay > 0:
            await asyncio.sleep(delay)

    summary = {
        "total": len(outcomes),
        "success": sum(1 for item in outcomes if item.status == "success"),
        "skipped": sum(1 for item in outcomes if item.status == "skipped"),
        "errors": sum(1 for item in outcomes if item.status == "error"),
    }
    logger.info(
        "Signal update finished: %d ok, %d skipped, %d errors",
        summary["success"],
        summary["skipped"],
        summary["errors"],
    )
    return {
        "success": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "results": [item.to_dict() for item in outcomes],
        "summary": summary,
    }


async def refresh_sentiment(
    symbol: str,
    *,
    store: SignalStore = signal_store,
    provider: Optional[MarketDataProvider] = None,
    cache: Optional[Cache] = None,
    client: Optional[LLMClient] = None,
) -> Dict[str, Any]:
    """Re-run sentiment for one symbol, store it, and regenerate the signal when data allows."""
    headlines = await get_news_headlines(symbol, provider=provider, cache=cache)
    sentiment = await analyze_sentiment(symbol, headlines, client)

    try:
        await store.store_sentiment(symbol, sentiment, headlines)
    except PyMongoError as exc:
        logger.warning("Failed to store sentiment for %s: %s", symbol, exc)

    quote, closes = await asyncio.gather(
        get_quote(symbol, provider=provider, cache=cache),
        get_history_closes(symbol, SIGNAL_HISTORY_PERIOD, provider=provider, cache=cache),
    )
    signal: Optional[SignalResult] = None
    if quote is not None and closes:
        technicals = calculate_technicals(closes, quote.price, macd_mode=macd_mode_from_env())
        signal = generate_signal(technicals, sentiment)

    return {
        "sentiment": sentiment,
        "signal": signal,
        "headlines_analyzed": len(headlines),
        "stored_at": datetime.now(timezone.utc),
    }
