from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from backend.app.api.deps import symbols_param
from backend.app.schemas import (
    CronResponse,
    LiveSignalResponse,
    RefreshSentimentRequest,
    RefreshSentimentResponse,
    SentimentHistoryEntry,
    SentimentHistoryResponse,
    SentimentOut,
    SignalOut,
    StoredSignal,
    StoredSignals,
    TechnicalsOut,
)
from backend.app.services import signals as signal_service
from backend.app.services.store import signal_store

router = APIRouter(tags=["signals"])


def _stored_entry(doc: Dict[str, Any]) -> StoredSignal:
    signal = doc.get("signal")
    sentiment = doc.get("sentiment")
    return StoredSignal(
        signal=SignalOut(
            action=signal["action"],
            confidence=signal["confidence"],
            rationale=signal.get("rationale") or [],
            sentimentAnalyzed=signal.get("sentiment_analyzed", True),
        )
        if signal
        else None,
        sentiment=SentimentOut.model_validate(sentiment) if sentiment else None,
        updatedAt=doc.get("updatedAt"),
    )


@router.get("/signals", response_model=StoredSignals)
async def stored_signals(symbols: List[str] = Depends(symbols_param)) -> StoredSignals:
    docs = await signal_store.get_signals(symbols)
    return {symbol: _stored_entry(doc) for symbol, doc in docs.items()}


@router.get("/signals/{symbol}", response_model=LiveSignalResponse)
async def live_signal(
    symbol: str,
    sentiment: bool = Query(False, description="Run news sentiment through the LLM"),
) -> LiveSignalResponse:
    ticker = symbol.strip().upper()
    if not ticker:
        raise HTTPException(status_code=400, detail="Symbol is required")
    live = await signal_service.compute_live_signal(ticker, with_sentiment=sentiment, store=signal_store)
    if live is None:
        raise HTTPException(status_code=404, detail=f"No market data for {ticker}")
    return LiveSignalResponse(
        symbol=live.symbol,
        signal=SignalOut.from_result(live.signal),
        technicals=TechnicalsOut.from_technicals(live.technicals),
        sentiment=SentimentOut.from_result(live.sentiment) if live.sentiment else None,
        sentimentAnalyzedAt=live.sentiment_analyzed_at,
        headlinesCount=live.headlines_count,
        asOf=live.as_of,
    )


@router.get("/signals/{symbol}/sentiment-history", response_model=SentimentHistoryResponse)
async def sentiment_history(
    symbol: str,
    limit: int = Query(30, ge=1, le=200),
) -> SentimentHistoryResponse:
    ticker = symbol.strip().upper()
    entries = await signal_store.get_sentiment_history(ticker, limit)
    return SentimentHistoryResponse(
        symbol=ticker,
        entries=[SentimentHistoryEntry.model_validate(entry) for entry in entries],
    )


@router.post("/refresh-sentiment", response_model=RefreshSentimentResponse)
async def refresh_sentiment(payload: RefreshSentimentRequest) -> RefreshSentimentResponse:
    ticker = payload.symbol.strip().upper()
    if not ticker:
        raise HTTPException(status_code=400, detail="Symbol is required")
    result = await signal_service.refresh_sentiment(ticker, store=signal_store)
    signal = result["signal"]
    return RefreshSentimentResponse(
        sentiment=SentimentOut.from_result(result["sentiment"]),
        signal=SignalOut.from_result(signal) if signal is not None else None,
        headlinesAnalyzed=result["headlines_analyzed"],
        storedAt=result["stored_at"],
    )


def _check_cron_secret(secret: Optional[str]) -> None:
    expected = os.getenv("CRON_SECRET")
    if not expected or secret != expected:
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.api_route("/cron/update-signals", methods=["GET", "POST"], response_model=CronResponse)
async def cron_update_signals(secret: Optional[str] = Query(None)) -> CronResponse:
    _check_cron_secret(secret)
    if not signal_store.available:
        raise HTTPException(status_code=500, detail="Signal store not configured")
    payload = await signal_service.update_tracked_signals(store=signal_store)
    return CronResponse.model_validate(payload)
