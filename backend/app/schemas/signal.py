from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from engine.models import SentimentResult, SignalResult, Technicals


class TechnicalsOut(BaseModel):
    rsi: float
    macd: float
    macdSignal: float
    macdHist: float
    sma20: float
    sma50: float
    sma200: float
    price: float
    dataPoints: int
    dataSufficiency: Literal["full", "partial", "insufficient"]

    @classmethod
    def from_technicals(cls, technicals: Technicals) -> "TechnicalsOut":
        return cls(
            rsi=technicals.rsi,
            macd=technicals.macd,
            macdSignal=technicals.macd_signal,
            macdHist=technicals.macd_hist,
            sma20=technicals.sma20,
            sma50=technicals.sma50,
            sma200=technicals.sma200,
            price=technicals.price,
            dataPoints=technicals.data_points,
            dataSufficiency=technicals.data_sufficiency,
        )


class SentimentOut(BaseModel):
    score: float = Field(..., ge=-1.0, le=1.0)
    label: Literal["Bullish", "Bearish", "Neutral"]
    rationale: str

    @classmethod
    def from_result(cls, result: SentimentResult) -> "SentimentOut":
        return cls(score=result.score, label=result.label.value, rationale=result.rationale)


class SignalOut(BaseModel):
    action: Literal["STRONG_BUY", "ACCUMULATE", "HOLD", "EXIT"]
    confidence: int = Field(..., ge=0, le=100)
    rationale: List[str] = Field(default_factory=list)
    sentimentAnalyzed: bool = True

    @classmethod
    def from_result(cls, result: SignalResult) -> "SignalOut":
        return cls(
            action=result.action.value,
            confidence=result.confidence,
            rationale=list(result.rationale),
            sentimentAnalyzed=result.sentiment_analyzed,
        )


class LiveSignalResponse(BaseModel):
    symbol: str
    signal: SignalOut
    technicals: TechnicalsOut
    sentiment: Optional[SentimentOut] = None
    sentimentAnalyzedAt: Optional[datetime] = None
    headlinesCount: Optional[int] = None
    asOf: datetime


class StoredSignal(BaseModel):
    signal: Optional[SignalOut] = None
    sentiment: Optional[SentimentOut] = None
    updatedAt: Optional[datetime] = None


StoredSignals = Dict[str, StoredSignal]


class SentimentHistoryEntry(SentimentOut):
    analyzedAt: datetime
    headlinesCount: int = 0


class SentimentHistoryResponse(BaseModel):
    symbol: str
    entries: List[SentimentHistoryEntry] = Field(default_factory=list)


class RefreshSentimentRequest(BaseModel):
    symbol: str = Field(..., description="Ticker symbol, e.g. AAPL")


class RefreshSentimentResponse(BaseModel):
    sentiment: SentimentOut
    signal: Optional[SignalOut] = None
    headlinesAnalyzed: int
    storedAt: datetime


class CronSymbolResult(BaseModel):
    symbol: str
    status: Literal["success", "skipped", "error"]
    error: Optional[str] = None


class CronSummary(BaseModel):
    total: int
    success: int
    skipped: int
    errors: int


class CronResponse(BaseModel):
    success: bool
    timestamp: datetime
    results: List[CronSymbolResult] = Field(default_factory=list)
    summary: CronSummary
