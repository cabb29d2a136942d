"""Value types shared by the indicator calculator and the signal engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Tuple

FULL_HISTORY_POINTS = 200
MIN_MACD_POINTS = 26


class SignalAction(str, Enum):
    STRONG_BUY = "STRONG_BUY"
    ACCUMULATE = "ACCUMULATE"
    HOLD = "HOLD"
    EXIT = "EXIT"


class SentimentLabel(str, Enum):
    BULLISH = "Bullish"
    BEARISH = "Bearish"
    NEUTRAL = "Neutral"

    @classmethod
    def parse(cls, raw: object) -> "SentimentLabel":
        """Case-insensitive lookup; anything unrecognised is Neutral."""
        normalized = str(raw or "").strip().lower()
        if normalized == "bullish":
            return cls.BULLISH
        if normalized == "bearish":
            return cls.BEARISH
        return cls.NEUTRAL


@dataclass(frozen=True)
class Technicals:
    """Indicator snapshot for one symbol and one history window."""

    rsi: float
    macd: float
    macd_signal: float
    macd_hist: float
    sma20: float
    sma50: float
    sma200: float
    price: float
    data_points: int = FULL_HISTORY_POINTS

    @property
    def data_sufficiency(self) -> str:
        if self.data_points >= FULL_HISTORY_POINTS:
            return "full"
        if self.data_points >= MIN_MACD_POINTS:
            return "partial"
        return "insufficient"

    def to_dict(self) -> dict:
        return {
            "rsi": self.rsi,
            "macd": self.macd,
            "macd_signal": self.macd_signal,
            "macd_hist": self.macd_hist,
            "sma20": self.sma20,
            "sma50": self.sma50,
            "sma200": self.sma200,
            "price": self.price,
            "data_points": self.data_points,
            "data_sufficiency": self.data_sufficiency,
        }


@dataclass(frozen=True)
class SentimentResult:
    score: float
    label: SentimentLabel
    rationale: str

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "label": self.label.value,
            "rationale": self.rationale,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SentimentResult":
        """Rebuild a stored analysis; a non-finite score reads as 0."""
        score = float(data.get("score") or 0.0)
        if not math.isfinite(score):
            score = 0.0
        score = max(-1.0, min(1.0, score))
        return cls(
            score=score,
            label=SentimentLabel.parse(data.get("label")),
            rationale=str(data.get("rationale") or ""),
        )


NEUTRAL_SENTIMENT = SentimentResult(
    score=0.0,
    label=SentimentLabel.NEUTRAL,
    rationale="Sentiment not analyzed",
)


@dataclass(frozen=True)
class SignalResult:
    action: SignalAction
    confidence: int
    rationale: Tuple[str, ...] = field(default_factory=tuple)
    sentiment_analyzed: bool = True

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "confidence": self.confidence,
            "rationale": list(self.rationale),
            "sentiment_analyzed": self.sentiment_analyzed,
        }
