"""Signal scoring: technical indicators plus AI sentiment into one recommendation."""

from __future__ import annotations

from typing import List

from .models import NEUTRAL_SENTIMENT, SentimentResult, SignalResult, Technicals
from .rules import classify_action, normalize_score

SENTIMENT_POINTS = 50


def generate_signal(
    technicals: Technicals,
    sentiment: SentimentResult,
    *,
    sentiment_analyzed: bool = True,
) -> SignalResult:
    """Score ``technicals`` and ``sentiment`` into a :class:`SignalResult`.

    Pure and deterministic. Rationale order is fixed: RSI, MACD, SMA50,
    SMA200, cross pattern, sentiment. The SMA20 check moves the score but
    adds no text.
    """
    score = 0.0
    rationale: List[str] = []
    price = technicals.price

    rsi = technicals.rsi
    if rsi < 30:
        score += 15
        rationale.append("RSI Oversold (<30)")
    elif rsi < 40:
        score += 10
        rationale.append("RSI Approaching Oversold")
    elif rsi > 70:
        score -= 15
        rationale.append("RSI Overbought (>70)")
    elif rsi > 60:
        score -= 5
        rationale.append("RSI Elevated")

    if technicals.macd_hist > 0:
        if technicals.macd > technicals.macd_signal:
            score += 15
            rationale.append("MACD Bullish Crossover")
        else:
            score += 8
            rationale.append("Positive MACD Momentum")
    elif technicals.macd < technicals.macd_signal:
        score -= 15
        rationale.append("MACD Bearish Crossover")
    else:
        score -= 8
        rationale.append("Negative MACD Momentum")

    score += 5 if price > technicals.sma20 else -5

    if price > technicals.sma50:
        score += 7
        rationale.append("Above 50-day SMA")
    else:
        score -= 7
        rationale.append("Below 50-day SMA")

    if price > technicals.sma200:
        score += 8
        rationale.append("Above 200-day SMA (Long-term Bullish)")
    else:
        score -= 8
        rationale.append("Below 200-day SMA (Long-term Bearish)")

    if technicals.sma50 > technicals.sma200 and price > technicals.sma50:
        score += 5
        rationale.append("Golden Cross Pattern")
    elif technicals.sma50 < technicals.sma200 and price < technicals.sma50:
        score -= 5
        rationale.append("Death Cross Pattern")

    score += sentiment.score * SENTIMENT_POINTS
    rationale.append(_sentiment_reason(sentiment))

    confidence = normalize_score(score)
    return SignalResult(
        action=classify_action(confidence),
        confidence=confidence,
        rationale=tuple(rationale),
        sentiment_analyzed=sentiment_analyzed,
    )


def generate_quick_signal(technicals: Technicals) -> SignalResult:
    """Signal with neutral sentiment, for when no fresh analysis exists.

    The rationale still ends with "AI: Neutral Sentiment"; ``sentiment_analyzed``
    is False so callers can tell it apart from a real neutral reading.
    """
    return generate_signal(technicals, NEUTRAL_SENTIMENT, sentiment_analyzed=False)


def _sentiment_reason(sentiment: SentimentResult) -> str:
    label = sentiment.label.value
    if sentiment.score > 0.5:
        return f"AI: Strong Positive Sentiment ({label})"
    if sentiment.score > 0.2:
        return f"AI: Positive Sentiment ({label})"
    if sentiment.score < -0.5:
        return f"AI: Strong Negative Sentiment ({label})"
    if sentiment.score < -0.2:
        return f"AI: Negative Sentiment ({label})"
    return "AI: Neutral Sentiment"
