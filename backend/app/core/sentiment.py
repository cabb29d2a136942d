from __future__ import annotations

import asyncio
import json
import logging
import math
import re
from typing import Any, Dict, Mapping, Optional, Sequence

from engine.models import SentimentLabel, SentimentResult
from infra.rate_limit import rate_limiter
from llm import LLMClient, LLMError, LLMNotConfigured

logger = logging.getLogger(__name__)

NO_HEADLINES_RATIONALE = "No recent news headlines available for analysis."
NOT_CONFIGURED_RATIONALE = "OpenAI API not configured."
FAILED_RATIONALE = "Unable to analyze sentiment at this time."
DEFAULT_RATIONALE = "Analysis completed."

BATCH_SIZE = 5
BATCH_DELAY_SECONDS = 1.0

FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)


def _neutral(rationale: str) -> SentimentResult:
    return SentimentResult(score=0.0, label=SentimentLabel.NEUTRAL, rationale=rationale)


def _extract_json(text: str) -> Dict[str, Any]:
    candidate = FENCE_PATTERN.sub("", (text or "").strip())
    match = OBJECT_PATTERN.search(candidate)
    if not match:
        raise ValueError("no JSON object in model reply")
    payload = json.loads(match.group(0))
    if not isinstance(payload, dict):
        raise ValueError("model reply is not a JSON object")
    return payload


def parse_sentiment_reply(text: str) -> SentimentResult:
    """Turn the model's JSON reply into a result; raises ValueError when unparseable."""
    payload = _extract_json(text)
    raw_score = payload.get("score", 0.0)
    try:
        score = float(raw_score)
    except (TypeError, ValueError):
        score = 0.0
    if not math.isfinite(score):
        raise ValueError(f"non-finite sentiment score: {raw_score!r}")
    score = max(-1.0, min(1.0, score))
    rationale = payload.get("rationale")
    if not isinstance(rationale, str) or not rationale.strip():
        rationale = DEFAULT_RATIONALE
    return SentimentResult(
        score=score,
        label=SentimentLabel.parse(payload.get("label")),
        rationale=rationale.strip(),
    )


async def analyze_sentiment(
    symbol: str,
    headlines: Sequence[str],
    client: Optional[LLMClient] = None,
) -> SentimentResult:
    """Score news sentiment for ``symbol`` in [-1, 1].

    Never raises: missing headlines, a missing API key or a failed/garbled
    model reply all come back as a neutral result with an explanatory
    rationale.
    """
    headlines = [headline for headline in headlines if headline]
    if not headlines:
        return _neutral(NO_HEADLINES_RATIONALE)

    if client is None:
        try:
            client = LLMClient.from_env()
        except LLMNotConfigured as exc:
            logger.info("Sentiment model not configured: %s", exc)
            return _neutral(NOT_CONFIGURED_RATIONALE)

    try:
        async with rate_limiter.limit("llm", symbol=symbol, endpoint="sentiment"):
            raw_text = await asyncio.to_thread(client.analyze_headlines, symbol, headlines)
        return parse_sentiment_reply(raw_text)
    except (LLMError, ValueError) as exc:
        logger.warning("Sentiment analysis failed for %s: %s", symbol, exc)
        return _neutral(FAILED_RATIONALE)


async def analyze_sentiment_batch(
    headlines_by_symbol: Mapping[str, Sequence[str]],
    client: Optional[LLMClient] = None,
    delay: float = BATCH_DELAY_SECONDS,
) -> Dict[str, SentimentResult]:
    symbols = list(headlines_by_symbol)
    results: Dict[str, SentimentResult] = {}
    for i in range(0, len(symbols), BATCH_SIZE):
        batch = symbols[i:i + BATCH_SIZE]
        outcomes = await asyncio.gather(
            *(analyze_sentiment(symbol, headlines_by_symbol[symbol], client) for symbol in batch)
        )
        results.update(zip(batch, outcomes))
        if i + BATCH_SIZE < len(symbols):
            await asyncio.sleep(delay)
    return results
