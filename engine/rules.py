"""Turn a raw additive score into a bounded confidence and a trading action."""

from __future__ import annotations

import math

from .models import SignalAction

RAW_SCORE_FLOOR = -100.0
STRONG_BUY_THRESHOLD = 75
ACCUMULATE_THRESHOLD = 60
EXIT_THRESHOLD = 25


def normalize_score(raw_score: float) -> int:
    """Map the roughly [-100, 100] raw score onto an integer in [0, 100].

    Halves round up (92.5 -> 93), not to even.
    """
    scaled = (raw_score - RAW_SCORE_FLOOR) / 2
    clamped = max(0.0, min(100.0, scaled))
    return int(math.floor(clamped + 0.5))


def classify_action(confidence: int) -> SignalAction:
    if confidence >= STRONG_BUY_THRESHOLD:
        return SignalAction.STRONG_BUY
    if confidence >= ACCUMULATE_THRESHOLD:
        return SignalAction.ACCUMULATE
    if confidence <= EXIT_THRESHOLD:
        return SignalAction.EXIT
    return SignalAction.HOLD
