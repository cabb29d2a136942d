"""Signal engine components for Apex Signals."""

from .analyzer import generate_quick_signal, generate_signal  # noqa: F401
from .models import (  # noqa: F401
    NEUTRAL_SENTIMENT,
    SentimentLabel,
    SentimentResult,
    SignalAction,
    SignalResult,
    Technicals,
)
from .report import (  # noqa: F401
    ACTION_LABELS,
    SignalColor,
    get_confidence_level,
    get_signal_color,
    render,
)
from .rules import classify_action, normalize_score  # noqa: F401

__all__ = [
    "ACTION_LABELS",
    "NEUTRAL_SENTIMENT",
    "SentimentLabel",
    "SentimentResult",
    "SignalAction",
    "SignalColor",
    "SignalResult",
    "Technicals",
    "classify_action",
    "generate_quick_signal",
    "generate_signal",
    "get_confidence_level",
    "get_signal_color",
    "normalize_score",
    "render",
]
