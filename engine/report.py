"""Presentation helpers: badge colours, confidence buckets and text rendering."""

from __future__ import annotations

from typing import Dict, List, NamedTuple

from .models import SignalAction, SignalResult


class SignalColor(NamedTuple):
    bg: str
    text: str
    border: str


SIGNAL_COLORS: Dict[SignalAction, SignalColor] = {
    SignalAction.STRONG_BUY: SignalColor("bg-green-500/20", "text-green-400", "border-green-500/50"),
    SignalAction.ACCUMULATE: SignalColor("bg-emerald-500/20", "text-emerald-400", "border-emerald-500/50"),
    SignalAction.HOLD: SignalColor("bg-yellow-500/20", "text-yellow-400", "border-yellow-500/50"),
    SignalAction.EXIT: SignalColor("bg-red-500/20", "text-red-400", "border-red-500/50"),
}

ACTION_LABELS: Dict[SignalAction, str] = {
    SignalAction.STRONG_BUY: "Strong Buy",
    SignalAction.ACCUMULATE: "Accumulate",
    SignalAction.HOLD: "Hold",
    SignalAction.EXIT: "Exit",
}


def get_signal_color(action: SignalAction) -> SignalColor:
    # No fallback: an action outside the table is a programming error.
    return SIGNAL_COLORS[SignalAction(action)]


def get_confidence_level(confidence: float) -> str:
    if confidence >= 80:
        return "Very High"
    if confidence >= 65:
        return "High"
    if confidence >= 50:
        return "Moderate"
    if confidence >= 35:
        return "Low"
    return "Very Low"


def render(symbol: str, signal: SignalResult) -> str:
    """Plain-text summary of a signal, used by the scheduler log and CLI."""
    lines: List[str] = [
        f"{symbol} | {ACTION_LABELS[signal.action]} | confidence {signal.confidence}% "
        f"({get_confidence_level(signal.confidence)})"
    ]
    for reason in signal.rationale:
        lines.append(f"  - {reason}")
    if not signal.sentiment_analyzed:
        lines.append("  (sentiment not analyzed)")
    return "\n".join(lines)


def format_percent(value: float) -> str:
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.2f}%"


def format_volume(value: float) -> str:
    if value >= 1e9:
        return f"{value / 1e9:.2f}B"
    if value >= 1e6:
        return f"{value / 1e6:.2f}M"
    if value >= 1e3:
        return f"{value / 1e3:.2f}K"
    return f"{value:g}"


def format_crypto_currency(value: float) -> str:
    """Dollar amount with more decimals as the price drops below a dollar."""
    if value == 0:
        return "$0.00"
    if value >= 1:
        decimals = 2
    elif value >= 0.01:
        decimals = 4
    elif value >= 0.0001:
        decimals = 6
    else:
        decimals = 8
    return f"${value:,.{decimals}f}"
