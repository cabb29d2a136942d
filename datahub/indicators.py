"""Technical indicator computation from a daily closing-price series.

All window calculations share one degrade policy. When a series is too short
for a window the helper returns :data:`INSUFFICIENT`, and :func:`_resolve`
picks the value that is reported instead:

- RSI falls back to the neutral 50.
- SMA/EMA fall back to the last close, or 0.0 for an empty series.

Nothing here raises for short input; callers that need to know how much
history went into a snapshot read ``Technicals.data_points``.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Sequence, Union

import numpy as np
import pandas as pd

from engine.models import Technicals

logger = logging.getLogger(__name__)

RSI_PERIOD = 14
NEUTRAL_RSI = 50.0
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9
MACD_SIGNAL_RATIO = 0.9
PERFORMANCE_KEYS = ("perf1M", "perf3M", "perf6M")

PriceInput = Union[Sequence[float], np.ndarray, pd.Series]


class InsufficientData:
    """Marker for a window that needs more points than the series has."""

    __slots__ = ("required", "available")

    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available

    def __repr__(self) -> str:
        return f"InsufficientData(required={self.required}, available={self.available})"


class MacdSignalMode(str, Enum):
    APPROXIMATE = "approximate"
    EMA = "ema"


def _as_array(prices: PriceInput) -> np.ndarray:
    if isinstance(prices, pd.Series):
        prices = prices.dropna().to_numpy()
    return np.asarray(prices, dtype=float)


def _last_or_zero(values: np.ndarray) -> float:
    return float(values[-1]) if values.size else 0.0


def _resolve(value: Union[float, InsufficientData], fallback: float, name: str) -> float:
    if isinstance(value, InsufficientData):
        logger.debug("%s degraded to %s: %r", name, fallback, value)
        return fallback
    return value


def _rsi_window(values: np.ndarray, period: int) -> Union[float, InsufficientData]:
    if values.size < period + 1:
        return InsufficientData(period + 1, values.size)
    deltas = np.diff(values[-(period + 1):])
    gains = float(deltas[deltas > 0].sum())
    losses = float(-deltas[deltas < 0].sum())
    avg_gain = gains / period
    avg_loss = losses / period
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def _sma_window(values: np.ndarray, period: int) -> Union[float, InsufficientData]:
    if values.size < period:
        return InsufficientData(period, values.size)
    return float(values[-period:].mean())


def _ema_series(values: np.ndarray, period: int) -> List[float]:
    """EMA values from index ``period - 1`` onwards, seeded with an SMA."""
    if values.size < period:
        return []
    multiplier = 2.0 / (period + 1)
    ema = float(values[:period].mean())
    series = [ema]
    for value in values[period:]:
        ema = (float(value) - ema) * multiplier + ema
        series.append(ema)
    return series


def _ema_window(values: np.ndarray, period: int) -> Union[float, InsufficientData]:
    series = _ema_series(values, period)
    if not series:
        return InsufficientData(period, values.size)
    return series[-1]


def calculate_rsi(prices: PriceInput, period: int = RSI_PERIOD) -> float:
    """RSI over the most recent ``period`` deltas (simple averages, no smoothing).

    Returns 50 when fewer than ``period + 1`` prices exist and 100 when the
    window has no losses at all.
    """
    if period <= 0:
        raise ValueError("period must be > 0")
    return _resolve(_rsi_window(_as_array(prices), period), NEUTRAL_RSI, f"RSI({period})")


def calculate_sma(prices: PriceInput, period: int) -> float:
    """Mean of the last ``period`` closes; last close (or 0.0) when too short."""
    if period <= 0:
        raise ValueError("period must be > 0")
    values = _as_array(prices)
    return _resolve(_sma_window(values, period), _last_or_zero(values), f"SMA({period})")


def calculate_ema(prices: PriceInput, period: int) -> float:
    if period <= 0:
        raise ValueError("period must be > 0")
    values = _as_array(prices)
    return _resolve(_ema_window(values, period), _last_or_zero(values), f"EMA({period})")


def calculate_macd(
    prices: PriceInput,
    mode: MacdSignalMode = MacdSignalMode.APPROXIMATE,
) -> tuple[float, float, float]:
    """Return ``(macd, signal, histogram)``.

    ``APPROXIMATE`` keeps the historical ``signal = macd * 0.9`` line, which
    makes the histogram always carry the sign of the MACD itself. ``EMA``
    builds the full MACD series and applies a real 9-period EMA to it; with
    fewer than 26 + 9 - 1 closes the signal degrades to the MACD value and
    the histogram to 0.
    """
    values = _as_array(prices)
    macd = calculate_ema(values, MACD_FAST) - calculate_ema(values, MACD_SLOW)

    if MacdSignalMode(mode) is MacdSignalMode.APPROXIMATE:
        signal = macd * MACD_SIGNAL_RATIO
        return macd, signal, macd - signal

    fast = _ema_series(values, MACD_FAST)
    slow = _ema_series(values, MACD_SLOW)
    offset = MACD_SLOW - MACD_FAST
    macd_series = np.asarray(
        [fast[i + offset] - slow_value for i, slow_value in enumerate(slow)],
        dtype=float,
    )
    signal = _resolve(_ema_window(macd_series, MACD_SIGNAL), macd, "MACD signal EMA(9)")
    return macd, signal, macd - signal


def calculate_technicals(
    closing_prices: PriceInput,
    current_price: float,
    *,
    macd_mode: MacdSignalMode = MacdSignalMode.APPROXIMATE,
) -> Technicals:
    """Build a :class:`Technicals` snapshot from closes (oldest first) and the live price."""
    values = _as_array(closing_prices)
    macd, signal, hist = calculate_macd(values, mode=macd_mode)
    return Technicals(
        rsi=calculate_rsi(values, RSI_PERIOD),
        macd=macd,
        macd_signal=signal,
        macd_hist=hist,
        sma20=calculate_sma(values, 20),
        sma50=calculate_sma(values, 50),
        sma200=calculate_sma(values, 200),
        price=float(current_price),
        data_points=int(values.size),
    )


def close_series_from_frame(df: pd.DataFrame) -> pd.Series:
    """Dated closing prices of an OHLCV frame, oldest first, nulls dropped."""
    if df is None or df.empty or "Close" not in df.columns:
        return pd.Series(dtype=float)
    return df.sort_index()["Close"].dropna().astype(float)


def closes_from_frame(df: pd.DataFrame) -> List[float]:
    """Closing prices of an OHLCV frame, oldest first, nulls dropped."""
    return [float(value) for value in close_series_from_frame(df).tolist()]


def _percent_change(current: float, base: float) -> float:
    return (current - base) / base * 100.0 if base > 0 else 0.0


def period_performance(closes: pd.Series) -> Dict[str, float]:
    """1, 3 and 6 month returns in percent from a dated close series.

    The 1M/3M base is the close nearest to that many calendar months before
    the last close; the 6M base is the first close. Fewer than two points
    give zeros.
    """
    if closes is None or len(closes) < 2:
        return dict.fromkeys(PERFORMANCE_KEYS, 0.0)
    closes = closes[~closes.index.duplicated(keep="last")].sort_index()
    current = float(closes.iloc[-1])
    last = closes.index[-1]

    def _nearest(months: int) -> float:
        target = last - pd.DateOffset(months=months)
        position = closes.index.get_indexer([target], method="nearest")[0]
        return float(closes.iloc[position])

    return {
        "perf1M": _percent_change(current, _nearest(1)),
        "perf3M": _percent_change(current, _nearest(3)),
        "perf6M": _percent_change(current, float(closes.iloc[0])),
    }
