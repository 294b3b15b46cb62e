"""Technical indicators for signal generation.

All functions are pure: the same input always gives the same output.
Prices come in as Decimal, are computed in NumPy float64 and go back out
as Decimal.

Every series is aligned to the tail of the input and carries no padding:
EMA(12) over 100 closes has 89 points. A series that cannot be computed
yet is returned empty, which callers treat as "not ready".
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class MacdPoint:
    """One MACD sample."""

    macd: Decimal
    signal: Decimal
    histogram: Decimal


@dataclass(frozen=True)
class BollingerPoint:
    """One Bollinger Bands sample."""

    upper: Decimal
    middle: Decimal
    lower: Decimal


@dataclass(frozen=True)
class RangeBox:
    """Trailing high/low envelope used as a breakout reference."""

    high: Decimal
    low: Decimal

    @property
    def size(self) -> Decimal:
        return self.high - self.low

    @property
    def is_valid(self) -> bool:
        """A box with non-finite bounds or no height must not drive decisions."""
        if not (self.high.is_finite() and self.low.is_finite()):
            return False
        return self.size > 0

    def contains(self, price: Decimal) -> bool:
        """Inclusive on both bounds."""
        return self.low <= price <= self.high


# =============================================================================
# Conversion helpers
# =============================================================================

def _to_array(values: Sequence[Decimal]) -> np.ndarray:
    return np.array([float(v) for v in values], dtype=np.float64)


def _to_decimal(value: float) -> Decimal:
    return Decimal(str(float(value)))


def _to_decimals(arr: np.ndarray) -> list[Decimal]:
    return [_to_decimal(v) for v in arr]


def _check_period(period: int) -> None:
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")


# =============================================================================
# Float kernels
# =============================================================================

def _ema_array(arr: np.ndarray, period: int) -> np.ndarray:
    """EMA seeded with the SMA of the first ``period`` values."""
    if len(arr) < period:
        return np.empty(0, dtype=np.float64)

    multiplier = 2.0 / (period + 1)
    result = np.empty(len(arr) - period + 1, dtype=np.float64)
    result[0] = np.mean(arr[:period])

    for i in range(1, len(result)):
        result[i] = arr[i + period - 1] * multiplier + result[i - 1] * (1 - multiplier)

    return result


def _sma_array(arr: np.ndarray, period: int) -> np.ndarray:
    if len(arr) < period:
        return np.empty(0, dtype=np.float64)

    result = np.empty(len(arr) - period + 1, dtype=np.float64)
    for i in range(len(result)):
        result[i] = np.mean(arr[i : i + period])

    return result


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        # Flat window: no gains and no losses
        if avg_gain == 0:
            return 50.0
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def _dx(plus_dm: float, minus_dm: float, tr: float) -> float:
    if tr == 0:
        return 0.0
    plus_di = 100.0 * plus_dm / tr
    minus_di = 100.0 * minus_dm / tr
    total = plus_di + minus_di
    if total == 0:
        return 0.0
    return 100.0 * abs(plus_di - minus_di) / total


# =============================================================================
# Public API
# =============================================================================

def ema(values: Sequence[Decimal], period: int) -> list[Decimal]:
    """
    Calculate Exponential Moving Average.

    Smoothing factor is 2 / (period + 1); the first point is the simple
    average of the first ``period`` values.

    Args:
        values: Sequence of price values
        period: EMA period

    Returns:
        ``len(values) - period + 1`` EMA values, or [] if not enough data
    """
    _check_period(period)
    return _to_decimals(_ema_array(_to_array(values), period))


def sma(values: Sequence[Decimal], period: int) -> list[Decimal]:
    """
    Calculate Simple Moving Average.

    Args:
        values: Sequence of price values
        period: SMA period

    Returns:
        ``len(values) - period + 1`` SMA values, or [] if not enough data
    """
    _check_period(period)
    return _to_decimals(_sma_array(_to_array(values), period))


def rsi(values: Sequence[Decimal], period: int = 14) -> list[Decimal]:
    """
    Calculate Relative Strength Index with Wilder's smoothing.

    The first averages are plain means of the first ``period`` gains and
    losses; after that avg = (prev * (period - 1) + current) / period.

    Args:
        values: Sequence of close prices
        period: RSI period

    Returns:
        ``len(values) - period`` values in [0, 100], or [] if fewer than
        ``period + 1`` values
    """
    _check_period(period)
    if len(values) < period + 1:
        return []

    arr = _to_array(values)
    diffs = np.diff(arr)
    gains = np.where(diffs > 0, diffs, 0.0)
    losses = np.where(diffs < 0, -diffs, 0.0)

    avg_gain = float(np.mean(gains[:period]))
    avg_loss = float(np.mean(losses[:period]))
    result = [_rsi_value(avg_gain, avg_loss)]

    for i in range(period, len(diffs)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        result.append(_rsi_value(avg_gain, avg_loss))

    return [_to_decimal(v) for v in result]


def rsi_zone(value: Decimal) -> str:
    """Categorize an RSI reading."""
    if value < 30:
        return "oversold"
    if value > 70:
        return "overbought"
    return "neutral"


def macd(
    values: Sequence[Decimal],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> list[MacdPoint]:
    """
    Calculate MACD, its signal line and histogram.

    MACD = EMA(fast) - EMA(slow); signal = EMA(signal) of MACD;
    histogram = MACD - signal. Only samples where the signal line exists
    are returned.

    Args:
        values: Sequence of close prices
        fast_period: Fast EMA period
        slow_period: Slow EMA period
        signal_period: Signal EMA period

    Returns:
        ``len(values) - slow - signal + 2`` points, or [] if not enough data
    """
    for period in (fast_period, slow_period, signal_period):
        _check_period(period)
    if fast_period >= slow_period:
        raise ValueError(
            f"fast_period ({fast_period}) must be below slow_period ({slow_period})"
        )
    if len(values) < slow_period + signal_period - 1:
        return []

    arr = _to_array(values)
    fast = _ema_array(arr, fast_period)
    slow = _ema_array(arr, slow_period)

    line = fast[slow_period - fast_period :] - slow
    signal = _ema_array(line, signal_period)
    line = line[signal_period - 1 :]

    return [
        MacdPoint(
            macd=_to_decimal(m),
            signal=_to_decimal(s),
            histogram=_to_decimal(m - s),
        )
        for m, s in zip(line, signal)
    ]


def bollinger_bands(
    values: Sequence[Decimal],
    period: int = 20,
    std_mult: float = 2.0,
) -> list[BollingerPoint]:
    """
    Calculate Bollinger Bands.

    middle = SMA(period); bands = middle +/- std_mult * population stddev.

    Returns:
        ``len(values) - period + 1`` points, or [] if not enough data
    """
    _check_period(period)
    if len(values) < period:
        return []

    arr = _to_array(values)
    result = []
    for i in range(len(arr) - period + 1):
        window = arr[i : i + period]
        middle = np.mean(window)
        deviation = np.std(window) * std_mult
        result.append(
            BollingerPoint(
                upper=_to_decimal(middle + deviation),
                middle=_to_decimal(middle),
                lower=_to_decimal(middle - deviation),
            )
        )
    return result


def true_range(
    highs: Sequence[Decimal],
    lows: Sequence[Decimal],
    closes: Sequence[Decimal],
) -> list[Decimal]:
    """
    Calculate True Range.

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))

    The first value has no previous close and is plain high - low.
    """
    n = len(highs)
    if n == 0:
        return []

    result = [highs[0] - lows[0]]

    for i in range(1, n):
        hl = highs[i] - lows[i]
        hc = abs(highs[i] - closes[i - 1])
        lc = abs(lows[i] - closes[i - 1])
        result.append(max(hl, hc, lc))

    return result


def adx(
    highs: Sequence[Decimal],
    lows: Sequence[Decimal],
    closes: Sequence[Decimal],
    period: int = 14,
) -> list[Decimal]:
    """
    Calculate Wilder's Average Directional Index.

    +DM/-DM and TR are smoothed with Wilder's running sum, DX is derived
    from the directional indicators and ADX is the Wilder average of DX
    seeded with the mean of the first ``period`` DX values.

    Returns:
        ``len(highs) - 2 * period + 1`` values in [0, 100], or [] if fewer
        than ``2 * period`` candles
    """
    _check_period(period)
    n = len(highs)
    if n < 2 * period:
        return []

    h = _to_array(highs)
    l = _to_array(lows)
    c = _to_array(closes)

    up_move = h[1:] - h[:-1]
    down_move = l[:-1] - l[1:]
    plus_dm = np.where((up_move > down_move) & (up_move > 0), up_move, 0.0)
    minus_dm = np.where((down_move > up_move) & (down_move > 0), down_move, 0.0)
    tr = np.maximum(
        h[1:] - l[1:],
        np.maximum(np.abs(h[1:] - c[:-1]), np.abs(l[1:] - c[:-1])),
    )

    sm_plus = float(np.sum(plus_dm[:period]))
    sm_minus = float(np.sum(minus_dm[:period]))
    sm_tr = float(np.sum(tr[:period]))
    dx_values = [_dx(sm_plus, sm_minus, sm_tr)]

    for i in range(period, len(tr)):
        sm_plus = sm_plus - sm_plus / period + plus_dm[i]
        sm_minus = sm_minus - sm_minus / period + minus_dm[i]
        sm_tr = sm_tr - sm_tr / period + tr[i]
        dx_values.append(_dx(sm_plus, sm_minus, sm_tr))

    value = float(np.mean(dx_values[:period]))
    result = [value]
    for dx in dx_values[period:]:
        value = (value * (period - 1) + dx) / period
        result.append(value)

    return [_to_decimal(v) for v in result]


def highest(values: Sequence[Decimal], period: int) -> list[Decimal]:
    """
    Highest value over each trailing window of ``period`` values.

    Returns:
        ``len(values) - period + 1`` values, or [] if not enough data
    """
    _check_period(period)
    return [max(values[i : i + period]) for i in range(len(values) - period + 1)]


def lowest(values: Sequence[Decimal], period: int) -> list[Decimal]:
    """
    Lowest value over each trailing window of ``period`` values.

    Returns:
        ``len(values) - period + 1`` values, or [] if not enough data
    """
    _check_period(period)
    return [min(values[i : i + period]) for i in range(len(values) - period + 1)]


def range_box(
    highs: Sequence[Decimal],
    lows: Sequence[Decimal],
    lookback: int = 20,
) -> RangeBox | None:
    """
    Calculate the range box over the ``lookback`` candles before the newest.

    The newest candle is excluded so its close can be compared against a
    box built from strictly prior candles.

    Returns:
        RangeBox, or None if fewer than ``lookback + 1`` candles
    """
    _check_period(lookback)
    if len(highs) < lookback + 1:
        return None

    prior_highs = list(highs[-(lookback + 1) : -1])
    prior_lows = list(lows[-(lookback + 1) : -1])

    return RangeBox(
        high=highest(prior_highs, lookback)[-1],
        low=lowest(prior_lows, lookback)[-1],
    )


def is_finite(value: Decimal | float | None) -> bool:
    """Check that a value exists and is a finite number."""
    if value is None:
        return False
    if isinstance(value, Decimal):
        return value.is_finite()
    return math.isfinite(value)
