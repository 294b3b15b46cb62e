"""Technical indicators (pure math, no I/O)."""

from core.indicators.indicators import (
    ema,
    sma,
    rsi,
    rsi_zone,
    macd,
    bollinger_bands,
    true_range,
    adx,
    highest,
    lowest,
    range_box,
    is_finite,
    MacdPoint,
    BollingerPoint,
    RangeBox,
)
from core.indicators.calculator import IndicatorCalculator, IndicatorSnapshot

__all__ = [
    "ema",
    "sma",
    "rsi",
    "rsi_zone",
    "macd",
    "bollinger_bands",
    "true_range",
    "adx",
    "highest",
    "lowest",
    "range_box",
    "is_finite",
    "MacdPoint",
    "BollingerPoint",
    "RangeBox",
    "IndicatorCalculator",
    "IndicatorSnapshot",
]
