"""Indicator snapshot for the newest candle of a series."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

from core.indicators.indicators import (
    BollingerPoint,
    MacdPoint,
    RangeBox,
    adx,
    bollinger_bands,
    ema,
    macd,
    range_box,
    rsi,
)
from core.models.candle import CandleSeries
from core.models.config import IndicatorConfig

# (previous, current)
Pair = tuple[Decimal, Decimal]


def _last_two(series: list):
    if len(series) < 2:
        return None
    return series[-2], series[-1]


def _last(series: list):
    return series[-1] if series else None


@dataclass
class IndicatorSnapshot:
    """Last two points of each crossover pair plus the latest readings.

    Fields left as None were not ready for this window.
    """

    symbol: str
    timeframe: str
    open_time: int
    close: Decimal
    config: IndicatorConfig
    ema_fast: Pair | None = None
    ema_slow: Pair | None = None
    macd: tuple[MacdPoint, MacdPoint] | None = None
    bollinger: tuple[BollingerPoint, BollingerPoint] | None = None
    rsi: Decimal | None = None
    adx: Decimal | None = None
    trend_emas: dict[int, Decimal] = field(default_factory=dict)
    box: RangeBox | None = None
    volume: Decimal | None = None
    volume_ema_fast: Decimal | None = None
    volume_ema_slow: Decimal | None = None

    @property
    def timestamp(self) -> datetime:
        """Open time of the evaluated candle."""
        return datetime.fromtimestamp(self.open_time / 1000, tz=timezone.utc)

    @property
    def volume_confirmed(self) -> bool | None:
        """Last volume strictly above both volume EMAs; None until ready."""
        if self.volume_ema_fast is None or self.volume_ema_slow is None:
            return None
        return self.volume > self.volume_ema_fast and self.volume > self.volume_ema_slow

    def is_ready(self, names: list[str]) -> bool:
        """Check that every named field was computed."""
        return all(getattr(self, name) is not None for name in names)

    def missing(self, names: list[str]) -> list[str]:
        return [name for name in names if getattr(self, name) is None]

    def supporting_indicators(self) -> dict[str, Decimal]:
        """Latest indicator values keyed by display name."""
        cfg = self.config
        values: dict[str, Decimal] = {}

        if self.ema_fast:
            values[f"ema{cfg.ema_fast}"] = self.ema_fast[1]
        if self.ema_slow:
            values[f"ema{cfg.ema_slow}"] = self.ema_slow[1]
        for period, value in self.trend_emas.items():
            values.setdefault(f"ema{period}", value)

        if self.macd:
            last = self.macd[1]
            values["macd"] = last.macd
            values["macd_signal"] = last.signal
            values["macd_histogram"] = last.histogram

        if self.bollinger:
            last = self.bollinger[1]
            values["bb_upper"] = last.upper
            values["bb_middle"] = last.middle
            values["bb_lower"] = last.lower

        if self.rsi is not None:
            values["rsi"] = self.rsi
        if self.adx is not None:
            values["adx"] = self.adx
        if self.volume_confirmed is not None:
            values["volume"] = self.volume
            values[f"volume_ema{cfg.volume_ema_fast}"] = self.volume_ema_fast
            values[f"volume_ema{cfg.volume_ema_slow}"] = self.volume_ema_slow

        return values


class IndicatorCalculator:
    """Calculator for all technical indicators needed by the policies.

    Everything is recomputed from the full window on every call.
    """

    def __init__(self, config: IndicatorConfig | None = None):
        self.config = config or IndicatorConfig()

    @property
    def min_candles(self) -> int:
        """Candles needed before every indicator has two points."""
        cfg = self.config
        return max(
            cfg.ema_fast + 1,
            cfg.ema_slow + 1,
            cfg.macd_slow + cfg.macd_signal,
            cfg.bb_period + 1,
            cfg.rsi_period + 1,
            2 * cfg.adx_period,
            cfg.box_lookback + 1,
            cfg.volume_ema_fast,
            cfg.volume_ema_slow,
            *(p for p in cfg.trend_emas),
        )

    def calculate(self, series: CandleSeries) -> IndicatorSnapshot | None:
        """
        Calculate indicators for the newest candle of ``series``.

        Args:
            series: Candle window, oldest first

        Returns:
            IndicatorSnapshot, or None if the series is empty
        """
        last = series.last
        if last is None:
            return None

        cfg = self.config
        closes = series.closes()
        highs = series.highs()
        lows = series.lows()
        volumes = series.volumes()

        trend_emas = {}
        for period in cfg.trend_emas:
            value = _last(ema(closes, period))
            if value is not None:
                trend_emas[period] = value

        return IndicatorSnapshot(
            symbol=series.symbol,
            timeframe=series.timeframe,
            open_time=last.open_time,
            close=last.close,
            config=cfg,
            ema_fast=_last_two(ema(closes, cfg.ema_fast)),
            ema_slow=_last_two(ema(closes, cfg.ema_slow)),
            macd=_last_two(macd(closes, cfg.macd_fast, cfg.macd_slow, cfg.macd_signal)),
            bollinger=_last_two(bollinger_bands(closes, cfg.bb_period, cfg.bb_std_mult)),
            rsi=_last(rsi(closes, cfg.rsi_period)),
            adx=_last(adx(highs, lows, closes, cfg.adx_period)),
            trend_emas=trend_emas,
            box=range_box(highs, lows, cfg.box_lookback),
            volume=last.volume,
            volume_ema_fast=_last(ema(volumes, cfg.volume_ema_fast)),
            volume_ema_slow=_last(ema(volumes, cfg.volume_ema_slow)),
        )
