"""Indicator and policy configuration models."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from core.models.events import CROSSOVER_KINDS, EventKind


class IndicatorConfig(BaseModel):
    """Indicator periods for one (symbol, timeframe)."""

    # Crossover pair
    ema_fast: int = 12
    ema_slow: int = 26

    # Reference EMAs reported with a signal
    trend_emas: list[int] = [50, 200]

    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9

    rsi_period: int = 14

    bb_period: int = 20
    bb_std_mult: float = 2.0

    adx_period: int = 14

    # Volume confirmation: last volume above both volume EMAs
    volume_ema_fast: int = 12
    volume_ema_slow: int = 26

    # Range box: candles strictly before the newest one
    box_lookback: int = 20

    @model_validator(mode="after")
    def _validate(self):
        periods = {
            "ema_fast": self.ema_fast,
            "ema_slow": self.ema_slow,
            "macd_fast": self.macd_fast,
            "macd_slow": self.macd_slow,
            "macd_signal": self.macd_signal,
            "rsi_period": self.rsi_period,
            "bb_period": self.bb_period,
            "adx_period": self.adx_period,
            "volume_ema_fast": self.volume_ema_fast,
            "volume_ema_slow": self.volume_ema_slow,
            "box_lookback": self.box_lookback,
        }
        for name, value in periods.items():
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")
        if any(p < 1 for p in self.trend_emas):
            raise ValueError(f"trend_emas must all be >= 1, got {self.trend_emas}")
        if self.macd_fast >= self.macd_slow:
            raise ValueError(
                f"macd_fast ({self.macd_fast}) must be below macd_slow ({self.macd_slow})"
            )
        if self.bb_std_mult <= 0:
            raise ValueError(f"bb_std_mult must be positive, got {self.bb_std_mult}")
        return self


class PolicyConfig(BaseModel):
    """Confirmation policy selected for a key."""

    name: str = "arm_confirm"

    # Crossover kinds that must fire in the same direction on the same tick
    triggers: list[EventKind] = [EventKind.MACD_CROSS]

    # ADX confirmation filter, None = disabled
    adx_min: float | None = None

    # Hold emissions unless volume is above both volume EMAs
    require_volume: bool = False

    # TP/SL as multiples of the range box size
    tp_box_mult: Decimal = Decimal("1.0")
    sl_box_mult: Decimal = Decimal("0.5")

    # Box size substitute when the box is missing or invalid
    fallback_band_pct: Decimal = Decimal("0.01")

    @field_validator("triggers")
    @classmethod
    def _check_triggers(cls, value: list[EventKind]) -> list[EventKind]:
        if not value:
            raise ValueError("triggers must name at least one crossover kind")
        invalid = [k.value for k in value if k not in CROSSOVER_KINDS]
        if invalid:
            raise ValueError(f"triggers must be crossover kinds, got {invalid}")
        return value


class StrategyPreset(BaseModel):
    """Indicator + policy bundle matching one deployed bot variant."""

    indicators: IndicatorConfig = Field(default_factory=IndicatorConfig)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)


class PairConfig(BaseModel):
    """Per-(symbol, timeframe) configuration."""

    symbol: str
    timeframe: str
    enabled: bool = True
    indicators: IndicatorConfig = Field(default_factory=IndicatorConfig)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)

    @property
    def key(self) -> str:
        """Unique key for this pair: 'SYMBOL_TIMEFRAME'."""
        return f"{self.symbol}_{self.timeframe}"


# =============================================================================
# Presets: one per alert variant that has been run in production
# =============================================================================
PRESETS: dict[str, StrategyPreset] = {
    # MACD 12/26/9 cross, new direction only
    "macd_cross": StrategyPreset(
        policy=PolicyConfig(name="crossover", triggers=[EventKind.MACD_CROSS]),
    ),
    # EMA12 x EMA26 cross, new direction only
    "ema_cross": StrategyPreset(
        policy=PolicyConfig(name="crossover", triggers=[EventKind.EMA_CROSS]),
    ),
    # MACD 26/50/9 arms, breakout of the 20-candle box confirms
    "macd_breakout": StrategyPreset(
        indicators=IndicatorConfig(macd_fast=26, macd_slow=50, macd_signal=9),
        policy=PolicyConfig(name="arm_confirm", triggers=[EventKind.MACD_CROSS]),
    ),
    # EMA12 x Bollinger(20, 2) middle together with a same-side breakout
    "ema_bollinger_breakout": StrategyPreset(
        policy=PolicyConfig(
            name="crossover_breakout", triggers=[EventKind.BOLLINGER_CROSS]
        ),
    ),
    # MACD 26/50/9 and EMA12 x BB middle agree, breakout confirms
    "macd_bollinger_breakout": StrategyPreset(
        indicators=IndicatorConfig(macd_fast=26, macd_slow=50, macd_signal=9),
        policy=PolicyConfig(
            name="arm_confirm",
            triggers=[EventKind.MACD_CROSS, EventKind.BOLLINGER_CROSS],
        ),
    ),
    # MACD 12/26/9 cross, only while ADX(14) shows a trend
    "macd_adx": StrategyPreset(
        policy=PolicyConfig(
            name="crossover", triggers=[EventKind.MACD_CROSS], adx_min=20.0
        ),
    ),
}
