"""Candle (OHLCV) data models."""

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Candle(BaseModel):
    """One period of open/high/low/close/volume data."""

    model_config = ConfigDict(frozen=True)

    open_time: int  # Unix timestamp in milliseconds
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal = Decimal("0")

    @model_validator(mode="after")
    def _check_range(self):
        if self.high < self.low:
            raise ValueError(
                f"candle high {self.high} is below low {self.low} at {self.open_time}"
            )
        return self

    @property
    def timestamp(self) -> datetime:
        """Open time as a UTC datetime."""
        return datetime.fromtimestamp(self.open_time / 1000, tz=timezone.utc)


class CandleSeries(BaseModel):
    """Ordered candle window for one (symbol, timeframe), oldest first."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    timeframe: str
    candles: list[Candle] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_order(self):
        for prev, curr in zip(self.candles, self.candles[1:]):
            if curr.open_time <= prev.open_time:
                raise ValueError(
                    f"{self.symbol} {self.timeframe}: candles must be strictly "
                    f"ascending by open_time ({prev.open_time} -> {curr.open_time})"
                )
        return self

    @property
    def key(self) -> str:
        return f"{self.symbol}_{self.timeframe}"

    @property
    def last(self) -> Candle | None:
        return self.candles[-1] if self.candles else None

    def closes(self) -> list[Decimal]:
        """Get list of close prices."""
        return [c.close for c in self.candles]

    def highs(self) -> list[Decimal]:
        """Get list of high prices."""
        return [c.high for c in self.candles]

    def lows(self) -> list[Decimal]:
        """Get list of low prices."""
        return [c.low for c in self.candles]

    def volumes(self) -> list[Decimal]:
        """Get list of volumes."""
        return [c.volume for c in self.candles]

    def window(self, size: int) -> "CandleSeries":
        """Return a series holding the first ``size`` candles."""
        return CandleSeries(
            symbol=self.symbol,
            timeframe=self.timeframe,
            candles=self.candles[:size],
        )

    def __len__(self) -> int:
        return len(self.candles)
