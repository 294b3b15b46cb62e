"""Signal data models."""

import hashlib
from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class Direction(int, Enum):
    """Trade direction.

    A bullish crossover or an upward breakout maps to LONG,
    a bearish crossover or a downward breakout to SHORT.
    """

    LONG = 1
    SHORT = -1

    @property
    def opposite(self) -> "Direction":
        return Direction.SHORT if self is Direction.LONG else Direction.LONG

    @property
    def cross_label(self) -> str:
        return "bullish" if self is Direction.LONG else "bearish"

    @property
    def breakout_label(self) -> str:
        return "up" if self is Direction.LONG else "down"


def _generate_signal_id(
    policy: str,
    symbol: str,
    timeframe: str,
    signal_time: datetime,
    direction: int,
) -> str:
    """Generate deterministic signal ID based on signal attributes.

    The same candle window always yields the same ID, so a re-evaluated
    tick can be recognised downstream.
    """
    ts_str = signal_time.strftime("%Y%m%d%H%M%S%f")
    key = f"{policy}:{symbol}:{timeframe}:{ts_str}:{direction}"
    return hashlib.sha256(key.encode()).hexdigest()[:32]


class Signal(BaseModel):
    """An emitted trading signal."""

    id: str = ""
    policy: str
    symbol: str
    timeframe: str
    direction: Direction
    signal_time: datetime
    reference_price: Decimal
    target_price: Decimal
    stop_price: Decimal
    trigger: list[str] = Field(default_factory=list)
    indicators: dict[str, Decimal] = Field(default_factory=dict)
    box_high: Decimal | None = None
    box_low: Decimal | None = None
    # Last volume above both volume EMAs, None when not computed
    volume_confirmed: bool | None = None

    def model_post_init(self, __context) -> None:
        """Generate deterministic ID after model initialization."""
        if not self.id:
            object.__setattr__(
                self,
                "id",
                _generate_signal_id(
                    self.policy,
                    self.symbol,
                    self.timeframe,
                    self.signal_time,
                    self.direction.value,
                ),
            )

    @property
    def box_size(self) -> Decimal | None:
        if self.box_high is None or self.box_low is None:
            return None
        return self.box_high - self.box_low

    @property
    def risk_amount(self) -> Decimal:
        """Get the risk amount (distance to stop)."""
        if self.direction == Direction.LONG:
            return self.reference_price - self.stop_price
        return self.stop_price - self.reference_price

    @property
    def reward_amount(self) -> Decimal:
        """Get the reward amount (distance to target)."""
        if self.direction == Direction.LONG:
            return self.target_price - self.reference_price
        return self.reference_price - self.target_price
