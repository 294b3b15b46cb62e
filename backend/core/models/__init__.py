"""Data models shared by the engine and the service layer."""

from core.models.candle import Candle, CandleSeries
from core.models.signal import Direction, Signal
from core.models.events import CROSSOVER_KINDS, EventKind, EventSet, RawEvent
from core.models.state import Phase, SignalState
from core.models.config import (
    IndicatorConfig,
    PairConfig,
    PolicyConfig,
    PRESETS,
    StrategyPreset,
)

__all__ = [
    "Candle",
    "CandleSeries",
    "Direction",
    "Signal",
    "CROSSOVER_KINDS",
    "EventKind",
    "EventSet",
    "RawEvent",
    "Phase",
    "SignalState",
    "IndicatorConfig",
    "PairConfig",
    "PolicyConfig",
    "PRESETS",
    "StrategyPreset",
]
