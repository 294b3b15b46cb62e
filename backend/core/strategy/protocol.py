"""Policy protocol and the shared base used by the built-in policies.

A policy turns the events of one tick into at most one emission and keeps
the per-key memory that suppresses repeats. It never touches indicator
math and only mutates the SignalState it is handed.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.indicators import IndicatorSnapshot
from core.models.config import PolicyConfig
from core.models.events import EventKind, EventSet
from core.models.signal import Direction
from core.models.state import SignalState

# Snapshot fields each crossover kind needs
_TRIGGER_INDICATORS: dict[EventKind, list[str]] = {
    EventKind.EMA_CROSS: ["ema_fast", "ema_slow"],
    EventKind.MACD_CROSS: ["macd"],
    EventKind.BOLLINGER_CROSS: ["ema_fast", "bollinger"],
}


@runtime_checkable
class SignalPolicy(Protocol):
    """Protocol that all confirmation policies must implement."""

    config: PolicyConfig

    @property
    def name(self) -> str:
        """Registered policy identifier (e.g., 'arm_confirm')."""
        ...

    @property
    def uses_breakout(self) -> bool:
        """Whether a range-box breakout takes part in the decision."""
        ...

    @property
    def required_indicators(self) -> list[str]:
        """Snapshot fields that must be ready before ``decide`` runs."""
        ...

    def decide(
        self,
        state: SignalState,
        events: EventSet,
        snapshot: IndicatorSnapshot,
    ) -> Direction | None:
        """Update ``state`` for this tick and return the direction to emit."""
        ...


class BasePolicy:
    """Trigger evaluation and the optional ADX and volume filters."""

    policy_name = ""
    uses_breakout = False

    def __init__(self, config: PolicyConfig | None = None):
        self.config = config or PolicyConfig(name=self.policy_name)

    @property
    def name(self) -> str:
        return self.policy_name

    @property
    def required_indicators(self) -> list[str]:
        names: list[str] = []
        for kind in self.config.triggers:
            for field_name in _TRIGGER_INDICATORS[kind]:
                if field_name not in names:
                    names.append(field_name)
        if self.uses_breakout:
            names.append("box")
        if self.config.adx_min is not None:
            names.append("adx")
        if self.config.require_volume:
            names.append("volume_confirmed")
        return names

    def trigger(self, events: EventSet) -> Direction | None:
        """Direction on which all configured crossover kinds agree."""
        return events.crossover(self.config.triggers)

    def adx_confirms(self, snapshot: IndicatorSnapshot) -> bool:
        """ADX filter; passes when disabled."""
        if self.config.adx_min is None:
            return True
        return snapshot.adx is not None and float(snapshot.adx) >= self.config.adx_min

    def volume_confirms(self, snapshot: IndicatorSnapshot) -> bool:
        """Volume filter; passes when disabled."""
        if not self.config.require_volume:
            return True
        return bool(snapshot.volume_confirmed)

    def confirms(self, snapshot: IndicatorSnapshot) -> bool:
        """Both optional filters pass for this tick."""
        return self.adx_confirms(snapshot) and self.volume_confirms(snapshot)
