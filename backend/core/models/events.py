"""Raw events derived from the latest indicator points of one tick."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from core.models.signal import Direction


class EventKind(str, Enum):
    """Kind of raw event produced by the detector."""

    EMA_CROSS = "ema_cross"  # EMA fast vs EMA slow
    MACD_CROSS = "macd_cross"  # MACD line vs signal line
    BOLLINGER_CROSS = "bollinger_cross"  # EMA fast vs Bollinger middle
    BREAKOUT = "breakout"
    REENTRY = "reentry"


CROSSOVER_KINDS = frozenset(
    {EventKind.EMA_CROSS, EventKind.MACD_CROSS, EventKind.BOLLINGER_CROSS}
)


@dataclass(frozen=True)
class RawEvent:
    """A single classified event.

    ``direction`` is None only for ``REENTRY``.
    """

    kind: EventKind
    direction: Direction | None = None

    def __str__(self) -> str:
        if self.direction is None:
            return self.kind.value
        if self.kind == EventKind.BREAKOUT:
            return f"{self.kind.value}:{self.direction.breakout_label}"
        return f"{self.kind.value}:{self.direction.cross_label}"


@dataclass
class EventSet:
    """Events observed for one key on one tick."""

    events: list[RawEvent] = field(default_factory=list)

    def __iter__(self):
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)

    def direction_of(self, kind: EventKind) -> Direction | None:
        for event in self.events:
            if event.kind == kind:
                return event.direction
        return None

    def crossover(self, kinds: Iterable[EventKind]) -> Direction | None:
        """Direction on which every requested crossover kind agrees.

        Returns None when any of them did not fire or they disagree.
        """
        direction = None
        for kind in kinds:
            current = self.direction_of(kind)
            if current is None:
                return None
            if direction is not None and current != direction:
                return None
            direction = current
        return direction

    @property
    def breakout(self) -> Direction | None:
        return self.direction_of(EventKind.BREAKOUT)

    @property
    def reentry(self) -> bool:
        return any(e.kind == EventKind.REENTRY for e in self.events)
