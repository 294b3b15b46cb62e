"""Per-(symbol, timeframe) signal state."""

from enum import Enum

from pydantic import BaseModel

from core.models.signal import Direction


class Phase(str, Enum):
    """Phase of a key's arm/confirm cycle."""

    IDLE = "idle"
    ARMED = "armed"
    NOTIFIED = "notified"


class SignalState(BaseModel):
    """Minimal memory needed to gate repeated observations.

    Mutated only by the policy that owns the key, one tick at a time.
    """

    armed_direction: Direction | None = None
    notified: bool = False
    last_emitted_direction: Direction | None = None
    # Breakout seen during the current armed episode that did not confirm
    breakout_direction: Direction | None = None

    @property
    def phase(self) -> Phase:
        if self.armed_direction is None:
            return Phase.IDLE
        if self.notified:
            return Phase.NOTIFIED
        return Phase.ARMED

    def arm(self, direction: Direction) -> None:
        self.armed_direction = direction
        self.notified = False
        self.breakout_direction = None

    def mark_notified(self, direction: Direction) -> None:
        self.armed_direction = direction
        self.notified = True
        self.last_emitted_direction = direction
        self.breakout_direction = None

    def reset(self) -> None:
        """Return to IDLE. ``last_emitted_direction`` is kept."""
        self.armed_direction = None
        self.notified = False
        self.breakout_direction = None
