"""Single-condition policies.

crossover:
- Emit when the trigger crossover points to a direction different from
  the last one emitted for the key.

crossover_breakout:
- Emit when the trigger crossover and a breakout in the same direction
  happen on the same tick.
- Once notified, the same direction stays silent until price re-enters
  the box or the crossover flips.
"""

import logging

from core.indicators import IndicatorSnapshot
from core.models.events import EventSet
from core.models.signal import Direction
from core.models.state import Phase, SignalState
from core.strategy.protocol import BasePolicy
from core.strategy.registry import register_policy

logger = logging.getLogger(__name__)


@register_policy("crossover")
class CrossoverPolicy(BasePolicy):
    """Emit on every crossover whose direction is new for the key."""

    policy_name = "crossover"

    def decide(
        self,
        state: SignalState,
        events: EventSet,
        snapshot: IndicatorSnapshot,
    ) -> Direction | None:
        direction = self.trigger(events)
        if direction is None or direction == state.last_emitted_direction:
            return None

        if not self.confirms(snapshot):
            logger.debug(
                "%s %s: %s crossover held back (ADX=%s, volume confirmed=%s)",
                snapshot.symbol, snapshot.timeframe, direction.cross_label,
                snapshot.adx, snapshot.volume_confirmed,
            )
            return None

        state.mark_notified(direction)
        return direction


@register_policy("crossover_breakout")
class CrossoverBreakoutPolicy(BasePolicy):
    """Emit when a crossover and a same-side breakout coincide."""

    policy_name = "crossover_breakout"
    uses_breakout = True

    def decide(
        self,
        state: SignalState,
        events: EventSet,
        snapshot: IndicatorSnapshot,
    ) -> Direction | None:
        if events.reentry and state.phase != Phase.IDLE:
            state.reset()

        direction = self.trigger(events)
        if direction is None or events.breakout != direction:
            return None

        if state.notified and state.armed_direction == direction:
            return None

        if not self.confirms(snapshot):
            state.arm(direction)
            state.breakout_direction = direction
            return None

        state.mark_notified(direction)
        return direction
