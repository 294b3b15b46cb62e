"""Two-stage arm/confirm policy.

IDLE --crossover--> ARMED(d) --breakout d--> NOTIFIED(d)

- The crossover tick only arms; nothing is emitted on it.
- While ARMED, a breakout against the armed direction re-arms on the
  breakout side instead of emitting.
- A breakout that was flagged but did not confirm is cancelled when price
  closes back inside the box (ARMED -> IDLE).
- NOTIFIED stays silent on repeats; an opposite crossover re-arms and a
  re-entry returns to IDLE.
"""

import logging

from core.indicators import IndicatorSnapshot
from core.models.events import EventSet
from core.models.signal import Direction
from core.models.state import Phase, SignalState
from core.strategy.protocol import BasePolicy
from core.strategy.registry import register_policy

logger = logging.getLogger(__name__)


@register_policy("arm_confirm")
class ArmConfirmPolicy(BasePolicy):
    """Crossover arms, same-direction breakout confirms."""

    policy_name = "arm_confirm"
    uses_breakout = True

    def decide(
        self,
        state: SignalState,
        events: EventSet,
        snapshot: IndicatorSnapshot,
    ) -> Direction | None:
        crossover = self.trigger(events)
        if crossover is not None:
            if state.phase == Phase.NOTIFIED and crossover == state.armed_direction:
                return None
            state.arm(crossover)
            logger.info(
                "%s %s: %s crossover armed",
                snapshot.symbol, snapshot.timeframe, crossover.cross_label,
            )
            return None

        phase = state.phase
        if phase == Phase.IDLE:
            return None

        if phase == Phase.NOTIFIED:
            if events.reentry:
                state.reset()
            return None

        breakout = events.breakout
        if breakout is not None and breakout == state.armed_direction:
            if not self.confirms(snapshot):
                state.breakout_direction = breakout
                return None
            state.mark_notified(breakout)
            return breakout

        if breakout is not None:
            logger.info(
                "%s %s: breakout %s against armed %s, re-arming",
                snapshot.symbol, snapshot.timeframe,
                breakout.breakout_label, state.armed_direction.cross_label,
            )
            state.arm(breakout)
            state.breakout_direction = breakout
            return None

        if events.reentry and state.breakout_direction is not None:
            logger.info(
                "%s %s: price back inside the box, disarming",
                snapshot.symbol, snapshot.timeframe,
            )
            state.reset()

        return None
