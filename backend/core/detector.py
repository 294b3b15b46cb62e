"""Event detection from the latest two indicator points.

Classification never looks further back than the previous sample, and a
tie on either sample is never reported as a crossover.
"""

import logging
from decimal import Decimal

from core.indicators import IndicatorSnapshot, RangeBox, is_finite
from core.models.events import EventKind, EventSet, RawEvent
from core.models.signal import Direction

logger = logging.getLogger(__name__)


def detect_cross(
    prev_a: Decimal,
    prev_b: Decimal,
    curr_a: Decimal,
    curr_b: Decimal,
) -> Direction | None:
    """Classify a crossover of line A over line B.

    Returns:
        LONG if A moved from strictly below B to strictly above it,
        SHORT for the mirror case, None otherwise
    """
    if not all(is_finite(v) for v in (prev_a, prev_b, curr_a, curr_b)):
        return None
    if prev_a < prev_b and curr_a > curr_b:
        return Direction.LONG
    if prev_a > prev_b and curr_a < curr_b:
        return Direction.SHORT
    return None


def classify_breakout(close: Decimal, box: RangeBox) -> Direction | None:
    """Strict breakout of ``close`` out of ``box``.

    A close touching a boundary is not a breakout. The caller must check
    ``box.is_valid`` first.
    """
    if close > box.high:
        return Direction.LONG
    if close < box.low:
        return Direction.SHORT
    return None


def is_reentry(close: Decimal, box: RangeBox) -> bool:
    """True when ``close`` lies inside the box, bounds included."""
    return box.contains(close)


class EventDetector:
    """Derives raw events for one tick from an indicator snapshot."""

    def detect(self, snapshot: IndicatorSnapshot) -> EventSet:
        events: list[RawEvent] = []

        if snapshot.ema_fast and snapshot.ema_slow:
            direction = detect_cross(
                snapshot.ema_fast[0],
                snapshot.ema_slow[0],
                snapshot.ema_fast[1],
                snapshot.ema_slow[1],
            )
            if direction:
                events.append(RawEvent(EventKind.EMA_CROSS, direction))

        if snapshot.macd:
            prev, curr = snapshot.macd
            direction = detect_cross(prev.macd, prev.signal, curr.macd, curr.signal)
            if direction:
                events.append(RawEvent(EventKind.MACD_CROSS, direction))

        if snapshot.ema_fast and snapshot.bollinger:
            prev, curr = snapshot.bollinger
            direction = detect_cross(
                snapshot.ema_fast[0], prev.middle, snapshot.ema_fast[1], curr.middle
            )
            if direction:
                events.append(RawEvent(EventKind.BOLLINGER_CROSS, direction))

        box = snapshot.box
        if box is not None and box.is_valid:
            direction = classify_breakout(snapshot.close, box)
            if direction:
                events.append(RawEvent(EventKind.BREAKOUT, direction))
            elif is_reentry(snapshot.close, box):
                events.append(RawEvent(EventKind.REENTRY))
        elif box is not None:
            logger.debug(
                "%s %s: invalid range box high=%s low=%s, skipping breakout checks",
                snapshot.symbol, snapshot.timeframe, box.high, box.low,
            )

        return EventSet(events)
