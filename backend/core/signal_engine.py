"""Signal engine: indicators -> events -> policy -> signal.

This module is pure business logic with no I/O dependencies. The engine
owns one SignalState per tracked (symbol, timeframe) for the lifetime of
the process; the caller is responsible for evaluating a given key from one
task at a time.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from core.detector import EventDetector
from core.indicators import IndicatorCalculator, IndicatorSnapshot, RangeBox
from core.models import (
    CandleSeries,
    Direction,
    EventKind,
    EventSet,
    PairConfig,
    Phase,
    PolicyConfig,
    Signal,
    SignalState,
)
from core.strategy import SignalPolicy, create_policy

logger = logging.getLogger(__name__)

SKIP_INSUFFICIENT_DATA = "insufficient_data"


@dataclass
class EvaluationResult:
    """Result of evaluating one candle window.

    Attributes:
        key: 'SYMBOL_TIMEFRAME' of the evaluated pair.
        signal: Emitted signal, if any.
        snapshot: Indicator snapshot (None when the series was empty).
        events: Raw events detected on this tick.
        skipped: Reason the decision was skipped, None if it ran.
        phase: Phase of the key after the tick.
    """

    key: str
    signal: Signal | None = None
    snapshot: IndicatorSnapshot | None = None
    events: EventSet = field(default_factory=EventSet)
    skipped: str | None = None
    phase: Phase = Phase.IDLE


def compute_targets(
    reference: Decimal,
    direction: Direction,
    box: RangeBox | None,
    config: PolicyConfig,
) -> tuple[Decimal, Decimal]:
    """
    Calculate target and stop prices from the range box size.

    target = reference +/- tp_box_mult * size
    stop   = reference -/+ sl_box_mult * size

    A missing or invalid box falls back to ``fallback_band_pct * reference``.

    Returns:
        Tuple of (target_price, stop_price)
    """
    if box is not None and box.is_valid:
        size = box.size
    else:
        size = reference * config.fallback_band_pct

    tp_distance = size * config.tp_box_mult
    sl_distance = size * config.sl_box_mult

    if direction == Direction.LONG:
        return reference + tp_distance, reference - sl_distance
    return reference - tp_distance, reference + sl_distance


class SignalEngine:
    """Per-key state machine host.

    One SignalState, calculator and policy per tracked pair, all created
    at construction time.
    """

    def __init__(self, pairs: list[PairConfig]):
        self._pairs: dict[str, PairConfig] = {}
        self._states: dict[str, SignalState] = {}
        self._calculators: dict[str, IndicatorCalculator] = {}
        self._policies: dict[str, SignalPolicy] = {}
        self._detector = EventDetector()

        for pair in pairs:
            if not pair.enabled:
                continue
            if pair.key in self._pairs:
                raise ValueError(f"Duplicate pair {pair.key}")
            self._pairs[pair.key] = pair
            self._states[pair.key] = SignalState()
            self._calculators[pair.key] = IndicatorCalculator(pair.indicators)
            self._policies[pair.key] = create_policy(pair.policy)

        logger.info(
            "Signal engine tracking %d pairs (%s)",
            len(self._pairs),
            ", ".join(sorted({p.policy.name for p in self._pairs.values()})) or "none",
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def pairs(self) -> list[PairConfig]:
        return list(self._pairs.values())

    @property
    def min_candles(self) -> int:
        """Largest window any tracked pair needs for a full snapshot."""
        if not self._calculators:
            return 0
        return max(c.min_candles for c in self._calculators.values())

    def _get(self, key: str, table: dict):
        try:
            return table[key]
        except KeyError:
            raise KeyError(f"Pair {key} is not tracked by this engine") from None

    def state(self, symbol: str, timeframe: str) -> SignalState:
        """Copy of the current state for a pair."""
        return self._get(f"{symbol}_{timeframe}", self._states).model_copy()

    def snapshot_states(self) -> dict[str, dict]:
        """Serializable view of every key's state."""
        return {
            key: {
                "phase": state.phase.value,
                "policy": self._policies[key].name,
                **state.model_dump(mode="json"),
            }
            for key, state in self._states.items()
        }

    # ------------------------------------------------------------------
    # Core logic
    # ------------------------------------------------------------------

    def evaluate(self, series: CandleSeries) -> EvaluationResult:
        """Evaluate the newest candle of ``series`` for its pair.

        Insufficient data is a skip, not an error: state is left untouched.

        Raises:
            KeyError: If the series' pair is not tracked.
        """
        key = series.key
        state = self._get(key, self._states)
        policy = self._policies[key]

        snapshot = self._calculators[key].calculate(series)
        if snapshot is None or not snapshot.is_ready(policy.required_indicators):
            missing = (
                snapshot.missing(policy.required_indicators) if snapshot else ["candles"]
            )
            logger.debug(
                "%s: not ready with %d candles (missing %s)",
                key, len(series), ", ".join(missing),
            )
            return EvaluationResult(
                key=key,
                snapshot=snapshot,
                skipped=SKIP_INSUFFICIENT_DATA,
                phase=state.phase,
            )

        events = self._detector.detect(snapshot)
        direction = policy.decide(state, events, snapshot)

        signal = None
        if direction is not None:
            signal = self._build_signal(self._pairs[key], policy, snapshot, direction)
            logger.info(
                "%s %s: %s @ %s target=%s stop=%s",
                key, policy.name, direction.name, signal.reference_price,
                signal.target_price, signal.stop_price,
            )
        elif len(events):
            logger.debug("%s: events %s -> %s", key, [str(e) for e in events], state.phase.value)

        return EvaluationResult(
            key=key,
            signal=signal,
            snapshot=snapshot,
            events=events,
            phase=state.phase,
        )

    def _build_signal(
        self,
        pair: PairConfig,
        policy: SignalPolicy,
        snapshot: IndicatorSnapshot,
        direction: Direction,
    ) -> Signal:
        box = snapshot.box
        target, stop = compute_targets(snapshot.close, direction, box, policy.config)

        trigger = [kind.value for kind in policy.config.triggers]
        if policy.uses_breakout:
            trigger.append(EventKind.BREAKOUT.value)

        valid_box = box is not None and box.is_valid
        return Signal(
            policy=policy.name,
            symbol=pair.symbol,
            timeframe=pair.timeframe,
            direction=direction,
            signal_time=snapshot.timestamp,
            reference_price=snapshot.close,
            target_price=target,
            stop_price=stop,
            trigger=trigger,
            indicators=snapshot.supporting_indicators(),
            box_high=box.high if valid_box else None,
            box_low=box.low if valid_box else None,
            volume_confirmed=snapshot.volume_confirmed,
        )
