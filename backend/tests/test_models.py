"""Tests for candle, signal, state and config models."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from core.models import (
    PRESETS,
    Candle,
    CandleSeries,
    Direction,
    EventKind,
    EventSet,
    IndicatorConfig,
    PairConfig,
    Phase,
    PolicyConfig,
    RawEvent,
    Signal,
    SignalState,
)


def _candle(open_time: int, close: str = "100") -> Candle:
    c = Decimal(close)
    return Candle(open_time=open_time, open=c, high=c + 1, low=c - 1, close=c)


class TestCandleSeries:
    def test_accessors(self):
        series = CandleSeries(
            symbol="BTCUSDT",
            timeframe="1h",
            candles=[_candle(1000, "100"), _candle(2000, "101")],
        )
        assert series.key == "BTCUSDT_1h"
        assert len(series) == 2
        assert series.closes() == [Decimal("100"), Decimal("101")]
        assert series.highs() == [Decimal("101"), Decimal("102")]
        assert series.lows() == [Decimal("99"), Decimal("100")]
        assert series.last.open_time == 2000

    def test_empty_series(self):
        series = CandleSeries(symbol="BTCUSDT", timeframe="1h")
        assert len(series) == 0
        assert series.last is None

    def test_unordered_rejected(self):
        with pytest.raises(ValidationError, match="strictly ascending"):
            CandleSeries(
                symbol="BTCUSDT",
                timeframe="1h",
                candles=[_candle(2000), _candle(1000)],
            )

    def test_duplicate_time_rejected(self):
        with pytest.raises(ValidationError):
            CandleSeries(
                symbol="BTCUSDT",
                timeframe="1h",
                candles=[_candle(1000), _candle(1000)],
            )

    def test_window(self):
        series = CandleSeries(
            symbol="BTCUSDT",
            timeframe="1h",
            candles=[_candle(i * 1000) for i in range(1, 6)],
        )
        window = series.window(3)
        assert len(window) == 3
        assert window.last.open_time == 3000

    def test_high_below_low_rejected(self):
        with pytest.raises(ValidationError, match="below low"):
            Candle(
                open_time=1,
                open=Decimal("1"),
                high=Decimal("1"),
                low=Decimal("2"),
                close=Decimal("1"),
            )

    def test_candle_timestamp(self):
        candle = _candle(1_700_000_000_000)
        assert candle.timestamp == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)


class TestSignal:
    def _signal(self, **overrides) -> Signal:
        values = dict(
            policy="arm_confirm",
            symbol="BTCUSDT",
            timeframe="1h",
            direction=Direction.LONG,
            signal_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
            reference_price=Decimal("100"),
            target_price=Decimal("110"),
            stop_price=Decimal("95"),
            box_high=Decimal("99"),
            box_low=Decimal("89"),
        )
        values.update(overrides)
        return Signal(**values)

    def test_deterministic_id(self):
        assert self._signal().id == self._signal().id
        assert len(self._signal().id) == 32

    def test_id_depends_on_direction(self):
        short = self._signal(
            direction=Direction.SHORT,
            target_price=Decimal("90"),
            stop_price=Decimal("105"),
        )
        assert short.id != self._signal().id

    def test_amounts(self):
        signal = self._signal()
        assert signal.risk_amount == Decimal("5")
        assert signal.reward_amount == Decimal("10")
        assert signal.box_size == Decimal("10")

    def test_short_amounts(self):
        signal = self._signal(
            direction=Direction.SHORT,
            target_price=Decimal("90"),
            stop_price=Decimal("105"),
        )
        assert signal.risk_amount == Decimal("5")
        assert signal.reward_amount == Decimal("10")


class TestDirection:
    def test_labels(self):
        assert Direction.LONG.cross_label == "bullish"
        assert Direction.SHORT.cross_label == "bearish"
        assert Direction.LONG.breakout_label == "up"
        assert Direction.SHORT.breakout_label == "down"
        assert Direction.LONG.opposite == Direction.SHORT


class TestSignalState:
    def test_phases(self):
        state = SignalState()
        assert state.phase == Phase.IDLE

        state.arm(Direction.LONG)
        assert state.phase == Phase.ARMED

        state.mark_notified(Direction.LONG)
        assert state.phase == Phase.NOTIFIED
        assert state.last_emitted_direction == Direction.LONG

    def test_reset_keeps_last_emitted(self):
        state = SignalState()
        state.mark_notified(Direction.SHORT)
        state.reset()
        assert state.phase == Phase.IDLE
        assert state.last_emitted_direction == Direction.SHORT

    def test_arm_clears_breakout_flag(self):
        state = SignalState(breakout_direction=Direction.LONG)
        state.arm(Direction.SHORT)
        assert state.breakout_direction is None


class TestEventSet:
    def test_crossover_agreement(self):
        events = EventSet([
            RawEvent(EventKind.MACD_CROSS, Direction.LONG),
            RawEvent(EventKind.BOLLINGER_CROSS, Direction.LONG),
        ])
        kinds = [EventKind.MACD_CROSS, EventKind.BOLLINGER_CROSS]
        assert events.crossover(kinds) == Direction.LONG

    def test_crossover_disagreement(self):
        events = EventSet([
            RawEvent(EventKind.MACD_CROSS, Direction.LONG),
            RawEvent(EventKind.BOLLINGER_CROSS, Direction.SHORT),
        ])
        kinds = [EventKind.MACD_CROSS, EventKind.BOLLINGER_CROSS]
        assert events.crossover(kinds) is None

    def test_crossover_missing_kind(self):
        events = EventSet([RawEvent(EventKind.MACD_CROSS, Direction.LONG)])
        kinds = [EventKind.MACD_CROSS, EventKind.BOLLINGER_CROSS]
        assert events.crossover(kinds) is None

    def test_breakout_and_reentry(self):
        assert EventSet([RawEvent(EventKind.BREAKOUT, Direction.SHORT)]).breakout == Direction.SHORT
        assert EventSet([RawEvent(EventKind.REENTRY)]).reentry
        assert not EventSet().reentry

    def test_event_str(self):
        assert str(RawEvent(EventKind.BREAKOUT, Direction.LONG)) == "breakout:up"
        assert str(RawEvent(EventKind.MACD_CROSS, Direction.SHORT)) == "macd_cross:bearish"
        assert str(RawEvent(EventKind.REENTRY)) == "reentry"


class TestConfig:
    def test_defaults(self):
        cfg = IndicatorConfig()
        assert (cfg.macd_fast, cfg.macd_slow, cfg.macd_signal) == (12, 26, 9)
        assert cfg.box_lookback == 20

    def test_invalid_period(self):
        with pytest.raises(ValidationError, match="must be >= 1"):
            IndicatorConfig(ema_fast=0)

    def test_macd_order(self):
        with pytest.raises(ValidationError, match="must be below"):
            IndicatorConfig(macd_fast=30, macd_slow=26)

    def test_triggers_must_be_crossovers(self):
        with pytest.raises(ValidationError, match="crossover kinds"):
            PolicyConfig(triggers=[EventKind.BREAKOUT])

    def test_triggers_not_empty(self):
        with pytest.raises(ValidationError, match="at least one"):
            PolicyConfig(triggers=[])

    def test_pair_key(self):
        assert PairConfig(symbol="ETHUSDT", timeframe="4h").key == "ETHUSDT_4h"

    def test_presets(self):
        assert set(PRESETS) == {
            "macd_cross",
            "ema_cross",
            "macd_breakout",
            "ema_bollinger_breakout",
            "macd_bollinger_breakout",
            "macd_adx",
        }
        assert PRESETS["macd_breakout"].indicators.macd_slow == 50
        assert PRESETS["macd_adx"].policy.adx_min == 20.0
        assert PRESETS["ema_bollinger_breakout"].policy.name == "crossover_breakout"
