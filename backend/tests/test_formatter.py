"""Tests for signal message formatting."""

from datetime import datetime, timezone
from decimal import Decimal

from app.services.formatter import format_price, format_signal
from core.models import Direction, Signal


class TestFormatPrice:
    def test_large_price(self):
        assert format_price(Decimal("43210.123")) == "43210.12"

    def test_sub_dollar(self):
        assert format_price(Decimal("0.123456")) == "0.1235"

    def test_micro_price(self):
        assert format_price(Decimal("0.0000123456789")) == "0.000012346"

    def test_pepe_scale_keeps_nine_places(self):
        assert format_price(Decimal("0.00000712")) == "0.000007120"

    def test_float_input(self):
        assert format_price(1.5) == "1.50"

    def test_missing(self):
        assert format_price(None) == "N/A"
        assert format_price(Decimal("NaN")) == "N/A"
        assert format_price(float("nan")) == "N/A"


def _signal(**overrides) -> Signal:
    values = dict(
        policy="arm_confirm",
        symbol="BTCUSDT",
        timeframe="4h",
        direction=Direction.LONG,
        signal_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
        reference_price=Decimal("106"),
        target_price=Decimal("113"),
        stop_price=Decimal("102.5"),
        trigger=["macd_cross", "breakout"],
        indicators={
            "ema12": Decimal("104.1"),
            "ema26": Decimal("103.2"),
            "ema200": Decimal("95"),
            "ema50": Decimal("99"),
            "macd": Decimal("0.8"),
            "macd_signal": Decimal("0.5"),
            "bb_middle": Decimal("101"),
            "rsi": Decimal("74.321"),
            "adx": Decimal("28.5"),
        },
        box_high=Decimal("105"),
        box_low=Decimal("98"),
    )
    values.update(overrides)
    return Signal(**values)


class TestFormatSignal:
    def test_long_message(self):
        text = format_signal(_signal())
        assert "🟠 *MACD cross + Breakout* on *BTCUSDT* [4h]" in text
        assert "🟢 LONG | Price: $106.00" in text
        assert "• High: $105.00" in text
        assert "• Size: $7.00" in text
        assert "✅ Cross BULLISH" in text
        assert "🎯 TP: $113.00" in text
        assert "🛑 SL: $102.50" in text
        assert "RSI: 74.32 (overbought)" in text
        assert "ADX: 28.50" in text
        assert "BB middle: $101.00" in text

    def test_emas_in_period_order(self):
        text = format_signal(_signal())
        positions = [text.index(f"• {p}: $") for p in ("12", "26", "50", "200")]
        assert positions == sorted(positions)

    def test_short_without_box(self):
        text = format_signal(
            _signal(
                direction=Direction.SHORT,
                symbol="NEWUSDT",
                box_high=None,
                box_low=None,
                indicators={},
                trigger=["ema_cross"],
            )
        )
        assert "🔸 *EMA cross* on *NEWUSDT*" in text
        assert "🔴 SHORT" in text
        assert "Range box" not in text
        assert "Cross BEARISH" in text
        assert "Indicators" not in text

    def test_volume_confirmation(self):
        assert "• Volume: 🟢 above its EMAs" in format_signal(_signal(volume_confirmed=True))
        assert "• Volume: ⚪ not above its EMAs" in format_signal(_signal(volume_confirmed=False))
        assert "Volume" not in format_signal(_signal())
