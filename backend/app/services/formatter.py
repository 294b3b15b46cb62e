"""Telegram message formatting for emitted signals."""

from decimal import ROUND_HALF_UP, Decimal

from core.indicators import rsi_zone
from core.models import Direction, Signal

COIN_EMOJIS = {
    "BTCUSDT": "🟠",
    "ETHUSDT": "⚫",
    "SOLUSDT": "🟢",
    "BNBUSDT": "🟡",
    "UNIUSDT": "🟣",
    "XRPUSDT": "🔵",
    "LTCUSDT": "⚪",
    "AAVEUSDT": "🔷",
    "SUIUSDT": "🔹",
    "ENAUSDT": "🟪",
    "ONDOUSDT": "🟤",
    "DOGEUSDT": "🐶",
    "DOTUSDT": "⚪",
    "ATOMUSDT": "🌌",
    "HBARUSDT": "🔴",
    "TIAUSDT": "🟡",
    "SHIBUSDT": "🐕",
    "PEPEUSDT": "🐸",
}
DEFAULT_EMOJI = "🔸"

_TRIGGER_TITLES = {
    "ema_cross": "EMA cross",
    "macd_cross": "MACD cross",
    "bollinger_cross": "EMA x Bollinger",
    "breakout": "Breakout",
}


def format_price(price: Decimal | float | None) -> str:
    """
    Format a price with precision scaled to its magnitude.

    < 0.01 -> 9 decimals, < 1 -> 4 decimals, otherwise 2.
    Missing or non-finite values render as 'N/A'.
    """
    if price is None:
        return "N/A"
    value = Decimal(str(price))
    if not value.is_finite():
        return "N/A"

    magnitude = abs(value)
    if magnitude < Decimal("0.01"):
        places = 9
    elif magnitude < 1:
        places = 4
    else:
        places = 2
    quantum = Decimal(1).scaleb(-places)
    return f"{value.quantize(quantum, rounding=ROUND_HALF_UP):f}"


def _title(signal: Signal) -> str:
    parts = [_TRIGGER_TITLES.get(t, t) for t in signal.trigger]
    return " + ".join(parts) if parts else signal.policy


def format_signal(signal: Signal) -> str:
    """Render a signal as a Markdown Telegram message."""
    emoji = COIN_EMOJIS.get(signal.symbol, DEFAULT_EMOJI)
    side = "🟢 LONG" if signal.direction == Direction.LONG else "🔴 SHORT"
    ind = signal.indicators

    lines = [
        f"✋ {emoji} *{_title(signal)}* on *{signal.symbol}* [{signal.timeframe}]",
        f"{side} | Price: ${format_price(signal.reference_price)}",
    ]

    if signal.box_high is not None and signal.box_low is not None:
        lines += [
            "",
            "📦 Range box",
            f"• High: ${format_price(signal.box_high)}",
            f"• Low:  ${format_price(signal.box_low)}",
            f"• Size: ${format_price(signal.box_size)}",
        ]

    lines += ["", f"✅ Cross {signal.direction.cross_label.upper()}"]

    ema_keys = sorted(
        (k for k in ind if k.startswith("ema")),
        key=lambda k: int(k[3:]),
    )
    if ema_keys:
        lines += ["", "📈 EMA:"]
        lines += [f"• {k[3:]}: ${format_price(ind[k])}" for k in ema_keys]

    extras = []
    if "bb_middle" in ind:
        extras.append(f"• BB middle: ${format_price(ind['bb_middle'])}")
    if "macd" in ind:
        extras.append(
            f"• MACD: {format_price(ind['macd'])} / signal {format_price(ind.get('macd_signal'))}"
        )
    if "rsi" in ind:
        rsi = ind["rsi"]
        extras.append(f"• RSI: {rsi.quantize(Decimal('0.01'))} ({rsi_zone(rsi)})")
    if "adx" in ind:
        extras.append(f"• ADX: {ind['adx'].quantize(Decimal('0.01'))}")
    if signal.volume_confirmed is not None:
        dot = "🟢 above" if signal.volume_confirmed else "⚪ not above"
        extras.append(f"• Volume: {dot} its EMAs")
    if extras:
        lines += ["", "📊 Indicators:"] + extras

    lines += [
        "",
        f"🎯 TP: ${format_price(signal.target_price)}",
        f"🛑 SL: ${format_price(signal.stop_price)}",
    ]
    return "\n".join(lines)
