"""Business services."""

from app.services.formatter import COIN_EMOJIS, format_price, format_signal
from app.services.poller import MarketPoller, TickReport

__all__ = [
    "COIN_EMOJIS",
    "format_price",
    "format_signal",
    "MarketPoller",
    "TickReport",
]
