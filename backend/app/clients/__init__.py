"""Exchange and messaging clients."""

from app.clients.bybit_rest import (
    BybitApiError,
    BybitRestClient,
    INTERVAL_MAP,
    RateLimiter,
)
from app.clients.telegram import TelegramNotifier, build_notifiers

__all__ = [
    "BybitApiError",
    "BybitRestClient",
    "INTERVAL_MAP",
    "RateLimiter",
    "TelegramNotifier",
    "build_notifiers",
]
