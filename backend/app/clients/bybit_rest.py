"""Bybit v5 REST client for fetching recent candles."""

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
from pydantic import ValidationError

from core.models import Candle, CandleSeries

logger = logging.getLogger(__name__)

# Bybit interval codes
INTERVAL_MAP = {
    "1m": "1",
    "3m": "3",
    "5m": "5",
    "15m": "15",
    "30m": "30",
    "1h": "60",
    "2h": "120",
    "4h": "240",
    "6h": "360",
    "12h": "720",
    "1d": "D",
    "1w": "W",
}

# Bybit caps /v5/market/kline at 1000 rows per request
MAX_LIMIT = 1000


class BybitApiError(Exception):
    """Bybit answered with a non-zero retCode."""

    def __init__(self, code: int, message: str):
        super().__init__(f"Bybit error {code}: {message}")
        self.code = code
        self.message = message


class RateLimiter:
    """Simple rate limiter for API calls."""

    def __init__(self, calls_per_minute: int = 600):
        self.calls_per_minute = calls_per_minute
        self.interval = 60.0 / calls_per_minute
        self.last_call = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait if necessary to respect rate limit."""
        async with self._lock:
            now = asyncio.get_running_loop().time()
            wait_time = self.last_call + self.interval - now
            if wait_time > 0:
                await asyncio.sleep(wait_time)
            self.last_call = asyncio.get_running_loop().time()


def parse_kline_rows(symbol: str, timeframe: str, rows: list[list[Any]]) -> CandleSeries:
    """
    Build a CandleSeries from Bybit kline rows.

    Bybit returns rows newest first as
    ``[startTime, open, high, low, close, volume, turnover]`` strings.

    Raises:
        ValueError / ValidationError: On malformed rows or unordered times
    """
    if not isinstance(rows, list):
        raise ValueError(f"Kline list expected, got {type(rows).__name__}")
    for row in rows:
        if not isinstance(row, list) or len(row) < 6:
            raise ValueError(f"Malformed kline row: {row!r}")

    candles = [
        Candle(
            open_time=int(row[0]),
            open=Decimal(str(row[1])),
            high=Decimal(str(row[2])),
            low=Decimal(str(row[3])),
            close=Decimal(str(row[4])),
            volume=Decimal(str(row[5])),
        )
        for row in reversed(rows)
    ]
    return CandleSeries(symbol=symbol, timeframe=timeframe, candles=candles)


class BybitRestClient:
    """Bybit v5 market data client."""

    BASE_URL = "https://api.bybit.com"

    def __init__(
        self,
        base_url: str = BASE_URL,
        category: str = "spot",
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_backoff: float = 1.0,
        calls_per_minute: int = 600,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.category = category
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.rate_limiter = RateLimiter(calls_per_minute)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, endpoint: str, params: dict[str, Any]) -> Any:
        """GET with rate limiting; returns the ``result`` object."""
        await self.rate_limiter.acquire()
        client = await self._get_client()
        response = await client.get(endpoint, params=params)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise BybitApiError(-1, f"unexpected payload type {type(payload).__name__}")
        code = payload.get("retCode", -1)
        if code != 0:
            raise BybitApiError(code, payload.get("retMsg", ""))
        result = payload.get("result") or {}
        if not isinstance(result, dict):
            raise BybitApiError(-1, f"unexpected result type {type(result).__name__}")
        return result

    async def get_klines(
        self,
        symbol: str,
        timeframe: str,
        limit: int = 300,
    ) -> CandleSeries:
        """
        Fetch the most recent candles, oldest first.

        Args:
            symbol: Trading pair (e.g., "BTCUSDT")
            timeframe: Timeframe (e.g., "15m", "1h"), see INTERVAL_MAP
            limit: Number of candles (max 1000)

        Returns:
            CandleSeries; empty when every attempt failed

        Raises:
            ValueError: If the timeframe is not supported
        """
        interval = INTERVAL_MAP.get(timeframe)
        if interval is None:
            raise ValueError(
                f"Unsupported timeframe '{timeframe}', expected one of {list(INTERVAL_MAP)}"
            )

        params = {
            "category": self.category,
            "symbol": symbol,
            "interval": interval,
            "limit": min(limit, MAX_LIMIT),
        }

        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                result = await self._request("/v5/market/kline", params)
                return parse_kline_rows(symbol, timeframe, result.get("list") or [])
            except (
                httpx.HTTPError,
                BybitApiError,
                ValidationError,
                ValueError,
                TypeError,
                InvalidOperation,
            ) as e:
                if attempt < attempts:
                    logger.warning(
                        "Kline fetch %s %s failed (attempt %d/%d): %s, retrying in %.1fs",
                        symbol, timeframe, attempt, attempts, e, self.retry_backoff,
                    )
                    await asyncio.sleep(self.retry_backoff)
                else:
                    logger.error(
                        "Kline fetch %s %s failed after %d attempts: %s",
                        symbol, timeframe, attempts, e,
                    )

        return CandleSeries(symbol=symbol, timeframe=timeframe)
