"""Tests for the Bybit REST candle source."""

from decimal import Decimal

import httpx
import pytest

from app.clients.bybit_rest import INTERVAL_MAP, BybitRestClient, parse_kline_rows

# Newest first, as Bybit returns them
ROWS = [
    ["1704074400000", "102", "103", "101", "102.5", "10", "1000"],
    ["1704070800000", "101", "102", "100", "102", "11", "1100"],
    ["1704067200000", "100", "101", "99", "101", "12", "1200"],
]


def _ok(rows=ROWS):
    return httpx.Response(
        200,
        json={"retCode": 0, "retMsg": "OK", "result": {"category": "spot", "list": rows}},
    )


def _client(handler) -> BybitRestClient:
    return BybitRestClient(
        retry_backoff=0,
        calls_per_minute=60_000,
        transport=httpx.MockTransport(handler),
    )


def test_parse_rows_reverses_to_oldest_first():
    series = parse_kline_rows("BTCUSDT", "1h", ROWS)
    assert [c.open_time for c in series.candles] == [
        1704067200000,
        1704070800000,
        1704074400000,
    ]
    assert series.last.close == Decimal("102.5")
    assert series.candles[0].volume == Decimal("12")


def test_interval_map():
    assert INTERVAL_MAP["5m"] == "5"
    assert INTERVAL_MAP["1h"] == "60"
    assert INTERVAL_MAP["4h"] == "240"
    assert INTERVAL_MAP["1d"] == "D"
    assert INTERVAL_MAP["1w"] == "W"


@pytest.mark.asyncio
async def test_get_klines_request_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return _ok()

    client = _client(handler)
    try:
        series = await client.get_klines("BTCUSDT", "4h", limit=200)
    finally:
        await client.close()

    assert seen["path"] == "/v5/market/kline"
    assert seen["params"] == {
        "category": "spot",
        "symbol": "BTCUSDT",
        "interval": "240",
        "limit": "200",
    }
    assert series.key == "BTCUSDT_4h"
    assert len(series) == 3


@pytest.mark.asyncio
async def test_limit_is_capped():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["limit"] = request.url.params["limit"]
        return _ok()

    client = _client(handler)
    await client.get_klines("BTCUSDT", "1h", limit=5000)
    await client.close()
    assert seen["limit"] == "1000"


@pytest.mark.asyncio
async def test_retries_then_succeeds():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503)
        return _ok()

    client = _client(handler)
    series = await client.get_klines("BTCUSDT", "1h")
    await client.close()

    assert len(calls) == 3
    assert len(series) == 3


@pytest.mark.asyncio
async def test_exhausted_retries_return_empty_series():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("unreachable", request=request)

    client = _client(handler)
    series = await client.get_klines("BTCUSDT", "1h")
    await client.close()

    # One attempt plus two retries
    assert len(calls) == 3
    assert len(series) == 0
    assert series.key == "BTCUSDT_1h"


@pytest.mark.asyncio
async def test_api_error_code_is_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"retCode": 10001, "retMsg": "params error"})

    client = _client(handler)
    series = await client.get_klines("BTCUSDT", "1h")
    await client.close()

    assert len(calls) == 3
    assert len(series) == 0


@pytest.mark.asyncio
async def test_malformed_rows_return_empty_series():
    bad = [["1704067200000", "100", "99", "101", "100", "1", "1"]]  # high < low

    client = _client(lambda request: _ok(bad))
    series = await client.get_klines("BTCUSDT", "1h")
    await client.close()

    assert len(series) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        [1, 2, 3],  # payload is not an object
        {"retCode": 0, "result": ["x"]},  # result is not an object
        {"retCode": 0, "result": {"list": [["1704067200000", "100", "101"]]}},  # short row
        {"retCode": 0, "result": {"list": [None]}},
        {"retCode": 0, "result": {"list": [["1704067200000", "abc", "1", "1", "1", "1"]]}},
    ],
)
async def test_unexpected_shapes_are_retried_then_empty(body):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=body)

    client = _client(handler)
    series = await client.get_klines("BTCUSDT", "1h")
    await client.close()

    assert len(calls) == 3
    assert len(series) == 0


@pytest.mark.asyncio
async def test_unsupported_timeframe():
    client = _client(lambda request: _ok())
    with pytest.raises(ValueError, match="Unsupported timeframe"):
        await client.get_klines("BTCUSDT", "7m")
    await client.close()
