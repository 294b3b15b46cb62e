#!/usr/bin/env python3
"""
Dry signal check
================

Fetches recent candles for one pair from Bybit and runs them through the
engine without sending anything:

1. Indicator snapshot of the newest candle
2. Events detected on that candle
3. Optional replay of the last N windows, printing every state change
   and every signal that would have been sent

Usage:
    python scripts/check_signals.py BTCUSDT 1h
    python scripts/check_signals.py ETHUSDT 4h --preset ema_bollinger_breakout --replay 200
"""

import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.clients import BybitRestClient, INTERVAL_MAP
from app.config import get_settings
from app.services import format_signal
from core.models import PRESETS, PairConfig
from core.signal_engine import SignalEngine


def _print_snapshot(result) -> None:
    snapshot = result.snapshot
    print(f"  candle time : {snapshot.timestamp.isoformat()}")
    print(f"  close       : {snapshot.close}")
    if snapshot.box is not None:
        box = snapshot.box
        print(f"  range box   : {box.low} - {box.high} (valid={box.is_valid})")
    for name, value in snapshot.supporting_indicators().items():
        print(f"  {name:<12}: {value}")
    events = [str(e) for e in result.events] or ["none"]
    print(f"  events      : {', '.join(events)}")
    print(f"  phase       : {result.phase.value}")


async def check_signals(symbol: str, timeframe: str, preset_name: str, limit: int, replay: int):
    settings = get_settings()
    preset = PRESETS[preset_name]
    pair = PairConfig(
        symbol=symbol,
        timeframe=timeframe,
        indicators=preset.indicators.model_copy(deep=True),
        policy=preset.policy.model_copy(deep=True),
    )
    engine = SignalEngine([pair])

    client = BybitRestClient(
        base_url=settings.bybit_base_url,
        category=settings.bybit_category,
        timeout=settings.request_timeout,
        max_retries=settings.fetch_retries,
        retry_backoff=settings.retry_backoff,
    )
    try:
        series = await client.get_klines(symbol, timeframe, limit)
    finally:
        await client.close()

    print()
    print("=" * 70)
    print(f"   {symbol} [{timeframe}] preset={preset_name} candles={len(series)}")
    print("=" * 70)

    if not len(series):
        print("  ✗ no candles received")
        return
    if len(series) < engine.min_candles:
        print(f"  ! {len(series)} candles, {engine.min_candles} needed for every indicator")

    start = max(1, len(series) - replay) if replay else len(series)
    sent = 0
    previous_phase = None
    for size in range(start, len(series) + 1):
        result = engine.evaluate(series.window(size))
        if result.skipped:
            continue
        if replay and result.phase != previous_phase:
            print(f"  [{result.snapshot.timestamp:%Y-%m-%d %H:%M}] -> {result.phase.value}"
                  f" ({', '.join(str(e) for e in result.events) or 'no events'})")
            previous_phase = result.phase
        if result.signal is not None:
            sent += 1
            print()
            print(format_signal(result.signal))
            print()

    print()
    print("[latest candle]")
    print("-" * 70)
    if result.skipped:
        print(f"  skipped: {result.skipped}")
    else:
        _print_snapshot(result)
    print()
    print(f"  signals that would have been sent: {sent}")


def main():
    parser = argparse.ArgumentParser(description="Dry evaluation of one pair (no notifications)")
    parser.add_argument("symbol", help="Trading pair, e.g. BTCUSDT")
    parser.add_argument("timeframe", choices=list(INTERVAL_MAP), help="Timeframe")
    parser.add_argument(
        "--preset", default="macd_breakout", choices=sorted(PRESETS), help="Strategy preset"
    )
    parser.add_argument("--limit", type=int, default=300, help="Candles to fetch (max 1000)")
    parser.add_argument(
        "--replay", type=int, default=0,
        help="Also replay the last N windows through the state machine",
    )
    args = parser.parse_args()

    asyncio.run(
        check_signals(args.symbol.upper(), args.timeframe, args.preset, args.limit, args.replay)
    )


if __name__ == "__main__":
    main()
