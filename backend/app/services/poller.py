"""Poll loop: fetch candles, evaluate every tracked pair, deliver signals."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

from app.config import Settings
from app.services.formatter import format_signal
from core.models import CandleSeries, PairConfig, Signal
from core.signal_engine import EvaluationResult, SignalEngine

logger = logging.getLogger(__name__)


class CandleSource(Protocol):
    async def get_klines(self, symbol: str, timeframe: str, limit: int) -> CandleSeries:
        ...


class Notifier(Protocol):
    destination: str

    async def deliver(self, message: str) -> bool:
        ...


@dataclass
class TickReport:
    """Outcome of one pass over every tracked pair."""

    started_at: datetime
    finished_at: datetime | None = None
    evaluated: int = 0
    skipped: list[str] = field(default_factory=list)
    signals: list[Signal] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)
    delivered: int = 0
    delivery_failures: int = 0

    @property
    def duration(self) -> float | None:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration": self.duration,
            "evaluated": self.evaluated,
            "skipped": list(self.skipped),
            "signals": [s.id for s in self.signals],
            "failures": dict(self.failures),
            "delivered": self.delivered,
            "delivery_failures": self.delivery_failures,
        }


class MarketPoller:
    """Drives the engine on a fixed cadence.

    Each key has its own lock so that its state never has two writers, and
    a failure in one key never aborts the tick for the others.
    """

    def __init__(
        self,
        engine: SignalEngine,
        source: CandleSource,
        notifiers: list[Notifier],
        settings: Settings,
    ):
        self.engine = engine
        self.source = source
        self.notifiers = notifiers
        self.settings = settings
        self._locks: dict[str, asyncio.Lock] = {
            pair.key: asyncio.Lock() for pair in engine.pairs
        }
        self._last_report: TickReport | None = None
        self._ticks = 0

    @property
    def last_report(self) -> TickReport | None:
        return self._last_report

    @property
    def ticks(self) -> int:
        return self._ticks

    async def _notify(self, signal: Signal, report: TickReport) -> None:
        """Send to every destination. Failures are counted, not retried."""
        message = format_signal(signal)
        for notifier in self.notifiers:
            try:
                ok = await notifier.deliver(message)
            except Exception:
                logger.exception("Notifier %s raised", notifier.destination)
                ok = False
            if ok:
                report.delivered += 1
            else:
                report.delivery_failures += 1

    async def _process_pair(
        self,
        pair: PairConfig,
        semaphore: asyncio.Semaphore,
        report: TickReport,
    ) -> None:
        async with semaphore:
            try:
                async with self._locks[pair.key]:
                    series = await self.source.get_klines(
                        pair.symbol, pair.timeframe, self.settings.fetch_limit
                    )
                    if not len(series):
                        logger.warning("%s: no candles received, skipping", pair.key)
                        report.skipped.append(pair.key)
                        return

                    result: EvaluationResult = self.engine.evaluate(series)
                    if result.skipped:
                        report.skipped.append(pair.key)
                        return

                    report.evaluated += 1
                    if result.signal is not None:
                        report.signals.append(result.signal)
                        await self._notify(result.signal, report)
            except Exception as e:
                logger.exception("%s: evaluation failed", pair.key)
                report.failures[pair.key] = str(e) or type(e).__name__
            finally:
                if self.settings.pace_delay > 0:
                    await asyncio.sleep(self.settings.pace_delay)

    async def run_once(self) -> TickReport:
        """Evaluate every tracked pair once."""
        report = TickReport(started_at=datetime.now(timezone.utc))
        semaphore = asyncio.Semaphore(max(1, self.settings.max_concurrency))

        await asyncio.gather(
            *(self._process_pair(pair, semaphore, report) for pair in self.engine.pairs)
        )

        report.finished_at = datetime.now(timezone.utc)
        self._last_report = report
        self._ticks += 1

        logger.info(
            "Tick %d: %d evaluated, %d skipped, %d signals, %d failures (%.1fs)",
            self._ticks,
            report.evaluated,
            len(report.skipped),
            len(report.signals),
            len(report.failures),
            report.duration or 0.0,
        )
        return report

    async def run(self, stop_event: asyncio.Event) -> None:
        """Tick every ``poll_interval`` seconds until ``stop_event`` is set.

        Stopping is checked between ticks; a tick in progress completes.
        """
        logger.info(
            "Poller started: %d pairs every %.0fs",
            len(self.engine.pairs), self.settings.poll_interval,
        )
        while not stop_event.is_set():
            try:
                await self.run_once()
            except Exception:
                logger.exception("Tick failed")
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.settings.poll_interval)
            except asyncio.TimeoutError:
                pass
        logger.info("Poller stopped after %d ticks", self._ticks)
