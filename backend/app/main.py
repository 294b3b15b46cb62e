"""Main application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

# Configure logging FIRST, before any other imports
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)

# Reduce noise from third-party libraries (must be set before importing them)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse, PlainTextResponse

from app.api import router
from app.clients import BybitRestClient, TelegramNotifier, build_notifiers
from app.config import get_settings
from app.services import MarketPoller
from app.trading_config import load_trading_config
from core.signal_engine import SignalEngine

logger = logging.getLogger(__name__)

# Global services
engine: SignalEngine | None = None
poller: MarketPoller | None = None
candle_source: BybitRestClient | None = None
notifiers: list[TelegramNotifier] = []
_poll_task: asyncio.Task | None = None
_stop_event: asyncio.Event | None = None


async def _close_clients() -> None:
    if candle_source:
        try:
            await candle_source.close()
        except Exception as e:
            logger.warning(f"Error closing Bybit client: {e}")
    for notifier in notifiers:
        try:
            await notifier.close()
        except Exception as e:
            logger.warning(f"Error closing Telegram client: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global engine, poller, candle_source, notifiers, _poll_task, _stop_event

    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())
    logger.info("Starting crossover alert engine...")

    try:
        config_path = Path(settings.trading_config_path) if settings.trading_config_path else None
        trading_config = load_trading_config(config_path)
        engine = SignalEngine(trading_config.get_pairs())

        if settings.fetch_limit < engine.min_candles:
            logger.warning(
                "fetch_limit=%d is below the %d candles the slowest indicator needs; "
                "those pairs will be skipped",
                settings.fetch_limit, engine.min_candles,
            )

        candle_source = BybitRestClient(
            base_url=settings.bybit_base_url,
            category=settings.bybit_category,
            timeout=settings.request_timeout,
            max_retries=settings.fetch_retries,
            retry_backoff=settings.retry_backoff,
            calls_per_minute=settings.requests_per_minute,
        )
        notifiers = build_notifiers(
            settings.telegram_tokens,
            settings.telegram_chat_ids,
            timeout=settings.notify_timeout,
        )
        if not notifiers:
            logger.warning("No Telegram destinations configured, signals will only be logged")

        poller = MarketPoller(engine, candle_source, notifiers, settings)
        _stop_event = asyncio.Event()
        _poll_task = asyncio.create_task(poller.run(_stop_event))

        # Expose services to API routes via app.state
        app.state.engine = engine
        app.state.poller = poller

    except Exception as e:
        logger.error(f"Startup failed: {e}")
        await _close_clients()
        raise  # Re-raise to prevent app from starting in broken state

    yield

    # Shutdown
    logger.info("Shutting down...")
    app.state.engine = None
    app.state.poller = None

    if _stop_event:
        _stop_event.set()
    if _poll_task:
        try:
            await asyncio.wait_for(_poll_task, timeout=settings.request_timeout * 2)
        except asyncio.TimeoutError:
            _poll_task.cancel()
            try:
                await _poll_task
            except asyncio.CancelledError:
                pass

    await _close_clients()
    logger.info("Shutdown complete")


# Create FastAPI app with orjson for faster JSON serialization
app = FastAPI(
    title="Crossover Alert Engine",
    description="Crossover and breakout alerts for crypto spot markets",
    version="0.1.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include REST routes
app.include_router(router, prefix="/api")


@app.get("/", response_class=PlainTextResponse)
async def root():
    """Liveness text."""
    return "✅ Crossover alert bot active"


@app.get("/health")
async def health():
    """Health check endpoint with the last tick summary."""
    report = poller.last_report if poller else None
    return {
        "status": "healthy" if poller else "starting",
        "pairs": len(engine.pairs) if engine else 0,
        "ticks": poller.ticks if poller else 0,
        "last_tick": report.to_dict() if report else None,
    }


def main():
    """Run the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
