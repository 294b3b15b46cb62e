"""REST API routes."""

import logging

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from core.indicators import IndicatorCalculator

logger = logging.getLogger(__name__)

router = APIRouter()


# Response models
class PairResponse(BaseModel):
    """Tracked pair response model."""

    key: str
    symbol: str
    timeframe: str
    policy: str
    triggers: list[str]
    adx_min: float | None = None
    min_candles: int


class StateResponse(BaseModel):
    """Per-key signal state response model."""

    key: str
    phase: str
    policy: str
    armed_direction: int | None = None
    notified: bool
    last_emitted_direction: int | None = None
    breakout_direction: int | None = None


def _get_engine(request: Request):
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Engine not started")
    return engine


@router.get("/pairs", response_model=list[PairResponse])
async def get_pairs(request: Request):
    """List tracked pairs with their policy."""
    engine = _get_engine(request)
    return [
        PairResponse(
            key=pair.key,
            symbol=pair.symbol,
            timeframe=pair.timeframe,
            policy=pair.policy.name,
            triggers=[t.value for t in pair.policy.triggers],
            adx_min=pair.policy.adx_min,
            min_candles=IndicatorCalculator(pair.indicators).min_candles,
        )
        for pair in engine.pairs
    ]


@router.get("/state", response_model=list[StateResponse])
async def get_state(request: Request):
    """Current dedup state of every tracked pair."""
    engine = _get_engine(request)
    return [
        StateResponse(key=key, **values)
        for key, values in engine.snapshot_states().items()
    ]


@router.get("/state/{symbol}/{timeframe}", response_model=StateResponse)
async def get_pair_state(request: Request, symbol: str, timeframe: str):
    """Current state of one pair."""
    engine = _get_engine(request)
    key = f"{symbol.upper()}_{timeframe}"
    states = engine.snapshot_states()
    if key not in states:
        raise HTTPException(status_code=404, detail=f"Pair {key} is not tracked")
    return StateResponse(key=key, **states[key])
