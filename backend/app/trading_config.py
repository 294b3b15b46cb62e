"""Trading configuration loaded from trading.yaml.

Supports:
- Preset selection: any name in core.models.config.PRESETS
- Watchlist as symbols x timeframes, all sharing the preset
- Per-pair overrides under ``pairs:`` (indicator periods, policy, enabled)
- No YAML file = default watchlist on the "macd_breakout" preset
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, model_validator

from core.models.config import PRESETS, PairConfig

logger = logging.getLogger(__name__)

DEFAULT_PRESET = "macd_breakout"
DEFAULT_SYMBOLS = ["BTCUSDT", "ETHUSDT", "SOLUSDT", "XRPUSDT", "DOGEUSDT"]
DEFAULT_TIMEFRAMES = ["15m", "1h", "4h"]


class PairEntry(BaseModel):
    """A per-pair override in the YAML config.

    ``indicators`` and ``policy`` are partial: only the keys given replace
    the preset's values.
    """

    symbol: str
    timeframe: str
    enabled: bool = True
    preset: str | None = None
    indicators: dict[str, Any] = {}
    policy: dict[str, Any] = {}

    @property
    def key(self) -> str:
        return f"{self.symbol}_{self.timeframe}"


class TradingConfig(BaseModel):
    """Top-level trading.yaml configuration."""

    preset: str = DEFAULT_PRESET
    symbols: list[str] = DEFAULT_SYMBOLS
    timeframes: list[str] = DEFAULT_TIMEFRAMES
    pairs: list[PairEntry] = []

    @model_validator(mode="after")
    def _validate(self):
        names = [self.preset] + [p.preset for p in self.pairs if p.preset]
        for name in names:
            if name not in PRESETS:
                raise ValueError(
                    f"preset must be one of {sorted(PRESETS)}, got '{name}'"
                )
        return self

    def _build_pair(
        self,
        symbol: str,
        timeframe: str,
        entry: PairEntry | None = None,
    ) -> PairConfig:
        preset = PRESETS[(entry.preset if entry and entry.preset else self.preset)]
        indicators = preset.indicators.model_copy(deep=True)
        policy = preset.policy.model_copy(deep=True)
        enabled = True

        if entry is not None:
            enabled = entry.enabled
            if entry.indicators:
                indicators = type(indicators).model_validate(
                    {**indicators.model_dump(), **entry.indicators}
                )
            if entry.policy:
                policy = type(policy).model_validate(
                    {**policy.model_dump(), **entry.policy}
                )

        return PairConfig(
            symbol=symbol,
            timeframe=timeframe,
            enabled=enabled,
            indicators=indicators,
            policy=policy,
        )

    def get_pairs(self) -> list[PairConfig]:
        """Resolve watchlist and overrides into one PairConfig per key.

        Overrides for a key outside symbols x timeframes add that key.
        """
        overrides = {p.key: p for p in self.pairs}
        result: list[PairConfig] = []
        seen: set[str] = set()

        for symbol in self.symbols:
            for timeframe in self.timeframes:
                key = f"{symbol}_{timeframe}"
                if key in seen:
                    continue
                seen.add(key)
                result.append(self._build_pair(symbol, timeframe, overrides.get(key)))

        for key, entry in overrides.items():
            if key not in seen:
                seen.add(key)
                result.append(self._build_pair(entry.symbol, entry.timeframe, entry))

        return result


_DEFAULT_PATH = Path(__file__).parent.parent / "trading.yaml"


def load_trading_config(path: Path | None = None) -> TradingConfig:
    """Load trading config from YAML file.

    Falls back to defaults (macd_breakout preset, default watchlist) if the
    file doesn't exist.
    """
    config_path = path or _DEFAULT_PATH

    # Load .env next to the YAML so BOT_TOKENS/CHAT_IDS reach Settings
    env_path = config_path.parent / ".env"
    load_dotenv(env_path, override=False)

    if not config_path.exists():
        logger.info(
            "No trading.yaml found at %s, using defaults (preset %s)",
            config_path,
            DEFAULT_PRESET,
        )
        return TradingConfig()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    config = TradingConfig(**raw)
    pairs = config.get_pairs()
    logger.info(
        "Loaded trading config: preset=%s, %d pairs (%d enabled), %d overrides",
        config.preset,
        len(pairs),
        sum(1 for p in pairs if p.enabled),
        len(config.pairs),
    )
    return config
