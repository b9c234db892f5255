"""Runtime settings read from the environment."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import logging
import math
import os

logger = logging.getLogger(__name__)

DEFAULT_STATS_PATH = Path.home() / ".tictactoe" / "stats.json"


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    stats_path: Path = DEFAULT_STATS_PATH
    ai_delay: float = 0.5
    log_level: str = "INFO"


def _number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r, using %r", name, raw, default)
        return default
    if not math.isfinite(value) or value < 0:
        logger.warning("Ignoring out-of-range %s=%r, using %r", name, raw, default)
        return default
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env
    stats_path = env.get("TICTACTOE_STATS_PATH")
    return Settings(
        host=env.get("TICTACTOE_HOST", Settings.host),
        port=_number(env, "TICTACTOE_PORT", Settings.port, int),
        stats_path=Path(stats_path).expanduser() if stats_path else DEFAULT_STATS_PATH,
        ai_delay=_number(env, "TICTACTOE_AI_DELAY", Settings.ai_delay, float),
        log_level=env.get("TICTACTOE_LOG_LEVEL", Settings.log_level).upper(),
    )
