import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_REFRESH_SECONDS = 1.0
DEFAULT_DEBUG_DIR = "debug_output"
DEFAULT_SAVE_INTERVAL = 300.0
DEFAULT_LOG_LEVEL = "INFO"


@dataclass
class CoachConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    refresh_seconds: float = DEFAULT_REFRESH_SECONDS
    debug_dir: str = DEFAULT_DEBUG_DIR
    save_interval: float = DEFAULT_SAVE_INTERVAL
    log_level: str = DEFAULT_LOG_LEVEL


def _number(env: Mapping[str, str], key: str, default, cast):
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}")
    if value < 0:
        raise ValueError(f"{key} must not be negative, got {raw!r}")
    return value


def load_config(env: Optional[Mapping[str, str]] = None) -> CoachConfig:
    """
    Resolves settings from COACH_* environment variables, falling back to the
    module defaults.

    Raises ValueError for numeric settings that do not parse.
    """
    env = os.environ if env is None else env
    log_level = (env.get("COACH_LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"COACH_LOG_LEVEL is not a logging level: {log_level!r}")
    return CoachConfig(
        host=(env.get("COACH_HOST") or DEFAULT_HOST).strip(),
        port=_number(env, "COACH_PORT", DEFAULT_PORT, int),
        refresh_seconds=_number(env, "COACH_REFRESH_SECONDS", DEFAULT_REFRESH_SECONDS, float),
        debug_dir=(env.get("COACH_DEBUG_DIR") or DEFAULT_DEBUG_DIR).strip(),
        save_interval=_number(env, "COACH_SAVE_INTERVAL", DEFAULT_SAVE_INTERVAL, float),
        log_level=log_level,
    )
