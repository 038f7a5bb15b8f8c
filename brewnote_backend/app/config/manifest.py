# brewnote_backend/app/config/manifest.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from brewnote_backend.app.utils.logs import get_logger
from .paths import clean_env, get_data_dir

log = get_logger("config")

DEFAULT_REMOTE_URL = "https://api.openai.com/v1"
DEFAULT_REMOTE_MODEL = "gpt-4o-mini"
DEFAULT_REMOTE_TIMEOUT_S = 10.0
DEFAULT_SETTLE_DELAY_S = 1.0
DEFAULT_HISTORY_LIMIT = 5


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    remote_api_key: Optional[str] = None
    remote_base_url: str = DEFAULT_REMOTE_URL
    remote_model: str = DEFAULT_REMOTE_MODEL
    remote_timeout_s: float = DEFAULT_REMOTE_TIMEOUT_S
    settle_delay_s: float = DEFAULT_SETTLE_DELAY_S
    history_limit: int = DEFAULT_HISTORY_LIMIT

    @property
    def remote_enabled(self) -> bool:
        return bool(self.remote_api_key)


def _env_float(name: str, default: float) -> float:
    raw = clean_env(os.getenv(name))
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("ignoring %s=%r (not a number); using %s", name, raw, default)
        return default

def _env_int(name: str, default: int) -> int:
    raw = clean_env(os.getenv(name))
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("ignoring %s=%r (not an integer); using %s", name, raw, default)
        return default


# What it does:
# Snapshot the environment into a Settings object. Called at wiring time, not import time.
def load_settings() -> Settings:
    api_key = clean_env(os.getenv("BREWNOTE_REMOTE_API_KEY")) or clean_env(os.getenv("OPENAI_API_KEY"))
    return Settings(
        data_dir=get_data_dir(),
        remote_api_key=api_key,
        remote_base_url=clean_env(os.getenv("BREWNOTE_REMOTE_URL")) or DEFAULT_REMOTE_URL,
        remote_model=clean_env(os.getenv("BREWNOTE_REMOTE_MODEL")) or DEFAULT_REMOTE_MODEL,
        remote_timeout_s=_env_float("BREWNOTE_REMOTE_TIMEOUT_S", DEFAULT_REMOTE_TIMEOUT_S),
        settle_delay_s=max(0.0, _env_float("BREWNOTE_SETTLE_DELAY_S", DEFAULT_SETTLE_DELAY_S)),
        history_limit=max(1, _env_int("BREWNOTE_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT)),
    )


__all__ = [
    "Settings", "load_settings",
    "DEFAULT_REMOTE_URL", "DEFAULT_REMOTE_MODEL", "DEFAULT_REMOTE_TIMEOUT_S",
    "DEFAULT_SETTLE_DELAY_S", "DEFAULT_HISTORY_LIMIT",
]
