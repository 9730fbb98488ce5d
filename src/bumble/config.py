# src/bumble/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

One Settings object for the whole app. Nothing is required at import time;
every value has a default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

ENV_PREFIX = "BUMBLE"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv
    except ImportError:
        return
    load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_dir: Path

    # ---- Frame loop ----
    framerate: float

    # ---- Resource fetching ----
    fetch_workers: int
    fetch_timeout: float
    asset_root: Path

    @property
    def frame_interval(self) -> float:
        return 1.0 / self.framerate

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "bumble") or "bumble"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        log_dir = _env_path(_k("LOG_DIR"), Path(".local/bumble"))

        framerate = _env_float(_k("FRAMERATE"), 60.0)
        if framerate <= 0:
            framerate = 60.0

        fetch_workers = max(1, _env_int(_k("FETCH_WORKERS"), 4))
        fetch_timeout = max(0.1, _env_float(_k("FETCH_TIMEOUT"), 30.0))
        asset_root = _env_path(_k("ASSET_ROOT"), Path("."))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            log_dir=log_dir,
            framerate=framerate,
            fetch_workers=fetch_workers,
            fetch_timeout=fetch_timeout,
            asset_root=asset_root,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    _load_dotenv_if_available()
    return Settings.from_env()
