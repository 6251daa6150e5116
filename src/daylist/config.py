# src/daylist/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time; every value has a local default.
- Components receive settings by injection; get_settings() is only the default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "DAYLIST"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


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

    # ---- Identity / dates ----
    owner_id: str
    timezone: str

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Auto-closure sweeper ----
    sweeper_enabled: bool
    sweep_interval_seconds: float
    sweep_lookback_days: int

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "daylist").strip() or "daylist"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        owner_id = _env(_k("OWNER_ID"), "local").strip() or "local"
        timezone = _env(_k("TIMEZONE"), "UTC").strip() or "UTC"

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        sweeper_enabled = _env_bool(_k("SWEEPER_ENABLED"), True)
        sweep_interval_seconds = _env_float(_k("SWEEP_INTERVAL_SECONDS"), 3600.0)
        # Yesterday only by default; larger values let a late run catch up.
        sweep_lookback_days = max(1, _env_int(_k("SWEEP_LOOKBACK_DAYS"), 1))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/daylist"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            owner_id=owner_id,
            timezone=timezone,
            console_enabled=console_enabled,
            sweeper_enabled=sweeper_enabled,
            sweep_interval_seconds=sweep_interval_seconds,
            sweep_lookback_days=sweep_lookback_days,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
