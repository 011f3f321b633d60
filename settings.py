from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional, TypeVar


_READINGS_PATH_ENV = "READINGS_TABLE_PATH"
_ALERTS_PATH_ENV = "ALERTS_TABLE_PATH"
_INTERVAL_ENV = "SIMULATION_INTERVAL_SECONDS"
_WORKER_COUNT_ENV = "SIMULATION_WORKER_COUNT"
_READINGS_LIMIT_ENV = "READINGS_FETCH_LIMIT"
_ALERTS_LIMIT_ENV = "ALERTS_FETCH_LIMIT"
_RESEND_KEY_ENV = "RESEND_API_KEY"
_RESEND_URL_ENV = "RESEND_API_URL"
_SENDER_ENV = "ALERT_SENDER"
_LOG_LEVEL_ENV = "LOG_LEVEL"

NumberT = TypeVar("NumberT", int, float)


@dataclass(frozen=True)
class Settings:
    readings_table_path: Optional[str]
    alerts_table_path: Optional[str]
    simulation_interval: float
    simulation_workers: int
    readings_fetch_limit: int
    alerts_fetch_limit: int
    resend_api_key: Optional[str]
    resend_api_url: str
    alert_sender: str
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive(name: str, default: NumberT, cast: Callable[[str], NumberT]) -> NumberT:
    """Parse a positive number from ``name``, falling back to ``default`` otherwise."""
    raw = _read_optional_env(name, None)
    if raw is None:
        return default
    try:
        parsed = cast(raw)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    return _read_str_env(_LOG_LEVEL_ENV, default).upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        readings_table_path=_read_optional_env(_READINGS_PATH_ENV, "./tmp/batch_readings.json"),
        alerts_table_path=_read_optional_env(_ALERTS_PATH_ENV, "./tmp/alerts.json"),
        simulation_interval=_read_positive(_INTERVAL_ENV, 3.0, float),
        simulation_workers=_read_positive(_WORKER_COUNT_ENV, 4, int),
        readings_fetch_limit=_read_positive(_READINGS_LIMIT_ENV, 50, int),
        alerts_fetch_limit=_read_positive(_ALERTS_LIMIT_ENV, 20, int),
        resend_api_key=_read_optional_env(_RESEND_KEY_ENV, None),
        resend_api_url=_read_str_env(_RESEND_URL_ENV, "https://api.resend.com/emails"),
        alert_sender=_read_str_env(_SENDER_ENV, "Quality Monitor <alerts@resend.dev>"),
        log_level=_read_log_level("INFO"),
    )
