from __future__ import annotations

import math
import os
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_SCRAPE_URL_ENV = "OIL_EXPORTER_SCRAPE_URL"
_SCRAPE_INTERVAL_ENV = "OIL_EXPORTER_SCRAPE_INTERVAL"
_PORT_ENV = "OIL_EXPORTER_PORT"
_HOST_ENV = "OIL_EXPORTER_HOST"
_METRICS_PATH_ENV = "OIL_EXPORTER_METRICS_PATH"
_FETCH_TIMEOUT_ENV = "OIL_EXPORTER_FETCH_TIMEOUT"
_SERIES_MODE_ENV = "OIL_EXPORTER_SERIES_MODE"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_SCRAPE_INTERVAL = 3600.0
DEFAULT_FETCH_TIMEOUT = 30.0
SERIES_MODES = ("split", "single")

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


@dataclass(frozen=True)
class Settings:
    scrape_url: str
    scrape_interval: float
    port: int
    host: str
    metrics_path: str
    fetch_timeout: Optional[float]
    series_mode: str
    log_level: str


def parse_duration(text: str) -> float:
    """Convert a duration such as ``1h30m``, ``90s`` or ``500ms`` to seconds.

    A bare number is read as seconds.
    """
    candidate = text.strip()
    if not candidate:
        raise ValueError("Duration is empty.")
    try:
        seconds = float(candidate)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            raise ValueError(f"Invalid duration {text!r}.")
        return seconds

    position = 0
    total = 0.0
    for match in _DURATION_PART.finditer(candidate):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if position != len(candidate):
        raise ValueError(f"Invalid duration {text!r}.")
    return total


def normalize_metrics_path(path: str) -> str:
    candidate = path.strip()
    if not candidate.startswith("/"):
        candidate = "/" + candidate
    return candidate


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_port(default: int) -> int:
    value = os.getenv(_PORT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if 0 < parsed < 65536 else default


def _read_interval(default: float) -> float:
    value = os.getenv(_SCRAPE_INTERVAL_ENV)
    if value is None or not value.strip():
        return default
    try:
        parsed = parse_duration(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_fetch_timeout(default: float) -> Optional[float]:
    value = os.getenv(_FETCH_TIMEOUT_ENV)
    if value is None or not value.strip():
        return default
    try:
        parsed = parse_duration(value)
    except ValueError:
        return default
    if parsed < 0:
        return default
    # zero means no timeout at all
    return parsed or None


def _read_series_mode(default: str) -> str:
    candidate = _read_str_env(_SERIES_MODE_ENV, default).lower()
    return candidate if candidate in SERIES_MODES else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        scrape_url=(os.getenv(_SCRAPE_URL_ENV) or "").strip(),
        scrape_interval=_read_interval(DEFAULT_SCRAPE_INTERVAL),
        port=_read_port(8000),
        host=_read_str_env(_HOST_ENV, "0.0.0.0"),
        metrics_path=normalize_metrics_path(_read_str_env(_METRICS_PATH_ENV, "/metrics")),
        fetch_timeout=_read_fetch_timeout(DEFAULT_FETCH_TIMEOUT),
        series_mode=_read_series_mode("split"),
        log_level=_read_log_level("INFO"),
    )
