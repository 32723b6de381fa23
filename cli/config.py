from __future__ import annotations

from dataclasses import replace
from typing import Optional

from settings import SERIES_MODES, Settings, get_settings, normalize_metrics_path, parse_duration


def _duration(value: Optional[str], option: str, allow_zero: bool = False) -> Optional[float]:
    if value is None:
        return None
    try:
        parsed = parse_duration(value)
    except ValueError as exc:
        raise ValueError(f"{option}: {exc}") from exc
    if parsed < 0 or (parsed == 0 and not allow_zero):
        raise ValueError(f"{option} must be positive, got {value!r}.")
    return parsed


def load_config(
    scrape_url: Optional[str] = None,
    scrape_interval: Optional[str] = None,
    port: Optional[int] = None,
    host: Optional[str] = None,
    metrics_path: Optional[str] = None,
    fetch_timeout: Optional[str] = None,
    series_mode: Optional[str] = None,
    log_level: Optional[str] = None,
) -> Settings:
    """Overlay command-line values on the environment settings."""
    settings = get_settings()
    overrides: dict[str, object] = {}

    if scrape_url is not None:
        overrides["scrape_url"] = scrape_url.strip()
    interval = _duration(scrape_interval, "--scrape-interval")
    if interval is not None:
        overrides["scrape_interval"] = interval
    if port is not None:
        if not 0 < port < 65536:
            raise ValueError(f"--port must be between 1 and 65535, got {port}.")
        overrides["port"] = port
    if host is not None:
        overrides["host"] = host
    if metrics_path is not None:
        overrides["metrics_path"] = normalize_metrics_path(metrics_path)
    timeout = _duration(fetch_timeout, "--fetch-timeout", allow_zero=True)
    if timeout is not None:
        overrides["fetch_timeout"] = timeout or None
    if series_mode is not None:
        mode = series_mode.strip().lower()
        if mode not in SERIES_MODES:
            raise ValueError(
                f"--series-mode must be one of {', '.join(SERIES_MODES)}, got {series_mode!r}."
            )
        overrides["series_mode"] = mode
    if log_level is not None:
        overrides["log_level"] = log_level.strip().upper()

    return replace(settings, **overrides)
