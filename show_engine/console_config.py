"""Console settings loaded from console_settings.json and the environment."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from show_engine.change_watcher import (
    DEFAULT_DEBOUNCE_SECONDS,
    DEFAULT_MISSING_GRACE_SECONDS,
    DEFAULT_POLL_INTERVAL,
)
from show_engine.trigger_transport import DEFAULT_TRIGGER_HOST, DEFAULT_TRIGGER_PORT

SETTINGS_FILENAME = "console_settings.json"
HOST_ENV_VAR = "SHOW_CONSOLE_TRIGGER_HOST"
PORT_ENV_VAR = "SHOW_CONSOLE_TRIGGER_PORT"
LOG_LEVEL_ENV_VAR = "SHOW_CONSOLE_LOG_LEVEL"

LOGGER = logging.getLogger("ShowControl.Engine.Config")


@dataclass
class ConsoleSettings:
    """Values used to bootstrap the console; every field has a safe default."""

    trigger_host: str = DEFAULT_TRIGGER_HOST
    trigger_port: int = DEFAULT_TRIGGER_PORT
    watch_debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    watch_poll_interval: float = DEFAULT_POLL_INTERVAL
    missing_file_grace_seconds: float = DEFAULT_MISSING_GRACE_SECONDS
    log_retention: int = 5
    log_level: Optional[str] = None
    background_loading: bool = True


def _coerce_float(value: Any, fallback: float, minimum: float, maximum: float) -> float:
    if isinstance(value, bool):
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if number != number:  # NaN
        return fallback
    return max(minimum, min(number, maximum))


def _coerce_int(value: Any, fallback: int, minimum: int, maximum: int) -> int:
    if isinstance(value, bool):
        return fallback
    try:
        number = int(value)
    except (TypeError, ValueError):
        return fallback
    return max(minimum, min(number, maximum))


def _coerce_host(value: Any, fallback: str) -> str:
    if not isinstance(value, str):
        return fallback
    text = value.strip()
    return text or fallback


def _coerce_level(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip().upper()
    if not text:
        return None
    if isinstance(logging.getLevelName(text), int):
        return text
    return None


def settings_from_mapping(data: Mapping[str, Any]) -> ConsoleSettings:
    """Build settings from a decoded JSON object, falling back per key."""

    defaults = ConsoleSettings()
    return ConsoleSettings(
        trigger_host=_coerce_host(data.get("trigger_host"), defaults.trigger_host),
        trigger_port=_coerce_int(data.get("trigger_port", defaults.trigger_port), defaults.trigger_port, 1, 65535),
        watch_debounce_seconds=_coerce_float(
            data.get("watch_debounce_seconds", defaults.watch_debounce_seconds),
            defaults.watch_debounce_seconds,
            0.01,
            5.0,
        ),
        watch_poll_interval=_coerce_float(
            data.get("watch_poll_interval", defaults.watch_poll_interval),
            defaults.watch_poll_interval,
            0.01,
            1.0,
        ),
        missing_file_grace_seconds=_coerce_float(
            data.get("missing_file_grace_seconds", defaults.missing_file_grace_seconds),
            defaults.missing_file_grace_seconds,
            0.0,
            30.0,
        ),
        log_retention=_coerce_int(data.get("log_retention", defaults.log_retention), defaults.log_retention, 1, 50),
        log_level=_coerce_level(data.get("log_level")),
        background_loading=bool(data.get("background_loading", defaults.background_loading)),
    )


def _apply_env_overrides(settings: ConsoleSettings, environ: Mapping[str, str]) -> ConsoleSettings:
    host = environ.get(HOST_ENV_VAR)
    if host:
        settings.trigger_host = _coerce_host(host, settings.trigger_host)
    port = environ.get(PORT_ENV_VAR)
    if port:
        settings.trigger_port = _coerce_int(port, settings.trigger_port, 1, 65535)
    level = _coerce_level(environ.get(LOG_LEVEL_ENV_VAR))
    if level:
        settings.log_level = level
    return settings


def load_console_settings(
    settings_path: Optional[Path],
    environ: Optional[Mapping[str, str]] = None,
) -> ConsoleSettings:
    """Read console settings if the file exists; environment variables win."""

    env = os.environ if environ is None else environ
    data: Dict[str, Any] = {}
    if settings_path is not None:
        try:
            raw = settings_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raw = ""
        except OSError as exc:
            LOGGER.warning("Unable to read %s: %s", settings_path, exc)
            raw = ""
        if raw.strip():
            try:
                decoded = json.loads(raw)
            except json.JSONDecodeError as exc:
                LOGGER.warning("Invalid JSON in %s: %s; using defaults", settings_path, exc)
                decoded = {}
            if isinstance(decoded, dict):
                data = decoded
            else:
                LOGGER.warning("%s must contain a JSON object at the root; using defaults", settings_path)
    return _apply_env_overrides(settings_from_mapping(data), env)


def resolve_settings_path(root: Optional[Path] = None) -> Path:
    base = root if root is not None else Path(__file__).resolve().parents[1]
    return base / SETTINGS_FILENAME
