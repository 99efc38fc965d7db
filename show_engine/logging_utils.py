"""Logging helpers shared by the console launcher and tools."""
from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "ShowControl"
LOG_DIR_ENV_VAR = "SHOW_CONSOLE_LOG_DIR"
LOG_DIR_NAME = "ShowControl"
LOG_FILE_NAME = "show_console.log"
MAX_LOG_BYTES = 512 * 1024
_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def resolve_logs_dir(project_root: Path, environ: Optional[dict] = None) -> Path:
    """Pick a writable logs directory: env override, user state dir, then project logs/."""

    env = os.environ if environ is None else environ
    candidates = []
    override = env.get(LOG_DIR_ENV_VAR)
    if override:
        candidates.append(Path(override).expanduser())
    candidates.append(Path.home() / ".local" / "state" / LOG_DIR_NAME)
    candidates.append(project_root / "logs")
    for candidate in candidates:
        try:
            candidate.mkdir(parents=True, exist_ok=True)
        except OSError:
            continue
        if os.access(candidate, os.W_OK):
            return candidate
    return project_root


def build_rotating_file_handler(log_path: Path, *, retention: int, max_bytes: int = MAX_LOG_BYTES) -> logging.Handler:
    handler = RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=max(1, int(retention)),
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    return handler


def configure_logging(
    level: int,
    *,
    logs_dir: Optional[Path] = None,
    retention: int = 5,
) -> logging.Logger:
    """Attach stderr and (optionally) rotating file handlers to the ShowControl logger."""

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(logging.Formatter(_LOG_FORMAT))
    logger.addHandler(stream)

    if logs_dir is not None:
        log_path = logs_dir / LOG_FILE_NAME
        try:
            logger.addHandler(build_rotating_file_handler(log_path, retention=retention))
        except OSError as exc:
            logger.warning("File logging disabled; unable to open %s: %s", log_path, exc)
        else:
            logger.debug("Logging to %s", log_path)
    return logger
