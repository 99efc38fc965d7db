from __future__ import annotations

import argparse
import functools
import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from PyQt6.QtWidgets import QApplication

from show_console.console_window import ConsoleWindow
from show_console.qt_dispatch import QtDispatcher
from show_engine.change_watcher import ChangeWatcher
from show_engine.console_config import ConsoleSettings, load_console_settings, resolve_settings_path
from show_engine.cue_loader import CueLoader
from show_engine.logging_utils import configure_logging, resolve_logs_dir
from show_engine.reconciler import ReloadReconciler
from show_engine.trigger_transport import TriggerSender, TriggerTransport
from version import DEV_MODE_ENV_VAR, is_dev_build, version_banner

PROJECT_ROOT = Path(__file__).resolve().parent.parent
_LOGGER = logging.getLogger("ShowControl.Console")


def resolve_log_level(settings: ConsoleSettings, cli_level: Optional[str]) -> int:
    """CLI flag beats settings/env; dev builds default to DEBUG, releases to INFO."""

    for candidate in (cli_level, settings.log_level):
        if not candidate:
            continue
        numeric = logging.getLevelName(str(candidate).strip().upper())
        if isinstance(numeric, int):
            return numeric
    return logging.DEBUG if is_dev_build() else logging.INFO


def build_watcher_factory(settings: ConsoleSettings):
    return functools.partial(
        ChangeWatcher,
        debounce_seconds=settings.watch_debounce_seconds,
        poll_interval=settings.watch_poll_interval,
        missing_grace_seconds=settings.missing_file_grace_seconds,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Show control console")
    parser.add_argument("cue_file", nargs="?", help="Cue sheet JSON to open at startup")
    parser.add_argument("--settings", help="Path to console_settings.json")
    parser.add_argument("--host", help="Trigger destination host (overrides settings)")
    parser.add_argument("--port", type=int, help="Trigger destination UDP port (overrides settings)")
    parser.add_argument("--log-level", help="Logging level name, e.g. DEBUG or WARNING")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    settings_path = Path(args.settings).expanduser().resolve() if args.settings else resolve_settings_path(PROJECT_ROOT)
    settings = load_console_settings(settings_path)
    if args.host:
        settings.trigger_host = args.host.strip() or settings.trigger_host
    if args.port is not None:
        if not 1 <= args.port <= 65535:
            print(f"--port must be between 1 and 65535 (got {args.port})", file=sys.stderr)
            return 2
        settings.trigger_port = args.port

    level = resolve_log_level(settings, args.log_level)
    configure_logging(level, logs_dir=resolve_logs_dir(PROJECT_ROOT), retention=settings.log_retention)
    _LOGGER.info("Starting %s (pid=%s)", version_banner(), os.getpid())
    _LOGGER.debug(
        "Loaded settings from %s: trigger=%s:%d debounce=%.2fs poll=%.2fs background_loading=%s",
        settings_path,
        settings.trigger_host,
        settings.trigger_port,
        settings.watch_debounce_seconds,
        settings.watch_poll_interval,
        settings.background_loading,
    )
    if not is_dev_build():
        _LOGGER.debug("Release build; export %s=1 for DEBUG logging by default.", DEV_MODE_ENV_VAR)

    app = QApplication(sys.argv[:1])
    transport = TriggerTransport(settings.trigger_host, settings.trigger_port)
    sender = TriggerSender(transport)
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ShowControl-Loader") if settings.background_loading else None
    dispatcher = QtDispatcher()
    window = ConsoleWindow()
    reconciler = ReloadReconciler(
        CueLoader(),
        window.render,
        sender=sender,
        status=window.show_status,
        dispatch=dispatcher,
        watcher_factory=build_watcher_factory(settings),
        load_executor=executor,
    )
    window.attach(reconciler)
    window.show()
    if args.cue_file:
        reconciler.select_file(Path(args.cue_file).expanduser())

    exit_code = 0
    try:
        exit_code = app.exec()
    finally:
        reconciler.shutdown()
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)
        transport.close()
    _LOGGER.info(
        "Show console exiting with code %s (triggers sent=%d failed=%d)",
        exit_code,
        sender.sent_count,
        sender.failed_count,
    )
    return int(exit_code)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
