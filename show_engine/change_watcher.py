"""Debounced change notifications for a single cue sheet file.

A daemon thread polls the watched file's ``(mtime_ns, size)`` signature. Every
signature change is a raw notification that re-arms a single-shot timer; the
registered callback only runs when the timer elapses without being re-armed,
so editors that write in chunks or write-then-rename produce one callback per
burst. The callback runs on the timer thread.
"""
from __future__ import annotations

import functools
import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from show_engine.errors import WatchSetupError

LOGGER = logging.getLogger("ShowControl.Engine.Watcher")

DEFAULT_DEBOUNCE_SECONDS = 0.1
DEFAULT_POLL_INTERVAL = 0.05
DEFAULT_MISSING_GRACE_SECONDS = 1.0

_Signature = Tuple[int, int]


def _file_signature(path: Path) -> Optional[_Signature]:
    try:
        stat = path.stat()
    except FileNotFoundError:
        return None
    return stat.st_mtime_ns, stat.st_size


class ChangeWatcher:
    """Watch one path at a time and invoke ``callback`` once per write burst."""

    def __init__(
        self,
        callback: Callable[[], None],
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        missing_grace_seconds: float = DEFAULT_MISSING_GRACE_SECONDS,
        logger: Optional[logging.Logger] = None,
        time_source: Callable[[], float] = time.monotonic,
    ) -> None:
        self._callback = callback
        self._debounce_seconds = max(0.01, float(debounce_seconds))
        self._poll_interval = max(0.01, float(poll_interval))
        self._missing_grace_seconds = max(0.0, float(missing_grace_seconds))
        self._logger = logger or LOGGER
        self._time = time_source
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._signature: Optional[_Signature] = None
        self._missing_since: Optional[float] = None
        self._generation = 0
        self._arm_token = 0
        self._timer: Optional[threading.Timer] = None
        self._stop_event: Optional[threading.Event] = None
        self._poll_thread: Optional[threading.Thread] = None

    # Public API ---------------------------------------------------------

    @property
    def watched_path(self) -> Optional[Path]:
        return self._path

    @property
    def is_watching(self) -> bool:
        return self._path is not None

    def watch(self, path: Union[str, Path, None]) -> None:
        """Replace the current watch with ``path``.

        A path that does not exist is not watched; that is not an error.
        Raises :class:`WatchSetupError` when the watch cannot be registered.
        """

        self.stop()
        if path is None or not str(path).strip():
            return
        target = Path(path).expanduser()
        try:
            signature = _file_signature(target)
        except OSError as exc:
            raise WatchSetupError(f"unable to watch {target}: {exc}") from exc
        if signature is None:
            self._logger.debug("Not watching %s: file does not exist", target)
            return

        stop_event = threading.Event()
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._path = target
            self._signature = signature
            self._missing_since = None
            self._stop_event = stop_event
        thread = threading.Thread(
            target=self._poll_loop,
            args=(generation, stop_event),
            name="ShowControl-Watcher",
            daemon=True,
        )
        try:
            thread.start()
        except RuntimeError as exc:
            self.stop()
            raise WatchSetupError(f"unable to start watcher thread for {target}: {exc}") from exc
        with self._lock:
            if generation == self._generation:
                self._poll_thread = thread
        self._logger.debug("Watching %s (debounce=%.3fs)", target, self._debounce_seconds)

    def stop(self) -> None:
        """Stop delivering callbacks and release the poll thread. Idempotent."""

        self._teardown()

    def notify_change(self) -> None:
        """Record one raw change notification and (re)arm the debounce timer."""

        with self._lock:
            if self._path is None:
                return
            self._arm_token += 1
            previous = self._timer
            timer = threading.Timer(
                self._debounce_seconds,
                functools.partial(self._fire, self._generation, self._arm_token),
            )
            timer.daemon = True
            self._timer = timer
        if previous is not None:
            previous.cancel()
        timer.start()

    def poll_once(self) -> bool:
        """Check the watched file once; return False when the watch has ended."""

        with self._lock:
            generation = self._generation
        return self._poll(generation)

    # Internal helpers ---------------------------------------------------

    def _teardown(self, generation: Optional[int] = None) -> bool:
        """End the watch; with ``generation``, only if that watch is still current."""

        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._generation += 1
            timer, self._timer = self._timer, None
            stop_event, self._stop_event = self._stop_event, None
            thread, self._poll_thread = self._poll_thread, None
            previous, self._path = self._path, None
            self._signature = None
            self._missing_since = None
        if timer is not None:
            timer.cancel()
        if stop_event is not None:
            stop_event.set()
        if thread is not None and thread is not threading.current_thread() and thread.is_alive():
            thread.join(timeout=max(1.0, self._poll_interval * 4))
        if previous is not None:
            self._logger.debug("Stopped watching %s", previous)
        return True

    def _poll_loop(self, generation: int, stop_event: threading.Event) -> None:
        while not stop_event.wait(self._poll_interval):
            if not self._poll(generation):
                return

    def _poll(self, generation: int) -> bool:
        with self._lock:
            if generation != self._generation or self._path is None:
                return False
            path = self._path
        try:
            signature = _file_signature(path)
        except OSError as exc:
            self._logger.debug("Failed to stat %s: %s", path, exc)
            return True

        if signature is None:
            now = self._time()
            with self._lock:
                if generation != self._generation:
                    return False
                if self._missing_since is None:
                    self._missing_since = now
                    self._logger.debug("Watched file %s disappeared; waiting for it to return", path)
                    return True
                expired = now - self._missing_since >= self._missing_grace_seconds
            if expired:
                self._logger.info("Watched file %s is gone; live reload disabled until it is selected again", path)
                # A watch() that ran since the check above owns the watcher now.
                self._teardown(generation)
                return False
            return True

        with self._lock:
            if generation != self._generation:
                return False
            self._missing_since = None
            changed = signature != self._signature
            self._signature = signature
        if changed:
            self.notify_change()
        return True

    def _fire(self, generation: int, token: int) -> None:
        with self._lock:
            if generation != self._generation or token != self._arm_token:
                return
            self._timer = None
            path = self._path
        self._logger.debug("Change burst settled for %s", path)
        try:
            self._callback()
        except Exception:
            self._logger.exception("Change callback failed for %s", path)
