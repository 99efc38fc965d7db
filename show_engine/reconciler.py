"""Reload state machine tying the watcher, loader, and renderer together.

All cue sheet and display state mutation happens on the owner thread (the GUI
thread in the console). The watcher's callback arrives on a timer thread and is
marshalled through ``dispatch`` before anything is touched; background loads
come back the same way.

Tiles-per-row precedence: a freshly selected file always starts from its
authored ``buttonsPerRow``. Once the operator adjusts the value by hand, that
manual value wins over the file's setting on every later reload until a new
file is selected.
"""
from __future__ import annotations

import enum
import functools
import logging
from concurrent.futures import Executor, Future
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from show_engine.change_watcher import ChangeWatcher
from show_engine.cue_loader import CueLoader
from show_engine.cue_model import (
    DEFAULT_TILES_PER_ROW,
    MAX_CUSTOM_BUTTONS,
    Chapter,
    CueSheet,
    Tile,
    clamp_tiles_per_row,
)
from show_engine.errors import ShowControlError, WatchSetupError
from show_engine.layout import DEFAULT_WINDOW_WIDTH, TileMetrics, compute_tile_metrics
from show_engine.trigger_transport import TriggerSender

LOGGER = logging.getLogger("ShowControl.Engine.Reconciler")

RenderFunc = Callable[["RenderState"], None]
StatusFunc = Callable[[Optional[str]], None]
DispatchFunc = Callable[[Callable[[], None]], None]
WatcherFactory = Callable[[Callable[[], None]], ChangeWatcher]


def call_immediately(func: Callable[[], None]) -> None:
    func()


class ConsoleState(enum.Enum):
    NO_FILE_SELECTED = "no_file_selected"
    READY = "ready"
    RELOADING = "reloading"


class _ApplyMode(enum.Enum):
    FULL = "full"
    RELOAD = "reload"


@dataclass
class DisplayState:
    tiles_per_row: int = DEFAULT_TILES_PER_ROW
    manual_override_active: bool = False
    current_file_path: Optional[Path] = None
    window_width: float = DEFAULT_WINDOW_WIDTH

    def snapshot(self) -> "DisplayState":
        return replace(self)


@dataclass(frozen=True)
class RenderState:
    """Everything the renderer needs to draw the console."""

    event_name: str
    tiles_per_row: int
    custom_tiles: Tuple[Tile, ...]
    chapters: Tuple[Chapter, ...]
    metrics: TileMetrics
    file_path: Optional[Path] = None
    base_dir: Optional[Path] = None


class ReloadReconciler:
    """Owner-thread state machine for cue sheet selection, reloads, and clicks."""

    def __init__(
        self,
        loader: CueLoader,
        renderer: RenderFunc,
        *,
        sender: Optional[TriggerSender] = None,
        status: Optional[StatusFunc] = None,
        dispatch: DispatchFunc = call_immediately,
        watcher_factory: Optional[WatcherFactory] = None,
        load_executor: Optional[Executor] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._loader = loader
        self._renderer = renderer
        self._sender = sender
        self._status = status
        self._dispatch = dispatch
        self._executor = load_executor
        self._logger = logger or LOGGER
        factory = watcher_factory or ChangeWatcher
        self._watcher = factory(self.on_file_changed)
        self._state = ConsoleState.NO_FILE_SELECTED
        self._display = DisplayState()
        self._cue_sheet: Optional[CueSheet] = None
        self._render_state: Optional[RenderState] = None
        self._watch_warning: Optional[str] = None
        self._load_generation = 0

    # Read-only views ----------------------------------------------------

    @property
    def state(self) -> ConsoleState:
        return self._state

    @property
    def display_state(self) -> DisplayState:
        return self._display.snapshot()

    @property
    def cue_sheet(self) -> Optional[CueSheet]:
        return self._cue_sheet

    @property
    def render_state(self) -> Optional[RenderState]:
        return self._render_state

    @property
    def watcher(self) -> ChangeWatcher:
        return self._watcher

    # Operator actions ---------------------------------------------------

    def select_file(self, path: Union[str, Path]) -> None:
        """Open ``path`` from scratch: reset display state, watch, load, full apply."""

        target = Path(path).expanduser()
        self._logger.info("Cue sheet selected: %s", target)
        self._display = DisplayState(current_file_path=target, window_width=self._display.window_width)
        self._cue_sheet = None
        self._watch_warning = None
        self._state = ConsoleState.READY
        try:
            self._watcher.watch(target)
        except WatchSetupError as exc:
            self._watch_warning = f"Error setting up file watcher: {exc}"
            self._logger.warning("Live reload unavailable for %s: %s", target, exc)
            self._set_status(self._watch_warning)
        self._begin_load(_ApplyMode.FULL)

    def adjust_tiles_per_row(self, delta: int) -> int:
        """Step the tiles-per-row value and mark it as a manual override."""

        self._display.tiles_per_row = clamp_tiles_per_row(self._display.tiles_per_row + int(delta))
        self._display.manual_override_active = True
        self._logger.debug("Tiles per row adjusted to %d (manual override)", self._display.tiles_per_row)
        self._publish()
        return self._display.tiles_per_row

    def relayout(self, window_width: float) -> None:
        """Record a new window width and re-read the current file."""

        self._display.window_width = max(1.0, float(window_width))
        if self._state is ConsoleState.NO_FILE_SELECTED or self._display.current_file_path is None:
            return
        self._start_reload()

    def on_tile_clicked(self, tile_id: str) -> bool:
        tile = self._cue_sheet.find_tile(tile_id) if self._cue_sheet is not None else None
        if tile is None:
            self._logger.warning("Ignoring click on unknown tile %s", tile_id)
            return False
        if self._sender is None:
            self._logger.warning("No trigger sender configured; click on %s dropped", tile_id)
            return False
        return self._sender.send_tile(tile)

    def on_take_clicked(self) -> bool:
        if self._sender is None:
            self._logger.warning("No trigger sender configured; TAKE dropped")
            return False
        return self._sender.send_take()

    def shutdown(self) -> None:
        """Stop watching and discard any in-flight load. Idempotent."""

        self._watcher.stop()
        self._load_generation += 1
        self._state = ConsoleState.NO_FILE_SELECTED

    # Watcher entry point (any thread) -----------------------------------

    def on_file_changed(self) -> None:
        self._dispatch(self._handle_file_changed)

    # Internal helpers ---------------------------------------------------

    def _handle_file_changed(self) -> None:
        if self._state is ConsoleState.NO_FILE_SELECTED:
            return
        self._logger.debug("Cue sheet changed on disk: %s", self._display.current_file_path)
        self._start_reload()

    def _start_reload(self) -> None:
        self._state = ConsoleState.RELOADING
        self._begin_load(_ApplyMode.RELOAD)

    def _begin_load(self, mode: _ApplyMode) -> None:
        self._load_generation += 1
        token = self._load_generation
        path = self._display.current_file_path
        if self._executor is None:
            future: Future = Future()
            try:
                future.set_result(self._loader.load(path))
            except ShowControlError as exc:
                future.set_exception(exc)
            self._finish_load(token, mode, future)
            return
        future = self._executor.submit(self._loader.load, path)
        future.add_done_callback(
            lambda done: self._dispatch(functools.partial(self._finish_load, token, mode, done))
        )

    def _finish_load(self, token: int, mode: _ApplyMode, future: Future) -> None:
        if token != self._load_generation:
            self._logger.debug("Discarding superseded load result (token=%d)", token)
            return
        try:
            sheet = future.result()
        except ShowControlError as exc:
            self._handle_load_failure(mode, exc)
            return
        self._apply(sheet, mode)

    def _handle_load_failure(self, mode: _ApplyMode, exc: ShowControlError) -> None:
        self._state = ConsoleState.READY
        if mode is _ApplyMode.FULL:
            self._cue_sheet = None
            self._publish()
        else:
            self._logger.info("Keeping previous cue sheet after failed reload")
        self._set_status(f"Error loading data: {exc}")

    def _apply(self, sheet: CueSheet, mode: _ApplyMode) -> None:
        file_value = sheet.control_settings.tiles_per_row
        override = mode is _ApplyMode.RELOAD and self._display.manual_override_active
        if file_value is not None and not override:
            self._display.tiles_per_row = clamp_tiles_per_row(file_value)
        elif file_value is not None:
            self._logger.debug(
                "Ignoring file buttonsPerRow=%s; manual value %d is active",
                file_value,
                self._display.tiles_per_row,
            )
        if len(sheet.custom_buttons) > MAX_CUSTOM_BUTTONS:
            self._logger.debug(
                "Cue sheet lists %d custom buttons; only the first %d are shown",
                len(sheet.custom_buttons),
                MAX_CUSTOM_BUTTONS,
            )
        self._cue_sheet = sheet
        self._state = ConsoleState.READY
        self._set_status(self._watch_warning)
        self._publish()

    def _build_render_state(self) -> RenderState:
        sheet = self._cue_sheet
        metrics = compute_tile_metrics(self._display.window_width, self._display.tiles_per_row)
        if sheet is None:
            return RenderState(
                event_name="",
                tiles_per_row=self._display.tiles_per_row,
                custom_tiles=(),
                chapters=(),
                metrics=metrics,
                file_path=self._display.current_file_path,
            )
        return RenderState(
            event_name=sheet.event_name,
            tiles_per_row=self._display.tiles_per_row,
            custom_tiles=sheet.visible_custom_buttons(),
            chapters=sheet.chapters,
            metrics=metrics,
            file_path=self._display.current_file_path,
            base_dir=sheet.base_dir,
        )

    def _publish(self) -> None:
        render = self._build_render_state()
        self._render_state = render
        try:
            self._renderer(render)
        except Exception:
            self._logger.exception("Renderer failed to draw cue sheet")

    def _set_status(self, message: Optional[str]) -> None:
        if self._status is None:
            return
        try:
            self._status(message)
        except Exception:
            self._logger.exception("Status callback failed")
