from __future__ import annotations

from pathlib import Path

from PyQt6.QtWidgets import QToolButton

from show_console.console_window import NO_FILE_SELECTED_TEXT, ConsoleWindow
from show_engine.cue_model import Chapter, Tile, TileKind
from show_engine.layout import compute_tile_metrics
from show_engine.reconciler import RenderState


class _StubReconciler:
    def __init__(self) -> None:
        self.clicked = []
        self.adjustments = []
        self.takes = 0
        self.widths = []

    def on_tile_clicked(self, tile_id):
        self.clicked.append(tile_id)
        return True

    def on_take_clicked(self):
        self.takes += 1
        return True

    def adjust_tiles_per_row(self, delta):
        self.adjustments.append(delta)
        return 10 + delta

    def relayout(self, width):
        self.widths.append(width)


def _state(tmp_path: Path, tiles_per_row: int = 6) -> RenderState:
    slides = tuple(
        Tile(f"/thumbs/{index}.png", f"Slide {index}", {"i": index}, TileKind.SLIDE, f"slide:0:{index}")
        for index in range(8)
    )
    custom = (Tile("/thumbs/logo.png", "Logo", None, TileKind.CUSTOM, "custom:0"),)
    return RenderState(
        event_name="Gala",
        tiles_per_row=tiles_per_row,
        custom_tiles=custom,
        chapters=(Chapter("Opening", slides),),
        metrics=compute_tile_metrics(1200, tiles_per_row),
        file_path=tmp_path / "show.json",
        base_dir=tmp_path,
    )


def _tile_buttons(window):
    return {button.text(): button for button in window.findChildren(QToolButton)}


def test_render_builds_tiles_and_labels(qapp, tmp_path):
    window = ConsoleWindow()
    assert window._file_label.text() == NO_FILE_SELECTED_TEXT

    window.render(_state(tmp_path))

    assert window._file_label.text() == "File: show.json"
    assert window._tiles_label.text() == "6"
    assert window._event_label.text() == "Gala"
    buttons = _tile_buttons(window)
    assert "Slide 7" in buttons and "Logo" in buttons
    assert buttons["Slide 0"].width() == compute_tile_metrics(1200, 6).button_width
    assert buttons["Logo"].width() == 80


def test_grid_wraps_at_tiles_per_row(qapp, tmp_path):
    window = ConsoleWindow()
    window.render(_state(tmp_path, tiles_per_row=6))

    chapter = window._content_layout.itemAt(0).widget()
    grid = chapter.layout().itemAt(1).layout()
    assert grid.rowCount() == 2
    assert grid.columnCount() == 6


def test_clicks_are_forwarded_to_reconciler(qapp, tmp_path):
    window = ConsoleWindow()
    stub = _StubReconciler()
    window.attach(stub)
    window.render(_state(tmp_path))

    buttons = _tile_buttons(window)
    buttons["Slide 3"].click()
    buttons["Logo"].click()
    window._on_take()
    window._on_adjust(+1)

    assert stub.clicked == ["slide:0:3", "custom:0"]
    assert stub.takes == 1
    assert stub.adjustments == [1]


def test_status_label_shows_and_hides(qapp):
    window = ConsoleWindow()
    window.show_status("Error loading data: boom")
    assert window._status_label.text() == "Error loading data: boom"
    assert not window._status_label.isHidden()

    window.show_status(None)
    assert window._status_label.text() == ""
    assert window._status_label.isHidden()


def test_missing_thumbnail_uses_cached_placeholder(qapp, tmp_path):
    window = ConsoleWindow()
    metrics = compute_tile_metrics(1200, 10)
    first = window._thumbnail(tmp_path, "/nope.png", metrics)
    second = window._thumbnail(tmp_path, "/also-missing.png", metrics)
    assert not first.isNull()
    assert first.width() == metrics.thumbnail_width
    assert first.cacheKey() == second.cacheKey()


def test_relayout_reports_current_width(qapp):
    window = ConsoleWindow()
    stub = _StubReconciler()
    window.attach(stub)
    window.resize(900, 600)
    window._apply_relayout()
    assert stub.widths == [window.width()]
