"""PyQt6 console window: draws render states and forwards operator actions."""
from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

from PyQt6.QtCore import QSize, Qt, QTimer
from PyQt6.QtGui import QColor, QIcon, QPainter, QPen, QPixmap
from PyQt6.QtWidgets import (
    QFileDialog,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QScrollArea,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from show_engine.cue_model import DEFAULT_TILES_PER_ROW, Tile
from show_engine.layout import CUSTOM_TILE_METRICS, DEFAULT_WINDOW_WIDTH, TileMetrics, resolve_thumbnail
from show_engine.reconciler import ReloadReconciler, RenderState

_LOGGER = logging.getLogger("ShowControl.Console.Window")

NO_FILE_SELECTED_TEXT = "No file selected"
FILE_PREFIX = "File: "
JSON_FILE_FILTER = "JSON files (*.json);;All files (*)"
JSON_FILE_DIALOG_TITLE = "Select Show Data JSON File"
TOP_BAR_HEIGHT = 75
FOOTER_HEIGHT = 100
RELAYOUT_DELAY_MS = 150

_STYLE = """
QWidget { background-color: #1e1e1e; color: #ffffff; }
QPushButton, QToolButton { background-color: #3c3c3c; border: 1px solid #5a5a5a; padding: 2px; }
QPushButton:hover, QToolButton:hover { background-color: #505050; }
QLabel#eventName { color: #7fb8ff; font-size: 16px; font-weight: bold; }
QLabel#statusMessage { color: #ff7f7f; font-weight: bold; }
QLabel#fileLabel { color: #b0b0b0; font-style: italic; }
QLabel#chapterName { font-size: 14px; font-weight: bold; padding-top: 8px; }
QWidget#topBar, QWidget#footer { background-color: #2d2d2d; }
"""


def _fallback_pixmap(width: int, height: int) -> QPixmap:
    """Grey placeholder with an X, drawn when a thumbnail is missing."""

    pixmap = QPixmap(max(1, width), max(1, height))
    pixmap.fill(QColor(128, 128, 128))
    painter = QPainter(pixmap)
    try:
        painter.setPen(QPen(QColor(64, 64, 64), 2))
        cx, cy = width / 2.0, height / 2.0
        size = min(width, height) * 0.3
        painter.drawLine(int(cx - size), int(cy - size), int(cx + size), int(cy + size))
        painter.drawLine(int(cx + size), int(cy - size), int(cx - size), int(cy + size))
    finally:
        painter.end()
    return pixmap


class ConsoleWindow(QWidget):
    """Renderer collaborator for :class:`ReloadReconciler`."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._reconciler: Optional[ReloadReconciler] = None
        self._fallbacks: Dict[Tuple[int, int], QPixmap] = {}
        self._relayout_timer = QTimer(self)
        self._relayout_timer.setSingleShot(True)
        self._relayout_timer.setInterval(RELAYOUT_DELAY_MS)
        self._relayout_timer.timeout.connect(self._apply_relayout)
        self.setWindowTitle("Show Control")
        self.setStyleSheet(_STYLE)
        self.resize(DEFAULT_WINDOW_WIDTH, 800)
        self._build_ui()

    def attach(self, reconciler: ReloadReconciler) -> None:
        self._reconciler = reconciler

    # Renderer interface -------------------------------------------------

    def render(self, state: RenderState) -> None:
        self._tiles_label.setText(str(state.tiles_per_row))
        self._file_label.setText(
            f"{FILE_PREFIX}{state.file_path.name}" if state.file_path is not None else NO_FILE_SELECTED_TEXT
        )
        self._event_label.setText(state.event_name)
        self._event_label.setVisible(bool(state.event_name))

        self._clear_layout(self._content_layout)
        for chapter in state.chapters:
            self._content_layout.addWidget(self._build_chapter(chapter.name, chapter.slides, state))
        self._content_layout.addStretch(1)

        self._clear_layout(self._custom_layout)
        for tile in state.custom_tiles:
            self._custom_layout.addWidget(self._build_tile_button(tile, CUSTOM_TILE_METRICS, state.base_dir))
        self._custom_layout.addStretch(1)

    def show_status(self, message: Optional[str]) -> None:
        self._status_label.setText(message or "")
        self._status_label.setVisible(bool(message))

    # Qt events ----------------------------------------------------------

    def resizeEvent(self, event) -> None:  # noqa: N802 - Qt override
        super().resizeEvent(event)
        self._relayout_timer.start()

    # UI construction ----------------------------------------------------

    def _build_ui(self) -> None:
        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)
        root.setSpacing(0)

        top_bar = QWidget(self)
        top_bar.setObjectName("topBar")
        top_bar.setFixedHeight(TOP_BAR_HEIGHT)
        top_layout = QVBoxLayout(top_bar)

        controls = QHBoxLayout()
        select_button = QPushButton("Select JSON File", top_bar)
        select_button.clicked.connect(self._on_select_file)
        self._file_label = QLabel(NO_FILE_SELECTED_TEXT, top_bar)
        self._file_label.setObjectName("fileLabel")
        decrease = QPushButton("-", top_bar)
        decrease.setFixedSize(25, 25)
        decrease.clicked.connect(functools.partial(self._on_adjust, -1))
        self._tiles_label = QLabel(str(DEFAULT_TILES_PER_ROW), top_bar)
        self._tiles_label.setMinimumWidth(20)
        self._tiles_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        increase = QPushButton("+", top_bar)
        increase.setFixedSize(25, 25)
        increase.clicked.connect(functools.partial(self._on_adjust, 1))
        controls.addWidget(select_button)
        controls.addWidget(self._file_label)
        controls.addSpacing(20)
        controls.addWidget(QLabel("Buttons per row:", top_bar))
        controls.addWidget(decrease)
        controls.addWidget(self._tiles_label)
        controls.addWidget(increase)
        controls.addStretch(1)

        status = QHBoxLayout()
        self._event_label = QLabel("", top_bar)
        self._event_label.setObjectName("eventName")
        self._event_label.setVisible(False)
        self._status_label = QLabel("", top_bar)
        self._status_label.setObjectName("statusMessage")
        self._status_label.setVisible(False)
        status.addWidget(self._event_label)
        status.addWidget(self._status_label)
        status.addStretch(1)

        top_layout.addLayout(controls)
        top_layout.addLayout(status)

        scroll = QScrollArea(self)
        scroll.setWidgetResizable(True)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        content = QWidget(scroll)
        self._content_layout = QVBoxLayout(content)
        scroll.setWidget(content)

        footer = QWidget(self)
        footer.setObjectName("footer")
        footer.setFixedHeight(FOOTER_HEIGHT)
        footer_layout = QHBoxLayout(footer)
        self._custom_layout = QHBoxLayout()
        take_button = QPushButton("TAKE", footer)
        take_button.setFixedSize(100, 70)
        take_button.setStyleSheet("font-size: 18px; font-weight: bold;")
        take_button.clicked.connect(self._on_take)
        footer_layout.addLayout(self._custom_layout, 1)
        footer_layout.addWidget(take_button)

        root.addWidget(top_bar)
        root.addWidget(scroll, 1)
        root.addWidget(footer)

    def _build_chapter(self, name: str, slides: Tuple[Tile, ...], state: RenderState) -> QWidget:
        container = QWidget()
        layout = QVBoxLayout(container)
        layout.setContentsMargins(10, 0, 10, 0)
        title = QLabel(name, container)
        title.setObjectName("chapterName")
        layout.addWidget(title)
        grid = QGridLayout()
        grid.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
        per_row = max(1, state.tiles_per_row)
        for index, tile in enumerate(slides):
            button = self._build_tile_button(tile, state.metrics, state.base_dir)
            grid.addWidget(button, index // per_row, index % per_row)
        layout.addLayout(grid)
        return container

    def _build_tile_button(self, tile: Tile, metrics: TileMetrics, base_dir: Optional[Path]) -> QToolButton:
        button = QToolButton()
        button.setText(tile.title)
        button.setToolTip(tile.title)
        button.setToolButtonStyle(Qt.ToolButtonStyle.ToolButtonTextUnderIcon)
        button.setFixedSize(metrics.button_width, metrics.button_height)
        button.setIconSize(QSize(metrics.thumbnail_width, metrics.thumbnail_height))
        button.setIcon(QIcon(self._thumbnail(base_dir, tile.thumbnail_path, metrics)))
        button.clicked.connect(functools.partial(self._on_tile_clicked, tile.tile_id))
        return button

    def _thumbnail(self, base_dir: Optional[Path], thumbnail_path: str, metrics: TileMetrics) -> QPixmap:
        width, height = metrics.thumbnail_width, metrics.thumbnail_height
        resolved = resolve_thumbnail(base_dir, thumbnail_path)
        if resolved is not None:
            pixmap = QPixmap(str(resolved))
            if not pixmap.isNull():
                return pixmap.scaled(
                    width,
                    height,
                    Qt.AspectRatioMode.KeepAspectRatio,
                    Qt.TransformationMode.SmoothTransformation,
                )
            _LOGGER.debug("Thumbnail %s could not be decoded; using placeholder", resolved)
        key = (width, height)
        cached = self._fallbacks.get(key)
        if cached is None:
            cached = _fallback_pixmap(width, height)
            self._fallbacks[key] = cached
        return cached

    @staticmethod
    def _clear_layout(layout) -> None:
        while layout.count():
            item = layout.takeAt(0)
            widget = item.widget()
            if widget is not None:
                widget.deleteLater()
                continue
            child = item.layout()
            if child is not None:
                ConsoleWindow._clear_layout(child)

    # Operator actions ---------------------------------------------------

    def _on_select_file(self, _checked: bool = False) -> None:
        if self._reconciler is None:
            return
        path, _filter = QFileDialog.getOpenFileName(self, JSON_FILE_DIALOG_TITLE, "", JSON_FILE_FILTER)
        if not path:
            return
        self._reconciler.select_file(path)

    def _on_adjust(self, delta: int, _checked: bool = False) -> None:
        if self._reconciler is not None:
            self._reconciler.adjust_tiles_per_row(delta)

    def _on_tile_clicked(self, tile_id: str, _checked: bool = False) -> None:
        if self._reconciler is not None:
            self._reconciler.on_tile_clicked(tile_id)

    def _on_take(self, _checked: bool = False) -> None:
        if self._reconciler is not None:
            self._reconciler.on_take_clicked()

    def _apply_relayout(self) -> None:
        if self._reconciler is not None:
            self._reconciler.relayout(self.width())
