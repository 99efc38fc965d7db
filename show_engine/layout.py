"""Tile sizing and thumbnail path helpers for the console grid."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

DEFAULT_WINDOW_WIDTH = 1200
WINDOW_HORIZONTAL_CHROME = 60
TILE_SPACING = 10
BUTTON_ASPECT_RATIO = 0.8
THUMBNAIL_SIZE_RATIO = 0.85
THUMBNAIL_ASPECT_RATIO = 0.6

CUSTOM_BUTTON_WIDTH = 80
CUSTOM_BUTTON_HEIGHT = 80
CUSTOM_THUMBNAIL_WIDTH = 60
CUSTOM_THUMBNAIL_HEIGHT = 50


@dataclass(frozen=True)
class TileMetrics:
    button_width: int
    button_height: int
    thumbnail_width: int
    thumbnail_height: int


def compute_tile_metrics(window_width: float, tiles_per_row: int) -> TileMetrics:
    """Size slide buttons so ``tiles_per_row`` of them fit across the window."""

    per_row = max(1, int(tiles_per_row))
    usable = max(0.0, float(window_width) - WINDOW_HORIZONTAL_CHROME)
    button_width = max(1, int(usable / per_row) - TILE_SPACING)
    button_height = max(1, int(button_width * BUTTON_ASPECT_RATIO))
    thumbnail_width = max(1, int(button_width * THUMBNAIL_SIZE_RATIO))
    thumbnail_height = max(1, int(thumbnail_width * THUMBNAIL_ASPECT_RATIO))
    return TileMetrics(button_width, button_height, thumbnail_width, thumbnail_height)


CUSTOM_TILE_METRICS = TileMetrics(
    CUSTOM_BUTTON_WIDTH,
    CUSTOM_BUTTON_HEIGHT,
    CUSTOM_THUMBNAIL_WIDTH,
    CUSTOM_THUMBNAIL_HEIGHT,
)


def resolve_thumbnail(base_dir: Union[str, Path, None], thumbnail_path: str) -> Optional[Path]:
    """Return the thumbnail file relative to the cue sheet, or None for the fallback marker."""

    if not thumbnail_path or base_dir is None:
        return None
    # Authoring tools emit site-rooted paths such as "/thumbs/a.png".
    relative = thumbnail_path.lstrip("/\\")
    if not relative:
        return None
    candidate = Path(base_dir) / relative
    try:
        return candidate if candidate.is_file() else None
    except OSError:
        return None
