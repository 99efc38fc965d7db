"""Typed cue sheet model and validation from decoded JSON documents.

The file format mirrors the cue-authoring tool:

    {
      "event": "Gala 2024",
      "controlSettings": {"buttonsPerRow": 8},
      "custom": [{"thumbnail": "...", "title": "...", "templateData": {...}}],
      "content": [{"chapter": "...", "slides": [{"thumbnail": ..., "title": ..., "templateData": ...}]}]
    }

Parsing is all-or-nothing: :func:`parse_cue_sheet` either returns a complete
:class:`CueSheet` or raises :class:`ParseError` naming the offending field.
"""
from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

from show_engine.errors import ParseError

MIN_TILES_PER_ROW = 6
MAX_TILES_PER_ROW = 20
DEFAULT_TILES_PER_ROW = 10
MAX_CUSTOM_BUTTONS = 5


class TileKind(enum.Enum):
    SLIDE = "slide"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Tile:
    """A clickable slide or custom button; ``payload`` is forwarded untouched."""

    thumbnail_path: str
    title: str
    payload: Any
    kind: TileKind = TileKind.SLIDE
    tile_id: str = ""

    def payload_json(self) -> str:
        """Compact JSON text of the payload, as carried in trigger messages."""

        return json.dumps(self.payload, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class Chapter:
    name: str
    slides: Tuple[Tile, ...] = ()


@dataclass(frozen=True)
class ControlSettings:
    tiles_per_row: Optional[int] = None


@dataclass(frozen=True)
class CueSheet:
    event_name: str
    control_settings: ControlSettings
    custom_buttons: Tuple[Tile, ...]
    chapters: Tuple[Chapter, ...]
    source_path: Optional[Path] = None

    @property
    def base_dir(self) -> Optional[Path]:
        return self.source_path.parent if self.source_path is not None else None

    def visible_custom_buttons(self) -> Tuple[Tile, ...]:
        """Footer shortcuts actually rendered; entries past the fifth are dropped."""

        return self.custom_buttons[:MAX_CUSTOM_BUTTONS]

    def iter_tiles(self):
        yield from self.custom_buttons
        for chapter in self.chapters:
            yield from chapter.slides

    def find_tile(self, tile_id: str) -> Optional[Tile]:
        for tile in self.iter_tiles():
            if tile.tile_id == tile_id:
                return tile
        return None


def clamp_tiles_per_row(value: int) -> int:
    return max(MIN_TILES_PER_ROW, min(MAX_TILES_PER_ROW, int(value)))


# Field validation -----------------------------------------------------------

_MISSING = object()


def _require(mapping: Mapping[str, Any], key: str, path: str) -> Any:
    value = mapping.get(key, _MISSING)
    if value is _MISSING:
        raise ParseError("required field is missing", field=_join(path, key))
    return value


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _expect_str(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise ParseError(f"expected a string, got {type(value).__name__}", field=field)
    return value


def _expect_object(value: Any, field: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ParseError(f"expected an object, got {type(value).__name__}", field=field)
    return value


def _expect_list(value: Any, field: str) -> List[Any]:
    if not isinstance(value, list):
        raise ParseError(f"expected an array, got {type(value).__name__}", field=field)
    return value


def _parse_tile(raw: Any, field: str, kind: TileKind, tile_id: str) -> Tile:
    entry = _expect_object(raw, field)
    return Tile(
        thumbnail_path=_expect_str(_require(entry, "thumbnail", field), _join(field, "thumbnail")),
        title=_expect_str(_require(entry, "title", field), _join(field, "title")),
        payload=_require(entry, "templateData", field),
        kind=kind,
        tile_id=tile_id,
    )


def _parse_control_settings(raw: Any) -> ControlSettings:
    settings = _expect_object(raw, "controlSettings")
    value = settings.get("buttonsPerRow")
    if value is None:
        return ControlSettings()
    # bool is an int subclass; a JSON true is not a row count.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParseError(
            f"expected an integer, got {type(value).__name__}",
            field="controlSettings.buttonsPerRow",
        )
    return ControlSettings(tiles_per_row=value)


def _parse_chapter(raw: Any, index: int) -> Chapter:
    field = f"content[{index}]"
    entry = _expect_object(raw, field)
    name = _expect_str(_require(entry, "chapter", field), _join(field, "chapter"))
    slides_raw = _expect_list(_require(entry, "slides", field), _join(field, "slides"))
    slides = tuple(
        _parse_tile(slide, f"{field}.slides[{slide_index}]", TileKind.SLIDE, f"slide:{index}:{slide_index}")
        for slide_index, slide in enumerate(slides_raw)
    )
    return Chapter(name=name, slides=slides)


def parse_cue_sheet(document: Any, source_path: Optional[Path] = None) -> CueSheet:
    """Validate a decoded JSON document and build a :class:`CueSheet`."""

    root = _expect_object(document, "<root>")
    event_name = _expect_str(_require(root, "event", ""), "event")
    control_settings = _parse_control_settings(_require(root, "controlSettings", ""))
    custom_raw = _expect_list(_require(root, "custom", ""), "custom")
    content_raw = _expect_list(_require(root, "content", ""), "content")

    custom_buttons = tuple(
        _parse_tile(entry, f"custom[{index}]", TileKind.CUSTOM, f"custom:{index}")
        for index, entry in enumerate(custom_raw)
    )
    chapters = tuple(_parse_chapter(entry, index) for index, entry in enumerate(content_raw))
    return CueSheet(
        event_name=event_name,
        control_settings=control_settings,
        custom_buttons=custom_buttons,
        chapters=chapters,
        source_path=source_path,
    )
