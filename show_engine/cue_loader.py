"""Read cue sheet files from disk into :class:`CueSheet` instances."""
from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from show_engine.cue_model import CueSheet, parse_cue_sheet
from show_engine.errors import NotFoundError, ParseError

LOGGER = logging.getLogger("ShowControl.Engine.Loader")

PathLike = Union[str, Path]


class CueLoader:
    """Load cue sheets with all-or-nothing semantics.

    ``load`` either returns a fully validated sheet or raises; nothing is
    cached between calls, so a failed load never disturbs a sheet the caller
    already holds.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or LOGGER
        self._last_path: Optional[Path] = None
        self._last_load_ts: Optional[float] = None
        self._last_error: Optional[str] = None
        self._load_count = 0
        self._failure_count = 0

    # Public API ---------------------------------------------------------

    def load(self, path: Optional[PathLike]) -> CueSheet:
        try:
            sheet = self._load(path)
        except (NotFoundError, ParseError) as exc:
            self._failure_count += 1
            self._last_error = str(exc)
            self._logger.warning("Failed to load cue sheet %s: %s", path, exc)
            raise
        self._load_count += 1
        self._last_error = None
        self._last_load_ts = time.time()
        self._logger.info(
            "Loaded cue sheet %s (event=%r chapters=%d custom=%d)",
            sheet.source_path,
            sheet.event_name,
            len(sheet.chapters),
            len(sheet.custom_buttons),
        )
        return sheet

    def diagnostics(self) -> Mapping[str, Any]:
        return {
            "last_path": self._last_path,
            "last_load_ts": self._last_load_ts,
            "last_error": self._last_error,
            "loads": self._load_count,
            "failures": self._failure_count,
        }

    # Internal helpers ---------------------------------------------------

    def _load(self, path: Optional[PathLike]) -> CueSheet:
        if path is None or not str(path).strip():
            raise ParseError("cue sheet path is required")
        resolved = Path(path).expanduser()
        self._last_path = resolved
        document = self._read_json(resolved)
        return parse_cue_sheet(document, source_path=resolved)

    def _read_json(self, path: Path) -> Any:
        try:
            # utf-8-sig tolerates the BOM some Windows editors write.
            raw = path.read_text(encoding="utf-8-sig")
        except FileNotFoundError as exc:
            raise NotFoundError(f"cue sheet not found: {path}") from exc
        except IsADirectoryError as exc:
            raise ParseError(f"cue sheet path is a directory: {path}") from exc
        except UnicodeDecodeError as exc:
            raise ParseError(f"cue sheet is not valid UTF-8: {exc}") from exc
        except OSError as exc:
            raise ParseError(f"unable to read cue sheet: {exc}") from exc
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ParseError(f"invalid JSON: {exc}") from exc
        except RecursionError as exc:
            raise ParseError("cue sheet JSON is nested too deeply") from exc
        except ValueError as exc:
            # Valid syntax json still refuses, e.g. integers past the digit limit.
            raise ParseError(f"unsupported JSON value: {exc}") from exc
