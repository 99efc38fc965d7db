from __future__ import annotations

import json
import logging
import sys

import pytest

from show_engine.cue_loader import CueLoader
from show_engine.errors import NotFoundError, ParseError, ShowControlError


def _write_json(path, payload):
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def _sheet(event="Gala"):
    return {
        "event": event,
        "controlSettings": {"buttonsPerRow": 8},
        "custom": [],
        "content": [{"chapter": "One", "slides": [{"thumbnail": "", "title": "A", "templateData": {}}]}],
    }


def _make_loader():
    logger = logging.getLogger("test-cue-loader")
    logger.handlers = []
    logger.addHandler(logging.NullHandler())
    return CueLoader(logger=logger)


def test_load_returns_sheet_with_source_path(tmp_path):
    path = tmp_path / "show.json"
    _write_json(path, _sheet())

    sheet = _make_loader().load(path)

    assert sheet.event_name == "Gala"
    assert sheet.source_path == path
    assert sheet.chapters[0].slides[0].tile_id == "slide:0:0"


def test_load_accepts_string_paths_and_bom(tmp_path):
    path = tmp_path / "bom.json"
    path.write_bytes(b"\xef\xbb\xbf" + json.dumps(_sheet("BOM")).encode("utf-8"))

    assert _make_loader().load(str(path)).event_name == "BOM"


def test_missing_file_raises_not_found(tmp_path):
    loader = _make_loader()
    with pytest.raises(NotFoundError) as excinfo:
        loader.load(tmp_path / "missing.json")
    assert isinstance(excinfo.value, FileNotFoundError)
    assert isinstance(excinfo.value, ShowControlError)
    assert "missing.json" in str(excinfo.value)


def test_invalid_json_raises_parse_error(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text('{"event": "Gala",', encoding="utf-8")
    with pytest.raises(ParseError) as excinfo:
        _make_loader().load(path)
    assert str(excinfo.value).startswith("invalid JSON")


@pytest.mark.skipif(not hasattr(sys, "get_int_max_str_digits"), reason="interpreter has no integer digit limit")
def test_oversized_integer_is_a_parse_error(tmp_path):
    path = tmp_path / "huge.json"
    path.write_text('{"event": "Gala", "templateData": ' + "1" * 5000 + "}", encoding="utf-8")
    loader = _make_loader()
    with pytest.raises(ParseError) as excinfo:
        loader.load(path)
    assert str(excinfo.value).startswith("unsupported JSON value")
    assert loader.diagnostics()["failures"] == 1


def test_deeply_nested_json_is_a_parse_error(tmp_path):
    path = tmp_path / "nested.json"
    path.write_text("[" * 100000 + "]" * 100000, encoding="utf-8")
    with pytest.raises(ParseError) as excinfo:
        _make_loader().load(path)
    assert "nested too deeply" in str(excinfo.value)


def test_schema_errors_propagate_with_field(tmp_path):
    path = tmp_path / "schema.json"
    payload = _sheet()
    del payload["content"][0]["slides"][0]["templateData"]
    _write_json(path, payload)
    with pytest.raises(ParseError) as excinfo:
        _make_loader().load(path)
    assert excinfo.value.field == "content[0].slides[0].templateData"


def test_non_utf8_file_is_a_parse_error(tmp_path):
    path = tmp_path / "latin1.json"
    path.write_bytes(b'{"event": "Caf\xe9"}')
    with pytest.raises(ParseError):
        _make_loader().load(path)


def test_directory_is_a_parse_error(tmp_path):
    with pytest.raises(ParseError):
        _make_loader().load(tmp_path)


@pytest.mark.parametrize("path", [None, "", "   "])
def test_blank_path_is_rejected(path):
    with pytest.raises(ParseError):
        _make_loader().load(path)


def test_diagnostics_track_successes_and_failures(tmp_path):
    loader = _make_loader()
    good = tmp_path / "good.json"
    _write_json(good, _sheet())

    loader.load(good)
    with pytest.raises(NotFoundError):
        loader.load(tmp_path / "gone.json")

    diagnostics = loader.diagnostics()
    assert diagnostics["loads"] == 1
    assert diagnostics["failures"] == 1
    assert diagnostics["last_path"] == tmp_path / "gone.json"
    assert "gone.json" in diagnostics["last_error"]
    assert diagnostics["last_load_ts"] is not None

    loader.load(good)
    assert loader.diagnostics()["last_error"] is None


def test_failed_load_is_logged_as_warning(tmp_path, caplog):
    loader = CueLoader()
    with caplog.at_level(logging.WARNING, logger="ShowControl.Engine.Loader"):
        with pytest.raises(NotFoundError):
            loader.load(tmp_path / "nope.json")
    assert any("Failed to load cue sheet" in record.getMessage() for record in caplog.records)
