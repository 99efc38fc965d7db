import json
import logging

import pytest

from show_engine import console_config
from show_engine.console_config import ConsoleSettings, load_console_settings, resolve_settings_path


def _write_json(path, payload):
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def test_missing_settings_file_uses_defaults(tmp_path):
    settings = load_console_settings(tmp_path / "console_settings.json", environ={})
    assert settings == ConsoleSettings()
    assert settings.trigger_host == "127.0.0.1"
    assert settings.trigger_port == 18888
    assert settings.background_loading is True


def test_settings_file_values_are_applied(tmp_path):
    path = tmp_path / "console_settings.json"
    _write_json(
        path,
        {
            "trigger_host": " 192.168.1.20 ",
            "trigger_port": 9001,
            "watch_debounce_seconds": 0.25,
            "log_retention": 3,
            "log_level": "warning",
            "background_loading": False,
        },
    )
    settings = load_console_settings(path, environ={})
    assert settings.trigger_host == "192.168.1.20"
    assert settings.trigger_port == 9001
    assert settings.watch_debounce_seconds == pytest.approx(0.25)
    assert settings.log_retention == 3
    assert settings.log_level == "WARNING"
    assert settings.background_loading is False


@pytest.mark.parametrize(
    "key, raw, expected",
    [
        ("trigger_port", 0, 1),
        ("trigger_port", 70000, 65535),
        ("trigger_port", True, 18888),
        ("trigger_port", "abc", 18888),
        ("watch_debounce_seconds", 0, 0.01),
        ("watch_debounce_seconds", 60, 5.0),
        ("watch_poll_interval", "nan", 0.05),
        ("missing_file_grace_seconds", -1, 0.0),
        ("log_retention", 500, 50),
    ],
)
def test_out_of_range_values_are_clamped_or_defaulted(tmp_path, key, raw, expected):
    path = tmp_path / "console_settings.json"
    _write_json(path, {key: raw})
    settings = load_console_settings(path, environ={})
    assert getattr(settings, key) == pytest.approx(expected)


def test_unknown_log_level_is_ignored(tmp_path):
    path = tmp_path / "console_settings.json"
    _write_json(path, {"log_level": "LOUD"})
    assert load_console_settings(path, environ={}).log_level is None


def test_invalid_json_falls_back_to_defaults(tmp_path, caplog):
    path = tmp_path / "console_settings.json"
    path.write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="ShowControl.Engine.Config"):
        settings = load_console_settings(path, environ={})
    assert settings == ConsoleSettings()
    assert any("Invalid JSON" in record.getMessage() for record in caplog.records)


def test_non_object_root_falls_back_to_defaults(tmp_path):
    path = tmp_path / "console_settings.json"
    _write_json(path, [1, 2, 3])
    assert load_console_settings(path, environ={}) == ConsoleSettings()


def test_environment_overrides_file(tmp_path):
    path = tmp_path / "console_settings.json"
    _write_json(path, {"trigger_host": "10.0.0.1", "trigger_port": 9001, "log_level": "INFO"})
    environ = {
        console_config.HOST_ENV_VAR: "10.0.0.99",
        console_config.PORT_ENV_VAR: "9100",
        console_config.LOG_LEVEL_ENV_VAR: "debug",
    }
    settings = load_console_settings(path, environ=environ)
    assert settings.trigger_host == "10.0.0.99"
    assert settings.trigger_port == 9100
    assert settings.log_level == "DEBUG"


def test_bad_environment_values_keep_file_values(tmp_path):
    path = tmp_path / "console_settings.json"
    _write_json(path, {"trigger_port": 9001, "log_level": "ERROR"})
    environ = {console_config.PORT_ENV_VAR: "not-a-port", console_config.LOG_LEVEL_ENV_VAR: "chatty"}
    settings = load_console_settings(path, environ=environ)
    assert settings.trigger_port == 9001
    assert settings.log_level == "ERROR"


def test_no_settings_path_reads_environment_only():
    settings = load_console_settings(None, environ={console_config.PORT_ENV_VAR: "9200"})
    assert settings.trigger_port == 9200


def test_resolve_settings_path(tmp_path):
    assert resolve_settings_path(tmp_path) == tmp_path / "console_settings.json"
    assert resolve_settings_path().name == "console_settings.json"
