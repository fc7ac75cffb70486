from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from watchrun.config import MergedSettings, effective_settings as config
from watchrun.supervisor import Backoff


def write_overrides(tmp_path, data) -> Path:
    path = tmp_path / "overrides.json"
    path.write_text(data if isinstance(data, str) else json.dumps(data))
    return path


def test_defaults_without_overrides_file(tmp_path):
    settings = MergedSettings(overrides_path=tmp_path / "absent.json")
    assert settings.POLL_INTERVAL == 1.0
    assert settings.BACKOFF_MIN == 1.0
    assert settings.BACKOFF_MAX == 10.0


def test_modifiable_settings_are_applied_and_coerced(tmp_path):
    path = write_overrides(tmp_path, {
        "BACKOFF_MAX": "20",
        "RUN_ON_START": "false",
        "LOG_LEVEL": "debug",
    })
    settings = MergedSettings(overrides_path=path)
    assert settings.BACKOFF_MAX == 20.0
    assert settings.RUN_ON_START is False
    assert settings.LOG_LEVEL == "DEBUG"


def test_non_modifiable_and_unknown_keys_are_ignored(tmp_path, caplog):
    path = write_overrides(tmp_path, {"POLL_INTERVAL": 0.1, "NOT_A_SETTING": 1})
    with caplog.at_level(logging.WARNING, logger="watchrun.config"):
        settings = MergedSettings(overrides_path=path)
    assert settings.POLL_INTERVAL == 1.0
    assert not hasattr(settings, "NOT_A_SETTING")
    assert "non-modifiable" in caplog.text


def test_malformed_file_keeps_defaults(tmp_path, caplog):
    path = write_overrides(tmp_path, "{not json")
    with caplog.at_level(logging.ERROR, logger="watchrun.config"):
        settings = MergedSettings(overrides_path=path)
    assert settings.BACKOFF_MAX == 10.0
    assert "Failed to load" in caplog.text


def test_inverted_backoff_bounds_fall_back(tmp_path):
    path = write_overrides(tmp_path, {"BACKOFF_MIN": 30})
    settings = MergedSettings(overrides_path=path)
    assert settings.BACKOFF_MIN == 1.0
    assert settings.BACKOFF_MAX == 10.0


@pytest.mark.parametrize("overrides", [
    {"BACKOFF_MIN": 0},
    {"BACKOFF_MIN": -1},
    {"BACKOFF_MULTIPLIER": 0.5},
])
def test_unusable_backoff_overrides_fall_back(tmp_path, caplog, overrides):
    path = write_overrides(tmp_path, overrides)
    with caplog.at_level(logging.WARNING, logger="watchrun.config"):
        settings = MergedSettings(overrides_path=path)
    assert (settings.BACKOFF_MIN, settings.BACKOFF_MAX, settings.BACKOFF_MULTIPLIER) == (1.0, 10.0, 2.0)
    assert "Invalid backoff overrides" in caplog.text


def test_fallback_settings_build_a_backoff(tmp_path, monkeypatch):
    settings = MergedSettings(overrides_path=write_overrides(tmp_path, {"BACKOFF_MIN": 0}))
    for key in ("BACKOFF_MIN", "BACKOFF_MAX", "BACKOFF_MULTIPLIER"):
        monkeypatch.setattr(config, key, getattr(settings, key))
    assert Backoff().current == 1.0


def test_loaded_overrides_path_is_recorded(tmp_path):
    path = write_overrides(tmp_path, {"BACKOFF_MAX": 20})
    assert MergedSettings(overrides_path=path).loaded_overrides == path
    assert MergedSettings(overrides_path=tmp_path / "absent.json").loaded_overrides is None
