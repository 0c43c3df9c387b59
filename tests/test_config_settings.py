"""
Tests for refload/config/settings.py
"""

from pathlib import Path

import pytest

from refload.config.settings import (
    PROJECT_ROOT,
    LoaderSettings,
    Settings,
    get_settings,
    reset_settings,
)


def test_defaults():
    settings = LoaderSettings.from_env()

    assert settings.separator == "|"
    assert settings.encoding == "utf-8"
    assert settings.data_dir == PROJECT_ROOT / "data" / "ref"
    assert settings.log_level == "INFO"


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("REFLOAD_SEPARATOR", ",")
    monkeypatch.setenv("REFLOAD_ENCODING", "cp932")
    monkeypatch.setenv("REFLOAD_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("REFLOAD_LOG_LEVEL", "debug")

    settings = LoaderSettings.from_env()

    assert settings.separator == ","
    assert settings.encoding == "cp932"
    assert settings.data_dir == tmp_path
    assert settings.log_level == "DEBUG"


def test_empty_separator_rejected(monkeypatch):
    monkeypatch.setenv("REFLOAD_SEPARATOR", "")
    with pytest.raises(ValueError) as exc_info:
        LoaderSettings.from_env()
    assert "REFLOAD_SEPARATOR" in str(exc_info.value)


def test_unknown_encoding_rejected():
    with pytest.raises(ValueError) as exc_info:
        LoaderSettings(encoding="not-a-codec")
    assert "not-a-codec" in str(exc_info.value)


def test_unknown_log_level_rejected():
    with pytest.raises(ValueError):
        LoaderSettings(log_level="chatty")


def test_resolve_relative_paths(tmp_path):
    settings = LoaderSettings(data_dir=tmp_path)

    assert settings.resolve("branches.txt") == tmp_path / "branches.txt"
    assert settings.resolve(tmp_path / "abs.txt") == tmp_path / "abs.txt"


def test_get_settings_is_cached_until_reset(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("REFLOAD_SEPARATOR", ";")

    assert get_settings() is first
    assert first.loader.separator == "|"

    reset_settings()
    assert get_settings().loader.separator == ";"


def test_settings_wraps_loader_settings():
    settings = Settings()
    assert isinstance(settings.loader, LoaderSettings)
    assert isinstance(settings.loader.data_dir, Path)
