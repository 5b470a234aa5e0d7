"""Tests for the config_paths module."""

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from obsctl.config_paths import (
    APP_NAME,
    CONFIG_FILENAME,
    ENV_CONFIG_PATH,
    ensure_config_dir_exists,
    get_config_file_path,
    get_user_config_dir,
    resolve_config_file_path,
)


def test_user_config_dir_contains_app_name() -> None:
    """Test that the user config directory contains the app name."""
    config_dir = get_user_config_dir()
    assert APP_NAME in str(config_dir)


def test_config_file_path_from_env(monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> None:
    """Test that the environment variable overrides the default location."""
    custom = temp_dir / "custom.json"
    monkeypatch.setenv(ENV_CONFIG_PATH, str(custom))
    assert get_config_file_path() == custom


def test_config_file_path_ignores_empty_env(monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> None:
    """Test that an empty environment variable falls back to the user config dir."""
    monkeypatch.setenv(ENV_CONFIG_PATH, "")
    with patch("obsctl.config_paths.platformdirs.user_config_dir") as mock_user_config_dir:
        mock_user_config_dir.return_value = str(temp_dir / APP_NAME)
        assert get_config_file_path() == temp_dir / APP_NAME / CONFIG_FILENAME


def test_resolve_config_file_path_prefers_explicit_path(monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> None:
    monkeypatch.setenv(ENV_CONFIG_PATH, str(temp_dir / "env.json"))
    assert resolve_config_file_path(str(temp_dir / "explicit.json")) == temp_dir / "explicit.json"
    assert resolve_config_file_path() == temp_dir / "env.json"


def test_ensure_config_dir_exists_creates_private_dir(temp_dir: Path) -> None:
    """Test that a missing config directory is created owner-only."""
    config_file = temp_dir / "nested" / "obsctl" / CONFIG_FILENAME
    ensure_config_dir_exists(config_file)

    assert config_file.parent.is_dir()
    if os.name == "posix":
        mode = stat.S_IMODE(config_file.parent.stat().st_mode)
        assert mode & 0o077 == 0


def test_ensure_config_dir_exists_is_idempotent(temp_dir: Path) -> None:
    config_file = temp_dir / CONFIG_FILENAME
    ensure_config_dir_exists(config_file)
    ensure_config_dir_exists(config_file)
    assert temp_dir.is_dir()
