"""Unit tests for runtime configuration and the settings location."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from worktrust.config import WorktrustConfig, get_config
from worktrust.exceptions import ConfigurationError
from worktrust.settings import get_config_dir, get_settings_path


def test_default_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test defaults when no environment overrides are present."""
    monkeypatch.delenv("WORKTRUST_CONFIG_DIR", raising=False)
    config = WorktrustConfig()
    assert config.CONFIG_DIR is None
    assert config.GIT_TIMEOUT == 10.0
    assert config.STRICT_SETTINGS is False


def test_config_reads_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("WORKTRUST_CONFIG_DIR", str(tmp_path))
    monkeypatch.setenv("WORKTRUST_GIT_TIMEOUT", "2.5")
    monkeypatch.setenv("WORKTRUST_STRICT_SETTINGS", "true")
    get_config.cache_clear()

    config = get_config()

    assert config.CONFIG_DIR == str(tmp_path)
    assert config.GIT_TIMEOUT == 2.5
    assert config.STRICT_SETTINGS is True
    assert get_config() is config


def test_blank_config_dir_is_treated_as_unset() -> None:
    assert WorktrustConfig(CONFIG_DIR="   ").CONFIG_DIR is None


def test_non_positive_git_timeout_fails() -> None:
    """Test that a zero timeout is rejected."""
    with pytest.raises(ValidationError) as exc_info:
        WorktrustConfig(GIT_TIMEOUT=0)

    assert "GIT_TIMEOUT" in str(exc_info.value)


def test_config_dir_override(tmp_path: Path) -> None:
    config = WorktrustConfig(CONFIG_DIR=str(tmp_path / "custom"))

    assert get_config_dir(config) == tmp_path / "custom"
    assert get_settings_path(config) == tmp_path / "custom" / "settings.json"


def test_relative_config_dir_override_fails() -> None:
    with pytest.raises(ConfigurationError, match="must be an absolute path"):
        get_config_dir(WorktrustConfig(CONFIG_DIR="relative/dir"))


def test_config_dir_defaults_to_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))

    assert get_config_dir(WorktrustConfig(CONFIG_DIR=None)) == tmp_path / ".config" / "worktrust"


@pytest.mark.parametrize("home", ["", "relative/home", "/home/user/../../etc"])
def test_invalid_home_fails(monkeypatch: pytest.MonkeyPatch, home: str) -> None:
    """Test that HOME must be absolute and free of parent references."""
    monkeypatch.setenv("HOME", home)

    with pytest.raises(ConfigurationError, match="Invalid HOME"):
        get_config_dir(WorktrustConfig(CONFIG_DIR=None))
