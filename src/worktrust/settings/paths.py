"""Location of the per-user settings document."""

from __future__ import annotations

import os
from pathlib import Path

from worktrust.config import WorktrustConfig, get_config
from worktrust.exceptions import ConfigurationError

SETTINGS_FILENAME = "settings.json"


def _validated_home() -> Path:
    home = os.environ.get("HOME", "")
    candidate = Path(home) if home else None
    if candidate is None or not candidate.is_absolute() or ".." in candidate.parts:
        raise ConfigurationError(
            "Invalid HOME environment variable. "
            "HOME must be an absolute path without '..' components."
        )
    return candidate


def get_config_dir(config: WorktrustConfig | None = None) -> Path:
    """
    Return the directory that holds worktrust's user settings.

    ``WORKTRUST_CONFIG_DIR`` wins when set; otherwise ``$HOME/.config/worktrust``.

    Raises:
        ConfigurationError: If the configured directory is relative or HOME is unusable.
    """
    cfg = config or get_config()
    if cfg.CONFIG_DIR:
        override = Path(cfg.CONFIG_DIR).expanduser()
        if not override.is_absolute():
            raise ConfigurationError(
                f"WORKTRUST_CONFIG_DIR must be an absolute path: {cfg.CONFIG_DIR}"
            )
        return override
    return _validated_home() / ".config" / "worktrust"


def get_settings_path(config: WorktrustConfig | None = None) -> Path:
    """Return the absolute path of settings.json."""
    return get_config_dir(config) / SETTINGS_FILENAME
