"""
User settings persistence for worktrust.

Provides the versioned settings models, the migration chain that upgrades
older documents, and the store that reads and atomically writes them.
"""

from .migrations import MIGRATIONS, MigrationContext, get_schema_version, migrate_settings
from .models import (
    CURRENT_SCHEMA_VERSION,
    MAX_HASH_HISTORY,
    CleanOptions,
    Permissions,
    RepoId,
    TrustEntry,
    TrustSettings,
    WorktreeOptions,
    create_default_settings,
    settings_json_schema,
)
from .paths import SETTINGS_FILENAME, get_config_dir, get_settings_path
from .store import SettingsStore, get_settings_schema_url, load_settings, save_settings

__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "MAX_HASH_HISTORY",
    "MIGRATIONS",
    "SETTINGS_FILENAME",
    "CleanOptions",
    "MigrationContext",
    "Permissions",
    "RepoId",
    "SettingsStore",
    "TrustEntry",
    "TrustSettings",
    "WorktreeOptions",
    "create_default_settings",
    "get_config_dir",
    "get_schema_version",
    "get_settings_path",
    "get_settings_schema_url",
    "load_settings",
    "migrate_settings",
    "save_settings",
    "settings_json_schema",
]
