"""Settings document models, one per on-disk schema version.

Each historical shape has its own model, and each migration step parses
exactly the version it consumes.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

CURRENT_SCHEMA_VERSION = 3

# Maximum number of hashes kept per trust entry (oldest evicted first).
MAX_HASH_HISTORY = 100


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Legacy (no version) and v1: bare absolute paths


class PathPermissions(_Document):
    """Allow/deny lists of absolute paths."""

    allow: list[str]
    deny: list[str]


class LegacySettings(_Document):
    """Settings written before the version field existed."""

    permissions: PathPermissions


class SettingsV1(_Document):
    version: Literal[1]
    permissions: PathPermissions


# ---------------------------------------------------------------------------
# v2: per-path content hashes


class HashedPathEntry(_Document):
    path: str
    hashes: list[str]
    skip_hash_check: bool | None = Field(default=None, alias="skipHashCheck")


class HashedPathPermissions(_Document):
    allow: list[HashedPathEntry]
    deny: list[str]


class SettingsV2(_Document):
    version: Literal[2]
    skip_hash_check: bool | None = Field(default=None, alias="skipHashCheck")
    permissions: HashedPathPermissions


# ---------------------------------------------------------------------------
# v3: repository-based trust (current)


class RepoId(_Document):
    """Repository a trust entry belongs to."""

    remote_url: str | None = Field(default=None, alias="remoteUrl")
    repo_root: str | None = Field(default=None, alias="repoRoot")


class TrustEntry(_Document):
    """Approved content history for one file in one repository."""

    repo_id: RepoId = Field(alias="repoId")
    relative_path: str = Field(alias="relativePath")
    hashes: list[str] = Field(
        default_factory=list,
        description="Approved SHA-256 digests, oldest first",
    )
    skip_hash_check: bool | None = Field(default=None, alias="skipHashCheck")


class Permissions(_Document):
    allow: list[TrustEntry] = Field(default_factory=list)
    deny: list[str] = Field(default_factory=list)


class WorktreeOptions(_Document):
    path_script: str | None = Field(
        default=None,
        description="Script that prints the directory for new worktrees",
    )


class CleanOptions(_Document):
    fast_remove: bool | None = Field(
        default=None,
        description="Move worktrees aside before deleting them in the background",
    )


class TrustSettings(_Document):
    """The user's settings document at the current schema version."""

    schema_url: str | None = Field(default=None, alias="$schema")
    version: Literal[3] = CURRENT_SCHEMA_VERSION
    skip_hash_check: bool | None = Field(
        default=None,
        alias="skipHashCheck",
        description="Global default for skipping content verification",
    )
    worktree: WorktreeOptions | None = None
    clean: CleanOptions | None = None
    permissions: Permissions = Field(default_factory=Permissions)

    def to_document(self) -> dict[str, Any]:
        """Return the JSON-serializable on-disk representation."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def create_default_settings() -> TrustSettings:
    """Return a fresh settings document with nothing trusted."""
    return TrustSettings(
        version=CURRENT_SCHEMA_VERSION,
        skip_hash_check=False,
        permissions=Permissions(allow=[], deny=[]),
    )


def settings_json_schema() -> dict[str, Any]:
    """Return the JSON Schema describing the current settings document."""
    return TrustSettings.model_json_schema(by_alias=True)
