"""Schema migrations for the user settings document.

Every step converts exactly one version into the next. A step that cannot
parse its input returns it unchanged; later validation then reports the
problem instead of the migration crashing.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable

from pydantic import ValidationError

from worktrust import hashing
from worktrust.exceptions import SettingsMigrationError
from worktrust.repo.identity import resolve_repo_identity
from worktrust.repo.types import RepoIdentity

from .models import (
    CURRENT_SCHEMA_VERSION,
    LegacySettings,
    SettingsV1,
    SettingsV2,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MigrationContext:
    """Collaborators and collected warnings for one migration run."""

    hash_file: Callable[[str], str] = hashing.hash_file
    resolve_identity: Callable[[str], RepoIdentity | None] = resolve_repo_identity
    warnings: list[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        self.warnings.append(message)


MigrationFn = Callable[[Any, MigrationContext], Any]


def get_schema_version(data: Any) -> int:
    """Return the integer ``version`` field, or 0 for legacy documents."""
    if isinstance(data, dict):
        version = data.get("version")
        if isinstance(version, int) and not isinstance(version, bool):
            return version
    return 0


def migrate_legacy_to_v1(data: Any, ctx: MigrationContext) -> Any:
    """Add the version field to an unversioned ``{allow, deny}`` document."""
    try:
        legacy = LegacySettings.model_validate(data)
    except ValidationError:
        return data
    return {
        "version": 1,
        "permissions": legacy.permissions.model_dump(mode="json"),
    }


def migrate_v1_to_v2(data: Any, ctx: MigrationContext) -> Any:
    """Record the current content hash of every trusted path."""
    try:
        v1 = SettingsV1.model_validate(data)
    except ValidationError:
        return data

    allow: list[dict[str, Any]] = []
    for path in v1.permissions.allow:
        try:
            allow.append({"path": path, "hashes": [ctx.hash_file(path)]})
        except (OSError, ValueError) as exc:
            ctx.warn(
                f"Cannot calculate hash for {path}: {exc}. "
                "The path is kept with hash checking disabled (skipHashCheck: true)."
            )
            allow.append({"path": path, "hashes": [], "skipHashCheck": True})

    return {
        "version": 2,
        "skipHashCheck": False,
        "permissions": {"allow": allow, "deny": list(v1.permissions.deny)},
    }


def _fallback_entry(path: str, hashes: list[str], skip: bool | None) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "repoId": {"repoRoot": os.path.dirname(path)},
        "relativePath": os.path.basename(path),
        "hashes": list(hashes),
    }
    if skip is not None:
        entry["skipHashCheck"] = skip
    return entry


def migrate_v2_to_v3(data: Any, ctx: MigrationContext) -> Any:
    """Replace absolute paths with repository identity plus relative path."""
    try:
        v2 = SettingsV2.model_validate(data)
    except ValidationError:
        return data

    allow: list[dict[str, Any]] = []
    for item in v2.permissions.allow:
        try:
            identity = ctx.resolve_identity(item.path)
        except Exception as exc:
            ctx.warn(
                f"Migration failed for {item.path}: {exc}. "
                "Entry will be preserved with hash checking disabled."
            )
            allow.append(_fallback_entry(item.path, item.hashes, True))
            continue

        if identity is None:
            ctx.warn(
                f"Cannot determine repository for {item.path}. Using directory as fallback."
            )
            allow.append(_fallback_entry(item.path, item.hashes, item.skip_hash_check))
            continue

        repo_id: dict[str, str] = {"repoRoot": str(identity.repo_root)}
        if identity.remote_url:
            repo_id["remoteUrl"] = identity.remote_url
        entry: dict[str, Any] = {
            "repoId": repo_id,
            "relativePath": identity.relative_path,
            "hashes": list(item.hashes),
        }
        if item.skip_hash_check is not None:
            entry["skipHashCheck"] = item.skip_hash_check
        allow.append(entry)

    migrated: dict[str, Any] = {
        "version": 3,
        "permissions": {"allow": allow, "deny": list(v2.permissions.deny)},
    }
    if v2.skip_hash_check is not None:
        migrated["skipHashCheck"] = v2.skip_hash_check
    return migrated


MIGRATIONS: dict[int, MigrationFn] = {
    0: migrate_legacy_to_v1,
    1: migrate_v1_to_v2,
    2: migrate_v2_to_v3,
}


def _report(warnings: list[str]) -> None:
    if not warnings:
        return
    lines = ["Settings migration warnings:"]
    lines.extend(f"  - {message}" for message in warnings)
    lines.append(
        "Run 'worktrust verify' to check trust status and 'worktrust trust' to update entries."
    )
    logger.warning("\n".join(lines))


def migrate_settings(data: Any, ctx: MigrationContext | None = None) -> Any:
    """
    Bring a raw settings document up to the current schema version.

    Args:
        data: Parsed JSON document of any known version.
        ctx: Collaborators for hashing and repository lookup.

    Returns:
        The migrated document (validation is left to the caller).

    Raises:
        SettingsMigrationError: If the document is newer than this release
            understands or a step in the chain is missing.
    """
    context = ctx or MigrationContext()
    version = get_schema_version(data)
    if version > CURRENT_SCHEMA_VERSION:
        raise SettingsMigrationError(
            f"Settings schema version {version} is newer than the supported "
            f"version {CURRENT_SCHEMA_VERSION}. Upgrade worktrust to read this file."
        )

    current = data
    while version < CURRENT_SCHEMA_VERSION:
        step = MIGRATIONS.get(version)
        if step is None:
            raise SettingsMigrationError(f"Migration from version {version} is not defined")
        logger.debug("Migrating settings from version %d", version)
        current = step(current, context)
        next_version = get_schema_version(current)
        # A step that passed its input through did not advance the version.
        version = next_version if next_version > version else version + 1

    _report(context.warnings)
    return current
