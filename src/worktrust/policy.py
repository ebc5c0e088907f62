"""
Trust decisions for repository configuration files.

A file is trusted when the user has approved it for its repository *and* its
current content matches one of the approved content hashes (unless hash
verification is skipped for the entry or globally). Absence of a matching
entry is the untrusted state; nothing negative is ever persisted.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Sequence

from worktrust.exceptions import InvalidTrustPathError, NotInRepositoryError
from worktrust.hashing import hash_bytes, hash_file
from worktrust.repo.identity import resolve_repo_identity
from worktrust.repo.types import RepoIdentity
from worktrust.settings.models import MAX_HASH_HISTORY, RepoId, TrustEntry, TrustSettings
from worktrust.settings.paths import get_settings_path as _get_settings_path
from worktrust.settings.store import SettingsStore

logger = logging.getLogger(__name__)

PathLike = str | os.PathLike[str]


class TrustStatus(str, Enum):
    """Outcome of evaluating one file against the allow list."""

    NOT_IN_REPOSITORY = "not_in_repository"
    NOT_TRUSTED = "not_trusted"
    UNREADABLE = "unreadable"
    HASH_MISMATCH = "hash_mismatch"
    TRUSTED = "trusted"
    SKIP_HASH = "skip_hash"

    @property
    def is_trusted(self) -> bool:
        return self in {TrustStatus.TRUSTED, TrustStatus.SKIP_HASH}


@dataclass(slots=True)
class TrustVerification:
    """Result of :meth:`TrustPolicy.verify_trust_and_read`."""

    trusted: bool
    content: str | None = None


@dataclass(slots=True)
class TrustReport:
    """Detailed trust state of a file, used for display."""

    path: Path
    status: TrustStatus
    identity: RepoIdentity | None = None
    entry: TrustEntry | None = None
    current_hash: str | None = None
    error: str | None = None

    @property
    def trusted(self) -> bool:
        return self.status.is_trusted


def find_matching_entry(
    allow: Sequence[TrustEntry],
    identity: RepoIdentity,
) -> TrustEntry | None:
    """
    Find the allow-list entry for a file's repository identity.

    The relative path must match. Remote URLs are compared when both sides
    have one; otherwise repository roots are compared. A relative path alone
    never matches.
    """
    repo_root = str(identity.repo_root)
    for entry in allow:
        if entry.relative_path != identity.relative_path:
            continue
        if entry.repo_id.remote_url and identity.remote_url:
            if entry.repo_id.remote_url == identity.remote_url:
                return entry
            continue
        if entry.repo_id.repo_root and entry.repo_id.repo_root == repo_root:
            return entry
    return None


def effective_skip_hash_check(entry: TrustEntry, settings: TrustSettings) -> bool:
    """Resolve skip-hash with priority entry -> global -> False."""
    if entry.skip_hash_check is not None:
        return entry.skip_hash_check
    if settings.skip_hash_check is not None:
        return settings.skip_hash_check
    return False


class TrustPolicy:
    """Records and evaluates trust decisions against the settings store."""

    def __init__(
        self,
        store: SettingsStore | None = None,
        *,
        resolve_identity: Callable[[PathLike], RepoIdentity | None] = resolve_repo_identity,
    ):
        self.store = store or SettingsStore()
        self._resolve_identity = resolve_identity

    # ------------------------------------------------------------------
    # Mutating operations

    def add_trusted_path(self, path: PathLike) -> RepoIdentity:
        """
        Trust the current content of a configuration file.

        Args:
            path: Absolute path of the file to trust.

        Returns:
            The repository identity the trust entry was recorded under.

        Raises:
            InvalidTrustPathError: If ``path`` is not absolute.
            NotInRepositoryError: If the file is not inside a git repository.
            OSError: If the file cannot be read.
        """
        if not os.path.isabs(path):
            raise InvalidTrustPathError(
                f"Path must be absolute: {path}\n"
                "Relative paths are not supported for trust decisions."
            )

        identity = self._resolve_identity(path)
        if identity is None:
            raise NotInRepositoryError(
                f"Cannot trust file outside of git repository: {path}\n"
                "Configuration files must live inside a git repository."
            )

        digest = hash_file(path)
        settings = self.store.load()
        entry = find_matching_entry(settings.permissions.allow, identity)

        if entry is None:
            settings.permissions.allow.append(
                TrustEntry(
                    repo_id=RepoId(
                        remote_url=identity.remote_url,
                        repo_root=str(identity.repo_root),
                    ),
                    relative_path=identity.relative_path,
                    hashes=[digest],
                )
            )
            logger.info("Trusted %s in %s", identity.relative_path, identity.display_name)
        elif digest not in entry.hashes:
            entry.hashes.append(digest)
            overflow = len(entry.hashes) - MAX_HASH_HISTORY
            if overflow > 0:
                del entry.hashes[:overflow]
            logger.info(
                "Added hash for %s in %s (%d stored)",
                identity.relative_path,
                identity.display_name,
                len(entry.hashes),
            )

        self.store.save(settings)
        return identity

    def remove_trusted_path(self, path: PathLike) -> bool:
        """
        Remove trust for a configuration file.

        Returns:
            True when an entry was removed. An unidentifiable file or a file
            that was never trusted is not an error.
        """
        identity = self._resolve_identity(path)
        if identity is None:
            logger.warning(
                "Cannot determine repository for %s. Removal may not work correctly.", path
            )
            return False

        settings = self.store.load()
        entry = find_matching_entry(settings.permissions.allow, identity)
        if entry is not None:
            settings.permissions.allow.remove(entry)

        self.store.save(settings)
        return entry is not None

    # ------------------------------------------------------------------
    # Evaluation

    def _lookup(self, path: PathLike) -> tuple[TrustSettings, TrustEntry] | None:
        identity = self._resolve_identity(path)
        if identity is None:
            return None
        settings = self.store.load()
        entry = find_matching_entry(settings.permissions.allow, identity)
        if entry is None:
            return None
        return settings, entry

    def is_trusted(self, path: PathLike) -> bool:
        """
        Check whether a file is trusted without returning its content.

        Intended for tests and diagnostics only. The file can change between
        this check and a later read; callers that go on to use the content
        must call :meth:`verify_trust_and_read` instead.
        """
        found = self._lookup(path)
        if found is None:
            return False
        settings, entry = found

        if effective_skip_hash_check(entry, settings):
            logger.warning("Hash verification is disabled for %s", path)
            return True

        try:
            digest = hash_file(path)
        except OSError as exc:
            logger.warning("Cannot read %s: %s", path, exc)
            return False
        return digest in entry.hashes

    def verify_trust_and_read(self, path: PathLike) -> TrustVerification:
        """
        Read a file once and return its content only if it is trusted.

        The digest is computed from the bytes that were read, so the content
        returned is exactly the content that was verified.
        """
        found = self._lookup(path)
        if found is None:
            return TrustVerification(trusted=False)
        settings, entry = found

        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            logger.warning("Cannot read %s: %s", path, exc)
            return TrustVerification(trusted=False)

        if effective_skip_hash_check(entry, settings):
            logger.warning("Hash verification is disabled for %s", path)
        elif hash_bytes(data) not in entry.hashes:
            return TrustVerification(trusted=False)

        try:
            content = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            logger.warning("Cannot decode %s as UTF-8: %s", path, exc)
            return TrustVerification(trusted=False)
        return TrustVerification(trusted=True, content=content)

    def inspect(self, path: PathLike, settings: TrustSettings | None = None) -> TrustReport:
        """Describe the trust state of a file without modifying anything."""
        file_path = Path(path)
        identity = self._resolve_identity(path)
        if identity is None:
            return TrustReport(path=file_path, status=TrustStatus.NOT_IN_REPOSITORY)

        current = settings or self.store.load()
        entry = find_matching_entry(current.permissions.allow, identity)
        if entry is None:
            return TrustReport(path=file_path, status=TrustStatus.NOT_TRUSTED, identity=identity)

        report = TrustReport(
            path=file_path,
            status=TrustStatus.HASH_MISMATCH,
            identity=identity,
            entry=entry,
        )
        try:
            report.current_hash = hash_file(path)
        except OSError as exc:
            report.status = TrustStatus.UNREADABLE
            report.error = str(exc)
            return report

        if effective_skip_hash_check(entry, current):
            report.status = TrustStatus.SKIP_HASH
        elif report.current_hash in entry.hashes:
            report.status = TrustStatus.TRUSTED
        return report


def add_trusted_path(path: PathLike) -> RepoIdentity:
    """Trust the current content of ``path`` for the current user."""
    return TrustPolicy().add_trusted_path(path)


def remove_trusted_path(path: PathLike) -> bool:
    """Remove the current user's trust for ``path``."""
    return TrustPolicy().remove_trusted_path(path)


def is_trusted(path: PathLike) -> bool:
    """Check-only trust test; prefer :func:`verify_trust_and_read`."""
    return TrustPolicy().is_trusted(path)


def verify_trust_and_read(path: PathLike) -> TrustVerification:
    """Read ``path`` and return its content when trusted."""
    return TrustPolicy().verify_trust_and_read(path)


def get_settings_path() -> Path:
    """Return the settings file location, for display."""
    return _get_settings_path()
