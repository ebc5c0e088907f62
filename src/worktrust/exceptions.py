"""Custom exceptions for trust and settings operations."""

from __future__ import annotations

from dataclasses import dataclass
from subprocess import CompletedProcess
from typing import Sequence


class WorktrustError(RuntimeError):
    """Base exception for worktrust failures."""


class ConfigurationError(WorktrustError):
    """Raised when the runtime environment cannot locate the settings directory."""


class SettingsError(WorktrustError):
    """Base exception for user settings failures."""


class SettingsIntegrityError(SettingsError):
    """Raised when the settings file exists but is not valid JSON."""


class SettingsValidationError(SettingsError):
    """Raised when a settings document does not match the current schema."""


class SettingsMigrationError(SettingsError):
    """Raised when a settings document cannot be brought to the current version."""


class TrustError(WorktrustError):
    """Base exception for trust decisions that cannot be recorded."""


class InvalidTrustPathError(TrustError):
    """Raised when a trust operation receives a relative path."""


class NotInRepositoryError(TrustError):
    """Raised when trusting a file that does not live inside a git repository."""


@dataclass(slots=True)
class GitCommandError(WorktrustError):
    """Raised when an underlying Git command fails."""

    argv: Sequence[str]
    result: CompletedProcess[bytes]

    def __str__(self) -> str:
        stderr = (self.result.stderr or b"").decode("utf-8", errors="replace").strip()
        stdout = (self.result.stdout or b"").decode("utf-8", errors="replace").strip()
        details = stderr or stdout
        suffix = f": {details}" if details else ""
        return f"git command failed ({' '.join(self.argv)}){suffix}"
