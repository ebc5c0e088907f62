"""Typed structures describing where a file lives."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class RepoIdentity:
    """Canonical identity of a file inside a git repository.

    Derived from live repository state on every resolution and never persisted
    as-is.
    """

    repo_root: Path
    relative_path: str
    remote_url: str | None = None

    @property
    def is_local_only(self) -> bool:
        """Return True when the repository has no ``origin`` remote."""
        return self.remote_url is None

    @property
    def display_name(self) -> str:
        """Return the remote URL, or the repository root marked as local."""
        if self.remote_url:
            return self.remote_url
        return f"(local) {self.repo_root}"
