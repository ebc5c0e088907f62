"""Resolve the repository identity of a file on disk."""

from __future__ import annotations

import logging
import os
import re
import subprocess
from pathlib import Path

from worktrust.exceptions import GitCommandError

from . import git
from .types import RepoIdentity

logger = logging.getLogger(__name__)

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
_SCP_LIKE = re.compile(r"^(?:[^@/]+@)?(?P<host>[^:/]+):(?P<path>.+)$")
_CREDENTIALS = re.compile(r"^[^@/]+@")


def normalize_remote_url(url: str) -> str:
    """
    Canonicalize a git remote URL so equivalent remotes compare equal.

    Examples:
        - git@github.com:user/repo.git -> github.com/user/repo
        - https://github.com/user/repo.git -> github.com/user/repo
        - https://token@github.com/user/repo -> github.com/user/repo
        - ssh://git@github.com/user/repo -> github.com/user/repo
    """
    normalized = url.strip().rstrip("/")
    if normalized.endswith(".git"):
        normalized = normalized[: -len(".git")]

    if _SCHEME.match(normalized):
        normalized = _SCHEME.sub("", normalized, count=1)
    else:
        match = _SCP_LIKE.match(normalized)
        if match:
            normalized = f"{match.group('host')}/{match.group('path').lstrip('/')}"

    normalized = _CREDENTIALS.sub("", normalized, count=1)
    return normalized.rstrip("/")


def path_is_within(path: str, root: str) -> bool:
    """Return True when ``path`` equals ``root`` or lies below it.

    Both arguments must already be normalized. ``/repo-foo`` is not within
    ``/repo``.
    """
    if path == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return path.startswith(prefix)


def resolve_repo_identity(absolute_path: str | os.PathLike[str]) -> RepoIdentity | None:
    """
    Determine which repository a file belongs to.

    Symlinks are resolved first so a link cannot redirect a trust decision
    into or out of a repository.

    Returns:
        The identity of the file, or None when it is missing, outside any git
        repository, or escapes the repository root.
    """
    try:
        real_path = Path(absolute_path).resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        logger.debug("Cannot resolve %s: %s", absolute_path, exc)
        return None

    file_dir = real_path.parent

    try:
        raw_root = git.resolve_repo_root(file_dir)
    except (GitCommandError, OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("No repository found for %s: %s", real_path, exc)
        return None

    if not str(raw_root) or not raw_root.is_absolute():
        logger.debug("Repository root %r for %s is not absolute", str(raw_root), real_path)
        return None

    root = os.path.normpath(str(raw_root.resolve()))
    path = os.path.normpath(str(real_path))
    if not path_is_within(path, root):
        logger.debug("%s lies outside repository root %s", path, root)
        return None

    relative = Path(os.path.relpath(path, root))
    if ".." in relative.parts:
        logger.debug("Relative path %s contains parent references", relative)
        return None

    try:
        raw_url = git.resolve_remote_url(file_dir)
    except (OSError, subprocess.TimeoutExpired) as exc:
        logger.debug("Remote lookup failed for %s: %s", root, exc)
        raw_url = None

    remote_url = normalize_remote_url(raw_url) if raw_url else None

    return RepoIdentity(
        repo_root=Path(root),
        relative_path=relative.as_posix(),
        remote_url=remote_url or None,
    )
