"""Low-level Git helpers used to identify repositories."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Mapping, Sequence

from worktrust.config import get_config
from worktrust.exceptions import GitCommandError


def run(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    check: bool = True,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[bytes]:
    """
    Execute a Git command returning the completed process.

    Args:
        args: Sequence of arguments that follow the `git` executable.
        cwd: Directory to execute the command from (defaults to the process cwd).
        env: Optional environment overrides.
        check: When True, raise :class:`GitCommandError` on non-zero exit.
        timeout: Timeout in seconds (defaults to ``WORKTRUST_GIT_TIMEOUT``).

    Returns:
        CompletedProcess with stdout/stderr captured as bytes.
    """
    command = ["git", *args]
    merged_env = os.environ.copy()
    if env:
        merged_env.update(env)

    result = subprocess.run(
        command,
        cwd=str(cwd) if cwd is not None else None,
        env=merged_env,
        capture_output=True,
        check=False,
        timeout=timeout if timeout is not None else get_config().GIT_TIMEOUT,
    )

    if check and result.returncode != 0:
        raise GitCommandError(command, result)

    return result


def _stdout(result: subprocess.CompletedProcess[bytes]) -> str:
    return (result.stdout or b"").decode("utf-8", errors="replace").strip()


def resolve_repo_root(directory: Path) -> Path:
    """
    Return the top-level directory of the repository containing ``directory``.

    Uses ``git -C`` so concurrent callers never depend on the process cwd.

    Raises:
        GitCommandError: If ``directory`` is not inside a git repository.
    """
    result = run(["-C", str(directory), "rev-parse", "--show-toplevel"])
    return Path(_stdout(result))


def resolve_remote_url(directory: Path) -> str | None:
    """Return the raw ``origin`` URL for the repository, or None for local-only repos."""
    result = run(
        ["-C", str(directory), "config", "--get", "remote.origin.url"],
        check=False,
    )
    if result.returncode != 0:
        return None
    value = _stdout(result)
    return value or None


def current_repo_root() -> Path:
    """Return the repository root for the current working directory."""
    return Path(_stdout(run(["rev-parse", "--show-toplevel"])))
