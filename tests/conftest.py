"""Pytest configuration helpers."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Iterator

import pytest

from worktrust.config import get_config
from worktrust.repo.types import RepoIdentity
from worktrust.settings import SettingsStore

_GIT_ENV = {
    "GIT_CONFIG_NOSYSTEM": "1",
    "GIT_AUTHOR_NAME": "worktrust tests",
    "GIT_AUTHOR_EMAIL": "tests@example.com",
    "GIT_COMMITTER_NAME": "worktrust tests",
    "GIT_COMMITTER_EMAIL": "tests@example.com",
}


def _git(*args: str, cwd: Path) -> str:
    """Run git inside ``cwd`` and return stripped stdout."""
    env = os.environ.copy()
    env.update(_GIT_ENV)
    result = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        env=env,
        capture_output=True,
        check=True,
    )
    return result.stdout.decode("utf-8").strip()


@pytest.fixture
def run_git() -> Callable[..., str]:
    """Return a helper that runs git commands in a given directory."""
    return _git


@pytest.fixture(autouse=True)
def settings_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point the settings file at a per-test directory.

    Each test gets an isolated ``WORKTRUST_CONFIG_DIR`` so no test can read or
    modify the real user's trust decisions.
    """
    config_dir = tmp_path / "config"
    monkeypatch.setenv("WORKTRUST_CONFIG_DIR", str(config_dir))
    monkeypatch.delenv("WORKTRUST_STRICT_SETTINGS", raising=False)
    monkeypatch.delenv("WORKTRUST_GIT_TIMEOUT", raising=False)
    # Files under tmp_path outside a test repository must never resolve to an
    # enclosing repository.
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path.resolve()))
    get_config.cache_clear()
    try:
        yield config_dir
    finally:
        get_config.cache_clear()


@pytest.fixture
def settings_path(settings_dir: Path) -> Path:
    return settings_dir / "settings.json"


@pytest.fixture
def store(settings_path: Path) -> SettingsStore:
    return SettingsStore(settings_path)


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create an empty git repository without a remote."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    repo = tmp_path / "repo"
    repo.mkdir()
    _git("init", "-q", cwd=repo)
    return repo.resolve()


@pytest.fixture
def fake_identity(tmp_path: Path) -> Callable[[object], RepoIdentity | None]:
    """Resolve identities without git: files under ``tmp_path/project`` belong to one repo."""
    root = (tmp_path / "project").resolve()
    root.mkdir(exist_ok=True)

    def resolve(path: object) -> RepoIdentity | None:
        candidate = Path(str(path)).resolve()
        if not candidate.exists():
            return None
        try:
            relative = candidate.relative_to(root)
        except ValueError:
            return None
        return RepoIdentity(
            repo_root=root,
            relative_path=relative.as_posix(),
            remote_url="github.com/example/project",
        )

    return resolve
