from __future__ import annotations

import json
from pathlib import Path

import typer

from worktrust.exceptions import GitCommandError, WorktrustError
from worktrust.policy import TrustPolicy, TrustReport, TrustStatus, get_settings_path
from worktrust.repo.git import current_repo_root
from worktrust.settings import SettingsStore, settings_json_schema

CONFIG_FILENAMES: tuple[str, ...] = (".worktrust.toml", ".worktrust.local.toml")

app = typer.Typer(
    no_args_is_help=True,
    help="Approve repository worktree configuration files before their hooks run.",
)


def _config_files() -> list[Path]:
    """Return the configuration files present at the current repository root."""
    try:
        repo_root = current_repo_root()
    except (GitCommandError, OSError) as e:
        typer.echo(f"Error: not inside a git repository ({e})", err=True)
        raise typer.Exit(1)

    files = [repo_root / name for name in CONFIG_FILENAMES if (repo_root / name).is_file()]
    if not files:
        typer.echo(
            f"Error: Neither {' nor '.join(CONFIG_FILENAMES)} found in {repo_root}",
            err=True,
        )
        raise typer.Exit(1)
    return files


@app.command("trust")
def trust() -> None:
    """Trust the configuration files of the current repository."""
    files = _config_files()
    policy = TrustPolicy()

    trusted = []
    errors: list[tuple[str, str]] = []
    for path in files:
        try:
            identity = policy.add_trusted_path(path)
        except (WorktrustError, OSError) as e:
            errors.append((path.name, str(e)))
            continue
        trusted.append((path, identity))

    if errors:
        typer.echo("Failed to trust the following files:", err=True)
        for name, message in errors:
            typer.echo(f"  {name}: {message}", err=True)
        raise typer.Exit(1)

    typer.echo("Trusted files:")
    for path, identity in trusted:
        typer.echo(f"  {path}")
        typer.echo(f"    Repository: {identity.display_name}")
        typer.echo(f"    Relative Path: {identity.relative_path}")
    typer.echo(f"\nSettings: {get_settings_path()}")


@app.command("untrust")
def untrust() -> None:
    """Remove trust for the configuration files of the current repository."""
    files = _config_files()
    policy = TrustPolicy()

    try:
        for path in files:
            policy.remove_trusted_path(path)
            typer.echo(f"Untrusted: {path}")
    except (WorktrustError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Settings: {get_settings_path()}")


_STATUS_LINES: dict[TrustStatus, str] = {
    TrustStatus.NOT_IN_REPOSITORY: "Status: NOT IN GIT REPOSITORY",
    TrustStatus.NOT_TRUSTED: "Status: NOT TRUSTED",
    TrustStatus.UNREADABLE: "Status: ERROR - cannot read file",
    TrustStatus.HASH_MISMATCH: "Status: HASH MISMATCH",
    TrustStatus.TRUSTED: "Status: TRUSTED",
    TrustStatus.SKIP_HASH: "Status: TRUSTED (hash check disabled)",
}


def _echo_report(report: TrustReport) -> None:
    typer.echo(f"File: {report.path.name}")
    typer.echo(f"Path: {report.path}")
    status_line = _STATUS_LINES[report.status]

    if report.identity is None:
        typer.echo(status_line)
        typer.echo("Action: File must be in a git repository to be trusted")
        return

    typer.echo(f"Repository: {report.identity.display_name}")
    typer.echo(f"Relative Path: {report.identity.relative_path}")
    if report.error:
        status_line = f"{status_line}: {report.error}"
    typer.echo(status_line)

    if report.status is TrustStatus.NOT_TRUSTED:
        typer.echo("Action: Run 'worktrust trust' to add this file to the trusted list")
        return
    if report.status is TrustStatus.HASH_MISMATCH:
        typer.echo("Action: Run 'worktrust trust' to update the hash, or verify file integrity")

    entry = report.entry
    if entry is None:
        return
    typer.echo(f"\nHash History ({len(entry.hashes)} stored):")
    for index, digest in enumerate(entry.hashes, start=1):
        is_current = digest == report.current_hash
        marker = "→" if is_current else " "
        suffix = " (current)" if is_current else ""
        typer.echo(f"{marker} {index}. {digest[:16]}...{suffix}")
    if entry.skip_hash_check is not None:
        typer.echo(f"\nPath-level Skip Hash Check: {entry.skip_hash_check}")


@app.command("verify")
def verify() -> None:
    """Show the trust status and hash history of each configuration file."""
    files = _config_files()
    policy = TrustPolicy()

    try:
        settings = policy.store.load()
        typer.echo("=== Configuration Verification ===\n")
        for index, path in enumerate(files):
            if index:
                typer.echo("")
            _echo_report(policy.inspect(path, settings=settings))
    except (WorktrustError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo("\n=== Global Settings ===")
    typer.echo(f"Skip Hash Check: {bool(settings.skip_hash_check)}")


@app.command("config")
def config() -> None:
    """Print the settings file location and its current content."""
    try:
        store = SettingsStore()
        settings = store.load()
    except (WorktrustError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Settings file: {store.path}\n")
    typer.echo(json.dumps(settings.to_document(), indent=2, ensure_ascii=False))


@app.command("schema")
def schema() -> None:
    """Print the JSON Schema of the settings file."""
    typer.echo(json.dumps(settings_json_schema(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    app()
