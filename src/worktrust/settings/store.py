"""Load, migrate, validate, and atomically persist the user settings document."""

from __future__ import annotations

import json
import logging
import os
import time
import uuid
from pathlib import Path
from typing import Any, Callable, Mapping

from pydantic import ValidationError

from worktrust import __version__
from worktrust.config import WorktrustConfig, get_config
from worktrust.exceptions import SettingsIntegrityError, SettingsValidationError

from .migrations import MigrationContext, get_schema_version, migrate_settings
from .models import CURRENT_SCHEMA_VERSION, TrustSettings, create_default_settings
from .paths import get_settings_path

logger = logging.getLogger(__name__)

SCHEMA_URL_TEMPLATE = (
    "https://raw.githubusercontent.com/worktrust/worktrust/v{version}/schemas/settings.schema.json"
)


def get_settings_schema_url(version: str | None = None) -> str:
    """Return the version-tagged JSON Schema URL written into settings.json."""
    semver = (version or __version__).split("+", 1)[0]
    return SCHEMA_URL_TEMPLATE.format(version=semver)


def _millis() -> int:
    return int(time.time() * 1000)


class SettingsStore:
    """
    Owns the single settings.json document for the current user.

    The file on disk is the only source of truth: every :meth:`load` re-reads
    it and every :meth:`save` replaces it wholesale via a temp file and an
    atomic rename, so readers never observe a partially written document.
    Concurrent writers in separate processes are not serialized; the last
    rename wins.
    """

    def __init__(
        self,
        path: Path | None = None,
        *,
        config: WorktrustConfig | None = None,
        migration_context: Callable[[], MigrationContext] = MigrationContext,
    ):
        self.config = config or get_config()
        self.path = path or get_settings_path(self.config)
        self._migration_context = migration_context

    # ------------------------------------------------------------------
    # Reading

    def load(self) -> TrustSettings:
        """
        Read, migrate, and validate the settings document.

        Returns:
            Current-version settings; defaults when the file does not exist.
            A migrated document that cannot be written back is still returned
            and the write is retried on the next load.

        Raises:
            SettingsIntegrityError: If the file is not valid UTF-8 JSON.
            SettingsMigrationError: If the document is newer than supported.
            SettingsValidationError: In strict mode, if validation fails.
        """
        try:
            payload = self.path.read_bytes()
        except FileNotFoundError:
            return create_default_settings()

        try:
            text = payload.decode("utf-8")
            raw = json.loads(text)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise SettingsIntegrityError(
                f"Settings file {self.path} is corrupted and cannot be parsed: {exc}"
            ) from exc

        original_version = get_schema_version(raw)
        migrated = migrate_settings(raw, self._migration_context())

        try:
            settings = TrustSettings.model_validate(migrated)
        except ValidationError as exc:
            return self._fallback_to_defaults(text, exc)

        if original_version != CURRENT_SCHEMA_VERSION:
            logger.info(
                "Migrated settings %s from version %d to %d",
                self.path,
                original_version,
                CURRENT_SCHEMA_VERSION,
            )
            try:
                self.save(settings)
            except OSError as exc:
                logger.warning(
                    "Could not persist migrated settings to %s: %s. "
                    "Migration will be retried on the next load.",
                    self.path,
                    exc,
                )
        return settings

    def _fallback_to_defaults(self, text: str, exc: ValidationError) -> TrustSettings:
        if self.config.STRICT_SETTINGS:
            raise SettingsValidationError(
                f"Settings file {self.path} failed validation: {exc}"
            ) from exc

        backup = self.path.with_name(f"{self.path.name}.invalid.{_millis()}")
        try:
            backup.write_text(text, encoding="utf-8")
        except OSError as backup_exc:
            raise SettingsValidationError(
                f"Settings file {self.path} failed validation and could not be "
                f"backed up to {backup}: {backup_exc}"
            ) from exc

        logger.warning(
            "Settings validation failed, using defaults: %s\n"
            "The previous settings were preserved at %s",
            exc,
            backup,
        )
        return create_default_settings()

    # ------------------------------------------------------------------
    # Writing

    def save(self, settings: TrustSettings | Mapping[str, Any]) -> None:
        """
        Validate and atomically replace the settings document.

        Raises:
            SettingsValidationError: If ``settings`` does not match the current schema.
            OSError: If the document cannot be written.
        """
        try:
            if isinstance(settings, TrustSettings):
                payload: Any = settings.model_dump(mode="json", by_alias=True, warnings=False)
            else:
                payload = dict(settings)
            validated = TrustSettings.model_validate(payload)
        except (ValidationError, TypeError, ValueError) as exc:
            raise SettingsValidationError(f"Invalid settings schema: {exc}") from exc

        document: dict[str, Any] = {"$schema": get_settings_schema_url()}
        document.update(
            (key, value) for key, value in validated.to_document().items() if key != "$schema"
        )
        content = json.dumps(document, indent=2, ensure_ascii=False) + "\n"

        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_name(
            f"{self.path.name}.tmp.{_millis()}.{uuid.uuid4().hex}"
        )
        try:
            with open(temp_path, "w", encoding="utf-8") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_path, self.path)
        except Exception:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError:
                logger.debug("Could not remove temporary settings file %s", temp_path)
            raise


def load_settings() -> TrustSettings:
    """Load the current user's settings."""
    return SettingsStore().load()


def save_settings(settings: TrustSettings | Mapping[str, Any]) -> None:
    """Persist the current user's settings."""
    SettingsStore().save(settings)
