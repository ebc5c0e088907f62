"""Runtime configuration loaded from the environment."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorktrustConfig(BaseSettings):
    """Settings that control where trust data lives and how git is invoked."""

    model_config = SettingsConfigDict(
        env_prefix="WORKTRUST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    CONFIG_DIR: str | None = Field(
        default=None,
        description="Directory holding settings.json (defaults to $HOME/.config/worktrust)",
    )
    GIT_TIMEOUT: float = Field(
        default=10.0,
        description="Timeout in seconds for git calls made while resolving repositories",
        gt=0,
    )
    STRICT_SETTINGS: bool = Field(
        default=False,
        description="Raise instead of falling back to defaults when settings fail validation",
    )

    @field_validator("CONFIG_DIR")
    @classmethod
    def blank_config_dir_is_unset(cls, value: str | None) -> str | None:
        """Treat an empty WORKTRUST_CONFIG_DIR like an unset one."""
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None


@lru_cache
def get_config() -> WorktrustConfig:
    """Get cached configuration instance."""
    return WorktrustConfig()
