"""Backup configuration loaded from environment variables."""

from __future__ import annotations

import pendulum
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """incback settings."""

    model_config = SettingsConfigDict(
        env_prefix="INCBACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False

    # Layout under the target root
    backups_dir_name: str = Field(default="backups", min_length=1)
    state_dir_name: str = Field(default=".backup_state", min_length=1)
    state_file_name: str = Field(default="last_state.txt", min_length=1)
    manifest_file_name: str = Field(default="manifest.txt", min_length=1)

    # Snapshot naming
    timezone: str | None = None
    max_name_collisions: int = Field(default=99, ge=1, le=999)

    @field_validator("timezone")
    @classmethod
    def timezone_must_be_known(cls, v: str | None) -> str | None:
        """Reject timezone names pendulum cannot resolve."""
        _ = cls
        if v is None:
            return v
        try:
            pendulum.timezone(v)
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Unknown timezone: {v}") from exc
        return v

    def validate_layout(self) -> None:
        """Reject layout names that would escape the target root."""
        violations: list[str] = []
        for field_name in (
            "backups_dir_name",
            "state_dir_name",
            "state_file_name",
            "manifest_file_name",
        ):
            value: str = getattr(self, field_name)
            if "/" in value or "\\" in value or value in {".", ".."}:
                violations.append(f"{field_name.upper()} must be a plain name, got {value!r}")
        if self.backups_dir_name == self.state_dir_name:
            violations.append("BACKUPS_DIR_NAME and STATE_DIR_NAME must differ")

        if violations:
            joined = "; ".join(violations)
            raise ValueError(f"Invalid backup layout configuration: {joined}")
