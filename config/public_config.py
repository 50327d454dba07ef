from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PublicConfig(BaseSettings):
    """
    Non-sensitive config with safe defaults.

    Loaded from (in order):
      - process env
      - optional `.env` file
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- request defaults ---
    app_name: str = Field(default="notify", alias="NOTIFY_APP_NAME")
    # Added to the expire timeout to get the --await cap (ms).
    await_grace_ms: int = Field(default=1000, alias="NOTIFY_AWAIT_GRACE_MS")

    # --- logging ---
    # stdout carries ids and outcome JSON, so logs stay on stderr (and the optional file).
    log_level: str = Field(default="WARNING", alias="NOTIFY_LOG_LEVEL")
    log_file: Path | None = Field(default=None, alias="NOTIFY_LOG_FILE")
    log_max_bytes: int = Field(default=1024 * 1024, alias="NOTIFY_LOG_MAX_BYTES")
    log_backup_count: int = Field(default=3, alias="NOTIFY_LOG_BACKUP_COUNT")
