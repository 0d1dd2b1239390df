from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PublicConfig(BaseSettings):
    """
    File I/O config with safe defaults.

    Loaded from (in order):
      - process env
      - optional `.env` file
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- scratch files ---
    # If unset, the platform default temp dir is used (TMPDIR/TEMP/TMP, then /tmp).
    temp_dir: Path | None = Field(default=None, alias="ASSET_FILEIO_TEMP_DIR")
    temp_prefix: str = Field(default="assetpack-", alias="ASSET_FILEIO_TEMP_PREFIX")
    # auto|mkstemp|counter
    scratch_strategy: str = Field(default="auto", alias="ASSET_FILEIO_SCRATCH_STRATEGY")
    scratch_max_attempts: int = Field(default=100, alias="ASSET_FILEIO_SCRATCH_MAX_ATTEMPTS")

    # --- copy ---
    # auto|sendfile|stream
    copy_strategy: str = Field(default="auto", alias="ASSET_FILEIO_COPY_STRATEGY")
    copy_chunk_size: int = Field(default=1024 * 1024, alias="ASSET_FILEIO_COPY_CHUNK_SIZE")

    # --- logging ---
    # If unset, logs go to stdout only.
    log_dir: Path | None = Field(default=None, alias="ASSET_FILEIO_LOG_DIR")
    log_to_stdout: bool = Field(default=True, alias="ASSET_FILEIO_LOG_STDOUT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_max_bytes: int = Field(default=5 * 1024 * 1024, alias="LOG_MAX_BYTES")
    log_backup_count: int = Field(default=3, alias="LOG_BACKUP_COUNT")
