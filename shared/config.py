"""
Configuration management.

Centralized environment variable management and validation.
"""

import tempfile
from typing import Literal, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from shared.errors import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # Allow case-insensitive env var matching
        extra="ignore"
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    # LOG_FILE: Optional path for a rotating JSON log file (stdout only when unset)
    log_file: Optional[str] = None

    # Job workspaces are created under this directory, one per compile request
    workspace_root: str = tempfile.gettempdir()

    # External tools
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"

    # MAX_CONCURRENCY: Items processed at once within a single stage.
    # 1 keeps the sequential behaviour.
    max_concurrency: int = 1

    # Timeouts in seconds. PROCESS_TIMEOUT unset means external tools may run indefinitely.
    fetch_timeout: float = 300.0
    process_timeout: Optional[float] = None

    # Delete the job workspace once the HTTP response has been streamed
    cleanup_workspace: bool = False

    # HTTP server
    port: int = 3000

    @field_validator("workspace_root")
    @classmethod
    def validate_workspace_root(cls, v: str) -> str:
        """Validate workspace root is set."""
        if not v or not v.strip():
            raise ConfigError("WORKSPACE_ROOT is required")
        return v

    @field_validator("ffmpeg_binary", "ffprobe_binary")
    @classmethod
    def validate_binary(cls, v: str) -> str:
        """Validate tool binary names are not empty."""
        if not v or not v.strip():
            raise ConfigError("FFMPEG_BINARY and FFPROBE_BINARY must not be empty")
        return v

    @field_validator("max_concurrency")
    @classmethod
    def validate_max_concurrency(cls, v: int) -> int:
        """Validate concurrency limit."""
        if v < 1:
            raise ConfigError("MAX_CONCURRENCY must be at least 1")
        return v

    @field_validator("fetch_timeout")
    @classmethod
    def validate_fetch_timeout(cls, v: float) -> float:
        """Validate fetch timeout."""
        if v <= 0:
            raise ConfigError("FETCH_TIMEOUT must be positive")
        return v

    @field_validator("process_timeout")
    @classmethod
    def validate_process_timeout(cls, v: Optional[float]) -> Optional[float]:
        """Validate process timeout when set."""
        if v is not None and v <= 0:
            raise ConfigError("PROCESS_TIMEOUT must be positive when set")
        return v


# Singleton instance
try:
    settings = Settings()
except Exception as e:
    # Re-raise as ConfigError for consistency
    if isinstance(e, ConfigError):
        raise
    raise ConfigError(f"Failed to load configuration: {str(e)}") from e
