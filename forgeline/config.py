"""Runtime configuration — env-driven via pydantic-settings.

Reads from a .env file and FORGELINE_* environment variables.  The
build job core only ever receives a settings instance; it never reads the
environment itself.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Default log capacity per job
DEFAULT_MAX_LOG_LINES = 5000


class ForgelineSettings(BaseSettings):
    """Process-wide settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export FORGELINE_PORT=42900
        export FORGELINE_LOG_LEVEL=DEBUG
        export FORGELINE_CANCEL_KILL_TIMEOUT=10

    Or via .env file::

        FORGELINE_MAX_RETAINED_JOBS=50
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FORGELINE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # HTTP server
    host: str = "127.0.0.1"
    port: int = 42800
    cors_origins: list[str] = ["*"]

    # Job registry
    max_log_lines: int = DEFAULT_MAX_LOG_LINES
    max_retained_jobs: int | None = None  # None keeps every job for the process lifetime
    cancel_kill_timeout: float | None = None  # seconds before SIGKILL after a cancel

    # Build tool invocation
    build_executable: str = "dotnet"
    build_platform: str = "Win64"
    build_configuration: str = "Development"

    # User config store location; platform default when unset
    config_dir: Path | None = None

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


def configure_logging(level: str | int = "INFO") -> None:
    """Install a Rich console handler on the root logger."""
    from rich.logging import RichHandler

    logging.basicConfig(
        level=level.upper() if isinstance(level, str) else level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


# Module-level singleton; import as `from forgeline.config import settings`
settings = ForgelineSettings()
