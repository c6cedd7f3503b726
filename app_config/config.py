"""Process settings, read from the environment.

Uses pydantic-settings: every field can be set through an ``APP_CONFIG_*``
environment variable or a ``.env`` file in the working directory.  CLI
flags and values in the configuration file take precedence.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Process-wide knobs for one invocation.

    Examples
    --------
    Override via environment::

        export APP_CONFIG_LOG_LEVEL=DEBUG
        export APP_CONFIG_STATE_FILE=/var/lib/app_config/state.db
        export APP_CONFIG_AWS_REGION=eu-west-1
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="APP_CONFIG_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "WARNING"

    # State store; ":memory:" makes every run a first run
    state_file: Path = Path("~/.app_config/state.db")
    lock_timeout_seconds: float = 30.0

    # Provider
    aws_region: str | None = None
    fetch_timeout_seconds: float = 30.0

    # Hook command
    shell: str = "/bin/sh"
    command_timeout_seconds: float | None = None
