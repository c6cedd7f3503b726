"""Shared Rich console and logging setup for the CLI commands.

Everything here writes to stderr so stdout carries rendered output only.
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from app_config.config import AppSettings
from app_config.core.config_loader import LoadedConfig

console = Console(stderr=True)


def configure_logging(level: str) -> None:
    """Send log records to stderr through Rich at *level*."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise typer.BadParameter(f"Unknown log level: {level}", param_hint="--log-level")
    logging.basicConfig(
        level=numeric,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def resolve_state_file(
    override: str | None, loaded: LoadedConfig, settings: AppSettings
) -> Path | str:
    """Pick the state store: CLI flag, then config file, then settings."""
    if override:
        return override
    if loaded.state_file is not None:
        return loaded.state_file
    return settings.state_file
