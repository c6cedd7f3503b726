"""``app_config query -f FILE`` — print the last applied raw content.

Reads the state store only; the backend is never contacted.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from app_config.cli.exit_codes import ExitCode, exit_code_for_error
from app_config.cli.output import console, resolve_state_file
from app_config.config import AppSettings
from app_config.core.config_loader import load_config
from app_config.core.errors import ConfigFileError, StoreError
from app_config.core.state_store import StateStore


def query_cmd(
    file: Path = typer.Option(
        ...,
        "--file",
        "-f",
        help="Configuration file naming the source.",
    ),
    state_file: str = typer.Option(
        None,
        "--state-file",
        help="State store path; overrides the config file and APP_CONFIG_STATE_FILE.",
    ),
) -> None:
    """Print the content of the version last applied for the file's source."""
    settings = AppSettings()
    try:
        loaded = load_config(file)
    except ConfigFileError as exc:
        console.print(f"[bold red]Config error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=int(ExitCode.CONFIG))

    store = StateStore(
        resolve_state_file(state_file, loaded, settings),
        lock_timeout=settings.lock_timeout_seconds,
    )
    try:
        with store:
            record = store.get_record(loaded.source.source_key)
    except StoreError as exc:
        console.print(f"[bold red]State store error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=int(exit_code_for_error(exc)))

    if record is None or record.content is None:
        console.print(f"[yellow]Nothing applied yet for[/yellow] {loaded.source.source_key}")
        raise typer.Exit(code=int(ExitCode.NO_RECORD))

    console.print(
        f"[dim]{loaded.source.source_key} version {record.version_token}, "
        f"applied {record.applied_at.isoformat()}[/dim]"
    )
    typer.echo(record.content, nl=False)
