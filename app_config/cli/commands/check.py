"""``app_config check -f FILE`` — run one check-and-apply cycle per file.

Files are processed one after another, each against its own state key.
The process exit code is the first failure's code, else 0 when anything
was applied, else 3 (or 0 with ``--zero-on-unchanged``).
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape

from app_config.cli.exit_codes import (
    ExitCode,
    combine,
    exit_code_for_error,
    exit_code_for_result,
)
from app_config.cli.output import configure_logging, console, resolve_state_file
from app_config.config import AppSettings
from app_config.core.config_loader import build_provider, load_config
from app_config.core.errors import ConfigFileError, StoreError
from app_config.core.hook_runner import HookRunner
from app_config.core.orchestrator import ApplyOrchestrator
from app_config.core.renderer import TemplateRenderer
from app_config.core.state_store import StateStore
from app_config.models.cycle import CycleOutcome, CycleResult
from app_config.providers.param_store import ParamStoreProvider


def check_cmd(
    files: list[Path] = typer.Option(
        ...,
        "--file",
        "-f",
        help="Configuration file (repeatable).",
    ),
    state_file: str = typer.Option(
        None,
        "--state-file",
        help="State store path; overrides the config file and APP_CONFIG_STATE_FILE.",
    ),
    zero_on_unchanged: bool = typer.Option(
        False,
        "--zero-on-unchanged",
        help="Exit 0 instead of 3 when nothing changed.",
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR).",
    ),
) -> None:
    """Fetch the current version of each source and apply it if it changed."""
    settings = AppSettings()
    configure_logging(log_level or settings.log_level)

    codes = [_check_file(path, state_file, settings) for path in files]
    raise typer.Exit(code=int(combine(codes, zero_on_unchanged=zero_on_unchanged)))


def _check_file(path: Path, state_override: str | None, settings: AppSettings) -> ExitCode:
    try:
        loaded = load_config(path)
    except ConfigFileError as exc:
        console.print(f"[bold red]Config error:[/bold red] {escape(str(exc))}")
        return ExitCode.CONFIG

    lookup = ParamStoreProvider(
        region=settings.aws_region, timeout=settings.fetch_timeout_seconds
    )
    renderer = TemplateRenderer(parameter_lookup=lookup.get_value)
    hook_runner = HookRunner(
        shell=settings.shell,
        default_timeout=settings.command_timeout_seconds,
    )
    store = StateStore(
        resolve_state_file(state_override, loaded, settings),
        lock_timeout=settings.lock_timeout_seconds,
    )
    try:
        with store:
            orchestrator = ApplyOrchestrator(
                build_provider(loaded, settings),
                store,
                renderer=renderer,
                hook_runner=hook_runner,
            )
            result = orchestrator.run_cycle(loaded.source, loaded.hook)
    except StoreError as exc:
        console.print(f"[bold red]State store error:[/bold red] {escape(str(exc))}")
        return exit_code_for_error(exc)

    _report(result)
    return exit_code_for_result(result)


def _report(result: CycleResult) -> None:
    if result.outcome == CycleOutcome.APPLIED:
        console.print(
            f"[green]Applied[/green] {result.source_key} "
            f"version [bold]{result.version_token}[/bold]"
        )
    elif result.outcome == CycleOutcome.UNCHANGED:
        console.print(
            f"[dim]Unchanged[/dim] {result.source_key} at version {result.version_token}"
        )
    else:
        failed_in = result.failed_in.value if result.failed_in else "unknown"
        kind = getattr(result.error, "kind", "error")
        console.print(
            f"[bold red]Failed[/bold red] {result.source_key} while {failed_in} "
            + escape(f"[{kind}]: {result.error}")
        )
