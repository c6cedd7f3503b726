"""``app_config params NAME`` — print one Parameter Store value.

Handy for checking what a ``{{key "NAME"}}`` template helper will see.
"""

from __future__ import annotations

import typer
from rich.markup import escape

from app_config.cli.exit_codes import exit_code_for_error
from app_config.cli.output import console
from app_config.config import AppSettings
from app_config.core.errors import ProviderError
from app_config.providers.param_store import ParamStoreProvider


def params_cmd(
    name: str = typer.Argument(
        ...,
        help="Parameter name, e.g. /vpn/peers.",
    ),
) -> None:
    """Fetch and print a decrypted Parameter Store value."""
    settings = AppSettings()
    provider = ParamStoreProvider(
        region=settings.aws_region, timeout=settings.fetch_timeout_seconds
    )
    try:
        value = provider.get_value(name)
    except ProviderError as exc:
        console.print(f"[bold red]Provider error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=int(exit_code_for_error(exc)))
    typer.echo(value)
