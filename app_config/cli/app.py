"""Main Typer application — imports and registers all CLI commands.

Entry point: ``app_config`` (configured via pyproject.toml scripts).

Commands: check, query, params.
"""

from __future__ import annotations

import typer

from app_config.cli.commands.check import check_cmd
from app_config.cli.commands.params import params_cmd
from app_config.cli.commands.query import query_cmd

app = typer.Typer(
    name="app_config",
    help="Apply remotely managed configuration when, and only when, it changes.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="check", help="Check for a new version and apply it.")(check_cmd)
app.command(name="query", help="Print the last applied content.")(query_cmd)
app.command(name="params", help="Print a Parameter Store value.")(params_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
