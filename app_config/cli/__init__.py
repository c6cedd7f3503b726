"""app_config CLI — Typer-based command-line interface.

Provides the ``app_config`` command with subcommands for running one
check-and-apply cycle, querying the last applied content and reading
Parameter Store values.

Summaries and logs go to stderr through Rich; stdout is reserved for
rendered output.
"""
