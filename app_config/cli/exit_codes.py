"""Process exit codes, one per cycle outcome and error kind."""

from __future__ import annotations

from enum import IntEnum

from app_config.core.errors import AppConfigError
from app_config.models.cycle import CycleOutcome, CycleResult


class ExitCode(IntEnum):
    APPLIED = 0
    ERROR = 1
    UNCHANGED = 3
    NO_RECORD = 4
    CONFIG = 10
    PROVIDER_NOT_FOUND = 20
    PROVIDER_UNAUTHORIZED = 21
    PROVIDER_TRANSIENT = 22
    PROVIDER_MALFORMED = 23
    STORE_UNREADABLE = 30
    STORE_WRITE_FAILED = 31
    RENDER_DECODE = 40
    RENDER_TEMPLATE_NOT_FOUND = 41
    RENDER_SYNTAX = 42
    HOOK_WRITE = 50
    HOOK_COMMAND_FAILED = 51


_BY_KIND: dict[str, ExitCode] = {
    "config": ExitCode.CONFIG,
    "provider.not_found": ExitCode.PROVIDER_NOT_FOUND,
    "provider.unauthorized": ExitCode.PROVIDER_UNAUTHORIZED,
    "provider.transient": ExitCode.PROVIDER_TRANSIENT,
    "provider.malformed": ExitCode.PROVIDER_MALFORMED,
    "store.unreadable": ExitCode.STORE_UNREADABLE,
    "store.write_failed": ExitCode.STORE_WRITE_FAILED,
    "render.decode": ExitCode.RENDER_DECODE,
    "render.template_not_found": ExitCode.RENDER_TEMPLATE_NOT_FOUND,
    "render.syntax": ExitCode.RENDER_SYNTAX,
    "hook.write": ExitCode.HOOK_WRITE,
    "hook.command_failed": ExitCode.HOOK_COMMAND_FAILED,
}


def exit_code_for_error(error: BaseException | None) -> ExitCode:
    """Map an exception to its exit code; unknown kinds map to ERROR."""
    if isinstance(error, AppConfigError):
        return _BY_KIND.get(error.kind, ExitCode.ERROR)
    return ExitCode.ERROR


def exit_code_for_result(result: CycleResult) -> ExitCode:
    if result.outcome == CycleOutcome.APPLIED:
        return ExitCode.APPLIED
    if result.outcome == CycleOutcome.UNCHANGED:
        return ExitCode.UNCHANGED
    return exit_code_for_error(result.error)


def combine(codes: list[ExitCode], *, zero_on_unchanged: bool = False) -> ExitCode:
    """Fold per-file codes into one process exit code.

    The first failure wins.  Otherwise any applied file makes the run
    APPLIED, and a run where nothing changed is UNCHANGED.
    """
    for code in codes:
        if code not in (ExitCode.APPLIED, ExitCode.UNCHANGED):
            return code
    if ExitCode.APPLIED in codes or zero_on_unchanged:
        return ExitCode.APPLIED
    return ExitCode.UNCHANGED
