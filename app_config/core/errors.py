"""Typed failures raised by the apply pipeline.

Every component raises a subclass of ``AppConfigError``.  The orchestrator
does not recover from any of them: a failure ends the current source's
cycle and is reported upward.  ``kind`` is a stable identifier the CLI
maps to a process exit code.
"""

from __future__ import annotations


class AppConfigError(RuntimeError):
    """Base class for all pipeline failures."""

    kind: str = "error"


class ConfigFileError(AppConfigError):
    """Raised when the configuration file is unreadable or invalid."""

    kind = "config"


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------


class ProviderError(AppConfigError):
    """Raised when a provider cannot return a usable fetch result."""

    kind = "provider"


class ProviderNotFoundError(ProviderError):
    """The configuration feed does not exist."""

    kind = "provider.not_found"


class ProviderUnauthorizedError(ProviderError):
    """Credentials are missing, expired or not allowed to read the feed."""

    kind = "provider.unauthorized"


class ProviderTransientError(ProviderError):
    """Network or service failure, timeouts included."""

    kind = "provider.transient"


class ProviderMalformedError(ProviderError):
    """The backend answered but the payload is unusable."""

    kind = "provider.malformed"


# ---------------------------------------------------------------------------
# State store
# ---------------------------------------------------------------------------


class StoreError(AppConfigError):
    """Raised when the state store cannot be used."""

    kind = "store"


class StoreUnreadableError(StoreError):
    """The state file is corrupt, locked past the timeout or unreadable."""

    kind = "store.unreadable"


class StoreWriteError(StoreError):
    """The state record could not be persisted."""

    kind = "store.write_failed"


# ---------------------------------------------------------------------------
# Template rendering
# ---------------------------------------------------------------------------


class RenderError(AppConfigError):
    """Raised when a template cannot be rendered."""

    kind = "render"


class TemplateDecodeError(RenderError):
    """The fetched content does not parse as the declared source type."""

    kind = "render.decode"


class TemplateNotFoundError(RenderError):
    """The template file does not exist or cannot be read."""

    kind = "render.template_not_found"


class TemplateSyntaxError(RenderError):
    """The template itself does not compile."""

    kind = "render.syntax"


# ---------------------------------------------------------------------------
# Hook execution
# ---------------------------------------------------------------------------


class HookError(AppConfigError):
    """Raised when an artifact cannot be written or the command fails."""

    kind = "hook"


class HookWriteError(HookError):
    """An output file could not be written.  The command was not run."""

    kind = "hook.write"


class CommandFailedError(HookError):
    """The follow-up command exited non-zero or timed out.

    The written files are left in place.
    """

    kind = "hook.command_failed"

    def __init__(
        self,
        command: str,
        exit_code: int | None,
        *,
        timed_out: bool = False,
    ) -> None:
        self.command = command
        self.exit_code = exit_code
        self.timed_out = timed_out
        if timed_out:
            detail = "timed out"
        else:
            detail = f"exited with status {exit_code}"
        super().__init__(f"Command {command!r} {detail}")
