"""Apply orchestrator: one check-and-apply cycle per configuration source.

Flow for a single source::

    FETCHING -> COMPARING -> NO_OP -> DONE
                          -> RENDERING -> WRITING -> RUNNING -> PERSISTING -> DONE

Any ``AppConfigError`` moves the cycle to FAILED and is returned inside
the ``CycleResult``.  The state store is only written in PERSISTING, so a
cycle that fails earlier is retried in full by the next invocation.
"""

from __future__ import annotations

import logging

from app_config.core.cycle_machine import CycleMachine
from app_config.core.errors import AppConfigError, ProviderMalformedError
from app_config.core.hook_runner import HookRunner
from app_config.core.renderer import TemplateRenderer
from app_config.core.state_store import StateStore
from app_config.models.cycle import CycleOutcome, CycleResult, CycleState
from app_config.models.hooks import HookSpec, RenderedArtifact
from app_config.models.sources import ConfigSource, FetchResult
from app_config.providers.base import Provider

logger = logging.getLogger(__name__)


class ApplyOrchestrator:
    """Drives provider, renderer, hook runner and state store for a cycle.

    The orchestrator owns none of its collaborators; the caller opens the
    state store and closes it afterwards.

    Parameters
    ----------
    provider:
        Any object satisfying the ``Provider`` protocol.
    store:
        An open ``StateStore``.
    renderer:
        Template renderer.  A plain ``TemplateRenderer()`` when omitted.
    hook_runner:
        Artifact writer and command runner.  A default ``HookRunner()``
        when omitted.
    """

    def __init__(
        self,
        provider: Provider,
        store: StateStore,
        *,
        renderer: TemplateRenderer | None = None,
        hook_runner: HookRunner | None = None,
    ) -> None:
        self.provider = provider
        self.store = store
        self.renderer = renderer or TemplateRenderer()
        self.hook_runner = hook_runner or HookRunner()

    def run_cycle(self, source: ConfigSource, hook: HookSpec) -> CycleResult:
        """Run exactly one cycle for *source* and return its terminal result."""
        machine = CycleMachine(source.source_key)
        fetched: FetchResult | None = None
        previous: str | None = None

        try:
            # FETCHING
            fetched = self.provider.fetch(source)
            raw_text = _content_text(fetched, source)
            machine.transition(CycleState.COMPARING)

            # COMPARING
            previous = self.store.get_last_version(source.source_key)
            if previous is not None and previous == fetched.version_token:
                machine.transition(CycleState.NO_OP)
                machine.transition(CycleState.DONE)
                logger.info(
                    "%s unchanged at version %s", source.source_key, previous
                )
                return self._result(
                    machine, CycleOutcome.UNCHANGED, fetched, previous
                )
            machine.transition(CycleState.RENDERING)

            # RENDERING
            artifacts, stdin_text = self._render(source, hook, fetched, raw_text)
            machine.transition(CycleState.WRITING)

            # WRITING
            for artifact in artifacts:
                self.hook_runner.write(artifact)
            machine.transition(CycleState.RUNNING)

            # RUNNING
            if hook.command:
                self.hook_runner.run_command(
                    hook.command,
                    stdin_text=stdin_text if hook.pipe_data else None,
                    timeout=hook.command_timeout,
                )
            machine.transition(CycleState.PERSISTING)

            # PERSISTING
            self.store.set_last_version(
                source.source_key, fetched.version_token, content=raw_text
            )
            machine.transition(CycleState.DONE)
        except AppConfigError as exc:
            failed_in = machine.fail()
            logger.error(
                "%s failed while %s [%s]: %s",
                source.source_key,
                failed_in.value,
                exc.kind,
                exc,
            )
            return self._result(
                machine,
                CycleOutcome.FAILED,
                fetched,
                previous,
                failed_in=failed_in,
                error=exc,
            )
        except Exception:
            if not machine.is_terminal:
                machine.fail()
            raise

        logger.info(
            "%s applied version %s (previous: %s)",
            source.source_key,
            fetched.version_token,
            previous or "none",
        )
        return self._result(machine, CycleOutcome.APPLIED, fetched, previous)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _render(
        self,
        source: ConfigSource,
        hook: HookSpec,
        fetched: FetchResult,
        raw_text: str,
    ) -> tuple[list[RenderedArtifact], str]:
        """Build the cycle's artifacts and the text piped to the command.

        Stdout artifacts come out in order: rendered template, raw echo.
        """
        artifacts: list[RenderedArtifact] = []
        primary_text = raw_text

        if hook.template_file is not None and hook.source_type is not None:
            if (
                fetched.content_type is not None
                and fetched.content_type != hook.source_type
            ):
                logger.warning(
                    "%s is served as %s but the hook declares %s; decoding as %s",
                    source.source_key,
                    fetched.content_type.value,
                    hook.source_type.value,
                    hook.source_type.value,
                )
            primary_text = self.renderer.render(
                hook.template_file, hook.source_type, raw_text
            )
            artifacts.append(
                RenderedArtifact(text=primary_text, output_path=hook.out_file)
            )

        if hook.raw_out_file is not None:
            artifacts.append(
                RenderedArtifact(text=raw_text, output_path=hook.raw_out_file)
            )
        if hook.echo_raw:
            artifacts.append(RenderedArtifact(text=raw_text))

        return artifacts, primary_text

    @staticmethod
    def _result(
        machine: CycleMachine,
        outcome: CycleOutcome,
        fetched: FetchResult | None,
        previous: str | None,
        *,
        failed_in: CycleState | None = None,
        error: AppConfigError | None = None,
    ) -> CycleResult:
        return CycleResult(
            source_key=machine.source_key,
            outcome=outcome,
            version_token=fetched.version_token if fetched else None,
            previous_token=previous,
            failed_in=failed_in,
            transitions=machine.history,
            error=error,
        )


def _content_text(fetched: FetchResult, source: ConfigSource) -> str:
    try:
        return fetched.content.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ProviderMalformedError(
            f"{source.source_key} returned content that is not UTF-8: {exc}"
        ) from exc
