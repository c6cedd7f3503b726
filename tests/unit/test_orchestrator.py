"""Tests for the ApplyOrchestrator outcomes and failure handling."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import PEERS_YAML, FakeProvider

from app_config.core.errors import (
    CommandFailedError,
    ProviderMalformedError,
    ProviderNotFoundError,
    ProviderTransientError,
    TemplateDecodeError,
    TemplateNotFoundError,
)
from app_config.core.orchestrator import ApplyOrchestrator
from app_config.core.state_store import StateStore
from app_config.models.cycle import CycleOutcome, CycleState
from app_config.models.hooks import HookSpec
from app_config.models.sources import ContentType, FetchResult


def _states(result) -> list[CycleState]:
    return [t.to_state for t in result.transitions]


class TestApplyPath:
    def test_first_run_applies(self, make_orchestrator, make_hook, source, store, out_file):
        result = make_orchestrator(FakeProvider("v1")).run_cycle(source, make_hook())
        assert result.outcome == CycleOutcome.APPLIED
        assert result.version_token == "v1"
        assert result.previous_token is None
        assert _states(result) == [
            CycleState.COMPARING,
            CycleState.RENDERING,
            CycleState.WRITING,
            CycleState.RUNNING,
            CycleState.PERSISTING,
            CycleState.DONE,
        ]
        assert out_file.read_text() == "peer a key K1\n"
        assert store.get_last_version(source.source_key) == "v1"

    def test_persists_raw_content(self, make_orchestrator, make_hook, source, store):
        make_orchestrator(FakeProvider("v1")).run_cycle(source, make_hook())
        assert store.get_record(source.source_key).content == PEERS_YAML

    def test_unchanged_is_no_op(self, make_orchestrator, make_hook, source, store, hook_runner):
        store.set_last_version(source.source_key, "v1")
        result = make_orchestrator(FakeProvider("v1")).run_cycle(source, make_hook(command="true"))
        assert result.outcome == CycleOutcome.UNCHANGED
        assert result.previous_token == "v1"
        assert _states(result) == [CycleState.COMPARING, CycleState.NO_OP, CycleState.DONE]
        assert hook_runner.written == []
        assert hook_runner.commands == []

    def test_changed_version_reapplies(self, make_orchestrator, make_hook, source, store):
        store.set_last_version(source.source_key, "v1")
        result = make_orchestrator(FakeProvider("v2")).run_cycle(source, make_hook())
        assert result.outcome == CycleOutcome.APPLIED
        assert result.previous_token == "v1"
        assert store.get_last_version(source.source_key) == "v2"

    def test_runs_command_after_write(self, make_orchestrator, make_hook, source, tmp_path, out_file):
        copy = tmp_path / "copy"
        hook = make_hook(command=f"cp {out_file} {copy}")
        make_orchestrator(FakeProvider("v1")).run_cycle(source, hook)
        assert copy.read_text() == "peer a key K1\n"

    def test_template_to_stdout_then_raw_echo(self, make_orchestrator, make_hook, source, hook_runner):
        hook = make_hook(out_file=None, echo_raw=True)
        make_orchestrator(FakeProvider("v1")).run_cycle(source, hook)
        assert hook_runner.printed == "peer a key K1\n" + PEERS_YAML

    def test_raw_file_without_template(self, make_orchestrator, source, tmp_path, store):
        raw = tmp_path / "raw.yaml"
        result = make_orchestrator(FakeProvider("v1")).run_cycle(source, HookSpec(raw_out_file=raw))
        assert result.ok
        assert raw.read_text() == PEERS_YAML

    def test_pipe_data_sends_rendered_text(self, make_orchestrator, make_hook, source, tmp_path):
        captured = tmp_path / "stdin"
        hook = make_hook(command=f"cat > {captured}", pipe_data=True)
        make_orchestrator(FakeProvider("v1")).run_cycle(source, hook)
        assert captured.read_text() == "peer a key K1\n"

    def test_pipe_data_without_template_sends_raw(self, make_orchestrator, source, tmp_path):
        captured = tmp_path / "stdin"
        hook = HookSpec(command=f"cat > {captured}", pipe_data=True)
        make_orchestrator(FakeProvider("v1")).run_cycle(source, hook)
        assert captured.read_text() == PEERS_YAML

    def test_content_type_mismatch_still_uses_hook_type(self, store, make_hook, source, hook_runner):
        class JsonLabelled:
            def fetch(self, source):
                return FetchResult(
                    version_token="1",
                    content=PEERS_YAML.encode(),
                    content_type=ContentType.JSON,
                )

        orchestrator = ApplyOrchestrator(JsonLabelled(), store, hook_runner=hook_runner)
        assert orchestrator.run_cycle(source, make_hook()).ok


class TestFailurePaths:
    def test_provider_error_fails_in_fetching(self, make_orchestrator, make_hook, source, store):
        provider = FakeProvider(error=ProviderNotFoundError("no such feed"))
        result = make_orchestrator(provider).run_cycle(source, make_hook())
        assert result.outcome == CycleOutcome.FAILED
        assert result.failed_in == CycleState.FETCHING
        assert isinstance(result.error, ProviderNotFoundError)
        assert result.version_token is None
        assert store.get_record(source.source_key) is None

    def test_transient_error(self, make_orchestrator, make_hook, source):
        provider = FakeProvider(error=ProviderTransientError("timeout"))
        result = make_orchestrator(provider).run_cycle(source, make_hook())
        assert isinstance(result.error, ProviderTransientError)

    def test_non_utf8_content_is_malformed(self, make_orchestrator, make_hook, source):
        result = make_orchestrator(FakeProvider("v1", b"\xff\xfe")).run_cycle(source, make_hook())
        assert result.failed_in == CycleState.FETCHING
        assert isinstance(result.error, ProviderMalformedError)

    def test_decode_error_fails_in_rendering(self, make_orchestrator, make_hook, source, store, out_file):
        provider = FakeProvider("v1", "peers: [unclosed\n")
        result = make_orchestrator(provider).run_cycle(source, make_hook())
        assert result.failed_in == CycleState.RENDERING
        assert isinstance(result.error, TemplateDecodeError)
        assert not out_file.exists()
        assert store.get_last_version(source.source_key) is None

    def test_missing_template(self, make_orchestrator, make_hook, source, tmp_path):
        hook = make_hook(template_file=tmp_path / "gone.hbs")
        result = make_orchestrator(FakeProvider()).run_cycle(source, hook)
        assert isinstance(result.error, TemplateNotFoundError)

    def test_command_failure_fails_in_running(self, make_orchestrator, make_hook, source, store, out_file):
        store.set_last_version(source.source_key, "v0")
        result = make_orchestrator(FakeProvider("v1")).run_cycle(source, make_hook(command="exit 3"))
        assert result.failed_in == CycleState.RUNNING
        assert isinstance(result.error, CommandFailedError)
        assert result.error.exit_code == 3
        assert out_file.read_text() == "peer a key K1\n"
        assert store.get_last_version(source.source_key) == "v0"

    def test_unexpected_exception_propagates(self, store, make_hook, source):
        class Broken:
            def fetch(self, source):
                raise KeyError("bug")

        with pytest.raises(KeyError):
            ApplyOrchestrator(Broken(), store).run_cycle(source, make_hook())

    def test_store_failure_fails_in_comparing(self, tmp_path: Path, make_hook, source):
        closed = StateStore(tmp_path / "state.db")
        result = ApplyOrchestrator(FakeProvider(), closed).run_cycle(source, make_hook())
        assert result.failed_in == CycleState.COMPARING
        assert result.error.kind == "store.unreadable"
