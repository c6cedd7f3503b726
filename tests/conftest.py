"""Shared test fixtures for app_config."""

from __future__ import annotations

import io
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from botocore.exceptions import ClientError

from app_config.core.errors import AppConfigError
from app_config.core.hook_runner import HookRunner
from app_config.core.orchestrator import ApplyOrchestrator
from app_config.core.state_store import StateStore
from app_config.models.hooks import HookSpec
from app_config.models.sources import ConfigSource, ContentType, FetchResult

PEERS_YAML = 'peers:\n  - name: "a"\n    key: "K1"\n'
PEERS_TEMPLATE = "{{#each peers}}peer {{name}} key {{key}}\n{{/each}}"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeProvider:
    """Provider double: returns a settable result and counts fetches."""

    def __init__(
        self,
        version: str = "v1",
        content: str | bytes = PEERS_YAML,
        *,
        error: AppConfigError | None = None,
    ) -> None:
        self.version = version
        self.content = content
        self.error = error
        self.calls = 0

    def fetch(self, source: ConfigSource) -> FetchResult:
        self.calls += 1
        if self.error is not None:
            raise self.error
        content = self.content
        if isinstance(content, str):
            content = content.encode("utf-8")
        return FetchResult(version_token=self.version, content=content)


class RecordingHookRunner(HookRunner):
    """HookRunner that records writes and commands while still performing them."""

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("stdout", io.StringIO())
        super().__init__(**kwargs)
        self.written: list[Path | None] = []
        self.commands: list[str] = []

    @property
    def printed(self) -> str:
        return self._stdout.getvalue()

    def write(self, artifact):
        self.written.append(artifact.output_path)
        super().write(artifact)

    def run_command(self, command, **kwargs):
        self.commands.append(command)
        super().run_command(command, **kwargs)


class FakeBody:
    """Stands in for botocore's StreamingBody."""

    def __init__(self, data: bytes) -> None:
        self._data = data

    def read(self) -> bytes:
        return self._data


class FakeAppConfigClient:
    def __init__(
        self,
        response: dict[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.response = response or {}
        self.error = error
        self.requests: list[dict[str, Any]] = []

    def get_configuration(self, **kwargs: Any) -> dict[str, Any]:
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


class FakeSSMClient:
    def __init__(
        self,
        parameters: dict[str, tuple[str, int]] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.parameters = parameters or {}
        self.error = error
        self.requests: list[dict[str, Any]] = []

    def get_parameter(self, **kwargs: Any) -> dict[str, Any]:
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        name = kwargs["Name"]
        if name not in self.parameters:
            raise client_error("ParameterNotFound", operation="GetParameter")
        value, version = self.parameters[name]
        return {"Parameter": {"Name": name, "Value": value, "Version": version}}


def client_error(
    code: str, message: str = "boom", operation: str = "GetConfiguration"
) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def source() -> ConfigSource:
    return ConfigSource(
        application="vpn",
        environment="prod",
        configuration="peers",
        client_id="test-host",
    )


@pytest.fixture
def store(tmp_path: Path) -> Iterator[StateStore]:
    """Provide an open StateStore backed by a temp SQLite file."""
    with StateStore(tmp_path / "state.db") as opened:
        yield opened


@pytest.fixture
def template_file(tmp_path: Path) -> Path:
    path = tmp_path / "peers.hbs"
    path.write_text(PEERS_TEMPLATE, encoding="utf-8")
    return path


@pytest.fixture
def out_file(tmp_path: Path) -> Path:
    directory = tmp_path / "out"
    directory.mkdir()
    return directory / "peers.conf"


@pytest.fixture
def make_hook(template_file: Path, out_file: Path) -> Callable[..., HookSpec]:
    """Factory fixture: a YAML template hook writing to ``out_file``."""

    def _factory(**overrides: Any) -> HookSpec:
        fields: dict[str, Any] = {
            "template_file": template_file,
            "source_type": ContentType.YAML,
            "out_file": out_file,
        }
        fields.update(overrides)
        return HookSpec(**fields)

    return _factory


@pytest.fixture
def hook_runner() -> RecordingHookRunner:
    return RecordingHookRunner()


@pytest.fixture
def make_orchestrator(
    store: StateStore, hook_runner: RecordingHookRunner
) -> Callable[[FakeProvider], ApplyOrchestrator]:
    """Factory fixture: an orchestrator over the shared store and runner."""

    def _factory(provider: FakeProvider) -> ApplyOrchestrator:
        return ApplyOrchestrator(provider, store, hook_runner=hook_runner)

    return _factory
