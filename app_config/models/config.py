"""Configuration file section models.

One model per TOML section.  Unknown keys are rejected so that a typo in
the file fails loudly instead of being silently ignored.

Example file::

    [providers.aws]
    application = "vpn"
    environment = "prod"
    configuration = "peers"
    client_id = "host-42"
    state_file = "~/.app_config/vpn.db"

    [hooks.template]
    file = "~/wg0.conf.hbs"
    source_type = "yaml"
    out_file = "/etc/wireguard/wg0.conf"

    [hooks.command]
    command = "wg syncconf wg0 /etc/wireguard/wg0.conf"
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from app_config.models.sources import ConfigSource, ContentType


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class AWSSection(_Section):
    """``[providers.aws]`` — AWS AppConfig feed."""

    application: str
    environment: str
    configuration: str
    client_id: str
    state_file: Path | None = None

    def to_source(self) -> ConfigSource:
        return ConfigSource(
            application=self.application,
            environment=self.environment,
            configuration=self.configuration,
            client_id=self.client_id,
        )


class ParamStoreSection(_Section):
    """``[providers.param_store]`` — a single SSM parameter."""

    key: str
    state_file: Path | None = None

    def to_source(self) -> ConfigSource:
        return ConfigSource(
            application="ssm",
            environment="parameter-store",
            configuration=self.key,
        )


class MockSection(_Section):
    """``[providers.mock]`` — static data, handy for dialling in templates."""

    data: str
    version: str | None = None
    state_file: Path | None = None

    def to_source(self) -> ConfigSource:
        return ConfigSource(application="mock", environment="local", configuration="mock")


# ---------------------------------------------------------------------------
# Hooks
# ---------------------------------------------------------------------------


class TemplateSection(_Section):
    """``[hooks.template]``"""

    file: Path
    source_type: ContentType
    out_file: Path | None = None


class FileSection(_Section):
    """``[hooks.file]``"""

    outfile: Path


class RawSection(_Section):
    """``[hooks.raw]`` — takes no keys."""


class CommandSection(_Section):
    """``[hooks.command]``"""

    command: str
    pipe_data: bool = False
    timeout: float | None = None
