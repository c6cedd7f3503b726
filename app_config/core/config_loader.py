"""Loads a TOML configuration file into a ConfigSource and HookSpec.

A file declares exactly one provider and any number of hook sections::

    state_file = "~/.app_config/state.db"

    [providers.param_store]
    key = "/vpn/peers"

    [hooks.template]
    file = "~/peers.hbs"
    source_type = "yaml"
    out_file = "/etc/wireguard/peers.conf"

    [hooks.command]
    command = "systemctl reload wg-quick@wg0"
    timeout = 60

Every failure (unreadable file, bad TOML, unknown section or key, wrong
number of providers) is raised as ``ConfigFileError``.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from app_config.config import AppSettings
from app_config.core.errors import ConfigFileError
from app_config.models.config import (
    AWSSection,
    CommandSection,
    FileSection,
    MockSection,
    ParamStoreSection,
    RawSection,
    TemplateSection,
)
from app_config.models.hooks import HookSpec
from app_config.models.sources import ConfigSource
from app_config.providers.appconfig import AppConfigProvider
from app_config.providers.base import Provider
from app_config.providers.mock import MockProvider
from app_config.providers.param_store import ParamStoreProvider

logger = logging.getLogger(__name__)

ProviderSection = Union[AWSSection, ParamStoreSection, MockSection]

# Section name -> (canonical kind, model)
_PROVIDER_SECTIONS: dict[str, tuple[str, type[BaseModel]]] = {
    "aws": ("aws", AWSSection),
    "appconfig": ("aws", AWSSection),
    "param_store": ("param_store", ParamStoreSection),
    "mock": ("mock", MockSection),
}

_HOOK_SECTIONS: dict[str, type[BaseModel]] = {
    "template": TemplateSection,
    "file": FileSection,
    "raw": RawSection,
    "command": CommandSection,
}

_TOP_LEVEL_KEYS = frozenset({"providers", "hooks", "state_file"})


class LoadedConfig(BaseModel):
    """A validated configuration file."""

    model_config = ConfigDict(frozen=True)

    path: Path
    provider_kind: str
    provider: ProviderSection
    source: ConfigSource
    hook: HookSpec
    state_file: Path | None = None


def _expand(path: Path | None) -> Path | None:
    return path.expanduser() if path is not None else None


def _table(document: dict[str, Any], name: str, path: Path) -> dict[str, Any]:
    value = document.get(name, {})
    if not isinstance(value, dict):
        raise ConfigFileError(f"{path}: [{name}] must be a table")
    return value


def _validate(model: type[BaseModel], data: Any, label: str, path: Path) -> Any:
    if not isinstance(data, dict):
        raise ConfigFileError(f"{path}: [{label}] must be a table")
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ConfigFileError(f"{path}: invalid [{label}]: {exc}") from exc


def load_config(path: Path | str) -> LoadedConfig:
    """Read and validate the configuration file at *path*."""
    config_path = Path(path).expanduser()
    try:
        with config_path.open("rb") as handle:
            document = tomllib.load(handle)
    except OSError as exc:
        raise ConfigFileError(f"Cannot read config file {config_path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileError(f"{config_path} is not valid TOML: {exc}") from exc

    unknown = set(document) - _TOP_LEVEL_KEYS
    if unknown:
        raise ConfigFileError(
            f"{config_path}: unknown top-level keys {sorted(unknown)}"
        )

    # -- provider ---------------------------------------------------------
    providers = _table(document, "providers", config_path)
    if len(providers) != 1:
        raise ConfigFileError(
            f"{config_path}: exactly one [providers.<name>] section is required, "
            f"found {len(providers)}"
        )
    name, data = next(iter(providers.items()))
    if name not in _PROVIDER_SECTIONS:
        raise ConfigFileError(
            f"{config_path}: unknown provider {name!r}; "
            f"expected one of {sorted(_PROVIDER_SECTIONS)}"
        )
    kind, model = _PROVIDER_SECTIONS[name]
    provider = _validate(model, data, f"providers.{name}", config_path)

    # -- hooks ------------------------------------------------------------
    hooks = _table(document, "hooks", config_path)
    unknown = set(hooks) - set(_HOOK_SECTIONS)
    if unknown:
        raise ConfigFileError(f"{config_path}: unknown hook sections {sorted(unknown)}")
    sections = {
        hook_name: _validate(_HOOK_SECTIONS[hook_name], hook_data, f"hooks.{hook_name}", config_path)
        for hook_name, hook_data in hooks.items()
    }
    hook = _build_hook(sections, config_path)

    # -- state file -------------------------------------------------------
    top_state = document.get("state_file")
    if top_state is not None and not isinstance(top_state, str):
        raise ConfigFileError(f"{config_path}: state_file must be a string")
    state_file = provider.state_file or (Path(top_state) if top_state else None)

    loaded = LoadedConfig(
        path=config_path,
        provider_kind=kind,
        provider=provider,
        source=provider.to_source(),
        hook=hook,
        state_file=_expand(state_file),
    )
    logger.debug(
        "Loaded %s: provider=%s source=%s", config_path, kind, loaded.source.source_key
    )
    return loaded


def _build_hook(sections: dict[str, Any], path: Path) -> HookSpec:
    template: TemplateSection | None = sections.get("template")
    raw_file: FileSection | None = sections.get("file")
    command: CommandSection | None = sections.get("command")

    try:
        return HookSpec(
            template_file=_expand(template.file) if template else None,
            source_type=template.source_type if template else None,
            out_file=_expand(template.out_file) if template else None,
            raw_out_file=_expand(raw_file.outfile) if raw_file else None,
            echo_raw="raw" in sections,
            command=command.command if command else None,
            pipe_data=command.pipe_data if command else False,
            command_timeout=command.timeout if command else None,
        )
    except ValidationError as exc:
        raise ConfigFileError(f"{path}: invalid hooks: {exc}") from exc


def build_provider(loaded: LoadedConfig, settings: AppSettings) -> Provider:
    """Instantiate the provider a loaded configuration file declares."""
    section = loaded.provider
    if isinstance(section, AWSSection):
        return AppConfigProvider(
            region=settings.aws_region, timeout=settings.fetch_timeout_seconds
        )
    if isinstance(section, ParamStoreSection):
        return ParamStoreProvider(
            region=settings.aws_region, timeout=settings.fetch_timeout_seconds
        )
    return MockProvider(section.data, version=section.version)
