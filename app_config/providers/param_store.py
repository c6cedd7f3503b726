"""AWS Systems Manager Parameter Store provider.

Polls a single parameter.  The parameter's ``Version`` is the version
token, so any ``put-parameter`` bumps it and triggers an apply.  The same
lookup backs the ``{{key "Name"}}`` template helper.
"""

from __future__ import annotations

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from app_config.core.errors import ProviderMalformedError
from app_config.models.sources import ConfigSource, FetchResult
from app_config.providers._aws import build_client, translate_error

logger = logging.getLogger(__name__)


class ParamStoreProvider:
    """Provider for SSM Parameter Store.

    The parameter name is taken from ``source.configuration``.

    Parameters
    ----------
    client:
        A pre-built ``ssm`` client; built lazily when omitted.
    region:
        AWS region; None uses the boto3 default resolution.
    timeout:
        Connect and read timeout per call, in seconds.
    """

    def __init__(
        self,
        client: Any = None,
        *,
        region: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._client = client
        self._region = region
        self._timeout = timeout

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = build_client("ssm", region=self._region, timeout=self._timeout)
        return self._client

    def _get_parameter(self, name: str) -> dict[str, Any]:
        what = f"SSM parameter {name}"
        try:
            response = self._get_client().get_parameter(Name=name, WithDecryption=True)
        except (ClientError, BotoCoreError) as exc:
            raise translate_error(exc, what) from exc

        parameter = response.get("Parameter") or {}
        if parameter.get("Value") is None:
            raise ProviderMalformedError(f"{what} returned no value")
        return parameter

    def get_value(self, name: str) -> str:
        """Return the decrypted value of parameter *name*."""
        return self._get_parameter(name)["Value"]

    def fetch(self, source: ConfigSource) -> FetchResult:
        name = source.configuration
        parameter = self._get_parameter(name)
        version = parameter.get("Version")
        if version is None:
            raise ProviderMalformedError(f"SSM parameter {name} returned no version")

        logger.debug("SSM parameter %s is at version %s", name, version)
        return FetchResult(
            version_token=version,
            content=parameter["Value"].encode("utf-8"),
        )

    def __repr__(self) -> str:
        return f"ParamStoreProvider(region={self._region!r})"
