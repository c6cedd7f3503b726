"""AWS AppConfig provider.

Fetches a hosted configuration through ``appconfig.get_configuration``.
The configuration version reported by AppConfig is the version token.
"""

from __future__ import annotations

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from app_config.core.errors import ProviderMalformedError
from app_config.models.sources import ConfigSource, ContentType, FetchResult
from app_config.providers._aws import build_client, translate_error

logger = logging.getLogger(__name__)


class AppConfigProvider:
    """Provider for AWS AppConfig.

    Parameters
    ----------
    client:
        A pre-built ``appconfig`` client.  Built lazily from *region* and
        *timeout* when omitted (default credential chain).
    region:
        AWS region; None uses the boto3 default resolution.
    timeout:
        Connect and read timeout for the fetch, in seconds.
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
            self._client = build_client(
                "appconfig", region=self._region, timeout=self._timeout
            )
        return self._client

    def fetch(self, source: ConfigSource) -> FetchResult:
        what = f"AppConfig {source.source_key}"
        try:
            response = self._get_client().get_configuration(
                Application=source.application,
                Environment=source.environment,
                Configuration=source.configuration,
                ClientId=source.client_id,
            )
            body = response.get("Content")
            content = body.read() if hasattr(body, "read") else (body or b"")
        except (ClientError, BotoCoreError) as exc:
            raise translate_error(exc, what) from exc

        version = response.get("ConfigurationVersion")
        if not version:
            raise ProviderMalformedError(f"{what} returned no configuration version")

        logger.debug("%s is at version %s", what, version)
        return FetchResult(
            version_token=version,
            content=content,
            content_type=ContentType.from_mime(response.get("ContentType")),
        )

    def __repr__(self) -> str:
        return f"AppConfigProvider(region={self._region!r})"
