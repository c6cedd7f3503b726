"""Mock provider — returns whatever data it was configured with.

Mainly useful for dialling in templates: point a config file at a
``[providers.mock]`` section and iterate on the template locally.
"""

from __future__ import annotations

import hashlib

from app_config.models.sources import ConfigSource, ContentType, FetchResult


class MockProvider:
    """Static provider.

    Parameters
    ----------
    data:
        The payload returned on every fetch.
    version:
        Version token to report.  Defaults to the SHA-256 of *data*, so
        the token changes exactly when the data does.
    content_type:
        Optional declared format of *data*.
    """

    def __init__(
        self,
        data: str,
        *,
        version: str | None = None,
        content_type: ContentType | None = None,
    ) -> None:
        self.data = data
        self.version = version or hashlib.sha256(data.encode("utf-8")).hexdigest()
        self.content_type = content_type

    def fetch(self, source: ConfigSource) -> FetchResult:
        return FetchResult(
            version_token=self.version,
            content=self.data.encode("utf-8"),
            content_type=self.content_type,
        )

    def __repr__(self) -> str:
        return f"MockProvider(version={self.version!r})"
