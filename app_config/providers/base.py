"""Provider protocol: fetch a versioned configuration blob.

Any object with a ``fetch(source) -> FetchResult`` method is a provider.
Backends are independent classes selected by configuration; none of them
inherit from a shared base.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from app_config.models.sources import ConfigSource, FetchResult


@runtime_checkable
class Provider(Protocol):
    """Protocol for configuration backends."""

    def fetch(self, source: ConfigSource) -> FetchResult:
        """Return the current version token and content of *source*.

        Raises
        ------
        ProviderError
            One of the NotFound / Unauthorized / Transient / Malformed
            subclasses.
        """
        ...
