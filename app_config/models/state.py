"""Persisted state record model."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class StateRecord(BaseModel):
    """The last version of a source that was fully applied.

    Only written after rendering, writing and the command all succeeded.
    ``applied_at`` is informational.  ``content`` keeps the raw payload of
    that version so it can be queried offline.
    """

    model_config = ConfigDict(frozen=True)

    source_key: str
    version_token: str
    applied_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    content: str | None = None
