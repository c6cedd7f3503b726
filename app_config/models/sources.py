"""Configuration source and fetch result models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator


class ContentType(str, Enum):
    """Declared format of a fetched configuration blob."""

    YAML = "yaml"
    JSON = "json"
    TOML = "toml"

    @classmethod
    def from_mime(cls, mime: str | None) -> ContentType | None:
        """Map a backend MIME type (e.g. ``application/x-yaml``) to a ContentType.

        Returns None for anything unrecognised (``text/plain`` included).
        """
        if not mime:
            return None
        subtype = mime.split(";", 1)[0].strip().lower().rsplit("/", 1)[-1]
        subtype = subtype.removeprefix("x-")
        if subtype in ("yaml", "yml"):
            return cls.YAML
        if subtype == "json":
            return cls.JSON
        if subtype == "toml":
            return cls.TOML
        return None


class ConfigSource(BaseModel):
    """Identifies one remote configuration feed.

    The fields are opaque to the pipeline; they are handed to the
    provider untouched.  ``source_key`` is the state store primary key.
    """

    model_config = ConfigDict(frozen=True)

    application: str
    environment: str
    configuration: str
    client_id: str = "app_config"

    @property
    def source_key(self) -> str:
        return f"{self.application}/{self.environment}/{self.configuration}"


class FetchResult(BaseModel):
    """Version token plus raw content returned by a single provider fetch."""

    model_config = ConfigDict(frozen=True)

    version_token: str
    content: bytes
    content_type: ContentType | None = None

    @field_validator("version_token", mode="before")
    @classmethod
    def _coerce_token(cls, value: object) -> object:
        # Backends report versions as numbers or strings; equality is all we use.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value
