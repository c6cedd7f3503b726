"""Hook specification and rendered artifact models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, model_validator

from app_config.models.sources import ContentType


class HookSpec(BaseModel):
    """Declarative description of one apply action.

    Built by the configuration loader and passed read-only into the
    orchestrator.  ``out_file`` of None sends the rendered template to
    stdout.  ``raw_out_file`` and ``echo_raw`` emit the fetched content
    as-is, next to (or instead of) the template.
    """

    model_config = ConfigDict(frozen=True)

    template_file: Path | None = None
    source_type: ContentType | None = None
    out_file: Path | None = None
    raw_out_file: Path | None = None
    echo_raw: bool = False
    command: str | None = None
    pipe_data: bool = False
    command_timeout: float | None = None

    @model_validator(mode="after")
    def _template_needs_source_type(self) -> HookSpec:
        if self.template_file is not None and self.source_type is None:
            raise ValueError("source_type is required when a template file is set")
        return self


class RenderedArtifact(BaseModel):
    """Text produced during one cycle plus where it should land.

    ``output_path`` of None means the text is printed to stdout.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    output_path: Path | None = None
