"""app_config data models — all Pydantic v2, all frozen (immutable)."""

from app_config.models.config import (
    AWSSection,
    CommandSection,
    FileSection,
    MockSection,
    ParamStoreSection,
    RawSection,
    TemplateSection,
)
from app_config.models.cycle import (
    VALID_TRANSITIONS,
    CycleOutcome,
    CycleResult,
    CycleState,
    CycleTransition,
)
from app_config.models.hooks import HookSpec, RenderedArtifact
from app_config.models.sources import ConfigSource, ContentType, FetchResult
from app_config.models.state import StateRecord

__all__ = [
    # sources
    "ConfigSource",
    "ContentType",
    "FetchResult",
    # hooks
    "HookSpec",
    "RenderedArtifact",
    # state
    "StateRecord",
    # cycle
    "CycleState",
    "CycleOutcome",
    "CycleResult",
    "CycleTransition",
    "VALID_TRANSITIONS",
    # config file sections
    "AWSSection",
    "ParamStoreSection",
    "MockSection",
    "TemplateSection",
    "FileSection",
    "RawSection",
    "CommandSection",
]
