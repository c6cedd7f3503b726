"""Apply cycle state machine models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class CycleState(str, Enum):
    """States of a single check-and-apply cycle."""

    FETCHING = "fetching"
    COMPARING = "comparing"
    NO_OP = "no_op"
    RENDERING = "rendering"
    WRITING = "writing"
    RUNNING = "running"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


# Valid state transitions, enforced by CycleMachine.
# Every working state may fail; DONE and FAILED are terminal.
VALID_TRANSITIONS: dict[CycleState, set[CycleState]] = {
    CycleState.FETCHING: {CycleState.COMPARING, CycleState.FAILED},
    CycleState.COMPARING: {CycleState.NO_OP, CycleState.RENDERING, CycleState.FAILED},
    CycleState.NO_OP: {CycleState.DONE},
    CycleState.RENDERING: {CycleState.WRITING, CycleState.FAILED},
    CycleState.WRITING: {CycleState.RUNNING, CycleState.FAILED},
    CycleState.RUNNING: {CycleState.PERSISTING, CycleState.FAILED},
    CycleState.PERSISTING: {CycleState.DONE, CycleState.FAILED},
    CycleState.DONE: set(),  # terminal
    CycleState.FAILED: set(),  # terminal
}


class CycleOutcome(str, Enum):
    """What a finished cycle amounted to."""

    APPLIED = "applied"
    UNCHANGED = "unchanged"
    FAILED = "failed"


class CycleTransition(BaseModel):
    """One recorded state change inside a cycle."""

    model_config = ConfigDict(frozen=True)

    from_state: CycleState
    to_state: CycleState


class CycleResult(BaseModel):
    """Terminal result of one cycle for one source.

    ``error`` holds the originating exception when the cycle FAILED so the
    caller can map it to an exit code.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    source_key: str
    outcome: CycleOutcome
    version_token: str | None = None
    previous_token: str | None = None
    failed_in: CycleState | None = None
    transitions: list[CycleTransition] = []
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.outcome != CycleOutcome.FAILED
