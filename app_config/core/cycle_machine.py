"""Deterministic state machine for one apply cycle.

Enforces:
- Valid state transitions only (VALID_TRANSITIONS table)
- A single terminal state (DONE or FAILED) per cycle
- Every transition logged and kept for the cycle result
"""

from __future__ import annotations

import logging

from app_config.models.cycle import VALID_TRANSITIONS, CycleState, CycleTransition

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested state transition is not valid."""


class CycleMachine:
    """Tracks the current state of one cycle for one source.

    Parameters
    ----------
    source_key:
        Key of the source being applied; used for log context.
    """

    def __init__(self, source_key: str) -> None:
        self.source_key = source_key
        self._state = CycleState.FETCHING
        self._history: list[CycleTransition] = []

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def history(self) -> list[CycleTransition]:
        """Return all transitions made so far."""
        return list(self._history)

    @property
    def is_terminal(self) -> bool:
        return not VALID_TRANSITIONS[self._state]

    def transition(self, target_state: CycleState) -> CycleTransition:
        """Move to *target_state*, rejecting anything the table forbids."""
        current = self._state
        allowed = VALID_TRANSITIONS.get(current, set())
        if target_state not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition {self.source_key} from {current.value} to "
                f"{target_state.value}. Allowed: {sorted(s.value for s in allowed)}"
            )

        record = CycleTransition(from_state=current, to_state=target_state)
        self._history.append(record)
        self._state = target_state
        logger.debug(
            "%s: %s -> %s", self.source_key, current.value, target_state.value
        )
        return record

    def fail(self) -> CycleState:
        """Transition to FAILED and return the state the failure happened in."""
        failed_in = self._state
        self.transition(CycleState.FAILED)
        return failed_in
