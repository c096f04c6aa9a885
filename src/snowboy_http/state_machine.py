"""Lifecycle state machine for the detection event router."""

from __future__ import annotations

import logging
import time
from enum import Enum, auto

logger = logging.getLogger(__name__)


class State(Enum):
    UNINITIALIZED = auto()
    LISTENING = auto()
    TERMINATED = auto()


class Event(Enum):
    STREAM_STARTED = auto()
    ENGINE_ERROR = auto()
    SHUTDOWN = auto()


# Valid transitions: (current_state, event) -> next_state
TRANSITIONS: dict[tuple[State, Event], State] = {
    (State.UNINITIALIZED, Event.STREAM_STARTED): State.LISTENING,
    (State.UNINITIALIZED, Event.SHUTDOWN): State.TERMINATED,
    # Engine errors are logged only; the router keeps listening (degraded).
    (State.LISTENING, Event.ENGINE_ERROR): State.LISTENING,
    (State.LISTENING, Event.SHUTDOWN): State.TERMINATED,
}


class StateMachine:
    """Simple state machine tracking time spent in the current state."""

    def __init__(self, initial_state: State = State.UNINITIALIZED):
        self._state = initial_state
        self._entered_at = time.monotonic()

    @property
    def state(self) -> State:
        return self._state

    @property
    def time_in_state(self) -> float:
        """Seconds spent in current state."""
        return time.monotonic() - self._entered_at

    def send_event(self, event: Event) -> State:
        """Process an event and return the new state.

        Raises ValueError for invalid transitions.
        """
        key = (self._state, event)
        if key not in TRANSITIONS:
            raise ValueError(
                f"Invalid transition: {self._state.name} + {event.name}"
            )

        old_state = self._state
        new_state = TRANSITIONS[key]
        if new_state != old_state:
            self._state = new_state
            self._entered_at = time.monotonic()
            logger.debug(f"State: {old_state.name} -> {new_state.name} (event={event.name})")

        return new_state
