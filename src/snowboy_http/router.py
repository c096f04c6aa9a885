"""Routes recognized hotwords to their configured actions."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Mapping

from snowboy_http.actions.executor import ActionExecutor
from snowboy_http.actions.table import ActionDescriptor
from snowboy_http.state_machine import Event, State, StateMachine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HotwordEvent:
    label: str
    timestamp: float = field(default_factory=time.monotonic)


class DetectionEventRouter:
    """Consumes hotword events and dispatches the matching actions.

    Lifecycle: UNINITIALIZED -> LISTENING -> TERMINATED. The action table
    is read-only after construction. Actions run detached on the executor
    and are never awaited here, so a slow or failing request cannot stall
    event processing.
    """

    def __init__(
        self,
        actions: Mapping[str, ActionDescriptor],
        executor: ActionExecutor,
        log: logging.Logger | None = None,
    ):
        self.actions = actions
        self.executor = executor
        self.log = log or logger
        self._sm = StateMachine()

    @property
    def state(self) -> State:
        return self._sm.state

    def start(self) -> None:
        """Enter LISTENING once the audio stream feeds the engine."""
        self._sm.send_event(Event.STREAM_STARTED)

    def stop(self) -> None:
        if self._sm.state == State.LISTENING:
            self.log.info(f"Listened for {self._sm.time_in_state:.1f}s")
        if self._sm.state != State.TERMINATED:
            self._sm.send_event(Event.SHUTDOWN)

    def dispatch(self, event: HotwordEvent) -> asyncio.Task | None:
        """Look up the label and submit its action, if any."""
        action = self.actions.get(event.label)
        if action is None:
            self.log.info(f"Hotword: {event.label} (no action)")
            return None

        self.log.info(f"Action: {event.label}")
        self.log.debug(f"Dispatch latency: {time.monotonic() - event.timestamp:.3f}s")
        return self.executor.submit(event.label, action)

    def engine_error(self, message: str = "Detector error") -> None:
        """Record a detection engine error. Detection is not restarted."""
        self.log.error(message)
        if self._sm.state == State.LISTENING:
            self._sm.send_event(Event.ENGINE_ERROR)

    async def run(
        self,
        events: asyncio.Queue[HotwordEvent],
        stop_event: asyncio.Event,
    ) -> None:
        """Dispatch events in the order they were emitted until stopped."""
        while not stop_event.is_set():
            try:
                event = await asyncio.wait_for(events.get(), timeout=0.5)
            except asyncio.TimeoutError:
                continue

            try:
                self.dispatch(event)
            except Exception as e:
                self.log.error(f"Failed to dispatch {event.label}: {e}", exc_info=True)
            finally:
                events.task_done()
