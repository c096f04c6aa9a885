"""Fire-and-forget execution of hotword actions."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

import requests

from snowboy_http.actions.table import ACTION_GET, ActionDescriptor

logger = logging.getLogger(__name__)


class ActionExecutor:
    """Runs actions as detached tasks with their own error boundary.

    HTTP calls are blocking, so they run on a thread pool owned by the
    executor. Slow requests can fill that pool but never the loop default
    executor used for audio. Failures are logged and never reach the caller.
    """

    def __init__(
        self,
        timeout: float = 5.0,
        session: requests.Session | None = None,
        log: logging.Logger | None = None,
        max_workers: int = 4,
    ):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.log = log or logger
        self._tasks: set[asyncio.Task] = set()
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="action")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, label: str, action: ActionDescriptor) -> asyncio.Task:
        """Start an action without waiting for it. Must run inside the event loop."""
        task = asyncio.create_task(self._execute(label, action), name=f"action-{label}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _execute(self, label: str, action: ActionDescriptor) -> None:
        try:
            if action.type != ACTION_GET:
                raise ValueError(f"Invalid action: {action.type}")
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(self._pool, self._get, action.url)
        except requests.RequestException as e:
            self.log.error(f"Action {label} failed: GET {action.url}: {e}")
        except Exception as e:
            self.log.error(f"Action {label} failed: {e}", exc_info=True)

    def _get(self, url: str) -> int:
        self.log.debug(f"GET: {url}")
        # stream=True so the body is never downloaded, only discarded on close
        response = self.session.get(url, timeout=self.timeout, stream=True)
        try:
            if response.ok:
                self.log.debug(f"Status code: {response.status_code}")
            else:
                self.log.warning(f"GET {url} returned status {response.status_code}")
            return response.status_code
        finally:
            response.close()

    async def drain(self, timeout: float = 2.0) -> None:
        """Wait briefly for in-flight actions; anything left is abandoned."""
        if not self._tasks:
            return
        done, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if pending:
            self.log.warning(f"Abandoning {len(pending)} in-flight action(s)")

    def close(self) -> None:
        self._pool.shutdown(wait=False, cancel_futures=True)
        self.session.close()
