"""Tests for the detection session."""

import asyncio
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from snowboy_http.actions.executor import ActionExecutor
from snowboy_http.actions.table import ActionDescriptor
from snowboy_http.engine.base import DetectionResult
from snowboy_http.router import DetectionEventRouter
from snowboy_http.session import DetectionSession
from snowboy_http.state_machine import State


class FakeRecorder:
    """Yields a fixed list of chunks, then waits for stop."""

    def __init__(self, chunks):
        self._chunks = list(chunks)
        self.started = False
        self.stopped = False
        self.exhausted = asyncio.Event()

    def start(self, loop=None):
        self.started = True

    def stop(self):
        self.stopped = True

    async def chunks(self, stop_event):
        for chunk in self._chunks:
            yield chunk
        self.exhausted.set()
        await stop_event.wait()


@pytest.fixture
def router():
    router = DetectionEventRouter({}, MagicMock())
    router.start()
    return router


async def run_session(session, stop):
    events = asyncio.Queue()
    task = asyncio.create_task(session.run(events, stop))
    await asyncio.wait_for(session.recorder.exhausted.wait(), timeout=2.0)
    stop.set()
    await asyncio.wait_for(task, timeout=2.0)
    return [events.get_nowait().label for _ in range(events.qsize())]


async def test_open_and_close(router):
    engine = MagicMock()
    recorder = FakeRecorder([])
    session = DetectionSession(engine, recorder, router)

    session.open()
    engine.load.assert_called_once()
    assert recorder.started
    assert session.is_open

    session.close()
    assert recorder.stopped
    engine.reset.assert_called_once()
    assert not session.is_open


async def test_publishes_recognized_hotwords(router):
    engine = MagicMock()
    engine.process.side_effect = [
        DetectionResult(silence=True),
        DetectionResult(label="hello"),
        DetectionResult(),
        DetectionResult(label="computer"),
    ]
    session = DetectionSession(engine, FakeRecorder([b"a", b"b", b"c", b"d"]), router)

    labels = await run_session(session, asyncio.Event())

    assert labels == ["hello", "computer"]
    assert engine.process.call_count == 4


async def test_engine_error_code_reported(router, caplog):
    engine = MagicMock()
    engine.process.side_effect = [DetectionResult(error=True), DetectionResult(label="hello")]
    session = DetectionSession(engine, FakeRecorder([b"a", b"b"]), router)

    with caplog.at_level(logging.ERROR):
        labels = await run_session(session, asyncio.Event())

    # Detection continues after an error code
    assert labels == ["hello"]
    assert "Detector error" in caplog.text
    assert router.state == State.LISTENING


async def test_engine_exception_stops_detection(router, caplog):
    engine = MagicMock()
    engine.process.side_effect = [RuntimeError("crashed"), DetectionResult(label="hello")]
    session = DetectionSession(engine, FakeRecorder([b"a", b"b"]), router)

    with caplog.at_level(logging.ERROR):
        await asyncio.wait_for(session.run(asyncio.Queue(), asyncio.Event()), timeout=2.0)

    assert engine.process.call_count == 1
    assert "crashed" in caplog.text
    assert "not restarting" in caplog.text
    assert router.state == State.LISTENING
    assert session.recorder.stopped


async def test_close_before_run(router):
    session = DetectionSession(MagicMock(), FakeRecorder([]), router)
    session.close()
    assert session.recorder.stopped


async def test_engine_not_blocked_by_slow_actions(router):
    """Hanging GETs must not delay audio processing."""
    loop = asyncio.get_running_loop()
    loop.set_default_executor(ThreadPoolExecutor(max_workers=2))

    release = threading.Event()

    def slow_get(url, **kwargs):
        release.wait(5.0)
        return MagicMock(status_code=200, ok=True)

    http = MagicMock()
    http.get.side_effect = slow_get
    executor = ActionExecutor(session=http, max_workers=8)

    try:
        for i in range(8):
            executor.submit("hello", ActionDescriptor("get", f"http://localhost:9/{i}"))
        await asyncio.sleep(0.1)

        engine = MagicMock()
        engine.process.return_value = DetectionResult(label="hello")
        session = DetectionSession(engine, FakeRecorder([b"a", b"b"]), router)
        events = asyncio.Queue()
        stop = asyncio.Event()

        started = time.monotonic()
        task = asyncio.create_task(session.run(events, stop))
        await asyncio.wait_for(session.recorder.exhausted.wait(), timeout=5.0)
        elapsed = time.monotonic() - started

        assert elapsed < 0.5
        assert engine.process.call_count == 2
        assert http.get.call_count == 8

        stop.set()
        await asyncio.wait_for(task, timeout=2.0)
        session.close()
    finally:
        release.set()
        await executor.drain(timeout=5.0)
        executor.close()
