"""Detection session: microphone -> engine -> hotword events."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

from snowboy_http.audio.recorder import MicrophoneRecorder
from snowboy_http.engine.base import BaseHotwordEngine
from snowboy_http.router import DetectionEventRouter, HotwordEvent

logger = logging.getLogger(__name__)


class DetectionSession:
    """Owns the engine and the audio subscription for the process lifetime.

    The engine runs on its own single worker thread, so chunks are processed
    one at a time and never queue behind unrelated blocking work.
    """

    def __init__(
        self,
        engine: BaseHotwordEngine,
        recorder: MicrophoneRecorder,
        router: DetectionEventRouter,
    ):
        self.engine = engine
        self.recorder = recorder
        self.router = router
        self._open = False
        self._worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="detector")

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Load the engine models and start capturing audio."""
        self.engine.load()
        self.recorder.start(loop)
        self._open = True

    async def run(
        self,
        events: asyncio.Queue[HotwordEvent],
        stop_event: asyncio.Event,
    ) -> None:
        """Feed audio to the engine and publish recognized hotwords.

        An exception from the engine ends detection: it is logged, reported
        to the router and the microphone is released. Detection is not
        restarted.
        """
        logger.info("Detection loop started")
        loop = asyncio.get_running_loop()

        try:
            async for chunk in self.recorder.chunks(stop_event):
                result = await loop.run_in_executor(self._worker, self.engine.process, chunk)

                if result.error:
                    self.router.engine_error("Detector error")
                elif result.detected:
                    logger.debug(f"Hotword detected: {result.label}")
                    events.put_nowait(HotwordEvent(label=result.label))

        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.router.engine_error(f"Detector error: {e}")
            logger.error("Detection stopped, not restarting")
            self.recorder.stop()
            return

        logger.info("Detection loop stopped")

    def close(self) -> None:
        """Release the audio subscription and discard the engine."""
        self.recorder.stop()
        self.engine.reset()
        self._worker.shutdown(wait=False, cancel_futures=True)
        self._open = False
