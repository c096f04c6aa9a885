"""Microphone capture feeding PCM16 chunks into the event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

import numpy as np
import soxr

logger = logging.getLogger(__name__)


def to_pcm16(audio: np.ndarray, capture_rate: int, sample_rate: int) -> bytes:
    """Convert a captured int16 block to mono int16 bytes at ``sample_rate``."""
    # Convert stereo to mono if needed
    if audio.ndim == 2:
        audio = audio.mean(axis=1).astype(np.int16)

    if capture_rate != sample_rate:
        resampled = soxr.resample(audio.astype(np.float64), capture_rate, sample_rate)
        audio = np.clip(resampled, -32768, 32767).astype(np.int16)

    return audio.tobytes()


class MicrophoneRecorder:
    """Captures audio from an input device with sounddevice.

    PortAudio invokes the stream callback on its own thread; blocks are
    handed to the event loop with call_soon_threadsafe() and consumed
    through chunks().
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        device: str | int | None = None,
        capture_rate: int | None = None,
        block_ms: int = 100,
    ):
        self.sample_rate = sample_rate
        self.channels = channels
        self.device = device
        self.capture_rate = capture_rate or sample_rate
        self.block_ms = block_ms

        self._stream = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[np.ndarray] = asyncio.Queue()

    @property
    def blocksize(self) -> int:
        return int(self.capture_rate * self.block_ms / 1000)

    @property
    def running(self) -> bool:
        return self._stream is not None

    def start(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Open the input stream and start capturing."""
        import sounddevice as sd

        self._loop = loop or asyncio.get_running_loop()
        try:
            stream = sd.InputStream(
                samplerate=self.capture_rate,
                blocksize=self.blocksize,
                device=self.device,
                channels=self.channels,
                dtype="int16",
                callback=self._callback,
            )
            stream.start()
        except sd.PortAudioError as e:
            raise OSError(f"Unable to open audio input: {e}") from e
        self._stream = stream
        logger.info(
            f"Audio capture started (device={self.device}, "
            f"rate={self.capture_rate}, block={self.block_ms}ms)"
        )

    def _callback(self, indata, frames, time_info, status) -> None:
        if status:
            logger.debug(f"Audio status: {status}")
        if self._stream is None or self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, indata.copy())

    async def chunks(self, stop_event: asyncio.Event) -> AsyncIterator[bytes]:
        """Yield PCM16 mono chunks at ``sample_rate`` until stopped."""
        while not stop_event.is_set():
            try:
                block = await asyncio.wait_for(self._queue.get(), timeout=0.5)
            except asyncio.TimeoutError:
                continue
            yield to_pcm16(block, self.capture_rate, self.sample_rate)

    def stop(self) -> None:
        """Stop and close the input stream."""
        if self._stream is None:
            return
        try:
            self._stream.stop()
            self._stream.close()
        finally:
            self._stream = None
            # Blocks captured but never consumed
            while not self._queue.empty():
                self._queue.get_nowait()
            logger.info("Audio capture stopped")
