"""Hotword detection using Snowboy (.umdl/.pmdl models).

The Python binding (``snowboydetect``) is built from the Snowboy sources
and is not published on PyPI, so it is imported lazily in load().
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from snowboy_http.engine.base import BaseHotwordEngine, DetectionResult
from snowboy_http.models import ModelEntry

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000

# RunDetection() return codes
RESULT_SILENCE = -2
RESULT_ERROR = -1
RESULT_NONE = 0

_INSTALL_HINT = (
    "snowboydetect is required. Build the Snowboy Python bindings "
    "(https://github.com/Kitt-AI/snowboy) and make them importable."
)


def default_resource_path() -> Path:
    """Locate resources/common.res next to the installed binding."""
    try:
        import snowboydetect
    except ImportError as e:
        raise ImportError(_INSTALL_HINT) from e

    return Path(snowboydetect.__file__).resolve().parent / "resources" / "common.res"


class SnowboyEngine(BaseHotwordEngine):
    """Detects hotwords with one Snowboy detector holding every model."""

    def __init__(
        self,
        models: Sequence[ModelEntry],
        resource: str | Path | None = None,
        audio_gain: float = 1.0,
        apply_frontend: bool = True,
    ):
        if not models:
            raise ValueError("At least one model is required")
        self.models = list(models)
        self.resource = Path(resource) if resource else None
        self.audio_gain = audio_gain
        self.apply_frontend = apply_frontend

        self._detector = None

    @property
    def sample_rate(self) -> int:
        if self._detector is not None:
            return self._detector.SampleRate()
        return SAMPLE_RATE

    @property
    def channels(self) -> int:
        if self._detector is not None:
            return self._detector.NumChannels()
        return 1

    @property
    def labels(self) -> list[str]:
        return [m.label for m in self.models]

    def load(self) -> None:
        """Create the detector with all models, gain and frontend settings."""
        try:
            import snowboydetect
        except ImportError as e:
            raise ImportError(_INSTALL_HINT) from e

        resource = self.resource or default_resource_path()
        if not resource.exists():
            raise FileNotFoundError(f"Resource not found: {resource}")
        for model in self.models:
            if not model.file_path.exists():
                raise FileNotFoundError(f"Model not found: {model.file_path}")

        model_str = ",".join(str(m.file_path) for m in self.models)
        sensitivity_str = ",".join(str(m.sensitivity) for m in self.models)

        logger.debug(f"Resource: {resource}")
        logger.debug(f"Audio gain: {self.audio_gain}, apply frontend: {self.apply_frontend}")

        detector = snowboydetect.SnowboyDetect(
            resource_filename=str(resource).encode(),
            model_str=model_str.encode(),
        )
        detector.SetSensitivity(sensitivity_str.encode())
        detector.SetAudioGain(self.audio_gain)
        detector.ApplyFrontend(self.apply_frontend)
        self._detector = detector

        logger.info(f"Snowboy detector loaded: {', '.join(self.labels)}")

    def process(self, chunk: bytes) -> DetectionResult:
        """Run detection on a chunk of PCM16 audio at sample_rate."""
        if self._detector is None:
            raise RuntimeError("Detector not loaded. Call load() first.")

        code = self._detector.RunDetection(chunk)

        if code == RESULT_SILENCE:
            return DetectionResult(silence=True)
        if code == RESULT_ERROR:
            return DetectionResult(error=True)
        if code > RESULT_NONE:
            if code > len(self.models):
                logger.warning(f"Unknown hotword index: {code}")
                return DetectionResult()
            return DetectionResult(label=self.models[code - 1].label)
        return DetectionResult()

    def reset(self) -> None:
        if self._detector is not None:
            self._detector.Reset()
