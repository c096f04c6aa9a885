"""Base class for hotword detection engines."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of processing one audio chunk."""

    label: str | None = None
    silence: bool = False
    error: bool = False

    @property
    def detected(self) -> bool:
        return self.label is not None


class BaseHotwordEngine(ABC):
    """Common interface for hotword detection backends."""

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """Sample rate the engine expects, in Hz."""

    @property
    def channels(self) -> int:
        return 1

    @abstractmethod
    def load(self) -> None:
        """Load the models."""

    @abstractmethod
    def process(self, chunk: bytes) -> DetectionResult:
        """Process a chunk of PCM16 audio."""

    @abstractmethod
    def reset(self) -> None:
        """Reset detector state."""
