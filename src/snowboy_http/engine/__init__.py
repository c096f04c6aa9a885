"""Hotword detection engines."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from snowboy_http.config import GeneralConfig
    from snowboy_http.engine.base import BaseHotwordEngine
    from snowboy_http.models import ModelEntry

logger = logging.getLogger(__name__)


def create_engine(config: GeneralConfig, models: Sequence[ModelEntry]) -> BaseHotwordEngine:
    """Create the detection engine for the given models.

    Args:
        config: General configuration (gain, frontend, resource).
        models: Model entries to load.

    Returns:
        An engine instance (models not yet loaded).
    """
    from snowboy_http.engine.snowboy import SnowboyEngine

    logger.debug(f"Initializing detector with {len(models)} model(s)")
    return SnowboyEngine(
        models=models,
        resource=config.resource,
        audio_gain=config.audio_gain,
        apply_frontend=config.apply_frontend,
    )
