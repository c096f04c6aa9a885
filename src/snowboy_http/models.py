"""Resolve configured hotwords against the model files on disk."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from snowboy_http.config import AppConfig

logger = logging.getLogger(__name__)

MODEL_EXTENSIONS = (".umdl", ".pmdl")


class NoModelsError(RuntimeError):
    """No model file in the model directory matches a config section."""


@dataclass(frozen=True)
class ModelEntry:
    file_path: Path
    sensitivity: float
    label: str


def match_models(
    filenames: Iterable[str],
    model_dir: str | Path,
    config: AppConfig,
    log: logging.Logger | None = None,
) -> list[ModelEntry]:
    """Build model entries for file names that have a config section.

    Pure: no filesystem access. Order follows ``filenames``.
    """
    log = log or logger
    model_dir = Path(model_dir)
    entries: list[ModelEntry] = []

    for filename in filenames:
        path = Path(filename)
        if path.suffix not in MODEL_EXTENSIONS:
            continue

        label = path.stem
        section = config.section(label)
        if section is None:
            log.warning(f"Skipping model: {filename}")
            continue

        log.debug(f"Loading model: {filename} (sensitivity={section.sensitivity})")
        entries.append(
            ModelEntry(
                file_path=model_dir / filename,
                sensitivity=section.sensitivity,
                label=label,
            )
        )

    return entries


def scan_models(
    model_dir: str | Path,
    config: AppConfig,
    log: logging.Logger | None = None,
) -> list[ModelEntry]:
    """List ``model_dir`` and match its model files against the config.

    Raises:
        OSError: The directory cannot be read.
        NoModelsError: No model file matched a config section.
    """
    log = log or logger
    model_dir = Path(model_dir)
    log.debug(f"Models directory: {model_dir.resolve()}")

    with os.scandir(model_dir) as it:
        filenames = [entry.name for entry in it if entry.is_file()]

    entries = match_models(filenames, model_dir, config, log=log)
    if not entries:
        raise NoModelsError(f"No models found in {model_dir}")
    return entries
