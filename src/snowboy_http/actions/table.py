"""Build the label -> action mapping from the hotword sections."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from snowboy_http.config import AppConfig, ConfigError

logger = logging.getLogger(__name__)

ACTION_GET = "get"
SUPPORTED_ACTIONS = (ACTION_GET,)


class ActionConfigError(ConfigError):
    """A hotword section declares an unusable action."""


@dataclass(frozen=True)
class ActionDescriptor:
    type: str
    url: str


def build_action_table(
    config: AppConfig,
    log: logging.Logger | None = None,
) -> dict[str, ActionDescriptor]:
    """Map each hotword label to its action.

    Sections without an ``action`` are model-only and skipped.

    Raises:
        ActionConfigError: Unsupported action type or missing URL.
    """
    log = log or logger
    log.debug("Loading actions")
    actions: dict[str, ActionDescriptor] = {}

    for name, section in config.hotwords.items():
        if not section.action:
            log.warning(f"Action is not specified: {name}")
            continue

        if section.action not in SUPPORTED_ACTIONS:
            raise ActionConfigError(f"Invalid action: {section.action} ({name})")

        if not section.url:
            raise ActionConfigError(f"URL is not specified: {name}")

        log.debug(f"{name}: {section.action.upper()} {section.url}")
        actions[name] = ActionDescriptor(type=section.action, url=section.url)

    return actions
