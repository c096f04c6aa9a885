"""Configuration system: TOML file -> pydantic models with defaults."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

APP_NAME = "snowboy-http"
DEFAULT_CONFIG_PATH = Path(f"{APP_NAME}.conf")

GENERAL_SECTION = "general"


class ConfigError(Exception):
    """Base class for fatal configuration problems."""


class ConfigParseError(ConfigError):
    """The config file could not be read or is not valid TOML."""


class ConfigValidationError(ConfigError):
    """The config file parsed but does not match the schema."""


class GeneralConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", protected_namespaces=())

    model_dir: str = "models"
    audio_gain: float = 1.0
    apply_frontend: bool = True
    resource: str | None = None  # engine resource file (common.res)
    device: str | int | None = None  # sounddevice input device
    sample_rate: int | None = None  # capture rate, defaults to the engine rate
    block_ms: int = Field(default=100, gt=0)
    http_timeout: float = Field(default=5.0, gt=0)
    log_file: str | None = None


class HotwordConfig(BaseModel):
    """A hotword section: model settings and/or an action."""

    model_config = ConfigDict(extra="ignore")

    sensitivity: float = Field(default=0.5, ge=0.0, le=1.0)
    action: str | None = None
    url: str | None = None


class AppConfig(BaseModel):
    """Full application configuration."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    hotwords: dict[str, HotwordConfig] = Field(default_factory=dict)

    def section(self, name: str) -> HotwordConfig | None:
        return self.hotwords.get(name)


def _load_toml(path: Path) -> dict[str, Any]:
    """Read and parse a TOML file, mapping failures to ConfigParseError."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid config file {path}: {e}") from e
    except OSError as e:
        raise ConfigParseError(f"Unable to read config file {path}: {e}") from e


def parse_config(data: dict[str, Any]) -> AppConfig:
    """Build an AppConfig from an already parsed mapping.

    The ``general`` table holds global settings; every other table is a
    hotword section.
    """
    general = data.get(GENERAL_SECTION, {})
    if not isinstance(general, dict):
        raise ConfigValidationError(f"[{GENERAL_SECTION}] must be a table")

    hotwords: dict[str, Any] = {}
    for name, body in data.items():
        if name == GENERAL_SECTION:
            continue
        if not isinstance(body, dict):
            raise ConfigValidationError(f"[{name}] must be a table")
        hotwords[name] = body

    try:
        return AppConfig(general=general, hotwords=hotwords)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid configuration: {e}") from e


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load the TOML config file and apply defaults.

    Args:
        config_path: Path to the config file. Defaults to
            ``snowboy-http.conf`` in the working directory.

    Raises:
        ConfigParseError: File missing, unreadable or not valid TOML.
        ConfigValidationError: File parsed but violates the schema.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    return parse_config(_load_toml(path))
