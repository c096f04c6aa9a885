"""Tests for configuration loading."""

import pytest

from snowboy_http.config import (
    AppConfig,
    ConfigError,
    ConfigParseError,
    ConfigValidationError,
    GeneralConfig,
    load_config,
    parse_config,
)


def write_config(tmp_path, text):
    path = tmp_path / "snowboy-http.conf"
    path.write_text(text)
    return path


def test_general_defaults():
    """GeneralConfig should have documented defaults."""
    general = GeneralConfig()
    assert general.model_dir == "models"
    assert general.audio_gain == 1.0
    assert general.apply_frontend is True
    assert general.resource is None
    assert general.http_timeout == 5.0


def test_empty_config_uses_defaults():
    config = parse_config({})
    assert config.general.model_dir == "models"
    assert config.hotwords == {}


def test_load_config(tmp_path):
    path = write_config(tmp_path, """
[general]
model_dir = "my_models"
audio_gain = 2.0

[hello]
sensitivity = 0.6
action = "get"
url = "http://localhost:9/ping"

[snowboy]
""")
    config = load_config(path)
    assert config.general.model_dir == "my_models"
    assert config.general.audio_gain == 2.0
    assert list(config.hotwords) == ["hello", "snowboy"]

    hello = config.section("hello")
    assert hello.sensitivity == 0.6
    assert hello.action == "get"
    assert hello.url == "http://localhost:9/ping"

    snowboy = config.section("snowboy")
    assert snowboy.sensitivity == 0.5
    assert snowboy.action is None
    assert snowboy.url is None


def test_apply_frontend_false_is_honored(tmp_path):
    path = write_config(tmp_path, "[general]\napply_frontend = false\n")
    assert load_config(path).general.apply_frontend is False


def test_general_not_required(tmp_path):
    path = write_config(tmp_path, '[hello]\naction = "get"\nurl = "http://x"\n')
    config = load_config(path)
    assert config.general.model_dir == "models"
    assert "general" not in config.hotwords


def test_section_lookup_missing():
    assert AppConfig().section("nope") is None


def test_parse_error(tmp_path):
    """Malformed TOML should raise ConfigParseError."""
    path = write_config(tmp_path, "[general\nmodel_dir = ")
    with pytest.raises(ConfigParseError):
        load_config(path)


def test_missing_file_is_parse_error(tmp_path):
    with pytest.raises(ConfigParseError, match="Unable to read"):
        load_config(tmp_path / "missing.conf")


def test_sensitivity_out_of_range(tmp_path):
    """Schema violations should raise ConfigValidationError, not a parse error."""
    path = write_config(tmp_path, "[hello]\nsensitivity = 1.5\n")
    with pytest.raises(ConfigValidationError):
        load_config(path)


def test_wrong_type(tmp_path):
    path = write_config(tmp_path, '[general]\naudio_gain = "loud"\n')
    with pytest.raises(ConfigValidationError):
        load_config(path)


def test_section_must_be_table():
    with pytest.raises(ConfigValidationError, match="must be a table"):
        parse_config({"hello": 1})


def test_general_must_be_table():
    with pytest.raises(ConfigValidationError, match="must be a table"):
        parse_config({"general": "models"})


def test_errors_share_base_class():
    assert issubclass(ConfigParseError, ConfigError)
    assert issubclass(ConfigValidationError, ConfigError)
