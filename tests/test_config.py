"""Tests for configuration loading and logging setup."""

import logging
from pathlib import Path

from tsgraph_cli import config


def test_defaults_without_file(temp_dir: Path):
    """A missing config file yields the defaults."""
    loaded = config.load_config(temp_dir / "missing.toml")

    assert loaded == config.DEFAULT_CONFIG
    assert loaded is not config.DEFAULT_CONFIG


def test_tsgraph_section_overrides(temp_dir: Path):
    """Keys of the [tsgraph] section override defaults; unknown keys are ignored."""
    path = temp_dir / "config.toml"
    path.write_text('[tsgraph]\nbase = "src"\ntitle = "Web app"\nunknown = 1\n')

    loaded = config.load_config(path)

    assert loaded["base"] == "src"
    assert loaded["title"] == "Web app"
    assert loaded["log_level"] == config.DEFAULT_LOG_LEVEL
    assert "unknown" not in loaded


def test_broken_file_is_ignored(temp_dir: Path, caplog):
    """A malformed file is logged and the defaults are used."""
    path = temp_dir / "config.toml"
    path.write_text("[tsgraph\nbase = \n")

    with caplog.at_level(logging.WARNING, logger="tsgraph_cli.config"):
        loaded = config.load_config(path)

    assert loaded == config.DEFAULT_CONFIG
    assert "Ignoring config file" in caplog.text


def test_log_level_precedence(monkeypatch):
    """The environment wins over the config file."""
    assert config.log_level({"log_level": "info"}) == "INFO"

    monkeypatch.setenv("TSGRAPH_LOG_LEVEL", "debug")
    assert config.log_level({"log_level": "info"}) == "DEBUG"


def test_configure_logging_sets_level():
    """configure_logging applies the named level to the root logger."""
    config.configure_logging("ERROR")
    assert logging.getLogger().level == logging.ERROR

    config.configure_logging("not-a-level")
    assert logging.getLogger().level == logging.WARNING
