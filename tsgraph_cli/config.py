"""Configuration for tsgraph: home directory, TOML overrides and logging."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List

import toml

logger = logging.getLogger(__name__)

BASE_DIR = Path(os.environ.get("TSGRAPH_HOME", str(Path.home() / ".tsgraph"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

# Suffixes tried, in order, when resolving an import specifier.
EXTENSIONS: List[str] = ["", ".ts", ".js", ".jsx", ".tsx"]

DEFAULT_TITLE = "Typescript project"
DEFAULT_LOG_LEVEL = "WARNING"

UML_HEADER: List[str] = [
    "@startuml dependencies",
    "' title <title> Dependency Graph",
    "skinparam shadowing false",
    "scale 0.8",
    "skinparam packageStyle Rectangle",
]
UML_FOOTER: List[str] = ["@enduml"]

DEFAULT_CONFIG: Dict[str, Any] = {
    "base": "",
    "title": DEFAULT_TITLE,
    "log_level": DEFAULT_LOG_LEVEL,
}


def load_config(config_file: Path | None = None) -> Dict[str, Any]:
    """Load the ``[tsgraph]`` section of the TOML config.

    Returns:
        Defaults merged with whatever the file sets. A missing file yields
        the defaults; an unreadable one is logged and ignored.
    """
    path = config_file or CONFIG_FILE
    merged = DEFAULT_CONFIG.copy()
    if not path.exists():
        return merged

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring config file %s: %s", path, exc)
        return merged

    section = data.get("tsgraph", {})
    for key in DEFAULT_CONFIG:
        if key in section:
            merged[key] = section[key]
    return merged


def log_level(config: Dict[str, Any] | None = None) -> str:
    """Effective log level: environment first, then config file, then default."""
    env_level = os.environ.get("TSGRAPH_LOG_LEVEL")
    if env_level:
        return env_level.upper()
    config = config if config is not None else load_config()
    return str(config.get("log_level", DEFAULT_LOG_LEVEL)).upper()


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Send log records to stderr so report output on stdout stays clean."""
    numeric = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
        level=numeric,
        force=True,
    )
