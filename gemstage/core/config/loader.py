"""
Configuration loader — reads gemstage.yml into a GemstageConfig.

The file is optional.  When present it is parsed with PyYAML and
validated against the pydantic model; errors surface as ConfigError.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from gemstage.core.models.config import GemstageConfig

logger = logging.getLogger(__name__)

CONFIG_FILE = "gemstage.yml"


class ConfigError(Exception):
    """Raised when gemstage.yml exists but cannot be used."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for gemstage.yml starting from ``start_dir``, walking up.

    Returns:
        Path to the config file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_config(path: Path | None = None) -> GemstageConfig:
    """Load gemstage settings.

    Args:
        path: Explicit config path. If None, searches upward from cwd
            and falls back to defaults when nothing is found.

    Raises:
        ConfigError: If an explicit path is missing, or the file is invalid.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            logger.debug("No %s found, using defaults", CONFIG_FILE)
            return GemstageConfig()
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading gemstage config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return GemstageConfig()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Settings may be nested under a "gemstage" key
    settings = data.get("gemstage", data)
    if not isinstance(settings, dict):
        raise ConfigError(f"Expected 'gemstage' to be a mapping in {path}")

    try:
        config = GemstageConfig.model_validate(settings)
    except ValidationError as e:
        raise ConfigError(f"Invalid gemstage configuration: {e}") from e

    return config
