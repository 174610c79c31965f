# PATH: config/__init__.py
"""
Configuration loading utilities for flasharb.
"""

from pathlib import Path
from typing import Any, Dict

import yaml

from core.exceptions import ConfigError


CONFIG_DIR = Path(__file__).parent
DEFAULT_ENGINE_CONFIG = CONFIG_DIR / "engine.yaml"


def load_yaml(filename: str | Path) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        filename: Name of file in config directory, or an explicit path

    Returns:
        Parsed YAML as dict

    Raises:
        ConfigError: file missing, unparseable, or not a mapping
    """
    filepath = Path(filename)
    if not filepath.is_absolute() and not filepath.exists():
        filepath = CONFIG_DIR / filename
    if not filepath.exists():
        raise ConfigError(f"Config file not found: {filepath}", {"path": str(filepath)})

    try:
        with open(filepath, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed YAML in {filepath}: {e}", {"path": str(filepath)})

    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {filepath} must be a mapping", {"path": str(filepath)})
    return data


def load_engine() -> Dict[str, Any]:
    """Load the bundled engine configuration."""
    return load_yaml(DEFAULT_ENGINE_CONFIG)
