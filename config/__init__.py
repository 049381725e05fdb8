"""
Configuration loading utilities for ZERO-BOT.

Registries live next to this module as YAML:
- dexes.yaml: venues per chain
- tokens.yaml: assets per chain
- strategy.yaml: pairs, base asset, execution constants
"""

from pathlib import Path
from typing import Any, Dict

import yaml


CONFIG_DIR = Path(__file__).parent


def load_yaml(filename: str, config_dir: Path | None = None) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        filename: Name of file in config directory
        config_dir: Directory override (tests)

    Returns:
        Parsed YAML as dict
    """
    filepath = (config_dir or CONFIG_DIR) / filename
    if not filepath.exists():
        raise FileNotFoundError(f"Config file not found: {filepath}")

    with open(filepath, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_dexes(config_dir: Path | None = None) -> Dict[str, Any]:
    """Load DEXes configuration."""
    return load_yaml("dexes.yaml", config_dir)


def load_token_registry(config_dir: Path | None = None) -> Dict[str, Any]:
    """Load token registry."""
    return load_yaml("tokens.yaml", config_dir)


def load_strategy(config_dir: Path | None = None) -> Dict[str, Any]:
    """Load strategy configuration."""
    return load_yaml("strategy.yaml", config_dir)
