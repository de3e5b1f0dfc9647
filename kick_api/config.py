"""Configuration management."""

from pathlib import Path
from typing import Optional

import yaml

from kick_api.models import Config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from YAML file, falling back to defaults."""
    if config_path is None:
        config_path = Path("config.yaml")

    if not config_path.exists():
        return Config()

    with open(config_path) as f:
        data = yaml.safe_load(f)

    # An empty file loads as None
    return Config(**(data or {}))
