"""YAML loading utilities for generator configuration and schema snapshots."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError


def load_yaml_mapping(path: Path) -> dict[str, Any]:
    """Load a YAML file whose root must be a mapping.

    Args:
        path: Path to the YAML file.

    Returns:
        The parsed mapping.

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Failed to read file: {e}", str(path)) from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML: {e}", str(path)) from e

    if not isinstance(data, dict):
        raise ConfigurationError("Root must be a mapping", str(path))

    return data

