"""Shared utilities for the ORM generator."""

from .config_loader import load_yaml_mapping
from .errors import (
    OrmGenError,
    ConfigurationError,
    TransportError,
    FilesystemError,
    MalformedFunctionSignature,
)

__all__ = [
    # YAML loading
    "load_yaml_mapping",
    # Errors
    "OrmGenError",
    "ConfigurationError",
    "TransportError",
    "FilesystemError",
    "MalformedFunctionSignature",
]
