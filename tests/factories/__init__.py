"""
Test Factories Module

Centralized factory functions for creating test objects.
Provides DRY utilities for config fixtures and in-memory images.
"""

from .config_factories import make_config, temp_config_file
from .image_factories import (
    BLUE,
    GREEN,
    RED,
    decode,
    make_image,
    make_image_bytes,
    make_settings,
    write_image,
)

__all__ = [
    "BLUE",
    "GREEN",
    "RED",
    "decode",
    "make_config",
    "make_image",
    "make_image_bytes",
    "make_settings",
    "temp_config_file",
    "write_image",
]
