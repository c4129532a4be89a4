"""
Utilities Package

Common utilities and helper functions for the badge renderer.
"""

from .errors import BadgeComposeError, BotError, ConfigError, InvalidGeometry
from .logging import get_logger, setup_logging, shutdown_logging

__all__ = [
    "BadgeComposeError",
    "BotError",
    "ConfigError",
    "InvalidGeometry",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
]
