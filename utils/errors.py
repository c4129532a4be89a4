"""
Custom exception classes for the badge renderer.

These provide a hierarchy of typed exceptions for better error handling.
"""


class BotError(Exception):
    """Base exception for renderer-related errors."""

    pass


class ConfigError(BotError):
    """Exception raised for configuration-related errors."""

    pass


class BadgeComposeError(BotError):
    """Exception raised when a badge cannot be composed from the given inputs."""

    pass


class InvalidGeometry(BotError, ValueError):
    """Exception raised for arc geometry that cannot be laid out (e.g. radius <= 0)."""

    pass
