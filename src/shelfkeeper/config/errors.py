"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when a setting is present but cannot be used."""


class MissingConfigurationError(ConfigurationError):
    """Raised when a setting an operation depends on is absent or blank."""
