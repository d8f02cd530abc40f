"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A proxy connection or reconcile setting has an unusable value."""


class MissingConfigurationError(ConfigurationError):
    """Required proxy settings are absent or blank."""
