"""Relay exception hierarchy."""

from __future__ import annotations


class RelayError(Exception):
    """Base class for relay errors."""


class ConfigurationError(RelayError):
    """Required configuration is missing or invalid. Fatal at startup."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required settings: {', '.join(missing)}")


class SubscriptionError(RelayError):
    """A change-feed or broadcast subscription failed or died."""
