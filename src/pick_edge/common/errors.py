"""Exception hierarchy."""

from __future__ import annotations


class PickEdgeError(Exception):
    """Base class for all pick-edge errors."""


class NoGameHistoryError(PickEdgeError):
    """The history provider returned no games at all for a sport.

    This is the only condition that aborts a pick-generation or backtest run.
    """


class ProviderError(PickEdgeError):
    """An external provider (ratings, angles, matchups) failed."""


class ConfigError(PickEdgeError):
    """The engine configuration file is missing or invalid."""
