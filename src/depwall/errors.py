"""Exception hierarchy shared by the graph builder, rule loader and CLI."""

from __future__ import annotations


class DepwallError(Exception):
    """Base class for every fatal depwall error."""


class ConfigError(DepwallError):
    """Raised when the rule file is missing, unreadable or malformed."""


class PatternError(ConfigError):
    """Raised when a selector or dependency pattern cannot be compiled."""


class ResolutionError(DepwallError):
    """Raised when a module reachable from the project root cannot be resolved."""
