"""
Exceptions raised by the sharkviz pipeline.

- SourceUnavailable: a required input could not be fetched or parsed; fatal to a run.
- DependencyMissing: an optional library needed by a single view is not importable.
- ConfigError: invalid settings (bad integer in an env override, empty year range).

Rejected rows and classification fallbacks are not exceptions: the loader counts
dropped rows and the classifier returns the unknown sentinel.
"""

from __future__ import annotations


class SharkVizError(Exception):
    """Base class for pipeline errors."""


class SourceUnavailable(SharkVizError):
    def __init__(self, name: str, location: str, reason: str = "") -> None:
        self.name = name
        self.location = location
        self.reason = reason
        msg = f"Source '{name}' unavailable at {location}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class DependencyMissing(SharkVizError):
    """
    Raised when an optional module cannot be imported.

    Notes:
        Only the view that needs the module is affected; callers catch this
        and put that view in an error state.
    """

    def __init__(self, module: str, purpose: str = "") -> None:
        self.module = module
        self.purpose = purpose
        msg = f"{module} is required"
        if purpose:
            msg = f"{msg} to {purpose}"
        super().__init__(msg)


class ConfigError(SharkVizError):
    """Raised when settings are invalid."""
