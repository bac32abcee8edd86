"""
Error Taxonomy for FsGuard.

Only a rejected settings update is raised to the caller. Read failures,
persistence failures and scan failures are recovered locally and surfaced
through the PolicyStore error channel or as empty results.
"""

from typing import Optional


class FsGuardError(Exception):
    """Base class for all FsGuard errors."""


class InvalidSettingsError(FsGuardError):
    """
    Raised when a candidate policy fails validation.

    Carries every accumulated violation, not just the first.
    """

    def __init__(self, errors: list[str], warnings: Optional[list[str]] = None):
        self.errors = list(errors)
        self.warnings = list(warnings or [])
        super().__init__(f"Invalid settings: {', '.join(self.errors)}")


class ConfigReadError(FsGuardError):
    """A configuration source could not be read."""

    def __init__(self, source: str, original: Optional[BaseException] = None):
        self.source = source
        self.original = original
        detail = f": {original}" if original is not None else ""
        super().__init__(f"Failed to read configuration from {source}{detail}")


class ConfigWriteError(FsGuardError):
    """A validated update could not be persisted to its source."""

    def __init__(self, source: str, original: Optional[BaseException] = None):
        self.source = source
        self.original = original
        detail = f": {original}" if original is not None else ""
        super().__init__(f"Failed to persist configuration to {source}{detail}")


class SubscriberError(FsGuardError):
    """A change subscriber raised while being notified."""

    def __init__(self, original: BaseException):
        self.original = original
        super().__init__(f"Settings subscriber failed: {original}")


class InvalidPatchError(FsGuardError):
    """A unified diff could not be parsed."""
