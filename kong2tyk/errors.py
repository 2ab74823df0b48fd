"""Exception taxonomy for a migration run.

Per-record and per-unit errors are collected into the BatchResult; only
ConfigError, ExportError and TransportFailure end a run early.
"""
from typing import Any, Optional


class MigrationError(RuntimeError):
    """Base class for every error raised by kong2tyk."""


class ConfigError(MigrationError):
    """Required configuration is missing or invalid."""


class ExportError(MigrationError):
    """The deck export failed or produced an unreadable dump."""


class TransformError(MigrationError):
    """A single source record could not be turned into a unit."""

    def __init__(self, identifier: str, message: str) -> None:
        super().__init__(f"{identifier}: {message}")
        self.identifier = identifier
        self.message = message


class DuplicateTitleError(TransformError):
    """Two definitions resolve to the same unit key."""


class ExistenceCheckError(MigrationError):
    """The Tyk API could not say whether a definition already exists."""


class TransportFailure(MigrationError):
    """The Tyk Dashboard could not be reached (connection error, timeout)."""

    def __init__(self, message: str, result: Optional[Any] = None) -> None:
        super().__init__(message)
        self.result = result


__all__ = [
    "MigrationError",
    "ConfigError",
    "ExportError",
    "TransformError",
    "DuplicateTitleError",
    "ExistenceCheckError",
    "TransportFailure",
]
