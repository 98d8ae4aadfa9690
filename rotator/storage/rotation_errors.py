"""
Error taxonomy for the rotation pipeline.

Fatal errors (ConfigError, ScanIOError, EmptySelectionError, LinkIOError,
RotationLockError) stop a run. ParseError and PruneIOError are collected
per file and the run continues.
"""

from pathlib import Path
from typing import Optional


class RotationError(Exception):
    """Base class for all rotation errors."""


class ConfigError(RotationError):
    """Missing or invalid configuration; raised before any mutation."""


class ScanIOError(RotationError):
    """The source directory could not be listed."""

    def __init__(self, source_dir: Path, cause: Optional[OSError] = None):
        self.source_dir = Path(source_dir)
        self.cause = cause
        message = f"cannot read source directory {self.source_dir}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ParseError(RotationError):
    """A filename matched the backup pattern but its timestamp is invalid."""

    def __init__(self, filename: str, timestamp: str, cause: Optional[Exception] = None):
        self.filename = filename
        self.timestamp = timestamp
        self.cause = cause
        super().__init__(f"cannot parse timestamp {timestamp!r} in {filename}: {cause}")


class EmptySelectionError(RotationError):
    """No file in the source directory matched the backup pattern."""

    def __init__(self, source_dir: Path):
        self.source_dir = Path(source_dir)
        super().__init__(f"no backups found in {self.source_dir}")


class LinkIOError(RotationError):
    """The destination could not be cleared, or a link could not be created."""

    def __init__(self, path: Path, action: str, cause: Optional[OSError] = None):
        self.path = Path(path)
        self.action = action
        self.cause = cause
        super().__init__(f"failed to {action} {self.path}: {cause}")


class PruneIOError(RotationError):
    """A single backup file could not be deleted."""

    def __init__(self, path: Path, cause: Optional[OSError] = None):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"failed to remove {self.path}: {cause}")


class RotationLockError(RotationError):
    """Another rotation run holds the lock."""
