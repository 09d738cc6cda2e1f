"""
Centralized exception hierarchy for darwincross.

Every failure during provisioning is fatal. The exceptions below only
exist so the CLI can tell the failing step apart and pick an exit status.
"""

from pathlib import Path
from typing import Optional, Sequence


# ============================================================================
# Base Exceptions
# ============================================================================


class DarwinCrossError(Exception):
    """Base exception for all darwincross errors."""

    pass


# ============================================================================
# Input Exceptions
# ============================================================================


class UsageError(DarwinCrossError):
    """Raised when the tool is invoked with the wrong number of arguments."""

    pass


class MissingInputError(DarwinCrossError):
    """Raised when an input archive does not exist or is not a regular file."""

    def __init__(self, argument: str, path: Path):
        self.argument = argument
        self.path = path
        super().__init__(f"{argument} archive not found: {path}")


class ConfigError(DarwinCrossError):
    """Configuration parsing or validation error."""

    pass


# ============================================================================
# Fetch / Extract Exceptions
# ============================================================================


class DownloadError(DarwinCrossError):
    """Exception raised when download fails."""

    pass


class ChecksumError(DownloadError):
    """Exception raised when checksum verification fails."""

    pass


class CorruptArchiveError(DarwinCrossError):
    """Failed to extract an archive."""

    pass


class UnsupportedArchiveFormat(CorruptArchiveError):
    """Archive format is not supported."""

    pass


class InsecureArchiveError(CorruptArchiveError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


# ============================================================================
# Build / Filesystem Exceptions
# ============================================================================


class BuildError(DarwinCrossError):
    """Raised when an external configure/build/install step fails."""

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        output: str = "",
    ):
        self.command = list(command) if command else []
        self.returncode = returncode
        self.output = output
        super().__init__(message)


class FilesystemError(DarwinCrossError):
    """Base exception for filesystem operations."""

    pass


__all__ = [
    "DarwinCrossError",
    "UsageError",
    "MissingInputError",
    "ConfigError",
    "DownloadError",
    "ChecksumError",
    "CorruptArchiveError",
    "UnsupportedArchiveFormat",
    "InsecureArchiveError",
    "BuildError",
    "FilesystemError",
]
