"""
Core functionality for darwincross.

This package contains the foundational modules that other components depend on.
"""

from .exceptions import (
    DarwinCrossError,
    UsageError,
    MissingInputError,
    ConfigError,
    DownloadError,
    ChecksumError,
    CorruptArchiveError,
    UnsupportedArchiveFormat,
    InsecureArchiveError,
    BuildError,
    FilesystemError,
)

from .cache import ArtifactCache

from .process import ProcessResult, run_command, check_command

__all__ = [
    # Exceptions
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
    # Cache
    "ArtifactCache",
    # Processes
    "ProcessResult",
    "run_command",
    "check_command",
]
