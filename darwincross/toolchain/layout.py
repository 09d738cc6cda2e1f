"""
Directory layout of a provisioned cross toolchain.

Layout (relative to the destination directory):
    cache/                              : downloaded artifacts, kept across runs
    cross-toolchain/                    : recreated on every run
        MacOSX.sdk/                     : target SDK (headers, libraries)
        swift.xctoolchain/usr/bin/      : compiler driver, ld64, ld, dsymutil stub
        swift.xctoolchain/usr/lib/swift/: runtime libraries
        macos-destination.json          : descriptor for the downstream build
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from darwincross.config.parser import ProvisionConfig
from darwincross.core.filesystem import ensure_directory, safe_rmtree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolchainLayout:
    """Absolute paths of every directory the pipeline writes to."""

    destination: Path
    root: Path
    sdk_dir: Path
    xctoolchain_dir: Path
    cache_dir: Path
    descriptor_path: Path

    @classmethod
    def for_destination(
        cls, destination: Path, config: ProvisionConfig
    ) -> "ToolchainLayout":
        destination = Path(destination)
        if not destination.is_absolute():
            raise ValueError(f"Destination must be absolute: {destination}")

        root = destination / config.toolchain_dir_name
        return cls(
            destination=destination,
            root=root,
            sdk_dir=root / config.sdk_dir_name,
            xctoolchain_dir=root / config.xctoolchain_dir_name,
            cache_dir=destination / "cache",
            descriptor_path=root / config.descriptor_name,
        )

    @property
    def usr_dir(self) -> Path:
        return self.xctoolchain_dir / "usr"

    @property
    def bin_dir(self) -> Path:
        return self.usr_dir / "bin"

    def recreate(self) -> None:
        """
        Remove any previous toolchain tree and create an empty one.

        The cache directory is left alone.

        Raises:
            FilesystemError: If removal or creation fails
        """
        if self.root.exists() or self.root.is_symlink():
            logger.info(f"Removing previous toolchain at {self.root}")
            safe_rmtree(self.root, require_prefix=self.destination)

        for directory in (self.sdk_dir, self.bin_dir, self.cache_dir):
            ensure_directory(directory)
