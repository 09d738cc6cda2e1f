"""
Installation of the Swift toolchain bundles into the xctoolchain directory.

Each bundle is unpacked into a scratch directory first; only the configured
subtrees are then overlaid onto ``swift.xctoolchain``. The scratch directory
is removed whether the merge succeeds or not.
"""

import logging
from pathlib import Path
from typing import Sequence

from darwincross.core.exceptions import FilesystemError
from darwincross.core.filesystem import extract_archive, merge_tree, temporary_directory

logger = logging.getLogger(__name__)


def install_bundle(
    archive_path: Path,
    xctoolchain_dir: Path,
    subpaths: Sequence[str],
    scratch_parent: Path,
) -> int:
    """
    Extract a toolchain bundle and merge selected subtrees into the toolchain.

    Args:
        archive_path: Bundle archive
        xctoolchain_dir: ``cross-toolchain/swift.xctoolchain``
        subpaths: Bundle-relative directories to merge (e.g. ``usr``); each
            lands at the same relative path under ``xctoolchain_dir``
        scratch_parent: Directory scratch space is created in

    Returns:
        Number of files and links merged

    Raises:
        CorruptArchiveError: If extraction fails
        FilesystemError: If a subpath is missing from the bundle or the merge fails

    Example:
        >>> install_bundle(
        ...     Path("swift-5.9-ubuntu22.04.tar.gz"),
        ...     layout.xctoolchain_dir,
        ...     ["usr"],
        ...     layout.destination,
        ... )
    """
    logger.info(f"Installing toolchain bundle {archive_path.name}")

    with temporary_directory(prefix=".bundle-", parent=scratch_parent) as scratch:
        extract_archive(archive_path, scratch)
        bundle_root = _bundle_root(scratch)

        merged = 0
        for subpath in subpaths:
            source = bundle_root / subpath
            if not source.is_dir():
                raise FilesystemError(
                    f"{subpath} not found in toolchain bundle {archive_path}"
                )
            logger.debug(f"Merging {subpath} from {archive_path.name}")
            merged += merge_tree(source, xctoolchain_dir / subpath)

    logger.info(f"Merged {merged} file(s) from {archive_path.name}")
    return merged


def _bundle_root(scratch: Path) -> Path:
    """
    Return the directory holding the bundle's ``usr`` tree.

    Release tarballs wrap everything in a single ``swift-<version>-<os>/``
    directory; bundles packed by hand usually do not.
    """
    if (scratch / "usr").is_dir():
        return scratch

    entries = [entry for entry in scratch.iterdir() if not entry.name.startswith(".")]
    if len(entries) == 1 and entries[0].is_dir() and not entries[0].is_symlink():
        return entries[0]

    return scratch
