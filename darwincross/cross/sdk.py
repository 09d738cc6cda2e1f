"""
Target SDK installation for cross-compilation.

SDK archives are produced on macOS machines and contain absolute symlinks
(``usr/lib/libfoo.dylib -> /usr/lib/libfoo.1.dylib``) that only make sense on
the machine they were packed on. ``normalize_symlinks`` re-roots them under
the installed SDK so they resolve inside the new toolchain tree.
"""

import logging
import os
from pathlib import Path
from typing import List

from darwincross.core.exceptions import FilesystemError
from darwincross.core.filesystem import extract_archive, replace_symlink

logger = logging.getLogger(__name__)


def install_sdk(archive_path: Path, sdk_dir: Path) -> Path:
    """
    Extract the SDK archive straight into the SDK directory.

    The archive is expected to hold ``usr/include`` and ``usr/lib`` at its
    root. Absolute symlinks inside it still point at the packing machine
    until ``normalize_symlinks`` runs.

    Args:
        archive_path: SDK archive
        sdk_dir: Target SDK directory (``cross-toolchain/MacOSX.sdk``)

    Returns:
        The SDK directory

    Raises:
        CorruptArchiveError: If extraction fails
    """
    logger.info(f"Installing SDK from {archive_path}")
    extract_archive(archive_path, sdk_dir)

    if not (sdk_dir / "usr").is_dir():
        logger.warning(f"SDK archive {archive_path.name} has no usr/ directory")

    return sdk_dir


def normalize_symlinks(sdk_root: Path) -> List[Path]:
    """
    Re-root every absolute symlink below ``sdk_root`` under ``sdk_root``.

    A link to ``/usr/lib/libc.dylib`` becomes a link to
    ``<sdk_root>/usr/lib/libc.dylib``. Relative links, links already pointing
    inside ``sdk_root`` and non-link entries are left alone, which makes a
    second pass a no-op.

    Args:
        sdk_root: Absolute path of the installed SDK

    Returns:
        Paths of the links that were rewritten

    Raises:
        FilesystemError: If a link cannot be read or replaced
    """
    sdk_root = Path(sdk_root)
    if not sdk_root.is_absolute():
        raise ValueError(f"SDK root must be absolute: {sdk_root}")

    root_prefix = str(sdk_root).rstrip("/") + "/"
    rewritten = []

    for dirpath, dirnames, filenames in os.walk(sdk_root):
        # os.walk lists directory symlinks in dirnames without descending
        for name in dirnames + filenames:
            link = Path(dirpath) / name
            if not link.is_symlink():
                continue

            try:
                target = os.readlink(link)
            except OSError as e:
                raise FilesystemError(f"Cannot read symlink {link}: {e}") from e

            if not target.startswith("/") or target.startswith(root_prefix):
                continue

            new_target = str(sdk_root) + target
            try:
                replace_symlink(link, new_target)
            except OSError as e:
                raise FilesystemError(
                    f"Cannot rewrite symlink {link} -> {target}: {e}"
                ) from e

            logger.debug(f"Rewrote {link}: {target} -> {new_target}")
            rewritten.append(link)

    return rewritten
