"""
File system utilities for darwincross.

This module provides the file operations the provisioning pipeline is built on:
- Archive extraction (tar, tar.gz, tar.xz, tar.bz2, zip)
- Overlay merging of directory trees (attributes and symlinks preserved)
- Safe file operations (atomic writes, safe deletion)
- Scratch directories with guaranteed cleanup
"""

import os
import shutil
import tarfile
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from darwincross.core.exceptions import (
    CorruptArchiveError,
    FilesystemError,
    InsecureArchiveError,
    UnsupportedArchiveFormat,
)


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to parent.

    Example:
        >>> is_relative_to(Path('/a/b/c'), Path('/a'))
        True
        >>> is_relative_to(Path('/a/b/c'), Path('/x'))
        False
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def absolute_path(path: Union[str, Path], base: Optional[Path] = None) -> Path:
    """
    Make a path absolute against ``base`` without resolving symlinks.

    Args:
        path: Path as given by the user
        base: Directory relative paths are anchored at (default: cwd)

    Returns:
        Absolute, lexically normalized path
    """
    path = Path(path).expanduser()
    if not path.is_absolute():
        path = Path(base or Path.cwd()) / path
    return Path(os.path.normpath(path))


# ============================================================================
# Archive Extraction
# ============================================================================

_TAR_MODES = {
    (".tar.gz", ".tgz"): "r:gz",
    (".tar.xz", ".txz"): "r:xz",
    (".tar.bz2", ".tbz2"): "r:bz2",
    (".tar",): "r:",
}


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = Path(os.path.normpath(destination / path.lstrip("/")))

    if not is_relative_to(member_path, Path(os.path.normpath(destination))):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def extract_archive(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
) -> None:
    """
    Extract an archive to a destination directory.

    The format is detected from the file name. Member names are validated
    against directory traversal; symlink targets are extracted verbatim,
    absolute ones included.

    Supported formats:
    - .tar, .tar.gz/.tgz, .tar.xz/.txz, .tar.bz2/.tbz2
    - .zip

    Args:
        archive_path: Path to the archive file
        destination: Directory to extract to (created if absent)

    Raises:
        UnsupportedArchiveFormat: If archive format is not recognized
        CorruptArchiveError: If extraction fails
        InsecureArchiveError: If archive contains malicious paths

    Example:
        >>> extract_archive('MacOSX.sdk.tar.xz', '/tmp/out/MacOSX.sdk')
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.is_file():
        raise CorruptArchiveError(f"Archive not found: {archive_path}")

    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Failed to create {destination}: {e}") from e

    archive_name = archive_path.name.lower()

    try:
        if archive_name.endswith(".zip"):
            _extract_zip(archive_path, destination)
            return

        for suffixes, mode in _TAR_MODES.items():
            if archive_name.endswith(suffixes):
                _extract_tar(archive_path, destination, mode)
                return

        raise UnsupportedArchiveFormat(
            f"Unsupported archive format: {archive_path.name}. "
            "Supported: .tar, .tar.gz, .tar.xz, .tar.bz2, .zip"
        )
    except CorruptArchiveError:
        raise
    except Exception as e:
        raise CorruptArchiveError(f"Failed to extract {archive_path}: {e}") from e


def _extract_zip(archive_path: Path, destination: Path) -> None:
    """Extract a ZIP archive."""
    with zipfile.ZipFile(archive_path, "r") as zf:
        for member in zf.namelist():
            _validate_archive_path(member, destination)

        zf.extractall(destination)


def _extract_tar(archive_path: Path, destination: Path, mode: str) -> None:
    """Extract a tar archive with specified compression."""
    with tarfile.open(archive_path, mode) as tar:
        for member in tar.getmembers():
            _validate_archive_path(member.name, destination)

        # The "data" filter refuses absolute symlink targets, which SDK
        # archives are full of; "tar" keeps them and still blocks traversal.
        if hasattr(tarfile, "tar_filter"):
            tar.extractall(destination, filter="tar")
        else:
            tar.extractall(destination)


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    Example:
        >>> atomic_write('macos-destination.json', '{"version": 1}')
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails

    Example:
        >>> safe_rmtree('/tmp/out/cross-toolchain', require_prefix='/tmp/out')
    """
    path = Path(path).absolute()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).absolute()
        if not is_relative_to(path, require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists() and not path.is_symlink():
        return

    if path.is_symlink() or not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        shutil.rmtree(path)
    except Exception as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def merge_tree(source: Union[str, Path], destination: Union[str, Path]) -> int:
    """
    Overlay-copy a directory tree onto another one.

    Files from ``source`` replace same-named files in ``destination``;
    destination entries that do not exist in ``source`` are kept. File
    metadata is preserved and symlinks are copied as symlinks.

    Args:
        source: Source directory
        destination: Destination directory (created if absent)

    Returns:
        Number of files and links copied

    Raises:
        FilesystemError: If the source is missing or copying fails

    Example:
        >>> merge_tree('/tmp/bundle/usr', '/out/swift.xctoolchain/usr')
    """
    source = Path(source)
    destination = Path(destination)

    if not source.is_dir():
        raise FilesystemError(f"Merge source is not a directory: {source}")

    copied = 0
    try:
        destination.mkdir(parents=True, exist_ok=True)
        for root, dirs, files in os.walk(source):
            root_path = Path(root)
            target_root = destination / root_path.relative_to(source)

            # Directory symlinks show up in dirs; copy them as links and
            # keep os.walk from descending into them.
            for name in list(dirs):
                item = root_path / name
                if item.is_symlink():
                    dirs.remove(name)
                    _copy_link(item, target_root / name)
                    copied += 1
                else:
                    _ensure_real_directory(target_root / name)

            for name in files:
                item = root_path / name
                dest_item = target_root / name
                if item.is_symlink():
                    _copy_link(item, dest_item)
                else:
                    if dest_item.is_symlink():
                        dest_item.unlink()
                    elif dest_item.is_dir():
                        raise FilesystemError(
                            f"Cannot replace directory {dest_item} with file {item}"
                        )
                    shutil.copy2(item, dest_item)
                copied += 1

            shutil.copystat(root_path, target_root, follow_symlinks=False)
    except OSError as e:
        raise FilesystemError(
            f"Failed to merge {source} into {destination}: {e}"
        ) from e

    return copied


def _ensure_real_directory(path: Path) -> None:
    if path.is_symlink() or (path.exists() and not path.is_dir()):
        path.unlink()
    path.mkdir(exist_ok=True)


def _copy_link(link: Path, dest_item: Path) -> None:
    replace_symlink(dest_item, os.readlink(link))


def replace_symlink(link_path: Path, target: Union[str, Path]) -> None:
    """
    Point ``link_path`` at ``target``, replacing whatever is there.

    Directories at ``link_path`` are removed first.
    """
    if link_path.is_symlink() or link_path.is_file():
        link_path.unlink()
    elif link_path.is_dir():
        shutil.rmtree(link_path)
    os.symlink(target, link_path)


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists (idempotent).

    Raises:
        FilesystemError: If the directory cannot be created
    """
    path = Path(path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Could not create directory {path}: {e}") from e
    return path


# ============================================================================
# Temporary File/Directory Management
# ============================================================================


@contextmanager
def temporary_directory(
    prefix: str = "darwincross_", parent: Optional[Path] = None
) -> Iterator[Path]:
    """
    Context manager for a scratch directory removed on exit, even on error.

    Args:
        prefix: Prefix for temp directory name
        parent: Directory to create the scratch directory in (default: system temp)

    Example:
        >>> with temporary_directory() as tmp:
        ...     extract_archive('bundle.tar.gz', tmp)
    """
    if parent is not None:
        ensure_directory(parent)
    try:
        temp_dir = Path(tempfile.mkdtemp(prefix=prefix, dir=parent))
    except OSError as e:
        raise FilesystemError(f"Could not create scratch directory: {e}") from e

    try:
        yield temp_dir
    finally:
        if temp_dir.exists():
            safe_rmtree(temp_dir)


__all__ = [
    "is_relative_to",
    "absolute_path",
    "extract_archive",
    "atomic_write",
    "safe_rmtree",
    "merge_tree",
    "replace_symlink",
    "ensure_directory",
    "temporary_directory",
]
