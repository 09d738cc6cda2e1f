"""
Download cache for provisioning artifacts.

Cache entries live at ``<cache_dir>/<key>``. An entry, once present, is
trusted and reused forever: it is never re-validated or re-downloaded, so
provisioning keeps working offline after the first run. A checksum, when
given, is only checked while downloading.

Usage:
    from darwincross.core.cache import ArtifactCache

    cache = ArtifactCache(destination / "cache")
    archive = cache.fetch(url, "cctools-port-1010.6-ld64-951.9.tar.gz")
"""

import logging
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout as LockTimeout

from darwincross.core.download import DownloadProgress, download_file
from darwincross.core.exceptions import DownloadError
from darwincross.core.filesystem import ensure_directory

logger = logging.getLogger(__name__)


class ArtifactCache:
    """
    Key-addressed cache of downloaded files.

    A ``filelock.FileLock`` beside the cache directory keeps two runs
    sharing it from downloading at once; the cache directory itself only
    ever holds finished entries.

    Attributes:
        cache_dir: Directory holding cache entries
        lock_timeout: Seconds to wait for another process holding the lock
    """

    def __init__(
        self,
        cache_dir: Path,
        lock_timeout: float = 600,
        download_timeout: int = 60,
    ):
        self.cache_dir = Path(cache_dir)
        self.lock_timeout = lock_timeout
        self.download_timeout = download_timeout

    @property
    def lock_path(self) -> Path:
        return self.cache_dir.with_name(f".{self.cache_dir.name}.lock")

    def path_for(self, key: str) -> Path:
        """
        Get the cache path for a key.

        Raises:
            ValueError: If the key is not a plain file name
        """
        if not key or key in (".", "..") or "/" in key or "\\" in key:
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.cache_dir / key

    def fetch(self, url: str, key: str, expected_sha256: Optional[str] = None) -> Path:
        """
        Return the cached file for ``key``, downloading ``url`` if absent.

        Args:
            url: Remote location of the artifact
            key: Cache file name
            expected_sha256: Checksum verified when (and only when) downloading

        Returns:
            Path to the cache entry

        Raises:
            DownloadError: If the download fails; no entry is left behind
        """
        entry = self.path_for(key)
        ensure_directory(self.cache_dir)

        if entry.is_file():
            logger.info(f"Using cached {key}")
            return entry

        lock = FileLock(self.lock_path, timeout=self.lock_timeout)
        try:
            with lock:
                # Another process may have finished the download meanwhile
                if entry.is_file():
                    logger.info(f"Using cached {key}")
                    return entry

                logger.info(f"Fetching {key} from {url}")
                return download_file(
                    url,
                    entry,
                    expected_sha256=expected_sha256,
                    progress_callback=_log_progress,
                    timeout=self.download_timeout,
                )
        except LockTimeout as e:
            raise DownloadError(
                f"Timed out waiting for another process to fetch {key}"
            ) from e


def _log_progress(progress: DownloadProgress) -> None:
    logger.debug(str(progress))
