"""
Network download with progress tracking and checksum verification.

Downloads are atomic-or-absent: data is streamed into a temporary file next
to the destination and only renamed into place once the transfer (and the
optional checksum) succeeded. A failed transfer never leaves a file at the
destination path.
"""

import hashlib
import logging
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

from darwincross.core.exceptions import ChecksumError, DownloadError

logger = logging.getLogger(__name__)


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second
    eta_seconds: float

    def __str__(self) -> str:
        return format_progress(self)


class StreamingHasher:
    """Compute hash incrementally for streaming downloads."""

    def __init__(self, algorithm: str = "sha256"):
        """
        Initialize streaming hasher.

        Args:
            algorithm: Hash algorithm ('sha256' or 'sha512')

        Raises:
            ValueError: If algorithm is not supported
        """
        self.algorithm = algorithm.lower()

        if self.algorithm == "sha256":
            self.hasher = hashlib.sha256()
        elif self.algorithm == "sha512":
            self.hasher = hashlib.sha512()
        else:
            raise ValueError(f"Unsupported hash algorithm: {algorithm}")

    def update(self, data: bytes):
        self.hasher.update(data)

    def finalize(self) -> str:
        return self.hasher.hexdigest()

    def verify(self, expected_hash: str) -> bool:
        return self.finalize().lower() == expected_hash.lower()


def download_file(
    url: str,
    destination: Path,
    expected_sha256: Optional[str] = None,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    timeout: int = 60,
) -> Path:
    """
    Download file from URL to destination.

    Args:
        url: URL to download from
        destination: Local path to save file
        expected_sha256: Expected SHA256 hash (verified before the rename)
        progress_callback: Optional callback for progress updates
        timeout: Request timeout in seconds

    Returns:
        Path to downloaded file

    Raises:
        DownloadError: If the transfer fails (non-2xx, connection error) or
            the file cannot be written
        ChecksumError: If checksum doesn't match expected value
        ValueError: If URL or destination is invalid

    Example:
        >>> download_file(
        ...     "https://example.com/cctools.tar.gz",
        ...     Path("cache/cctools.tar.gz"),
        ... )
    """
    if not url:
        raise ValueError("URL cannot be empty")

    if not destination:
        raise ValueError("Destination path cannot be empty")

    destination = Path(destination)

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        return _download_atomically(
            url=url,
            destination=destination,
            expected_sha256=expected_sha256,
            progress_callback=progress_callback,
            timeout=timeout,
        )
    except RequestException as e:
        raise DownloadError(f"Failed to download {url}: {e}") from e
    except OSError as e:
        # RequestException subclasses OSError and is handled above
        raise DownloadError(f"Cannot write {destination}: {e}") from e


def _download_atomically(
    url: str,
    destination: Path,
    expected_sha256: Optional[str],
    progress_callback: Optional[Callable[[DownloadProgress], None]],
    timeout: int,
) -> Path:
    """Stream the response body into a temp file, then rename it into place."""
    logger.info(f"Downloading from {url}")

    temp_fd, temp_name = tempfile.mkstemp(
        dir=destination.parent, prefix=f".{destination.name}.", suffix=".part"
    )
    os.close(temp_fd)
    temp_path = Path(temp_name)

    try:
        with requests.get(
            url, stream=True, timeout=timeout, allow_redirects=True
        ) as response:
            response.raise_for_status()

            content_length = response.headers.get("content-length")
            total_size = int(content_length) if content_length else 0

            hasher = StreamingHasher("sha256") if expected_sha256 else None
            downloaded = 0
            start_time = time.time()
            last_progress_time = start_time

            with open(temp_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=8192):
                    if not chunk:
                        continue
                    f.write(chunk)
                    downloaded += len(chunk)
                    if hasher:
                        hasher.update(chunk)

                    # Report progress (max once per 0.5 seconds)
                    current_time = time.time()
                    if progress_callback and (
                        current_time - last_progress_time >= 0.5
                        or downloaded == total_size
                    ):
                        elapsed = current_time - start_time
                        speed = downloaded / elapsed if elapsed > 0 else 0
                        remaining = total_size - downloaded if total_size > 0 else 0
                        progress_callback(
                            DownloadProgress(
                                bytes_downloaded=downloaded,
                                total_bytes=total_size if total_size > 0 else downloaded,
                                percentage=(downloaded / total_size * 100)
                                if total_size > 0
                                else 0,
                                speed_bps=speed,
                                eta_seconds=remaining / speed if speed > 0 else 0,
                            )
                        )
                        last_progress_time = current_time

        if total_size and downloaded < total_size:
            raise DownloadError(
                f"Incomplete download of {url}: "
                f"got {downloaded} of {total_size} bytes"
            )

        if hasher and not hasher.verify(expected_sha256):
            raise ChecksumError(
                f"Checksum mismatch for {destination.name}: "
                f"expected {expected_sha256}, got {hasher.finalize()}"
            )

        temp_path.replace(destination)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise

    logger.info(f"Download complete: {destination}")
    return destination


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576, 50)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.total_bytes > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s "
            f"ETA: {progress.eta_seconds:.0f}s"
        )
    return f"{mb_downloaded:.1f} MB at {speed_mbps:.1f} MB/s"
