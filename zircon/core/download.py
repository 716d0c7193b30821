"""
Release archive downloads.

Fetches pre-built toolchain archives over HTTPS for the release installer:
- streaming download into ``<root>/downloads`` with TLS verification
- progress reporting (bytes, percentage, speed), throttled to twice a second
- exponential backoff for connection problems; HTTP errors fail immediately
- the partial file is removed whenever an attempt fails
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import HTTPError, RequestException

from .exceptions import NetworkFailureError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
PROGRESS_INTERVAL = 0.5

ProgressCallback = Callable[["DownloadProgress"], None]


@dataclass
class DownloadProgress:
    """Snapshot of a running download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second

    def __str__(self) -> str:
        return format_progress(self)


class _ProgressTracker:
    """Turns chunk sizes into throttled DownloadProgress updates."""

    def __init__(self, total: int, callback: Optional[ProgressCallback]):
        self.total = total
        self.callback = callback
        self.received = 0
        self.started = time.time()
        self.last_report = self.started

    def advance(self, size: int) -> None:
        self.received += size
        if self.callback is None:
            return

        now = time.time()
        finished = self.total > 0 and self.received >= self.total
        if not finished and now - self.last_report < PROGRESS_INTERVAL:
            return

        self.last_report = now
        elapsed = now - self.started
        self.callback(
            DownloadProgress(
                bytes_downloaded=self.received,
                total_bytes=self.total or self.received,
                percentage=self.received * 100 / self.total if self.total else 0,
                speed_bps=self.received / elapsed if elapsed > 0 else 0,
            )
        )


def download_file(
    url: str,
    destination: Path,
    progress_callback: Optional[ProgressCallback] = None,
    timeout: int = 30,
    max_retries: int = 3,
) -> Path:
    """
    Download url to destination, retrying connection failures.

    Args:
        url: Archive URL
        destination: File to write (parent directories are created)
        progress_callback: Receives DownloadProgress updates
        timeout: Connect/read timeout in seconds
        max_retries: Total number of attempts

    Returns:
        destination

    Raises:
        NetworkFailureError: On an HTTP error status (not retried), or when
            every attempt failed
        ValueError: If url is empty

    Example:
        >>> download_file(
        ...     "https://github.com/zirco-lang/zrc/releases/download/nightly/zrc-linux-x64.tar.gz",
        ...     Path("/tmp/zrc-linux-x64.tar.gz"),
        ... )
    """
    if not url:
        raise ValueError("URL cannot be empty")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    attempt = 1
    while True:
        try:
            _stream_to_file(url, destination, progress_callback, timeout)
            return destination
        except HTTPError as e:
            # A missing release stays missing
            _remove_partial(destination)
            status = e.response.status_code if e.response is not None else "unknown"
            raise NetworkFailureError(
                f"Failed to download file: HTTP {status}. The release may not be "
                "available or may not have pre-built binaries for your platform."
            ) from e
        except RequestException as e:
            _remove_partial(destination)
            if attempt >= max_retries:
                raise NetworkFailureError(
                    f"Download failed after {max_retries} attempts: {e}"
                ) from e

            delay = 2 ** (attempt - 1)
            logger.warning(f"Download attempt {attempt} failed: {e}. Retrying in {delay}s...")
            time.sleep(delay)
            attempt += 1


def _stream_to_file(
    url: str,
    destination: Path,
    progress_callback: Optional[ProgressCallback],
    timeout: int,
) -> None:
    logger.info(f"Downloading from {url}")

    with requests.get(url, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        tracker = _ProgressTracker(
            int(response.headers.get("content-length") or 0), progress_callback
        )

        with open(destination, "wb") as out:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    out.write(chunk)
                    tracker.advance(len(chunk))

    logger.debug(f"Saved {tracker.received} bytes to {destination}")


def _remove_partial(destination: Path) -> None:
    try:
        destination.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Failed to remove partial download {destination}: {e}")


def format_progress(progress: DownloadProgress) -> str:
    """
    Human-readable progress line.

    Example:
        >>> print(format_progress(DownloadProgress(52428800, 104857600, 50.0, 1048576)))
        50.0/100.0 MB (50.0%) at 1.0 MB/s
    """
    mib = 1024 * 1024
    done = progress.bytes_downloaded / mib
    speed = progress.speed_bps / mib

    if progress.total_bytes > 0 and progress.percentage > 0:
        total = progress.total_bytes / mib
        return f"{done:.1f}/{total:.1f} MB ({progress.percentage:.1f}%) at {speed:.1f} MB/s"
    return f"{done:.1f} MB at {speed:.1f} MB/s"


__all__ = [
    "DownloadProgress",
    "download_file",
    "format_progress",
]
