"""
Archive downloads over HTTP(S).

Release archives are streamed to disk in chunks. Transient failures (connection
errors, timeouts, 4xx/5xx answers) are retried a few times with an exponential
pause between attempts; a partially written file never survives a failed
attempt. Archives are not checksum-verified, release assets are trusted as
served.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import urlparse

import requests
from requests.exceptions import RequestException

from haxekit.core.exceptions import HaxekitError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
PROGRESS_INTERVAL = 0.5
MEGABYTE = 1024 * 1024


class DownloadError(HaxekitError):
    """An archive could not be downloaded."""

    pass


@dataclass
class DownloadProgress:
    """Snapshot of a running download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float
    eta_seconds: float

    @classmethod
    def measure(cls, downloaded: int, total: int, elapsed: float) -> "DownloadProgress":
        """
        Build a snapshot from byte counts and elapsed seconds.

        ``total`` is 0 when the server sent no Content-Length.
        """
        speed = downloaded / elapsed if elapsed > 0 else 0.0
        if total > 0:
            percentage = downloaded / total * 100
            eta = (total - downloaded) / speed if speed > 0 else 0.0
        else:
            percentage = 0.0
            eta = 0.0
        return cls(
            bytes_downloaded=downloaded,
            total_bytes=total or downloaded,
            percentage=percentage,
            speed_bps=speed,
            eta_seconds=eta,
        )

    def __str__(self) -> str:
        return format_progress(self)


class _ProgressReporter:
    """Forwards progress to a callback at most every PROGRESS_INTERVAL seconds."""

    def __init__(
        self, callback: Optional[Callable[[DownloadProgress], None]], total: int
    ):
        self.callback = callback
        self.total = total
        self.started = time.time()
        self.last_report = self.started

    def update(self, downloaded: int) -> None:
        if self.callback is None:
            return

        now = time.time()
        finished = downloaded == self.total
        if not finished and now - self.last_report < PROGRESS_INTERVAL:
            return

        self.last_report = now
        elapsed = now - self.started
        self.callback(DownloadProgress.measure(downloaded, self.total, elapsed))


def _fetch(
    url: str,
    destination: Path,
    timeout: int,
    progress_callback: Optional[Callable[[DownloadProgress], None]],
) -> int:
    """Stream url into destination and return the number of bytes written."""
    response = requests.get(url, stream=True, timeout=timeout, allow_redirects=True)
    with response:
        response.raise_for_status()

        total = int(response.headers.get("content-length") or 0)
        reporter = _ProgressReporter(progress_callback, total)
        written = 0

        with open(destination, "wb") as out:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    out.write(chunk)
                    written += len(chunk)
                    reporter.update(written)

    return written


def download_file(
    url: str,
    destination: Path,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    timeout: int = 30,
    max_retries: int = 3,
) -> Path:
    """
    Download url to destination, retrying transient failures.

    Args:
        url: Archive URL
        destination: File to write; parent directories are created
        progress_callback: Optional receiver of DownloadProgress snapshots
        timeout: Connect/read timeout in seconds per attempt
        max_retries: Total number of attempts

    Returns:
        destination

    Raises:
        ValueError: If url is empty
        DownloadError: If every attempt failed
    """
    if not url:
        raise ValueError("URL cannot be empty")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    attempt = 0
    while True:
        attempt += 1
        try:
            logger.info(f"Downloading {url}")
            written = _fetch(url, destination, timeout, progress_callback)
            logger.debug(f"Wrote {written} bytes to {destination}")
            return destination
        except RequestException as e:
            destination.unlink(missing_ok=True)

            if attempt >= max_retries:
                raise DownloadError(
                    f"Download of {url} failed after {attempt} attempts: {e}"
                ) from e

            delay = 2 ** (attempt - 1)
            logger.warning(
                f"Attempt {attempt} for {url} failed ({e}), retrying in {delay}s"
            )
            time.sleep(delay)


def download_archive(
    url: str,
    downloads_dir: Path,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
) -> Path:
    """
    Download an archive into downloads_dir under a name unique to this call.

    Two downloads of the same URL, in this process or another one, never share
    a file.
    """
    basename = Path(urlparse(url).path).name or "archive"
    destination = Path(downloads_dir) / f"{uuid.uuid4().hex}-{basename}"
    return download_file(url, destination, progress_callback=progress_callback)


def format_progress(progress: DownloadProgress) -> str:
    """
    Render a progress snapshot for humans.

    Example:
        >>> format_progress(DownloadProgress(52428800, 104857600, 50.0, 1048576, 50))
        '50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s'
    """
    done = progress.bytes_downloaded / MEGABYTE
    speed = progress.speed_bps / MEGABYTE

    if progress.total_bytes <= 0 or progress.percentage <= 0:
        return f"{done:.1f} MB at {speed:.1f} MB/s"

    total = progress.total_bytes / MEGABYTE
    return (
        f"{done:.1f}/{total:.1f} MB ({progress.percentage:.1f}%) "
        f"at {speed:.1f} MB/s ETA: {progress.eta_seconds:.0f}s"
    )


__all__ = [
    "DownloadProgress",
    "DownloadError",
    "download_file",
    "download_archive",
    "format_progress",
]
