"""
Single-shot HTTP downloader.

Fetches one URL into one local file. Retrying is the caller's business
(see restorekit.core.retry), so every call starts from an empty file:
- Destination is created/truncated before the request is made
- Any transport error or non-200 status is a failure
- Body is streamed to disk in chunks, with optional progress reporting
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

from restorekit.core.exceptions import RestoreKitError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192
DEFAULT_TIMEOUT = 60


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int  # 0 when the server sent no content-length

    @property
    def percentage(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return self.bytes_downloaded / self.total_bytes * 100

    def __str__(self) -> str:
        return format_progress(self)


class DownloadError(RestoreKitError):
    """Exception raised when download fails."""

    pass


def download_file(
    url: str,
    destination: Path,
    timeout: int = DEFAULT_TIMEOUT,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
) -> Path:
    """
    Download file from URL to destination.

    Args:
        url: URL to download from
        destination: Local path to save file (truncated if it exists)
        timeout: Request timeout in seconds
        progress_callback: Optional callback for progress updates

    Returns:
        Path to downloaded file

    Raises:
        DownloadError: If the file cannot be created, the request fails,
            the status is not 200 or the body copy fails
        ValueError: If URL or destination is empty

    Example:
        >>> from restorekit.core.download import download_file
        >>> url = "https://dist.nuget.org/win-x86-commandline/v6.9.1/nuget.exe"
        >>> download_file(url, Path("/tmp/__nuget__/nuget.exe"))
    """
    if not url:
        raise ValueError("URL cannot be empty")

    if not destination:
        raise ValueError("Destination path cannot be empty")

    destination = Path(destination)

    try:
        out_file = open(destination, "wb")
    except OSError as e:
        raise DownloadError(f"failed to create ({destination}), error: {e}") from e

    with out_file:
        logger.debug(f"Downloading from {url}")
        try:
            response = requests.get(
                url, stream=True, timeout=timeout, allow_redirects=True
            )
        except RequestException as e:
            raise DownloadError(
                f"failed to download from ({url}), error: {e}"
            ) from e

        with response:
            if response.status_code != requests.codes.ok:
                raise DownloadError(
                    f"non success status code: {response.status_code}"
                )

            written = _copy_body(response, out_file, url, progress_callback)

    logger.debug(f"Download complete: {destination} ({written} bytes)")
    return destination


def _copy_body(
    response: requests.Response,
    out_file,
    url: str,
    progress_callback: Optional[Callable[[DownloadProgress], None]],
) -> int:
    content_length = response.headers.get("content-length")
    total = int(content_length) if content_length and content_length.isdigit() else 0

    written = 0
    try:
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if not chunk:
                continue
            out_file.write(chunk)
            written += len(chunk)
            if progress_callback:
                progress_callback(DownloadProgress(written, total))
    except (RequestException, OSError) as e:
        raise DownloadError(f"failed to download from ({url}), error: {e}") from e

    if total and written < total:
        raise DownloadError(
            f"failed to download from ({url}), error: "
            f"received {written} of {total} bytes"
        )

    return written


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> print(format_progress(DownloadProgress(2621440, 5242880)))
        2.5/5.0 MB (50.0%)
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024

    if progress.total_bytes > 0:
        mb_total = progress.total_bytes / 1024 / 1024
        return f"{mb_downloaded:.1f}/{mb_total:.1f} MB ({progress.percentage:.1f}%)"
    return f"{mb_downloaded:.1f} MB"
