"""
Network download manager with retry logic.

Bytes are streamed to a ``.part`` file that is renamed onto the destination
only once the transfer completes, so an interrupted download never leaves a
truncated file under the final name.
"""

import logging
import time
from pathlib import Path
from typing import Optional

import requests
from requests.exceptions import RequestException

from .exceptions import NetworkError

logger = logging.getLogger(__name__)


def download_file(
    url: str,
    destination: Path,
    timeout: int = 30,
    retries: int = 1,
    headers: Optional[dict] = None,
    backoff: float = 1.0,
) -> Path:
    """
    Download file from URL to destination.

    Args:
        url: URL to download from
        destination: Local path to save file
        timeout: Request timeout in seconds
        retries: Additional attempts after the first one fails
        headers: Extra request headers
        backoff: Seconds to wait before the first retry (doubled each time)

    Returns:
        Path to downloaded file

    Raises:
        NetworkError: If download fails after retries or yields an empty file
        ValueError: If URL is empty

    Example:
        >>> download_file("https://example.com/v_linux.zip", Path("/tmp/v_linux.zip"))
    """
    if not url:
        raise ValueError("URL cannot be empty")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    # only a complete transfer ever appears under the final name
    partial = destination.with_name(destination.name + ".part")

    attempts = retries + 1
    for attempt in range(attempts):
        try:
            _stream_to_file(url, partial, timeout, headers or {})
            break
        except KeyboardInterrupt:
            partial.unlink(missing_ok=True)
            raise
        except (RequestException, OSError) as e:
            partial.unlink(missing_ok=True)
            if attempt == attempts - 1:
                raise NetworkError(
                    f"Download failed after {attempts} attempt(s): {e}"
                ) from e

            wait = backoff * 2**attempt
            logger.warning(
                f"Download attempt {attempt + 1} failed: {e}. Retrying in {wait:g}s..."
            )
            time.sleep(wait)

    if not is_nonempty_file(partial):
        partial.unlink(missing_ok=True)
        raise NetworkError(f"Download failed: {destination} is empty")

    partial.replace(destination)
    logger.debug(f"Download complete: {destination}")
    return destination


def _stream_to_file(url: str, destination: Path, timeout: int, headers: dict):
    logger.debug(f"Downloading from {url}")

    response = requests.get(
        url, headers=headers, stream=True, timeout=timeout, allow_redirects=True
    )
    response.raise_for_status()

    with open(destination, "wb") as f:
        for chunk in response.iter_content(chunk_size=8192):
            if chunk:
                f.write(chunk)


def is_nonempty_file(path: Path) -> bool:
    """Check that ``path`` is a regular file with at least one byte."""
    return path.is_file() and path.stat().st_size > 0


__all__ = ["download_file", "is_nonempty_file"]
