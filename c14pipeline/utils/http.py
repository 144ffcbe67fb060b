"""
HTTP utilities for the c14 pipeline.

Provides HTTP fetching with retry logic and proper error handling. Used to
download reference data such as country boundaries.
"""

import hashlib
from pathlib import Path
from typing import Optional

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)
from loguru import logger

from c14pipeline.config import settings


DEFAULT_HEADERS = {
    "User-Agent": "c14-pipeline/0.3 (radiocarbon data toolkit)",
    "Accept": "application/json, application/geo+json, text/csv, */*",
}


class HTTPError(Exception):
    """Custom HTTP error with status code."""

    def __init__(self, message: str, status_code: int = None, response: httpx.Response = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class RateLimitError(HTTPError):
    """Raised when rate limited by a remote server."""
    pass


@retry(
    stop=stop_after_attempt(settings.pipeline.http_max_retries),
    wait=wait_exponential(multiplier=settings.pipeline.http_retry_delay, min=1, max=60),
    retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
    reraise=True,
)
def fetch_with_retry(
    url: str,
    headers: Optional[dict] = None,
    params: Optional[dict] = None,
    timeout: Optional[int] = None,
) -> httpx.Response:
    """
    GET a URL with automatic retry on transient failures.

    Args:
        url: URL to fetch
        headers: Additional headers to include
        params: Query parameters
        timeout: Request timeout in seconds

    Returns:
        httpx.Response object

    Raises:
        HTTPError: For HTTP errors (4xx, 5xx)
        RateLimitError: When rate limited (429)
        httpx.TimeoutException: On timeout after retries
    """
    request_headers = {**DEFAULT_HEADERS, **(headers or {})}
    timeout = timeout or settings.pipeline.http_timeout

    logger.debug(f"Fetching GET {url}")

    with httpx.Client(timeout=timeout, follow_redirects=True) as client:
        response = client.get(url, headers=request_headers, params=params)

    if response.status_code == 429:
        retry_after = response.headers.get("Retry-After", "60")
        raise RateLimitError(
            f"Rate limited by {url}. Retry after {retry_after}s",
            status_code=429,
            response=response,
        )

    if response.status_code >= 400:
        raise HTTPError(
            f"HTTP {response.status_code} for {url}: {response.text[:200]}",
            status_code=response.status_code,
            response=response,
        )

    logger.debug(f"Fetched {url} ({response.status_code}, {len(response.content)} bytes)")
    return response


def download_file(url: str, dest_path: Path, force: bool = False) -> Path:
    """
    Download a file to disk, skipping the request if it already exists.

    Args:
        url: URL to download
        dest_path: Destination file path
        force: Force re-download even if file exists

    Returns:
        Path to downloaded file
    """
    dest_path = Path(dest_path)

    if dest_path.exists() and not force:
        logger.info(f"File already exists: {dest_path}")
        return dest_path

    dest_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Downloading {url} to {dest_path}")

    response = fetch_with_retry(url)
    content = response.content

    # Write to a temp file first so a failed download never leaves a partial file
    temp_path = dest_path.with_suffix(dest_path.suffix + ".tmp")
    try:
        temp_path.write_bytes(content)
        temp_path.replace(dest_path)
    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise

    file_hash = hashlib.md5(content).hexdigest()
    logger.info(f"Downloaded {len(content):,} bytes (MD5: {file_hash})")

    return dest_path
