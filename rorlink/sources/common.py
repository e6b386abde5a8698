"""Shared download utilities for all data sources."""

from pathlib import Path

import requests

from .. import __version__
from ..logger import get_logger
from ..retry import (
    RetryableHTTPError,
    RetryError,
    exponential_backoff,
    parse_retry_after,
    should_retry_http_status,
)

logger = get_logger()

DEFAULT_TIMEOUT = 60
HEADERS = {"User-Agent": f"rorlink/{__version__}"}


class SourceError(ValueError):
    """Raised when an input file is missing or cannot be parsed."""


def _log_retry(attempt, exception, delay):
    logger.warning("Retrying download", attempt=attempt, error=str(exception), delay=delay)


@exponential_backoff(
    max_retries=3,
    base_delay=1.0,
    exceptions=(requests.exceptions.Timeout, requests.exceptions.ConnectionError, RetryableHTTPError),
    on_retry=_log_retry,
)
def _fetch_with_retry(url: str, timeout: int):
    """Fetch URL with automatic retry on transient errors."""
    resp = requests.get(url, timeout=timeout, headers=HEADERS)
    if should_retry_http_status(resp.status_code):
        raise RetryableHTTPError(resp.status_code, url, parse_retry_after(resp.headers.get("Retry-After")))
    return resp


def fetch(url: str, source: str, timeout: int = DEFAULT_TIMEOUT):
    """Fetch URL with standardized error handling and logging.

    Args:
        url: The URL to fetch
        source: Source name for logging (e.g. 'ror', 'edugain', 'wikidata')
        timeout: Request timeout in seconds

    Returns:
        Response object on success

    Raises:
        ValueError: On any HTTP error, timeout, or request failure
    """
    logger.record_download_attempt()
    try:
        resp = _fetch_with_retry(url, timeout)
        resp.raise_for_status()
    except RetryError as e:
        logger.record_download_failure("RetryExhausted")
        logger.error(f"{source} download failed after retries", url=url, error=str(e.__cause__))
        raise ValueError(f"{source} download failed after retries: {url}") from e
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else "HTTPError"
        logger.record_download_failure(f"HTTPError_{status}")
        if status == 404:
            logger.warning(f"{source} URL not found", url=url, status=404)
            raise ValueError(f"{source} URL not found (404): {url}")
        logger.error(f"{source} request failed", url=url, status=status)
        raise ValueError(f"{source} request failed ({status}): {url}")
    except requests.exceptions.RequestException as e:
        logger.record_download_failure("RequestException")
        logger.error(f"{source} request error", url=url, error=str(e))
        raise ValueError(f"{source} request error: {e}")

    logger.record_download_success()
    return resp


def download_to(url: str, out_path: Path, source: str) -> Path:
    """Download url and write the raw bytes to out_path."""
    logger.info(f"Getting {source} data from {url}")
    resp = fetch(url, source)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info(f"Writing to {out_path}")
    out_path.write_bytes(resp.content)
    return out_path


def read_text(path: Path, source: str) -> str:
    if not path.exists():
        raise SourceError(f"{source} file not found: {path}")
    return path.read_text(encoding="utf-8")
