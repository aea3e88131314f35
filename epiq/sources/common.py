"""Shared utilities for all external data sources."""

from typing import Any, Dict, Optional, Tuple

import requests

from ..logger import get_logger
from ..retry import RetryError, exponential_backoff, should_retry_http_status

logger = get_logger()

REQUEST_TIMEOUT = 15
USER_AGENT = "epiq/0.3 (ingredient analysis)"


class SourceError(Exception):
    """Raised when an external source cannot answer a request."""
    pass


class TransientHTTPError(Exception):
    """Retryable HTTP status (rate limit or server error)."""

    def __init__(self, status_code: int, url: str):
        super().__init__(f"HTTP {status_code} from {url}")
        self.status_code = status_code


@exponential_backoff(
    max_retries=3,
    base_delay=1.0,
    exceptions=(requests.exceptions.Timeout, requests.exceptions.ConnectionError, TransientHTTPError),
)
def _fetch_with_retry(url: str, params: Optional[Dict[str, Any]] = None):
    """Fetch URL with automatic retry on transient errors."""
    resp = requests.get(url, params=params, headers={"User-Agent": USER_AGENT}, timeout=REQUEST_TIMEOUT)
    if should_retry_http_status(resp.status_code):
        raise TransientHTTPError(resp.status_code, url)
    return resp


def fetch_json(
    url: str,
    source: str,
    params: Optional[Dict[str, Any]] = None,
    missing_statuses: Tuple[int, ...] = (404,),
) -> Optional[Any]:
    """Fetch a JSON document with standardized error handling and logging.

    Args:
        url: The URL to fetch
        source: The source name for logging (e.g., 'pubchem', 'open_beauty_facts')
        params: Optional query parameters
        missing_statuses: Statuses meaning the source has no such record

    Returns:
        Decoded JSON body, or None on one of missing_statuses

    Raises:
        SourceError: On exhausted retries, HTTP errors or an undecodable body
    """
    logger.record_request_attempt(source)
    logger.record_api_call()
    try:
        resp = _fetch_with_retry(url, params)
    except RetryError as e:
        cause = e.__cause__
        error_type = type(cause).__name__ if cause is not None else "RetryError"
        logger.record_request_failure(source, error_type)
        logger.warning(f"{source} request failed after retries", url=url, error=str(cause or e))
        raise SourceError(f"{source} unavailable: {cause or e}") from e
    except requests.exceptions.RequestException as e:
        logger.record_request_failure(source, "RequestException")
        logger.error(f"{source} request error", url=url, error=str(e))
        raise SourceError(f"{source} request error: {e}") from e

    if resp.status_code in missing_statuses:
        logger.record_request_success(source)
        logger.debug(f"{source} has no record", url=url)
        return None

    try:
        resp.raise_for_status()
    except requests.exceptions.HTTPError as e:
        logger.record_request_failure(source, f"HTTPError_{resp.status_code}")
        logger.error(f"{source} request failed", url=url, status=resp.status_code)
        raise SourceError(f"{source} request failed ({resp.status_code}): {url}") from e

    try:
        data = resp.json()
    except ValueError as e:
        logger.record_request_failure(source, "InvalidJSON")
        logger.error(f"{source} returned invalid JSON", url=url)
        raise SourceError(f"{source} returned invalid JSON: {url}") from e

    logger.record_request_success(source)
    return data
