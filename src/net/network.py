"""Provider HTTP access with retry logic and exponential backoff.

This module provides robust HTTP request handling with:
- Automatic retries with exponential backoff
- Jitter to prevent thundering herd
- A bounded per-request timeout
- 404 mapped to NotFoundError; every other failure, including any
  requests exception, surfaces as NetworkError
"""

import random
import time
from dataclasses import dataclass
from typing import Any, Optional

import requests

from core.logging import get_logger
from errors import NetworkError, NotFoundError

logger = get_logger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 3
    base_delay: float = 0.5  # seconds
    max_delay: float = 30.0  # seconds
    exponential_base: float = 2.0
    jitter: bool = True
    retry_on_429: bool = True  # Rate limit errors
    retry_on_5xx: bool = True  # Server errors
    timeout: int = 30  # seconds

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for given attempt with exponential backoff and jitter."""
        delay = min(self.base_delay * (self.exponential_base**attempt), self.max_delay)

        if self.jitter:
            delay += random.uniform(0, delay * 0.5)

        return delay

    @classmethod
    def from_settings(cls, settings) -> "RetryConfig":
        return cls(
            max_retries=settings.max_retry_attempts,
            base_delay=settings.retry_base_delay,
            timeout=settings.http_timeout,
        )


DEFAULT_CONFIG = RetryConfig()


# Transfer failures worth another try; any other RequestException is final
_TRANSIENT_ERRORS = (
    requests.ConnectionError,
    requests.Timeout,
    requests.exceptions.ChunkedEncodingError,
    requests.exceptions.ContentDecodingError,
)


def _should_retry(status: int, config: RetryConfig) -> bool:
    if status == 429:
        return config.retry_on_429
    return 500 <= status < 600 and config.retry_on_5xx


def fetch_bytes(
    url: str,
    *,
    headers: Optional[dict[str, str]] = None,
    config: Optional[RetryConfig] = None,
    session: Optional[Any] = None,
    user_agent: str = "CardImagePipeline/1.0",
) -> bytes:
    """Fetch URL content as bytes with retry logic.

    Args:
        url: URL to fetch
        headers: Optional HTTP headers
        config: Retry configuration (uses default if None)
        session: requests-compatible session (a new one per call if None)
        user_agent: User-Agent header value

    Returns:
        Response body as bytes

    Raises:
        NotFoundError: The server answered 404 or 410
        NetworkError: All retries failed, or a non-retryable HTTP error
    """
    if config is None:
        config = DEFAULT_CONFIG

    request_headers = {"User-Agent": user_agent, "Accept": "*/*"}
    if headers:
        request_headers.update(headers)

    http = session or requests
    last_error = "no attempt made"

    for attempt in range(config.max_retries):
        try:
            response = http.get(url, headers=request_headers, timeout=config.timeout)
        except requests.RequestException as error:
            last_error = f"{type(error).__name__}: {error}"
            if isinstance(error, _TRANSIENT_ERRORS) and attempt < config.max_retries - 1:
                delay = config.get_delay(attempt)
                logger.debug("Retrying {} in {:.2f}s ({})", url, delay, last_error)
                time.sleep(delay)
                continue
            break

        status = response.status_code
        if status == 200:
            return response.content

        if status in (404, 410):
            raise NotFoundError(f"HTTP {status}: {url}")

        last_error = f"HTTP {status}"
        if _should_retry(status, config) and attempt < config.max_retries - 1:
            delay = config.get_delay(attempt)
            logger.debug("Retrying {} in {:.2f}s ({})", url, delay, last_error)
            time.sleep(delay)
            continue

        # Other client errors are not worth retrying
        break

    raise NetworkError(f"Failed to fetch {url}: {last_error}")
