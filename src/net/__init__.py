"""Network utilities for HTTP requests with retry logic."""

from .network import (
    fetch_bytes,
    RetryConfig,
)

__all__ = [
    "fetch_bytes",
    "RetryConfig",
]
