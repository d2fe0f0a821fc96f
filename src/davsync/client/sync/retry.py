"""Retry policy with linear backoff for remote operations.

This module provides:
- is_retryable_status: Classify HTTP status codes as transient or not
- is_retryable: Classify exceptions raised by transport calls
- RetryPolicy: Applies the same retry rule to every network operation
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

import httpx

from davsync.core.config import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Request Timeout, Too Early, Too Many Requests
RETRYABLE_STATUS_CODES = frozenset({408, 425, 429})

# Network-level httpx failures that indicate a transient condition
TRANSIENT_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)


def is_retryable_status(status_code: int) -> bool:
    """Check whether an HTTP status is worth retrying.

    Args:
        status_code: HTTP status code.

    Returns:
        True for 408, 425, 429 and any 5xx.
    """
    return status_code in RETRYABLE_STATUS_CODES or 500 <= status_code <= 599


def is_retryable(exc: BaseException) -> bool:
    """Check whether an exception raised by a transport call is transient."""
    retryable = getattr(exc, "retryable", None)
    if retryable is not None:
        return bool(retryable)
    return isinstance(exc, TRANSIENT_EXCEPTIONS)


@dataclass
class RetryPolicy:
    """Retry rule shared by all remote operations of a client.

    A call is attempted at most ``max_retries + 1`` times. Before retry
    number n (0-based) the policy sleeps ``retry_delay * (n + 1)`` seconds.
    Non-retryable errors propagate immediately.

    Attributes:
        max_retries: Additional attempts after the first failure.
        retry_delay: Base delay in seconds.
        sleep: Sleep function (injectable for tests).
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def delay_for(self, attempt: int) -> float:
        """Get the delay before retrying after the given attempt (0-based)."""
        return self.retry_delay * (attempt + 1)

    def call(self, func: Callable[[], T], description: str = "request") -> T:
        """Execute a function under this policy.

        Args:
            func: Function performing one attempt.
            description: Short label used in log messages.

        Returns:
            Result of the function.

        Raises:
            The last exception if all attempts fail, or the first
            non-retryable exception.
        """
        attempt = 0
        while True:
            try:
                return func()
            except Exception as e:
                if not is_retryable(e):
                    raise
                if attempt >= self.max_retries:
                    logger.error(f"{description}: all {self.max_retries + 1} attempts failed: {e}")
                    raise

                delay = self.delay_for(attempt)
                logger.warning(
                    f"{description}: attempt {attempt + 1}/{self.max_retries + 1} failed: {e}. "
                    f"Retrying in {delay:.1f}s..."
                )
                self.sleep(delay)
                attempt += 1
