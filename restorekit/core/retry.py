"""
Bounded retry for fallible operations.

The same combinator wraps the NuGet download and the restore command:

    >>> from restorekit.core.retry import retry, DOWNLOAD_RETRY_POLICY
    >>> retry(DOWNLOAD_RETRY_POLICY, lambda attempt: fetch(urls[attempt]))

The operation receives the 0-based attempt index, so callers can vary what
they do on a retry. Exceptions are never inspected, only re-raised once the
policy is exhausted.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    How often and how patiently to retry.

    Attributes:
        max_attempts: Retries allowed after the first try (1 means 2 calls)
        delay: Seconds to wait before each retry
    """

    max_attempts: int = 1
    delay: float = 0.0

    def __post_init__(self):
        if self.max_attempts < 0:
            raise ValueError(f"max_attempts must be >= 0, got {self.max_attempts}")
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")

    @property
    def total_attempts(self) -> int:
        return self.max_attempts + 1


DOWNLOAD_RETRY_POLICY = RetryPolicy(max_attempts=1, delay=1.0)
RESTORE_RETRY_POLICY = RetryPolicy(max_attempts=1, delay=0.0)


def retry(
    policy: RetryPolicy,
    operation: Callable[[int], T],
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call operation until it succeeds or the policy runs out.

    Args:
        policy: Retry policy
        operation: Callable taking the attempt index (0-based)
        sleep: Sleep function, replaceable in tests

    Returns:
        Whatever the first successful call returned

    Raises:
        Exception: The exception raised by the final attempt
    """
    attempt = 0
    while True:
        try:
            return operation(attempt)
        except Exception as e:
            if attempt >= policy.max_attempts:
                raise
            attempt += 1
            logger.warning(
                f"Attempt {attempt} of {policy.total_attempts} failed: {e}. "
                f"Retrying ({attempt}. retry)..."
            )
            if policy.delay > 0:
                sleep(policy.delay)
