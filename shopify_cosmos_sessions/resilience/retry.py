"""
Retry schedule with capped exponential backoff.

This module holds the retry configuration and backoff calculation used by
the initialization supervisor. Only the one-time initialization sequence
is retried; storage operations are never retried once the adapter is
ready.

Default schedule (initial_delay=0.5, exponential_base=2.0, max_delay=5.0):
- Retry 0: 0.5 seconds
- Retry 1: 1.0 seconds
- Retry 2: 2.0 seconds
- Retry 3: 4.0 seconds
"""

from dataclasses import dataclass
from typing import Optional

MAX_RETRIES = 3
BASE_DELAY_SECONDS = 0.5
MAX_DELAY_SECONDS = 5.0
ATTEMPT_TIMEOUT_SECONDS = 30.0


@dataclass
class RetryConfig:
    """
    Configuration for initialization retry behavior.

    Attributes:
        max_retries: Number of retries after the first attempt. Default is
            3, so at most 4 attempts are made.
        initial_delay: Delay before the first retry in seconds.
            Default is 0.5.
        exponential_base: Base for exponential backoff calculation.
            Default is 2.0 (delays: 0.5s, 1s, 2s, 4s).
        max_delay: Maximum delay between retries in seconds.
            Default is 5.0.
        attempt_timeout: Deadline for a single provisioning attempt in
            seconds. Default is 30.0.
    """
    max_retries: int = MAX_RETRIES
    initial_delay: float = BASE_DELAY_SECONDS
    exponential_base: float = 2.0
    max_delay: Optional[float] = MAX_DELAY_SECONDS
    attempt_timeout: float = ATTEMPT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if self.initial_delay < 0:
            raise ValueError("initial_delay cannot be negative")
        if self.attempt_timeout <= 0:
            raise ValueError("attempt_timeout must be positive")

    @property
    def max_attempts(self) -> int:
        """Total number of attempts, including the first."""
        return self.max_retries + 1

    def delay_for(self, retry: int) -> float:
        """Backoff delay in seconds before the given retry (0-indexed)."""
        return calculate_delay(
            retry,
            self.initial_delay,
            self.exponential_base,
            self.max_delay
        )


def calculate_delay(
    attempt: int,
    initial_delay: float,
    exponential_base: float,
    max_delay: Optional[float] = None
) -> float:
    """
    Calculate the delay for a given retry attempt using exponential backoff.

    The delay is calculated as: initial_delay * (exponential_base ^ attempt),
    capped at max_delay when one is given.

    For default values (initial_delay=0.5, exponential_base=2.0, max_delay=5.0):
    - Attempt 0: 0.5 * (2.0 ^ 0) = 0.5 seconds
    - Attempt 1: 0.5 * (2.0 ^ 1) = 1.0 seconds
    - Attempt 2: 0.5 * (2.0 ^ 2) = 2.0 seconds
    - Attempt 3: 0.5 * (2.0 ^ 3) = 4.0 seconds
    - Attempt 4: min(8.0, 5.0) = 5.0 seconds

    Args:
        attempt: The current attempt number (0-indexed)
        initial_delay: The initial delay in seconds
        exponential_base: The base for exponential calculation
        max_delay: Optional maximum delay cap

    Returns:
        The calculated delay in seconds
    """
    delay = initial_delay * (exponential_base ** attempt)

    if max_delay is not None:
        delay = min(delay, max_delay)

    return delay
