"""Retry/backoff policy shared by outbound calls."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable, Optional

import requests

# Request Timeout plus every 5xx
RETRYABLE_STATUS_CODES = frozenset({408})


def is_retryable_status(status_code: int) -> bool:
    return status_code in RETRYABLE_STATUS_CODES or 500 <= status_code <= 599


def is_retryable_exception(exc: BaseException) -> bool:
    """Network errors and timeouts are retried, everything else is not."""
    return isinstance(exc, (requests.ConnectionError, requests.Timeout))


@dataclass
class RetryPolicy:
    """Bounded, sequential retries with exponential backoff.

    ``delay_for(attempt)`` returns ``base_delay * 2 ** (attempt - 1)`` capped at
    ``max_delay`` for the wait after failed attempt number ``attempt``
    (1-based). With ``jitter`` the delay is drawn uniformly from
    ``[delay / 2, delay]``.
    """

    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 8.0
    jitter: bool = True
    retry_on_status: Callable[[int], bool] = is_retryable_status
    retry_on_exception: Callable[[BaseException], bool] = is_retryable_exception
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.SCORING_MAX_ATTEMPTS,
            base_delay=settings.SCORING_BACKOFF_BASE_SECONDS,
            max_delay=settings.SCORING_BACKOFF_MAX_SECONDS,
            jitter=settings.SCORING_BACKOFF_JITTER,
        )

    def delay_for(self, attempt: int) -> float:
        delay = min(self.base_delay * (2 ** max(attempt - 1, 0)), self.max_delay)
        if self.jitter and delay > 0:
            delay = self.rng.uniform(delay / 2.0, delay)
        return delay

    def should_retry(
        self,
        attempt: int,
        status_code: Optional[int] = None,
        exc: Optional[BaseException] = None,
    ) -> bool:
        if attempt >= self.max_attempts:
            return False
        if exc is not None:
            return self.retry_on_exception(exc)
        if status_code is not None:
            return self.retry_on_status(status_code)
        return False
