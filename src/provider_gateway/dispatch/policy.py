"""
Backoff schedules for the retrying dispatcher.

Two schedules share one attempt counter per logical call:

    Cold start:  delay = min(cap, base * factor ** attempt)          (no jitter)
                 defaults 5000ms * 1.5^n, capped at 30000ms, 5 retries
    Transient:   delay = Retry-After * 1000                          (if present)
                 delay = min(cap, base * 2 ** attempt * (0.5 + rand)) (otherwise)
                 defaults 1000ms base, capped at 30000ms, 3 retries

A schedule returns None when its budget is spent; the dispatcher then hands
back the last response unchanged.
"""

import random
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Optional

from provider_gateway.config import Settings
from provider_gateway.models.enums import Classification


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Retry-After in seconds, or None when absent or not a number of seconds."""
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return max(seconds, 0.0)


@dataclass(frozen=True)
class ColdStartBackoff:
    max_retries: int = 5
    base_delay_ms: float = 5000.0
    factor: float = 1.5
    max_delay_ms: float = 30000.0

    def delay_ms(self, attempt: int) -> Optional[float]:
        if attempt >= self.max_retries:
            return None
        return min(self.max_delay_ms, self.base_delay_ms * self.factor**attempt)


@dataclass(frozen=True)
class TransientBackoff:
    max_retries: int = 3
    base_delay_ms: float = 1000.0
    max_delay_ms: float = 30000.0
    random: Callable[[], float] = field(default=random.random, compare=False)

    def delay_ms(self, attempt: int, retry_after: Optional[str] = None) -> Optional[float]:
        if attempt >= self.max_retries:
            return None
        seconds = parse_retry_after(retry_after)
        if seconds is not None:
            return seconds * 1000
        jitter = 0.5 + self.random()
        return min(self.max_delay_ms, self.base_delay_ms * 2**attempt * jitter)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Combined retry policy.

    Attributes:
        cold_start: Schedule for provider cold starts
        transient: Schedule for 429/5xx
        max_elapsed_ms: Optional ceiling on cumulative backoff per call.
            None keeps the attempt-count bound only.
    """

    cold_start: ColdStartBackoff = ColdStartBackoff()
    transient: TransientBackoff = TransientBackoff()
    max_elapsed_ms: Optional[float] = None

    @classmethod
    def from_settings(
        cls, settings: Settings, rand: Callable[[], float] = random.random
    ) -> "RetryPolicy":
        return cls(
            cold_start=ColdStartBackoff(
                max_retries=settings.COLD_START_MAX_RETRIES,
                base_delay_ms=settings.COLD_START_BASE_DELAY_MS,
                factor=settings.COLD_START_BACKOFF_FACTOR,
                max_delay_ms=settings.MAX_RETRY_DELAY_MS,
            ),
            transient=TransientBackoff(
                max_retries=settings.GENERIC_MAX_RETRIES,
                base_delay_ms=settings.GENERIC_BACKOFF_BASE_MS,
                max_delay_ms=settings.MAX_RETRY_DELAY_MS,
                random=rand,
            ),
            max_elapsed_ms=(
                settings.RETRY_MAX_ELAPSED_SECONDS * 1000
                if settings.RETRY_MAX_ELAPSED_SECONDS is not None
                else None
            ),
        )

    def next_delay_ms(
        self,
        classification: Classification,
        attempt: int,
        headers: Mapping[str, str],
        elapsed_ms: float = 0.0,
    ) -> Optional[float]:
        """
        Delay before the next attempt, or None to stop retrying.

        Args:
            classification: Classification of the response just received
            attempt: Retries already performed in this logical call (0-based)
            headers: Headers of that response (for Retry-After)
            elapsed_ms: Backoff already waited in this logical call
        """
        if classification is Classification.RETRYABLE_COLD:
            delay = self.cold_start.delay_ms(attempt)
        elif classification is Classification.RETRYABLE_GENERIC:
            delay = self.transient.delay_ms(attempt, headers.get("retry-after"))
        else:
            return None

        if delay is None:
            return None
        if self.max_elapsed_ms is not None and elapsed_ms + delay > self.max_elapsed_ms:
            return None
        return delay
