"""
Advisory rate-limit bookkeeping.

Every provider response passes through ``RateLimitTracker.record``. When the
response carries both ``x-ratelimit-limit`` and ``x-ratelimit-remaining`` the
provider's snapshot is replaced; otherwise the previous snapshot stays. This
is a last-write-wins view of the most recent response, not a sliding window.

Nothing blocks on this state. It is exposed for callers that want to throttle
themselves and for the health endpoint.

The store is a plain dict owned by one tracker instance. Writes are a single
key assignment, which is all the locking the asyncio event loop needs.
"""

import time
from collections.abc import Callable, Mapping
from typing import Optional

import structlog

from provider_gateway.models.dispatch import RateLimitSnapshot
from provider_gateway.monitoring.metrics import provider_rate_limit_remaining


logger = structlog.get_logger(__name__)

LIMIT_HEADER = "x-ratelimit-limit"
REMAINING_HEADER = "x-ratelimit-remaining"
RESET_HEADER = "x-ratelimit-reset"
DEFAULT_WINDOW_SECONDS = 60.0


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    # httpx.Headers is already case-insensitive; plain dicts are not
    value = headers.get(name)
    if value is not None:
        return value
    for key, candidate in headers.items():
        if key.lower() == name:
            return candidate
    return None


class RateLimitTracker:
    """
    Per-provider RateLimitSnapshot store.

    Args:
        clock: Returns the current epoch time in seconds (injectable for tests)
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._snapshots: dict[str, RateLimitSnapshot] = {}

    def record(self, provider: str, headers: Mapping[str, str]) -> Optional[RateLimitSnapshot]:
        """
        Update the provider's snapshot from response headers.

        Returns:
            The new snapshot, or None if the headers did not qualify and the
            previous snapshot was left untouched.
        """
        limit = _header(headers, LIMIT_HEADER)
        remaining = _header(headers, REMAINING_HEADER)
        if limit is None or remaining is None:
            return None

        try:
            limit_value = int(limit)
            remaining_value = int(remaining)
        except ValueError:
            logger.debug(
                "Ignoring non-numeric rate-limit headers",
                provider=provider,
                limit=limit,
                remaining=remaining,
            )
            return None

        reset = _header(headers, RESET_HEADER)
        try:
            reset_at = float(reset) if reset is not None else None
        except ValueError:
            reset_at = None
        if reset_at is None:
            reset_at = self._clock() + DEFAULT_WINDOW_SECONDS

        snapshot = RateLimitSnapshot(
            limit=limit_value,
            remaining=remaining_value,
            reset_at=reset_at,
        )
        self._snapshots[provider] = snapshot
        provider_rate_limit_remaining.labels(provider=provider).set(remaining_value)
        return snapshot

    def get(self, provider: str) -> Optional[RateLimitSnapshot]:
        """Current snapshot for ``provider``, or None when nothing was recorded."""
        return self._snapshots.get(provider)

    def snapshot(self) -> dict[str, RateLimitSnapshot]:
        return dict(self._snapshots)

    def clear(self) -> None:
        self._snapshots.clear()
