"""
Resilient request dispatch.

Retry Policy:
    1. Cold start (cold-start-prone providers, designated status + marker):
       min(30s, 5s * 1.5^n), up to 5 retries, no jitter
    2. Transient (429/500/502/503/504): Retry-After, else
       min(30s, 1s * 2^n * (0.5 + rand)), up to 3 retries
    3. Anything else: terminal, returned as-is

Main Components:
    - RetryingDispatcher: Bounded retry loop around one logical call
    - RetryPolicy: Backoff schedules (ColdStartBackoff, TransientBackoff)
    - classify: Response classification
    - error_for_result / raise_for_result: Terminal result -> typed error
"""

from provider_gateway.dispatch.classifier import (
    GENERIC_RETRYABLE_STATUSES,
    classify,
    is_cold_start_body,
)
from provider_gateway.dispatch.dispatcher import RetryingDispatcher
from provider_gateway.dispatch.errors import error_for_result, raise_for_result
from provider_gateway.dispatch.policy import (
    ColdStartBackoff,
    RetryPolicy,
    TransientBackoff,
    parse_retry_after,
)

__all__ = [
    "GENERIC_RETRYABLE_STATUSES",
    "classify",
    "is_cold_start_body",
    "RetryingDispatcher",
    "error_for_result",
    "raise_for_result",
    "ColdStartBackoff",
    "RetryPolicy",
    "TransientBackoff",
    "parse_retry_after",
]
