"""Monitoring and metrics instrumentation for the Provider Gateway.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from provider_gateway.monitoring.metrics import (
    failover_attempts_total,
    failover_exhausted_total,
    provider_latency_seconds,
    provider_rate_limit_remaining,
    provider_requests_total,
    provider_retries_total,
    stream_chunks_dropped_total,
)

__all__ = [
    "provider_requests_total",
    "provider_retries_total",
    "provider_latency_seconds",
    "stream_chunks_dropped_total",
    "provider_rate_limit_remaining",
    "failover_attempts_total",
    "failover_exhausted_total",
]
