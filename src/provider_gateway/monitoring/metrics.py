"""Custom Prometheus metrics for the Provider Gateway.

These metrics are exposed at /metrics endpoint and should be scraped by Prometheus.
Alert rules should be configured for:
- provider_retries_total (sustained cold starts or 5xx from one provider)
- failover_exhausted_total (a whole model class is unavailable)
- provider_rate_limit_remaining (approaching a provider quota)
"""

from prometheus_client import Counter, Gauge, Histogram

# === Dispatch Metrics ===

provider_requests_total = Counter(
    "provider_requests_total",
    "HTTP requests issued to providers, by final status class",
    ["provider", "status"],
)
"""
Every HTTP request sent to a provider, including retried ones.

Labels:
- provider: openrouter, huggingface, featherless, venice, together
- status: HTTP status code as a string, or "transport_error"
"""

provider_retries_total = Counter(
    "provider_retries_total",
    "Retries scheduled by the dispatcher, by reason",
    ["provider", "reason"],
)
"""
Retries scheduled by the dispatcher.

Labels:
- reason: cold_start, transient

Alert thresholds:
- WARN: cold_start rate > 10% of requests for a provider
- CRITICAL: transient rate > 30% of requests for a provider
"""

provider_latency_seconds = Histogram(
    "provider_latency_seconds",
    "Latency of one logical provider call including retries and backoff",
    ["provider", "success"],
    buckets=[0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
)
"""
Buckets reach 300s because a full cold-start schedule can hold a call open
for over a minute.
"""

# === Streaming Metrics ===

stream_chunks_dropped_total = Counter(
    "stream_chunks_dropped_total",
    "Malformed stream records dropped by the normalizer",
    ["provider"],
)

# === Rate Limit Metrics ===

provider_rate_limit_remaining = Gauge(
    "provider_rate_limit_remaining",
    "Remaining requests in the provider's current rate-limit window (advisory)",
    ["provider"],
)

# === Failover Metrics ===

failover_attempts_total = Counter(
    "failover_attempts_total",
    "Failover chain entries tried, by outcome",
    ["model_class", "provider", "outcome"],
)
"""
Labels:
- outcome: success, not_configured, http_error, transport_error, invalid_body
"""

failover_exhausted_total = Counter(
    "failover_exhausted_total",
    "Failover calls where every chain entry failed",
    ["model_class"],
)
