"""
Unit tests for the provider gateway.

Test individual components in isolation:
- Retry policy schedules and response classification
- Dispatcher retry loop (httpx.MockTransport, recorded sleeps)
- Stream normalizer across arbitrary byte boundaries
- Rate-limit tracker, provider registry, failover orchestrator
- Gateway facade, model catalog, domain and API models
"""
