"""
Retrying dispatcher.

Performs one logical call against a provider and transparently retries
transient failures. Attempts are strictly sequential: an explicit bounded loop
issues a request, records rate-limit headers, classifies the response and
either returns it or waits (``asyncio.sleep``, never a thread sleep) and goes
again.

The dispatcher never invents an outcome. When the retry budget runs out it
returns the last response exactly as received; turning a non-2xx response
into an exception is the caller's choice (see ``dispatch.errors``).

Usage:
    async with RetryingDispatcher(registry, tracker, settings) as dispatcher:
        result = await dispatcher.dispatch("featherless", "/chat/completions", body)
"""

import asyncio
import json
import time
from collections.abc import Awaitable, Callable
from typing import Any, Optional, Union

import httpx
import structlog

from provider_gateway.config import Settings
from provider_gateway.dispatch.classifier import classify
from provider_gateway.dispatch.policy import RetryPolicy
from provider_gateway.exceptions import (
    EmptyStream,
    ProviderConnectionError,
    ProviderTimeoutError,
)
from provider_gateway.models.dispatch import DispatchAttempt, DispatchResult
from provider_gateway.models.enums import Classification, ProviderId
from provider_gateway.monitoring.metrics import (
    provider_latency_seconds,
    provider_requests_total,
    provider_retries_total,
)
from provider_gateway.providers.base import ProviderDescriptor
from provider_gateway.providers.registry import ProviderRegistry
from provider_gateway.ratelimit import RateLimitTracker


logger = structlog.get_logger(__name__)

_RETRY_REASONS = {
    Classification.RETRYABLE_COLD: "cold_start",
    Classification.RETRYABLE_GENERIC: "transient",
}


def _has_body(response: httpx.Response) -> bool:
    if response.status_code == 204:
        return False
    return response.headers.get("content-length") != "0"


class RetryingDispatcher:
    """
    Issues provider calls with classification-driven retries.

    Holds one pooled ``httpx.AsyncClient`` for all providers. The client is
    created lazily and closed by ``close()``.

    Args:
        registry: Provider descriptors
        tracker: Rate-limit store fed from every response
        settings: Application settings (timeouts, pool limits, retry knobs)
        policy: Backoff policy (default: built from settings)
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
        sleep: Awaitable delay function, seconds (default ``asyncio.sleep``)
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        tracker: RateLimitTracker,
        settings: Settings,
        policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.registry = registry
        self.tracker = tracker
        self.settings = settings
        self.policy = policy or RetryPolicy.from_settings(settings)
        self._transport = transport
        self._sleep = sleep
        self._client: Optional[httpx.AsyncClient] = None

        logger.info(
            "RetryingDispatcher initialized",
            timeout=settings.REQUEST_TIMEOUT,
            generic_max_retries=self.policy.transient.max_retries,
            cold_start_max_retries=self.policy.cold_start.max_retries,
            max_elapsed_ms=self.policy.max_elapsed_ms,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.REQUEST_TIMEOUT),
                limits=httpx.Limits(
                    max_connections=self.settings.MAX_CONNECTIONS,
                    max_keepalive_connections=self.settings.MAX_KEEPALIVE_CONNECTIONS,
                ),
                transport=self._transport,
                follow_redirects=True,
            )
            logger.debug("Created new httpx AsyncClient")
        return self._client

    async def dispatch(
        self,
        provider: Union[str, ProviderId],
        path: str,
        body: Optional[Any] = None,
        *,
        stream: bool = False,
        method: Optional[str] = None,
    ) -> DispatchResult:
        """
        Perform one logical call, retrying per the provider's rules.

        Args:
            provider: Provider id (must be registered)
            path: Path under the provider base URL, or an absolute URL
            body: JSON-serializable request body (None for GET)
            stream: Leave the body of a successful response unread
            method: HTTP method (default POST with a body, GET without)

        Returns:
            DispatchResult with the final response. For a successful streaming
            call the caller owns the open response and must close it.

        Raises:
            UnknownProvider: provider id not registered
            ProviderTimeoutError / ProviderConnectionError: transport failure
            EmptyStream: streaming requested, 2xx response without a body
        """
        descriptor = self.registry.get(provider)
        provider_name = descriptor.id.value
        url = descriptor.url_for(path)
        http_method = method or ("POST" if body is not None else "GET")
        content = json.dumps(body).encode("utf-8") if body is not None else None

        attempt = 0
        delays: list[float] = []
        start_time = time.perf_counter()

        while True:
            response = await self._send(descriptor, http_method, url, content, stream)
            self.tracker.record(provider_name, response.headers)
            provider_requests_total.labels(
                provider=provider_name, status=str(response.status_code)
            ).inc()

            classification = classify(descriptor, response)
            if classification is Classification.TERMINAL:
                break

            delay_ms = self.policy.next_delay_ms(
                classification, attempt, response.headers, elapsed_ms=sum(delays)
            )
            if delay_ms is None:
                logger.warning(
                    "Retry budget exhausted, returning last response",
                    provider=provider_name,
                    url=url,
                    status_code=response.status_code,
                    classification=classification.value,
                    attempts=attempt + 1,
                )
                break

            logger.info(
                f"Retrying {provider_name} after {delay_ms:.0f}ms",
                provider=provider_name,
                status_code=response.status_code,
                reason=_RETRY_REASONS[classification],
                attempt=attempt + 1,
                delay_ms=round(delay_ms, 1),
            )
            provider_retries_total.labels(
                provider=provider_name, reason=_RETRY_REASONS[classification]
            ).inc()

            await response.aclose()
            await self._sleep(delay_ms / 1000.0)
            delays.append(delay_ms)
            attempt += 1

        latency = time.perf_counter() - start_time
        provider_latency_seconds.labels(
            provider=provider_name, success=str(response.is_success).lower()
        ).observe(latency)

        if stream and response.is_success and not _has_body(response):
            await response.aclose()
            raise EmptyStream(
                f"{provider_name} returned no body for a streaming request",
                provider=provider_name,
                status_code=response.status_code,
            )

        dispatch_attempt = DispatchAttempt(
            provider=provider_name,
            url=url,
            attempts=attempt + 1,
            elapsed_delay_ms=sum(delays),
            delays_ms=tuple(delays),
        )
        logger.debug(
            "Dispatch complete",
            provider=provider_name,
            url=url,
            status_code=response.status_code,
            attempts=dispatch_attempt.attempts,
            elapsed_delay_ms=dispatch_attempt.elapsed_delay_ms,
        )
        return DispatchResult(
            response=response,
            attempt=dispatch_attempt,
            classification=classification,
        )

    async def _send(
        self,
        descriptor: ProviderDescriptor,
        method: str,
        url: str,
        content: Optional[bytes],
        stream: bool,
    ) -> httpx.Response:
        provider_name = descriptor.id.value
        client = await self._get_client()
        # Headers are rebuilt per attempt so a rotated credential applies
        request = client.build_request(
            method, url, headers=descriptor.headers(), content=content
        )
        try:
            response = await client.send(request, stream=stream)
            if stream and not response.is_success:
                # Error bodies are small; read them so classification and
                # error reporting see the text
                try:
                    await response.aread()
                except httpx.HTTPError:
                    await response.aclose()
                    raise
            return response
        except httpx.TimeoutException as e:
            provider_requests_total.labels(provider=provider_name, status="transport_error").inc()
            logger.warning(
                "Provider request timeout",
                provider=provider_name,
                url=url,
                timeout=self.settings.REQUEST_TIMEOUT,
                error=str(e),
            )
            raise ProviderTimeoutError(
                f"{provider_name} did not respond within {self.settings.REQUEST_TIMEOUT}s",
                provider=provider_name,
                details={"url": url, "error_type": type(e).__name__},
            ) from e
        except httpx.TransportError as e:
            provider_requests_total.labels(provider=provider_name, status="transport_error").inc()
            logger.warning(
                "Provider network error",
                provider=provider_name,
                url=url,
                error=str(e),
            )
            raise ProviderConnectionError(
                f"Network error talking to {provider_name}: {e}",
                provider=provider_name,
                details={"url": url, "error_type": type(e).__name__},
            ) from e

    async def close(self) -> None:
        """Close the HTTP client connection pool."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed dispatcher HTTP client")

    async def __aenter__(self) -> "RetryingDispatcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
