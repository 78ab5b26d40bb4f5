"""
Map a terminal non-2xx dispatch result to the gateway error taxonomy.

The mapping keeps the provider id, the status and the raw body so the caller
(and ultimately the user) sees exactly what the provider said.
"""

from provider_gateway.dispatch.classifier import GENERIC_RETRYABLE_STATUSES, mentions_context_length
from provider_gateway.exceptions import (
    ColdStart,
    ContextLengthExceeded,
    InsufficientCredits,
    ProviderError,
    ProviderResponseError,
    TransientServerError,
    Unauthorized,
)
from provider_gateway.models.dispatch import DispatchResult
from provider_gateway.models.enums import Classification


def error_for_result(result: DispatchResult) -> ProviderError:
    """Build (not raise) the error for a non-2xx result."""
    provider = result.attempt.provider
    response = result.response
    status = response.status_code
    body = response.text
    kwargs = {
        "status_code": status,
        "body": body,
        "details": {"url": result.attempt.url, "attempts": result.attempt.attempts},
    }

    if result.classification is Classification.RETRYABLE_COLD:
        return ColdStart(
            f"{provider} model still cold after {result.attempt.attempts} attempts",
            provider,
            **kwargs,
        )
    if status in (401, 403):
        return Unauthorized(f"{provider} rejected the credentials (HTTP {status})", provider, **kwargs)
    if status == 402:
        return InsufficientCredits(f"{provider} reports insufficient credits", provider, **kwargs)
    if mentions_context_length(body):
        return ContextLengthExceeded(
            f"{provider} rejected the request: context length exceeded", provider, **kwargs
        )
    if status in GENERIC_RETRYABLE_STATUSES:
        return TransientServerError(
            f"{provider} returned HTTP {status} after {result.attempt.attempts} attempts",
            provider,
            **kwargs,
        )
    return ProviderResponseError(f"{provider} returned HTTP {status}", provider, **kwargs)


def raise_for_result(result: DispatchResult) -> DispatchResult:
    """Return ``result`` unchanged when it succeeded, raise the mapped error otherwise."""
    if result.ok:
        return result
    raise error_for_result(result)
