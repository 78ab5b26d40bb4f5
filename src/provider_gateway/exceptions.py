"""
Exception taxonomy for the provider gateway.

Every error carries a human-readable ``message`` and a ``details`` dict so the
API layer can render a structured response without inspecting the type.
Errors coming back from a provider additionally carry the provider id, the
HTTP status and the raw response body as the provider sent it.

Transient conditions (429/5xx, cold starts) are handled inside the
dispatcher. The classes here are what remains once the retry budget is spent,
or what is never retryable in the first place.
"""

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from provider_gateway.models.failover import FailoverAttemptRecord, FailoverEntry


COLD_START_HINT = "Model may still be loading. Retry in a little while."


class GatewayError(Exception):
    """
    Base exception for all gateway errors.

    Allows catching any gateway-related error with a single except clause.
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UnknownProvider(GatewayError):
    """Raised when a provider id is not among the configured set."""

    def __init__(self, provider: str):
        super().__init__(f"Unknown provider: {provider}", details={"provider": provider})
        self.provider = provider


class UnknownModelClass(GatewayError):
    """Raised when a failover model-class label has no configured chain."""

    def __init__(self, model_class: str):
        super().__init__(
            f"Unknown model class: {model_class}",
            details={"model_class": model_class},
        )
        self.model_class = model_class


class ProviderError(GatewayError):
    """
    Base class for failures attributed to a specific provider.

    Attributes:
        provider: Provider id that produced the failure
        status_code: HTTP status of the last response, if one was received
        body: Raw response body text, if one was received
        hint: Optional user-facing hint (e.g. cold start still in progress)
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        hint: Optional[str] = None,
        details: dict | None = None,
    ):
        merged = {"provider": provider, "status_code": status_code}
        if hint:
            merged["hint"] = hint
        merged.update(details or {})
        super().__init__(message, details=merged)
        self.provider = provider
        self.status_code = status_code
        self.body = body
        self.hint = hint


class Unauthorized(ProviderError):
    """401/403 from the provider. Credentials missing, invalid or revoked."""


class InsufficientCredits(ProviderError):
    """402 from the provider. The account cannot pay for the call."""


class ContextLengthExceeded(ProviderError):
    """The provider rejected the prompt as longer than the model's context."""


class ColdStart(ProviderError):
    """
    The model was still loading after the cold-start retry budget was spent.

    Always carries :data:`COLD_START_HINT` so callers can tell "still loading"
    apart from a genuine error.
    """

    def __init__(self, message: str, provider: str, **kwargs: Any):
        kwargs.setdefault("hint", COLD_START_HINT)
        super().__init__(message, provider, **kwargs)


class TransientServerError(ProviderError):
    """429/500/502/503/504 that persisted through every generic retry."""


class EmptyStream(ProviderError):
    """Streaming was requested but the provider returned no body."""


class CapabilityNotSupported(ProviderError):
    """The provider does not offer the requested feature (e.g. image generation)."""


class ProviderResponseError(ProviderError):
    """Any other non-2xx response, or a 2xx body that could not be decoded."""


class ProviderConnectionError(ProviderError):
    """
    Raised when the provider could not be reached.

    Includes DNS failures, refused connections and dropped sockets. Not
    retried by the dispatcher.
    """


class ProviderTimeoutError(ProviderConnectionError):
    """Raised when the provider did not answer within the request timeout."""


class AllProvidersFailed(GatewayError):
    """
    Raised when every entry of a failover chain was skipped or failed.

    Enumerates the whole chain, not just the last error, so the caller can
    see which providers were unconfigured and which answered with an error.

    Attributes:
        model_class: Abstract model-class label that was requested
        chain: Full ordered chain that was walked
        failures: One record per chain entry, in chain order
    """

    def __init__(
        self,
        model_class: str,
        chain: "tuple[FailoverEntry, ...]",
        failures: "list[FailoverAttemptRecord]",
    ):
        self.model_class = model_class
        self.chain = chain
        self.failures = failures
        tried = ", ".join(f"{f.provider}/{f.model} ({f.outcome})" for f in failures)
        super().__init__(
            f"All providers in failover chain '{model_class}' failed: {tried}",
            details={
                "model_class": model_class,
                "chain": [f"{e.provider}/{e.model}" for e in chain],
                "failures": [f.model_dump() for f in failures],
            },
        )
