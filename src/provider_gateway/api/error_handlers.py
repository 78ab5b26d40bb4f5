"""
FastAPI exception handlers for structured error responses.

Maps gateway exceptions to HTTP status codes. Provider errors keep the
upstream status so a 401 from OpenRouter reaches the client as a 401.
"""

from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from provider_gateway.exceptions import (
    AllProvidersFailed,
    CapabilityNotSupported,
    GatewayError,
    ProviderConnectionError,
    ProviderError,
    ProviderTimeoutError,
    UnknownModelClass,
    UnknownProvider,
)

logger = structlog.get_logger(__name__)

# Upstream bodies can be whole HTML error pages
UPSTREAM_BODY_LIMIT = 2000


def _error_body(
    error: str,
    message: str,
    provider: Optional[str] = None,
    status_code: Optional[int] = None,
    hint: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    return {
        "error": error,
        "message": message,
        "provider": provider,
        "status_code": status_code,
        "hint": hint,
        "details": details or {},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def unknown_target_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """
    Handle unknown provider / unknown model class.

    Maps to 400 Bad Request (client asked for something that does not exist).
    """
    logger.warning("Unknown routing target", error=exc.message, details=exc.details)

    error = "unknown_model_class" if isinstance(exc, UnknownModelClass) else "unknown_provider"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(error, exc.message, details=exc.details),
    )


async def capability_error_handler(request: Request, exc: CapabilityNotSupported) -> JSONResponse:
    logger.warning("Capability not supported", provider=exc.provider, error=exc.message)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("capability_not_supported", exc.message, provider=exc.provider),
    )


async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    """
    Handle errors returned by a provider.

    Maps to the provider's own status when it is an error status, otherwise
    502 Bad Gateway.
    """
    http_status = exc.status_code if exc.status_code and exc.status_code >= 400 else 502
    logger.warning(
        "Provider error",
        error_type=type(exc).__name__,
        provider=exc.provider,
        status_code=exc.status_code,
        hint=exc.hint,
    )

    details = dict(exc.details)
    if exc.body:
        details["upstream_body"] = exc.body[:UPSTREAM_BODY_LIMIT]
    return JSONResponse(
        status_code=http_status,
        content=_error_body(
            "provider_error",
            exc.message,
            provider=exc.provider,
            status_code=exc.status_code,
            hint=exc.hint,
            details=details,
        ),
    )


async def provider_connection_error_handler(
    request: Request, exc: ProviderConnectionError
) -> JSONResponse:
    """
    Handle transport failures.

    Maps to 502 Bad Gateway, or 504 Gateway Timeout for timeouts.
    """
    is_timeout = isinstance(exc, ProviderTimeoutError)
    logger.error(
        "Provider unreachable",
        provider=exc.provider,
        timeout=is_timeout,
        error=exc.message,
    )

    return JSONResponse(
        status_code=(
            status.HTTP_504_GATEWAY_TIMEOUT if is_timeout else status.HTTP_502_BAD_GATEWAY
        ),
        content=_error_body(
            "provider_timeout" if is_timeout else "provider_unreachable",
            exc.message,
            provider=exc.provider,
            details=exc.details,
        ),
    )


async def all_providers_failed_handler(request: Request, exc: AllProvidersFailed) -> JSONResponse:
    """
    Handle an exhausted failover chain.

    Maps to 503 Service Unavailable and lists every entry that was tried.
    """
    logger.error(
        "Failover chain exhausted",
        model_class=exc.model_class,
        failures=exc.details["failures"],
    )

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body("all_providers_failed", exc.message, details=exc.details),
    )


async def pydantic_validation_error_handler(
    request: Request, exc: PydanticValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors raised while building domain models.

    Maps to 400 Bad Request (client error).
    """
    logger.warning("Invalid request format", errors=exc.errors())

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(
            "invalid_request",
            "Request validation failed",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ),
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error", error_type=type(exc).__name__)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("internal_error", "An unexpected error occurred"),
    )


# Exception handler mapping for FastAPI app.add_exception_handler().
# Starlette resolves handlers along the exception's MRO, so subclasses
# listed here win over ProviderError.
EXCEPTION_HANDLERS = {
    UnknownProvider: unknown_target_handler,
    UnknownModelClass: unknown_target_handler,
    CapabilityNotSupported: capability_error_handler,
    ProviderConnectionError: provider_connection_error_handler,
    ProviderError: provider_error_handler,
    AllProvidersFailed: all_providers_failed_handler,
    PydanticValidationError: pydantic_validation_error_handler,
    Exception: generic_error_handler,
}
