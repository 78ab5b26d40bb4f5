"""FastAPI middleware for request tracing and logging."""

import time
import uuid
from typing import Callable, Optional

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from provider_gateway.models.enums import ProviderId

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_PROVIDER_IDS = frozenset(p.value for p in ProviderId)


def provider_from_path(path: str) -> Optional[str]:
    """Provider id addressed by an ``/api/{provider}/...`` path, if any."""
    parts = path.strip("/").split("/")
    if len(parts) >= 2 and parts[0] == "api" and parts[1] in _PROVIDER_IDS:
        return parts[1]
    return None


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the structlog context of every request.

    An incoming ``X-Request-ID`` is reused so a caller can correlate its own
    logs with ours; otherwise a UUID4 is generated. The id is echoed back in
    the response header. Provider calls made while handling the request log
    with the same id, and with the addressed provider when the path names one.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        # Carried by every log line emitted while handling this request
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_host=request.client.host if request.client else None,
        )
        provider = provider_from_path(request.url.path)
        if provider is not None:
            structlog.contextvars.bind_contextvars(provider=provider)

        logger.info(
            "Request started",
            query_params=dict(request.query_params) if request.query_params else None,
        )

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start_time) * 1000

            # For streaming responses this marks the start of the body, not its end
            logger.info(
                "Request completed",
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "Request failed",
                exc_info=exc,
                duration_ms=round(duration_ms, 2),
            )
            raise

        finally:
            # Context vars outlive the request on a reused task
            structlog.contextvars.clear_contextvars()
