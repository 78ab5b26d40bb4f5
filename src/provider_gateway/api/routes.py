"""
Provider API routes.

Chat, embeddings and image bodies are OpenAI-style dicts forwarded to the
provider untouched. Streaming chat is re-emitted as normalized SSE frames:

    data: {"id": ..., "provider": ..., "model": ..., "delta": ..., "finish_reason": ...}

    data: [DONE]

The fixed ``/api/failover/...`` and ``/api/huggingface/featherless/...``
routes are registered before ``/api/{provider}/...`` so they are matched
first.
"""

import json
from collections.abc import AsyncIterator
from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from provider_gateway.api.dependencies import get_gateway, get_settings
from provider_gateway.api.models import FailoverChatRequest, HealthResponse
from provider_gateway.config import Settings
from provider_gateway.exceptions import ProviderError
from provider_gateway.gateway import ChatResult, ProviderGateway
from provider_gateway.streaming.normalizer import DONE_SENTINEL, ChunkStream

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api")

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def _sse_frames(chunks: ChunkStream) -> AsyncIterator[str]:
    try:
        async for chunk in chunks:
            yield chunk.to_sse()
    except ProviderError as exc:
        # Headers are already sent; the error can only travel in-band
        logger.warning(
            "Stream failed after response started",
            provider=exc.provider,
            error=exc.message,
        )
        yield f"data: {json.dumps({'error': exc.message, 'provider': exc.provider})}\n\n"
    finally:
        # Also reached when the client disconnects mid-stream
        await chunks.aclose()
    yield f"data: {DONE_SENTINEL}\n\n"


def _chat_response(result: ChatResult) -> Any:
    if isinstance(result, dict):
        return result
    return StreamingResponse(
        _sse_frames(result),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


def _require_model(body: dict[str, Any]) -> None:
    if not body.get("model"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must include 'model'",
        )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health_check(
    gateway: ProviderGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    """Report which providers have credentials configured."""
    return HealthResponse(
        status="healthy",
        version=settings.APP_VERSION,
        providers={d.id.value: d.is_configured() for d in gateway.registry},
    )


@router.get("/providers", summary="Provider capabilities")
async def list_providers(gateway: ProviderGateway = Depends(get_gateway)) -> dict[str, Any]:
    """Capabilities, configuration state and last rate-limit snapshot per provider."""
    return gateway.describe_providers()


@router.post(
    "/failover/chat/completions",
    summary="Chat with provider failover",
    responses={
        200: {"description": "Completion tagged with _provider and _model"},
        400: {"description": "Unknown model class"},
        503: {"description": "Every provider in the chain failed"},
    },
)
async def failover_chat(
    request: FailoverChatRequest,
    gateway: ProviderGateway = Depends(get_gateway),
) -> dict[str, Any]:
    tagged = await gateway.call_failover_chat(
        request.model_class, request.messages, request.extra_params()
    )
    return tagged.as_dict()


@router.post(
    "/huggingface/featherless/chat/completions",
    summary="Featherless models through the HuggingFace router",
)
async def featherless_via_huggingface(
    body: dict[str, Any] = Body(...),
    gateway: ProviderGateway = Depends(get_gateway),
):
    _require_model(body)
    result = await gateway.call_featherless_via_huggingface(body)
    return _chat_response(result)


@router.post(
    "/{provider}/chat/completions",
    summary="Chat completion (streaming or not)",
    responses={
        200: {"description": "Completion JSON, or text/event-stream when stream=true"},
        400: {"description": "Unknown provider or missing model"},
    },
)
async def chat_completions(
    provider: str,
    body: dict[str, Any] = Body(...),
    gateway: ProviderGateway = Depends(get_gateway),
):
    _require_model(body)
    result = await gateway.call_chat(provider, body)
    return _chat_response(result)


@router.get("/{provider}/models", summary="List provider models (cached)")
async def list_models(
    provider: str,
    gateway: ProviderGateway = Depends(get_gateway),
) -> dict[str, Any]:
    models = await gateway.list_models(provider)
    return {"data": models}


@router.post("/{provider}/images/generations", summary="Generate images")
async def generate_image(
    provider: str,
    body: dict[str, Any] = Body(...),
    gateway: ProviderGateway = Depends(get_gateway),
) -> Any:
    return await gateway.generate_image(provider, body)


@router.post("/{provider}/embeddings", summary="Create embeddings")
async def create_embeddings(
    provider: str,
    body: dict[str, Any] = Body(...),
    gateway: ProviderGateway = Depends(get_gateway),
) -> Any:
    return await gateway.create_embeddings(provider, body)
