"""
Provider gateway facade.

One object owning the registry, the rate-limit tracker, the retrying
dispatcher, the model catalog and the failover orchestrator. Everything a
caller (or the HTTP API) does goes through here.

Usage:
    async with ProviderGateway() as gateway:
        data = await gateway.call_chat("together", {"model": "...", "messages": [...]})

        chunks = await gateway.call_chat("openrouter", body, stream=True)
        async for chunk in chunks:
            print(chunk.delta, end="")

        tagged = await gateway.call_failover_chat("llama-70b-class", messages)
"""

import asyncio
import json
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Optional, Union

import httpx
import structlog

from provider_gateway.catalog import ModelCatalog, extract_models
from provider_gateway.config import Settings, settings as default_settings
from provider_gateway.dispatch.dispatcher import RetryingDispatcher
from provider_gateway.dispatch.errors import raise_for_result
from provider_gateway.dispatch.policy import RetryPolicy
from provider_gateway.exceptions import CapabilityNotSupported, ProviderResponseError
from provider_gateway.failover import FailoverOrchestrator
from provider_gateway.models.chat import ChatCompletion, ChatMessage, ChatRequest
from provider_gateway.models.dispatch import DispatchResult, RateLimitSnapshot
from provider_gateway.models.enums import ProviderId, StreamShape
from provider_gateway.models.failover import TaggedCompletion
from provider_gateway.providers.huggingface import with_featherless_route
from provider_gateway.providers.registry import ProviderRegistry
from provider_gateway.ratelimit import RateLimitTracker
from provider_gateway.streaming.normalizer import ChunkStream, StreamNormalizer, normalize_response


logger = structlog.get_logger(__name__)

ChatResult = Union[dict[str, Any], ChunkStream]


def _decode_json(result: DispatchResult) -> Any:
    try:
        return result.response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        provider = result.attempt.provider
        raise ProviderResponseError(
            f"{provider} returned a body that is not valid JSON",
            provider,
            status_code=result.status_code,
            body=result.response.text,
            details={"url": result.attempt.url, "error": str(e)},
        ) from e


class ProviderGateway:
    """
    Entry point for provider calls.

    Args:
        settings: Application settings (default: module-level settings)
        environ: Mapping credentials are read from (default ``os.environ``)
        transport: Optional httpx transport, shared by every provider call
        sleep: Awaitable delay used between retries
        policy: Retry policy override
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        environ: Optional[Mapping[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        policy: Optional[RetryPolicy] = None,
    ):
        self.settings = settings or default_settings
        self.registry = ProviderRegistry(self.settings, environ)
        self.tracker = RateLimitTracker()
        self.dispatcher = RetryingDispatcher(
            self.registry,
            self.tracker,
            self.settings,
            policy=policy,
            transport=transport,
            sleep=sleep,
        )
        self.catalog = ModelCatalog(ttl_seconds=self.settings.MODEL_CACHE_TTL_SECONDS)
        self.failover = FailoverOrchestrator.from_settings(
            self.dispatcher, self.registry, self.settings
        )

    # === Chat ===

    async def call_chat(
        self,
        provider: Union[str, ProviderId],
        body: Mapping[str, Any],
        stream: Optional[bool] = None,
    ) -> ChatResult:
        """
        Send a chat-completion request to one provider.

        Args:
            provider: Provider id
            body: OpenAI-style chat body; unknown fields pass through
            stream: Override ``body["stream"]``

        Returns:
            The decoded JSON body, or a ChunkStream of NormalizedChunk
            when streaming. HF text-generation answers are reshaped into the
            chat-completion layout so both paths look the same to callers.

        Raises:
            UnknownProvider, ProviderError subclasses (see dispatch.errors)
        """
        descriptor = self.registry.get(provider)
        provider_name = descriptor.id.value
        streaming = bool(body.get("stream")) if stream is None else stream
        model = body.get("model") or ""

        payload = dict(body)
        payload.pop("stream", None)
        if streaming:
            payload["stream"] = True

        target = descriptor.chat_target(model)
        shaped = descriptor.shape_chat_body(payload, target)

        logger.info(
            "Chat request",
            provider=provider_name,
            model=model,
            stream=streaming,
            shape=target.shape.value,
        )

        result = await self.dispatcher.dispatch(
            provider_name, target.path, shaped, stream=streaming
        )
        if not result.ok:
            await result.response.aclose()
            raise_for_result(result)

        if streaming:
            normalizer = StreamNormalizer(
                provider_name,
                model,
                shape=target.shape,
                comment_prefix=descriptor.comment_prefix,
            )
            return normalize_response(result.response, normalizer)

        data = _decode_json(result)
        if target.shape is StreamShape.TOKEN_STREAM:
            return ChatCompletion.from_payload(provider_name, model, data, target.shape).model_dump()
        return data

    async def chat(self, provider: Union[str, ProviderId], request: ChatRequest) -> ChatCompletion:
        """Non-streaming chat returning a normalized ChatCompletion."""
        provider_name = self.registry.get(provider).id.value
        data = await self.call_chat(provider_name, request.to_payload(), stream=False)
        if not isinstance(data, dict):
            raise ProviderResponseError(
                f"{provider_name} returned an unexpected completion body",
                provider_name,
                body=str(data)[:500],
            )
        return ChatCompletion.from_payload(provider_name, request.model, data)

    async def stream_chat(
        self, provider: Union[str, ProviderId], request: ChatRequest
    ) -> ChunkStream:
        return await self.call_chat(provider, request.to_payload(), stream=True)

    async def call_featherless_via_huggingface(
        self,
        body: Mapping[str, Any],
        stream: Optional[bool] = None,
    ) -> ChatResult:
        """Route a chat request through the HF router to the Featherless backend."""
        routed = dict(body)
        routed["model"] = with_featherless_route(routed.get("model") or "")
        return await self.call_chat(ProviderId.HUGGINGFACE, routed, stream=stream)

    async def call_failover_chat(
        self,
        model_class: str,
        messages: Sequence[Union[ChatMessage, Mapping[str, Any]]],
        extra_params: Optional[Mapping[str, Any]] = None,
    ) -> TaggedCompletion:
        return await self.failover.run(model_class, messages, extra_params)

    # === Auxiliary endpoints ===

    async def call_auxiliary(
        self,
        provider: Union[str, ProviderId],
        path: str,
        body: Optional[Any] = None,
    ) -> httpx.Response:
        """
        Non-streaming call to any provider endpoint, same retry rules as chat.

        The response is returned as received; the caller decides what a
        non-2xx status means.
        """
        result = await self.dispatcher.dispatch(provider, path, body)
        return result.response

    async def list_models(self, provider: Union[str, ProviderId]) -> list[Any]:
        descriptor = self.registry.get(provider)
        provider_name = descriptor.id.value

        cached = self.catalog.get(provider_name)
        if cached is not None:
            logger.debug("Model list served from cache", provider=provider_name)
            return cached

        result = raise_for_result(
            await self.dispatcher.dispatch(provider_name, descriptor.models_path)
        )
        models = extract_models(_decode_json(result))
        self.catalog.put(provider_name, models)
        logger.info("Fetched model list", provider=provider_name, count=len(models))
        return models

    async def create_embeddings(
        self, provider: Union[str, ProviderId], body: Mapping[str, Any]
    ) -> Any:
        descriptor = self.registry.get(provider)
        result = raise_for_result(
            await self.dispatcher.dispatch(descriptor.id.value, descriptor.embeddings_path, dict(body))
        )
        return _decode_json(result)

    async def generate_image(
        self, provider: Union[str, ProviderId], body: Mapping[str, Any]
    ) -> Any:
        descriptor = self.registry.get(provider)
        provider_name = descriptor.id.value
        if not descriptor.capabilities.image_gen:
            raise CapabilityNotSupported(
                f"{descriptor.display_name} does not support image generation",
                provider_name,
            )
        result = raise_for_result(
            await self.dispatcher.dispatch(
                provider_name, descriptor.image_generation_path, dict(body)
            )
        )
        return _decode_json(result)

    # === State ===

    def rate_limit(self, provider: Union[str, ProviderId]) -> Optional[RateLimitSnapshot]:
        return self.tracker.get(self.registry.get(provider).id.value)

    def describe_providers(self) -> dict[str, dict[str, Any]]:
        providers = self.registry.describe()
        for name, info in providers.items():
            snapshot = self.tracker.get(name)
            info["rateLimit"] = snapshot.model_dump() if snapshot else None
        return providers

    async def close(self) -> None:
        await self.dispatcher.close()

    async def __aenter__(self) -> "ProviderGateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
