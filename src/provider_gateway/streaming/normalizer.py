"""
Stream normalizer.

Converts a provider's Server-Sent-Events byte stream into NormalizedChunk
objects. Per complete line:

- empty lines and keep-alive comments (provider comment prefix, ``:``) are
  discarded
- ``data: [DONE]`` ends the sequence; anything after it is ignored, even
  bytes that arrived in the same read
- any other ``data:`` payload is JSON-decoded; records that fail to decode
  are dropped and iteration continues
- a decoded record yields at most one chunk, from the field path of the
  stream shape (chat delta or raw token)

``normalize_response`` wraps an open httpx response in a ``ChunkStream`` that
closes it on every exit path: end of data, ``[DONE]``, an exception, or the
consumer calling ``aclose`` (even before the first chunk). The sequence can
only be restarted by issuing a new call.
"""

import json
import time
from collections.abc import AsyncIterator
from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError

from provider_gateway.exceptions import EmptyStream
from provider_gateway.models.dispatch import NormalizedChunk
from provider_gateway.models.enums import StreamShape
from provider_gateway.monitoring.metrics import stream_chunks_dropped_total
from provider_gateway.streaming.lines import LineBuffer


logger = structlog.get_logger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


class StreamNormalizer:
    """
    Stateful parser for one streamed call.

    ``feed`` accepts raw bytes and returns the chunks completed by them; once
    the terminal sentinel has been seen ``done`` is True and further input is
    ignored.

    Args:
        provider: Provider id, copied into every chunk
        model: Requested model, used when a record carries none
        shape: Field path to extract text from
        comment_prefix: Lines starting with this are keep-alives
    """

    def __init__(
        self,
        provider: str,
        model: str,
        shape: StreamShape = StreamShape.CHAT_DELTA,
        comment_prefix: str = ":",
    ):
        self.provider = provider
        self.model = model
        self.shape = shape
        self.comment_prefix = comment_prefix
        self.stream_id = f"{provider}-{int(time.time() * 1000)}"
        self.done = False
        self.dropped = 0
        self._lines = LineBuffer()

    def feed(self, data: bytes) -> list[NormalizedChunk]:
        if self.done:
            return []
        chunks: list[NormalizedChunk] = []
        for line in self._lines.feed(data):
            chunk = self._parse_line(line)
            if self.done:
                break
            if chunk is not None:
                chunks.append(chunk)
        return chunks

    def _parse_line(self, line: str) -> Optional[NormalizedChunk]:
        stripped = line.strip()
        if not stripped:
            return None
        if self.comment_prefix and stripped.startswith(self.comment_prefix):
            return None
        if not stripped.startswith(DATA_PREFIX):
            # event:, id:, retry: fields carry nothing we use
            return None

        payload = stripped[len(DATA_PREFIX):].strip()
        if payload == DONE_SENTINEL:
            self.done = True
            return None

        try:
            record = json.loads(payload)
        except json.JSONDecodeError:
            self._drop(payload)
            return None
        if not isinstance(record, dict):
            self._drop(payload)
            return None

        try:
            if self.shape is StreamShape.TOKEN_STREAM:
                return self._from_token_record(record)
            return self._from_chat_record(record)
        except ValidationError:
            # Valid JSON, but id/model/finish_reason of the wrong type
            self._drop(payload)
            return None

    def _drop(self, payload: str) -> None:
        self.dropped += 1
        stream_chunks_dropped_total.labels(provider=self.provider).inc()
        logger.debug(
            "Dropped malformed stream record",
            provider=self.provider,
            payload_snippet=payload[:120],
        )

    def _chunk(self, record: dict[str, Any], delta: str, finish_reason: Optional[str]) -> NormalizedChunk:
        return NormalizedChunk(
            id=record.get("id") or self.stream_id,
            provider=self.provider,
            model=record.get("model") or self.model,
            delta=delta,
            finish_reason=finish_reason,
        )

    def _from_chat_record(self, record: dict[str, Any]) -> Optional[NormalizedChunk]:
        choices = record.get("choices")
        if not isinstance(choices, list) or not choices:
            if "error" in record:
                logger.warning("Provider reported an error mid-stream", provider=self.provider, error=record["error"])
            return None
        choice = choices[0] if isinstance(choices[0], dict) else {}
        delta = choice.get("delta") or {}
        content = delta.get("content") if isinstance(delta, dict) else None
        text = content if isinstance(content, str) else ""
        finish_reason = choice.get("finish_reason")
        if not text and finish_reason is None:
            return None
        return self._chunk(record, text, finish_reason)

    def _from_token_record(self, record: dict[str, Any]) -> Optional[NormalizedChunk]:
        token = record.get("token")
        text = ""
        if isinstance(token, dict) and not token.get("special"):
            text = token.get("text") or ""
        finish_reason = "stop" if record.get("generated_text") is not None else None
        if not text and finish_reason is None:
            return None
        return self._chunk(record, text, finish_reason)


class ChunkStream:
    """
    Async iterator over the normalized chunks of one streamed call.

    Owns the open response. ``aclose`` releases it whether or not iteration
    ever started; exhausting the iterator or an error while reading releases
    it as well.

    Usage:
        async with await gateway.call_chat("together", body, stream=True) as chunks:
            async for chunk in chunks:
                print(chunk.delta, end="")

    Raises (while iterating):
        EmptyStream: the transport ended without delivering a single byte
    """

    def __init__(self, response: httpx.Response, normalizer: StreamNormalizer):
        self.response = response
        self.normalizer = normalizer
        self._chunks = _iter_chunks(response, normalizer)

    def __aiter__(self) -> "ChunkStream":
        return self

    async def __anext__(self) -> NormalizedChunk:
        return await self._chunks.__anext__()

    async def aclose(self) -> None:
        try:
            await self._chunks.aclose()
        finally:
            await self.response.aclose()

    async def __aenter__(self) -> "ChunkStream":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


def normalize_response(response: httpx.Response, normalizer: StreamNormalizer) -> ChunkStream:
    """Lazily normalize an open streaming response."""
    return ChunkStream(response, normalizer)


async def _iter_chunks(
    response: httpx.Response,
    normalizer: StreamNormalizer,
) -> AsyncIterator[NormalizedChunk]:
    received = 0
    try:
        async for data in response.aiter_bytes():
            received += len(data)
            for chunk in normalizer.feed(data):
                yield chunk
            if normalizer.done:
                break
        if received == 0:
            raise EmptyStream(
                f"{normalizer.provider} stream ended without any data",
                provider=normalizer.provider,
                status_code=response.status_code,
            )
        logger.debug(
            "Stream finished",
            provider=normalizer.provider,
            model=normalizer.model,
            bytes_received=received,
            saw_done=normalizer.done,
            dropped=normalizer.dropped,
        )
    finally:
        await response.aclose()
