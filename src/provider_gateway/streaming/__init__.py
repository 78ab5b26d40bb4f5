"""
Streaming support: SSE byte stream -> NormalizedChunk sequence.

Components:
- LineBuffer: Incremental UTF-8 line assembly across reads
- StreamNormalizer: Per-call SSE record parser (chat delta / token stream)
- ChunkStream: Async iterator owning the open httpx response
- normalize_response: Wrap an open httpx response in a ChunkStream
"""

from provider_gateway.streaming.lines import LineBuffer
from provider_gateway.streaming.normalizer import (
    DATA_PREFIX,
    DONE_SENTINEL,
    ChunkStream,
    StreamNormalizer,
    normalize_response,
)

__all__ = [
    "ChunkStream",
    "LineBuffer",
    "StreamNormalizer",
    "normalize_response",
    "DATA_PREFIX",
    "DONE_SENTINEL",
]
