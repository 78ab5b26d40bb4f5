"""
Data models for the provider gateway.

Includes:
- Enums (ProviderId, MessageRole, StreamShape, Classification, FailoverState)
- Chat models (ChatMessage, TextPart, ImagePart, ChatRequest, ChatCompletion)
- Dispatch models (DispatchAttempt, DispatchResult, RateLimitSnapshot, NormalizedChunk)
- Failover models (FailoverEntry, FailoverChain, FailoverAttemptRecord, TaggedCompletion)
"""

from provider_gateway.models.enums import (
    Classification,
    FailoverState,
    MessageRole,
    ProviderId,
    StreamShape,
)
from provider_gateway.models.chat import (
    ChatCompletion,
    ChatMessage,
    ChatRequest,
    CompletionChoice,
    ImagePart,
    ImageUrl,
    TextPart,
    Usage,
)
from provider_gateway.models.dispatch import (
    DispatchAttempt,
    DispatchResult,
    NormalizedChunk,
    RateLimitSnapshot,
)
from provider_gateway.models.failover import (
    FailoverAttemptRecord,
    FailoverChain,
    FailoverEntry,
    TaggedCompletion,
)

__all__ = [
    # Enums
    "Classification",
    "FailoverState",
    "MessageRole",
    "ProviderId",
    "StreamShape",
    # Chat
    "ChatCompletion",
    "ChatMessage",
    "ChatRequest",
    "CompletionChoice",
    "ImagePart",
    "ImageUrl",
    "TextPart",
    "Usage",
    # Dispatch
    "DispatchAttempt",
    "DispatchResult",
    "NormalizedChunk",
    "RateLimitSnapshot",
    # Failover
    "FailoverAttemptRecord",
    "FailoverChain",
    "FailoverEntry",
    "TaggedCompletion",
]
