"""
Enumerations for the provider gateway.

All enums are closed sets: the provider list is fixed at build time.
"""

from enum import Enum


class ProviderId(str, Enum):
    """Supported inference providers."""

    OPENROUTER = "openrouter"
    HUGGINGFACE = "huggingface"
    FEATHERLESS = "featherless"
    VENICE = "venice"
    TOGETHER = "together"


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class StreamShape(str, Enum):
    """
    Wire shape of a provider's streamed records.

    CHAT_DELTA: OpenAI-style ``choices[0].delta.content``
    TOKEN_STREAM: HF text-generation ``token.text``
    """

    CHAT_DELTA = "chat_delta"
    TOKEN_STREAM = "token_stream"


class Classification(str, Enum):
    """Outcome of inspecting one provider response."""

    TERMINAL = "terminal"
    RETRYABLE_COLD = "retryable_cold"
    RETRYABLE_GENERIC = "retryable_generic"


class FailoverState(str, Enum):
    """Per-call state of the failover orchestrator."""

    PENDING = "pending"
    TRYING_ENTRY = "trying_entry"
    NEXT_ENTRY = "next_entry"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"
