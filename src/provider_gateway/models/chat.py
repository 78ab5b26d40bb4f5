"""
Chat request/response models.

ChatRequest is the caller-facing value object; ``to_payload()`` renders the
OpenAI-style body every provider accepts. Extension fields (tools,
response_format, provider routing hints, venice_parameters, ...) are passed
through untouched.

ChatCompletion is the normalized non-streaming result, built from either a
chat-style or a text-generation response body.
"""

import time
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from provider_gateway.exceptions import ProviderResponseError
from provider_gateway.models.enums import MessageRole, StreamShape


class TextPart(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ImageUrl(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="http(s) URL or data: URL with base64 payload")
    detail: Optional[str] = None


class ImagePart(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["image_url"] = "image_url"
    image_url: ImageUrl


ContentPart = Union[TextPart, ImagePart]


class ChatMessage(BaseModel):
    """
    One message of a conversation.

    Content is either plain text or an ordered sequence of typed parts. Part
    order is preserved exactly as supplied.
    """

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: Union[str, tuple[ContentPart, ...]]
    name: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        if isinstance(self.content, str):
            content: Any = self.content
        else:
            content = [part.model_dump(exclude_none=True) for part in self.content]
        payload: dict[str, Any] = {"role": self.role.value, "content": content}
        if self.name is not None:
            payload["name"] = self.name
        return payload

    def text(self) -> str:
        """Concatenated text of the message; image parts are ignored."""
        if isinstance(self.content, str):
            return self.content
        return "".join(p.text for p in self.content if isinstance(p, TextPart))


class ChatRequest(BaseModel):
    """
    Provider-agnostic chat-completion request.

    Never mutated once dispatch begins (frozen). Message order is the
    conversation order and is never changed.
    """

    model_config = ConfigDict(frozen=True)

    model: str = Field(..., min_length=1)
    messages: tuple[ChatMessage, ...] = Field(..., min_length=1)
    max_tokens: Optional[int] = Field(default=None, ge=1)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    stop: Optional[Union[str, tuple[str, ...]]] = None
    extensions: dict[str, Any] = Field(
        default_factory=dict,
        description="Provider-specific fields merged into the body verbatim",
    )
    stream: bool = False

    def to_payload(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_payload() for m in self.messages],
        }
        if self.max_tokens is not None:
            body["max_tokens"] = self.max_tokens
        if self.temperature is not None:
            body["temperature"] = self.temperature
        if self.top_p is not None:
            body["top_p"] = self.top_p
        if self.stop is not None:
            body["stop"] = self.stop if isinstance(self.stop, str) else list(self.stop)
        if self.stream:
            body["stream"] = True
        # Extensions never override the core fields above
        for key, value in self.extensions.items():
            body.setdefault(key, value)
        return body


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class CompletionChoice(BaseModel):
    index: int = 0
    message: dict[str, Any]
    finish_reason: Optional[str] = None


class ChatCompletion(BaseModel):
    """Normalized non-streaming completion."""

    id: str
    provider: str
    model: str
    choices: list[CompletionChoice]
    usage: Optional[Usage] = None
    created: int

    @property
    def text(self) -> str:
        if not self.choices:
            return ""
        return self.choices[0].message.get("content") or ""

    @classmethod
    def from_payload(
        cls,
        provider: str,
        model: str,
        data: Any,
        shape: StreamShape = StreamShape.CHAT_DELTA,
    ) -> "ChatCompletion":
        """
        Build a completion from a provider response body.

        Chat-style bodies carry ``choices``; HF text-generation bodies are a
        list (or a single object) with ``generated_text``.

        Raises:
            ProviderResponseError: the body is valid JSON but not either layout
        """
        try:
            return cls._build(provider, model, data, shape)
        except (TypeError, ValueError) as e:
            raise ProviderResponseError(
                f"{provider} returned a completion body of unexpected shape",
                provider,
                body=str(data)[:500],
                details={"model": model, "error": str(e)},
            ) from e

    @classmethod
    def _build(cls, provider: str, model: str, data: Any, shape: StreamShape) -> "ChatCompletion":
        now = int(time.time())
        if shape is StreamShape.TOKEN_STREAM:
            result = data[0] if isinstance(data, list) and data else data
            if not isinstance(result, dict):
                raise TypeError(f"expected an object with generated_text, got {type(result).__name__}")
            text = result.get("generated_text") or ""
            if not isinstance(text, str):
                raise TypeError("generated_text is not a string")
            return cls(
                id=f"{provider}-{int(time.time() * 1000)}",
                provider=provider,
                model=model,
                choices=[
                    CompletionChoice(
                        index=0,
                        message={"role": "assistant", "content": text.strip()},
                        finish_reason="stop",
                    )
                ],
                created=now,
            )

        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        choices = data.get("choices") or []
        if not isinstance(choices, list) or not all(isinstance(c, dict) for c in choices):
            raise TypeError("choices is not a list of objects")
        usage = data.get("usage")
        return cls(
            id=data.get("id") or f"{provider}-{int(time.time() * 1000)}",
            provider=provider,
            model=data.get("model") or model,
            choices=[
                CompletionChoice(
                    index=choice.get("index", i),
                    message=choice.get("message") or {},
                    finish_reason=choice.get("finish_reason"),
                )
                for i, choice in enumerate(choices)
            ],
            usage=Usage(**usage) if isinstance(usage, dict) else None,
            created=data.get("created") or now,
        )
