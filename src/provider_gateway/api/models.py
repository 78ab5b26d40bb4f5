"""
API-specific request and response models for FastAPI endpoints.

Chat, embeddings and image bodies are forwarded to providers verbatim, so
those routes take a plain dict. Only the gateway's own envelopes are modeled.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str = Field(
        description="Service status",
        examples=["healthy"],
    )
    version: str = Field(
        description="Application version",
    )
    providers: dict[str, bool] = Field(
        description="Provider id -> credential configured",
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Check timestamp (UTC)",
    )


class FailoverChatRequest(BaseModel):
    """
    Request for the failover chat endpoint.

    Any field besides ``modelClass`` and ``messages`` (temperature,
    max_tokens, tools, ...) is forwarded to every chain entry.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    model_class: str = Field(
        alias="modelClass",
        min_length=1,
        description="Abstract model class label",
        examples=["llama-70b-class"],
    )
    messages: list[dict[str, Any]] = Field(
        min_length=1,
        description="OpenAI-style chat messages",
    )

    def extra_params(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class ErrorResponse(BaseModel):
    """Structured error body returned by every exception handler."""

    error: str
    message: str
    provider: Optional[str] = None
    status_code: Optional[int] = None
    hint: Optional[str] = None
    details: dict[str, Any] = Field(default_factory=dict)
