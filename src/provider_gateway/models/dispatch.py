"""
Dispatch bookkeeping.

DispatchAttempt is the transient record of one logical call: which provider
and URL were hit, how many HTTP requests it took and how long the call spent
waiting between them. It lives only as long as the call and is never persisted.
"""

from dataclasses import dataclass, field
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from provider_gateway.models.enums import Classification


@dataclass(frozen=True)
class DispatchAttempt:
    """
    Attributes:
        provider: Provider id
        url: Fully-qualified URL that was called
        attempts: Number of HTTP requests issued (1 = no retry)
        elapsed_delay_ms: Sum of all backoff delays waited (ms)
        delays_ms: Individual backoff delays, in order
    """

    provider: str
    url: str
    attempts: int
    elapsed_delay_ms: float = 0.0
    delays_ms: tuple[float, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("attempts must be >= 1")
        if self.elapsed_delay_ms < 0:
            raise ValueError("elapsed_delay_ms must be >= 0")

    @property
    def retries(self) -> int:
        return self.attempts - 1


@dataclass(frozen=True)
class DispatchResult:
    """
    Final response of a logical call plus how it was obtained.

    ``response`` is the raw httpx response. For streaming calls that ended in
    success its body has not been read yet and the caller owns closing it.
    ``classification`` is the classification of that last response:
    TERMINAL, or a retryable class whose budget ran out.
    """

    response: httpx.Response
    attempt: DispatchAttempt
    classification: Classification

    @property
    def ok(self) -> bool:
        return self.response.is_success

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def retries_exhausted(self) -> bool:
        return self.classification is not Classification.TERMINAL


class RateLimitSnapshot(BaseModel):
    """Most recent rate-limit headers seen for one provider."""

    model_config = ConfigDict(frozen=True)

    limit: int
    remaining: int
    reset_at: float = Field(..., description="Epoch seconds when the window resets (advisory)")


class NormalizedChunk(BaseModel):
    """One incremental piece of a streamed completion."""

    model_config = ConfigDict(frozen=True)

    id: str
    provider: str
    model: str
    delta: str = ""
    finish_reason: Optional[str] = None

    def to_sse(self) -> str:
        return f"data: {self.model_dump_json()}\n\n"
