"""
Failover chain models.

A chain is static configuration: an ordered list of (provider, model) pairs
behind one abstract model-class label. It is read-only at request time.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class FailoverEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: str
    model: str


class FailoverChain(BaseModel):
    model_config = ConfigDict(frozen=True)

    model_class: str
    entries: tuple[FailoverEntry, ...] = Field(..., min_length=1)

    @classmethod
    def from_config(cls, model_class: str, entries: list[dict[str, str]]) -> "FailoverChain":
        return cls(
            model_class=model_class,
            entries=tuple(FailoverEntry(**entry) for entry in entries),
        )


class FailoverAttemptRecord(BaseModel):
    """
    What happened to one chain entry.

    outcome is one of: ``not_configured``, ``unknown_provider``,
    ``http_error``, ``transport_error``, ``invalid_body``.
    """

    provider: str
    model: str
    outcome: str
    status_code: Optional[int] = None
    error: Optional[str] = None
    attempts: int = 0


class TaggedCompletion(BaseModel):
    """Successful failover result, tagged with who actually served it."""

    model_config = ConfigDict(frozen=True)

    provider: str
    model: str
    data: dict[str, Any]
    attempts: tuple[FailoverAttemptRecord, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        return {**self.data, "_provider": self.provider, "_model": self.model}
