"""
In-memory model list cache.

Model lists change rarely and some providers return thousands of entries, so
each provider's list is kept for ``MODEL_CACHE_TTL_SECONDS`` (5 minutes by
default). Process-lifetime only; nothing is persisted.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

import structlog


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CachedModels:
    data: list[Any]
    fetched_at: float


class ModelCatalog:
    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CachedModels] = {}

    def get(self, provider: str) -> Optional[list[Any]]:
        entry = self._entries.get(provider)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self.ttl_seconds:
            logger.debug("Model cache expired", provider=provider)
            del self._entries[provider]
            return None
        return entry.data

    def put(self, provider: str, data: list[Any]) -> None:
        self._entries[provider] = CachedModels(data=data, fetched_at=self._clock())

    def invalidate(self, provider: Optional[str] = None) -> None:
        if provider is None:
            self._entries.clear()
        else:
            self._entries.pop(provider, None)


def extract_models(payload: Any) -> list[Any]:
    """Providers disagree on the envelope: ``data``, ``models`` or a bare list."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        return payload.get("data") or payload.get("models") or []
    return []
