"""
Response classification.

Decides whether a provider response ends the retry loop (TERMINAL) or should
be retried, and under which schedule. The cold-start text match is kept in
``is_cold_start_body`` on purpose: it matches English error wording that
providers do not document, so it is the one place to touch when that wording
changes.
"""

import json
from collections.abc import Iterable
from typing import Any, Optional

import httpx

from provider_gateway.models.enums import Classification
from provider_gateway.providers.base import ProviderDescriptor


GENERIC_RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})

CONTEXT_LENGTH_MARKERS = (
    "context length",
    "context_length",
    "maximum context",
    "context window",
    "too many tokens",
)


def _collect_error_text(payload: Any) -> list[str]:
    if isinstance(payload, str):
        return [payload]
    if isinstance(payload, dict):
        texts: list[str] = []
        for key in ("message", "error", "detail", "error_message"):
            if key in payload:
                texts.extend(_collect_error_text(payload[key]))
        return texts
    if isinstance(payload, list):
        texts = []
        for item in payload:
            texts.extend(_collect_error_text(item))
        return texts
    return []


def error_text(body: str) -> Optional[str]:
    """
    Error message(s) from a JSON error body, lower-cased.

    Returns None when the body is not JSON. A JSON body without any of the
    usual message fields falls back to the whole body text.
    """
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, TypeError, ValueError):
        return None
    texts = _collect_error_text(payload)
    return (" ".join(texts) if texts else body).lower()


def is_cold_start_body(body: str, markers: Iterable[str]) -> bool:
    """
    True when a JSON error body says the model is still loading.

    Non-JSON bodies never match; the response then falls through to generic
    classification.
    """
    text = error_text(body)
    if text is None:
        return False
    return any(marker.lower() in text for marker in markers)


def mentions_context_length(body: str) -> bool:
    lowered = body.lower()
    return any(marker in lowered for marker in CONTEXT_LENGTH_MARKERS)


def classify(descriptor: ProviderDescriptor, response: httpx.Response) -> Classification:
    """
    Classify a response whose body has already been read.

    Cold-start detection wins over the generic status set, so a HuggingFace
    502 that says "loading" follows the cold-start schedule, while a bare 502
    follows the generic one.
    """
    status = response.status_code
    rule = descriptor.cold_start
    if (
        descriptor.capabilities.cold_start_prone
        and rule is not None
        and status == rule.status_code
        and is_cold_start_body(response.text, rule.markers)
    ):
        return Classification.RETRYABLE_COLD
    if status in GENERIC_RETRYABLE_STATUSES:
        return Classification.RETRYABLE_GENERIC
    return Classification.TERMINAL
