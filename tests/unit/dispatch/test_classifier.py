"""
Unit tests for response classification and terminal error mapping.
"""

import httpx
import pytest

from provider_gateway.dispatch.classifier import (
    classify,
    error_text,
    is_cold_start_body,
    mentions_context_length,
)
from provider_gateway.dispatch.errors import error_for_result, raise_for_result
from provider_gateway.exceptions import (
    COLD_START_HINT,
    ColdStart,
    ContextLengthExceeded,
    InsufficientCredits,
    ProviderResponseError,
    TransientServerError,
    Unauthorized,
)
from provider_gateway.models.dispatch import DispatchAttempt, DispatchResult
from provider_gateway.models.enums import Classification


def make_result(status_code, payload=None, text=None, classification=Classification.TERMINAL):
    if text is not None:
        response = httpx.Response(status_code, text=text)
    else:
        response = httpx.Response(status_code, json=payload if payload is not None else {})
    attempt = DispatchAttempt(provider="openrouter", url="https://openrouter.test/x", attempts=1)
    return DispatchResult(response=response, attempt=attempt, classification=classification)


def test_error_text_reads_nested_message():
    assert error_text('{"error": {"message": "Model Is COLD"}}') == "model is cold"


def test_error_text_non_json_is_none():
    assert error_text("<html>502 Bad Gateway</html>") is None


def test_error_text_json_without_known_fields_falls_back_to_body():
    assert error_text('{"status": "Loading"}') == '{"status": "loading"}'


def test_is_cold_start_body_matches_case_insensitively():
    assert is_cold_start_body('{"message": "Model is Cold"}', ("cold", "not ready"))
    assert is_cold_start_body('{"detail": "model NOT READY"}', ("cold", "not ready"))
    assert not is_cold_start_body('{"message": "bad request"}', ("cold", "not ready"))


def test_is_cold_start_body_ignores_non_json():
    assert not is_cold_start_body("model is cold", ("cold",))


@pytest.mark.parametrize(
    "body",
    [
        '{"error": "This model\'s maximum context length is 8192 tokens"}',
        '{"error": {"code": "context_length_exceeded"}}',
        "Too many tokens in prompt",
    ],
)
def test_mentions_context_length(body):
    assert mentions_context_length(body)


def test_classify_generic_statuses(registry):
    descriptor = registry.get("together")

    for status in (429, 500, 502, 503, 504):
        assert classify(descriptor, httpx.Response(status, json={})) is Classification.RETRYABLE_GENERIC
    assert classify(descriptor, httpx.Response(200, json={})) is Classification.TERMINAL
    assert classify(descriptor, httpx.Response(404, json={})) is Classification.TERMINAL


def test_classify_cold_start_requires_designated_status(registry):
    featherless = registry.get("featherless")

    cold_400 = httpx.Response(400, json={"message": "Model is Cold"})
    cold_500 = httpx.Response(500, json={"message": "Model is Cold"})

    assert classify(featherless, cold_400) is Classification.RETRYABLE_COLD
    assert classify(featherless, cold_500) is Classification.RETRYABLE_GENERIC


def test_classify_cold_marker_ignored_without_capability(registry):
    venice = registry.get("venice")

    response = httpx.Response(400, json={"message": "Model is Cold"})

    assert classify(venice, response) is Classification.TERMINAL


def test_error_for_cold_result_carries_hint():
    result = make_result(400, {"message": "Model is Cold"}, classification=Classification.RETRYABLE_COLD)

    error = error_for_result(result)

    assert isinstance(error, ColdStart)
    assert error.hint == COLD_START_HINT
    assert error.details["hint"] == COLD_START_HINT
    assert error.status_code == 400
    assert "Model is Cold" in error.body


@pytest.mark.parametrize("status_code", [401, 403])
def test_error_for_auth_failures(status_code):
    error = error_for_result(make_result(status_code, {"error": "bad key"}))

    assert isinstance(error, Unauthorized)
    assert error.hint is None
    assert error.provider == "openrouter"


def test_error_for_insufficient_credits():
    assert isinstance(error_for_result(make_result(402, {"error": "pay up"})), InsufficientCredits)


def test_error_for_context_length():
    result = make_result(400, {"error": {"message": "maximum context length exceeded"}})

    assert isinstance(error_for_result(result), ContextLengthExceeded)


def test_error_for_exhausted_transient():
    result = make_result(503, {"error": "busy"}, classification=Classification.RETRYABLE_GENERIC)

    error = error_for_result(result)

    assert isinstance(error, TransientServerError)
    assert error.details["attempts"] == 1


def test_error_for_other_status_keeps_raw_body():
    error = error_for_result(make_result(404, text="no such model"))

    assert isinstance(error, ProviderResponseError)
    assert error.body == "no such model"
    assert error.status_code == 404


def test_raise_for_result_passes_success_through():
    result = make_result(200, {"ok": True})

    assert raise_for_result(result) is result


def test_raise_for_result_raises_mapped_error():
    with pytest.raises(Unauthorized):
        raise_for_result(make_result(401, {"error": "no"}))
