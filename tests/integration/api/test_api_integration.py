"""
Integration tests for the FastAPI application.

These tests use TestClient against the full app (middleware, routes,
exception handlers) with provider HTTP served by httpx.MockTransport.
"""

import json

import httpx
import pytest

from fixtures.provider_http import ScriptedProvider, completion_payload, json_response, sse_response
from provider_gateway.exceptions import COLD_START_HINT

pytestmark = pytest.mark.integration

CHAT_BODY = {"model": "test-model", "messages": [{"role": "user", "content": "Hi"}]}


def sse_frames(text: str) -> list[str]:
    return [line[len("data: "):] for line in text.split("\n") if line.startswith("data: ")]


def test_root_endpoint(api_client):
    """Test root endpoint returns service info."""
    client = api_client(ScriptedProvider(json_response(200, {})))

    response = client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["version"] == "0.1.0"
    assert data["health"] == "/api/health"


def test_health_endpoint(api_client, provider_env):
    del provider_env["VENICE_API_KEY"]
    client = api_client(ScriptedProvider(json_response(200, {})))

    response = client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["providers"]["venice"] is False
    assert data["providers"]["together"] is True
    assert "timestamp" in data


def test_request_id_header_echoed(api_client):
    client = api_client(ScriptedProvider(json_response(200, {})))

    response = client.get("/api/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_request_id_generated_when_absent(api_client):
    client = api_client(ScriptedProvider(json_response(200, {})))

    response = client.get("/api/health")

    assert len(response.headers["X-Request-ID"]) == 36


def test_providers_endpoint(api_client):
    client = api_client(ScriptedProvider(json_response(200, {})))

    response = client.get("/api/providers")

    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"openrouter", "huggingface", "featherless", "venice", "together"}
    assert data["featherless"]["features"]["coldStarts"] is True
    assert data["featherless"]["rateLimit"] is None


def test_chat_completion_non_streaming(api_client):
    provider = ScriptedProvider(json_response(200, completion_payload("Hello from Together")))
    client = api_client(provider)

    response = client.post("/api/together/chat/completions", json=CHAT_BODY)

    assert response.status_code == 200
    assert response.json()["choices"][0]["message"]["content"] == "Hello from Together"
    assert provider.requests[0].headers["Authorization"] == "Bearer tg-test-key"


def test_chat_completion_streaming(api_client):
    upstream = (
        b": OPENROUTER PROCESSING\n\n"
        b'data: {"id": "g1", "choices": [{"delta": {"content": "Hel"}}]}\n\n'
        b'data: {"id": "g1", "choices": [{"delta": {"content": "lo"}, "finish_reason": "stop"}]}\n\n'
        b"data: [DONE]\n\n"
    )
    provider = ScriptedProvider(lambda request: sse_response([upstream[:30], upstream[30:]]))
    client = api_client(provider)

    response = client.post("/api/openrouter/chat/completions", json={**CHAT_BODY, "stream": True})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    frames = sse_frames(response.text)
    assert frames[-1] == "[DONE]"
    chunks = [json.loads(f) for f in frames[:-1]]
    assert [c["delta"] for c in chunks] == ["Hel", "lo"]
    assert chunks[-1]["finish_reason"] == "stop"
    assert all(c["provider"] == "openrouter" for c in chunks)


def test_streaming_empty_body_reports_error_in_band(api_client):
    provider = ScriptedProvider(lambda request: sse_response([]))
    client = api_client(provider)

    response = client.post("/api/together/chat/completions", json={**CHAT_BODY, "stream": True})

    frames = sse_frames(response.text)
    assert json.loads(frames[0])["provider"] == "together"
    assert "error" in json.loads(frames[0])
    assert frames[-1] == "[DONE]"


def test_chat_completion_unknown_provider(api_client):
    client = api_client(ScriptedProvider(json_response(200, {})))

    response = client.post("/api/mistral/chat/completions", json=CHAT_BODY)

    assert response.status_code == 400
    assert response.json()["error"] == "unknown_provider"


def test_chat_completion_missing_model(api_client):
    client = api_client(ScriptedProvider(json_response(200, {})))

    response = client.post("/api/together/chat/completions", json={"messages": []})

    assert response.status_code == 400


def test_provider_error_keeps_upstream_status(api_client):
    provider = ScriptedProvider(json_response(401, {"error": {"message": "Invalid API key"}}))
    client = api_client(provider)

    response = client.post("/api/openrouter/chat/completions", json=CHAT_BODY)

    assert response.status_code == 401
    data = response.json()
    assert data["provider"] == "openrouter"
    assert data["status_code"] == 401
    assert "Invalid API key" in data["details"]["upstream_body"]


def test_cold_start_error_carries_hint(api_client):
    provider = ScriptedProvider(json_response(400, {"message": "Model is Cold"}))
    client = api_client(provider)

    response = client.post("/api/featherless/chat/completions", json=CHAT_BODY)

    assert response.status_code == 400
    assert response.json()["hint"] == COLD_START_HINT
    assert len(provider.requests) == 6


def test_transport_error_maps_to_502(api_client):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = api_client(handler)

    response = client.post("/api/venice/chat/completions", json=CHAT_BODY)

    assert response.status_code == 502
    assert response.json()["error"] == "provider_unreachable"


def test_timeout_maps_to_504(api_client):
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    client = api_client(handler)

    response = client.post("/api/venice/chat/completions", json=CHAT_BODY)

    assert response.status_code == 504


def test_featherless_via_huggingface_route(api_client):
    provider = ScriptedProvider(json_response(200, completion_payload()))
    client = api_client(provider)

    response = client.post(
        "/api/huggingface/featherless/chat/completions",
        json={**CHAT_BODY, "model": "google/gemma-3-27b-it"},
    )

    assert response.status_code == 200
    sent = json.loads(provider.requests[0].content)
    assert sent["model"] == "google/gemma-3-27b-it:featherless-ai"
    assert str(provider.requests[0].url) == "https://router.hf.test/v1/chat/completions"


def test_models_endpoint(api_client):
    provider = ScriptedProvider(json_response(200, {"data": [{"id": "m1"}]}))
    client = api_client(provider)

    first = client.get("/api/together/models")
    second = client.get("/api/together/models")

    assert first.json() == {"data": [{"id": "m1"}]}
    assert second.json() == first.json()
    assert len(provider.requests) == 1


def test_embeddings_endpoint(api_client):
    provider = ScriptedProvider(json_response(200, {"data": [{"embedding": [0.1, 0.2]}]}))
    client = api_client(provider)

    response = client.post("/api/openrouter/embeddings", json={"model": "e", "input": "x"})

    assert response.status_code == 200
    assert response.json()["data"][0]["embedding"] == [0.1, 0.2]


def test_image_generation_endpoint(api_client):
    provider = ScriptedProvider(json_response(200, {"data": [{"url": "https://img.test/1.png"}]}))
    client = api_client(provider)

    response = client.post("/api/together/images/generations", json={"prompt": "a cat"})

    assert response.status_code == 200
    assert str(provider.requests[0].url) == "https://together.test/v1/images/generations"


def test_image_generation_unsupported(api_client):
    client = api_client(ScriptedProvider(json_response(200, {})))

    response = client.post("/api/featherless/images/generations", json={"prompt": "a cat"})

    assert response.status_code == 400
    assert response.json()["error"] == "capability_not_supported"


def test_failover_endpoint_success(api_client, provider_env):
    del provider_env["TOGETHER_API_KEY"]
    provider = ScriptedProvider(json_response(200, completion_payload("from featherless")))
    client = api_client(provider)

    response = client.post(
        "/api/failover/chat/completions",
        json={"modelClass": "llama-70b-class", "messages": CHAT_BODY["messages"], "max_tokens": 8},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["_provider"] == "featherless"
    assert data["_model"] == "meta-llama/Meta-Llama-3.1-70B-Instruct"
    sent = json.loads(provider.requests[0].content)
    assert sent["max_tokens"] == 8
    assert "stream" not in sent


def test_failover_endpoint_exhausted(api_client):
    provider = ScriptedProvider(json_response(404, {"error": "no such model"}))
    client = api_client(provider)

    response = client.post(
        "/api/failover/chat/completions",
        json={"modelClass": "gpt-4-class", "messages": CHAT_BODY["messages"]},
    )

    assert response.status_code == 503
    data = response.json()
    assert data["error"] == "all_providers_failed"
    assert [f["provider"] for f in data["details"]["failures"]] == ["openrouter", "together"]


def test_failover_endpoint_unknown_model_class(api_client):
    client = api_client(ScriptedProvider(json_response(200, {})))

    response = client.post(
        "/api/failover/chat/completions",
        json={"modelClass": "gpt-9-class", "messages": CHAT_BODY["messages"]},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "unknown_model_class"


def test_failover_endpoint_validates_body(api_client):
    client = api_client(ScriptedProvider(json_response(200, {})))

    response = client.post("/api/failover/chat/completions", json={"messages": []})

    assert response.status_code == 422
