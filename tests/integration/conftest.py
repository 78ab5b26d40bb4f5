"""Integration test fixtures.

The FastAPI app is exercised through TestClient with the gateway dependency
overridden by one built on httpx.MockTransport, so no provider is contacted.
"""

import pytest
from fastapi.testclient import TestClient

from provider_gateway.api.dependencies import get_gateway
from provider_gateway.main import app


@pytest.fixture
def api_client(make_gateway):
    """Factory fixture returning a TestClient whose gateway talks to ``handler``.

    Usage:
        def test_something(api_client):
            client = api_client(ScriptedProvider(json_response(200, {...})))
    """

    def _create(handler, environ=None) -> TestClient:
        gateway = make_gateway(handler, environ)
        app.dependency_overrides[get_gateway] = lambda: gateway
        return TestClient(app)

    yield _create
    app.dependency_overrides.clear()
