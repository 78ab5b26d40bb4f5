"""
Integration tests for the provider gateway.

Test the assembled FastAPI app (middleware, routes, exception handlers)
through TestClient, with provider HTTP served by httpx.MockTransport.
"""
