"""
Shared test helpers for the provider gateway.

- provider_http: scripted httpx.MockTransport handlers, canned provider
  bodies, streamed response builders and a sleep recorder
"""
