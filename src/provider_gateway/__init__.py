"""
Provider Gateway for third-party LLM inference providers.

Normalizes chat-completion requests across OpenRouter, HuggingFace,
Featherless, Venice and Together:
- Per-provider endpoint shape, auth headers and capability flags
- Cold-start and transient-error retries with backoff
- SSE stream normalization into a uniform token stream
- Advisory rate-limit bookkeeping
- Failover across providers for an abstract model class

Architecture: ProviderGateway facade over httpx + thin FastAPI surface
"""

__version__ = "0.1.0"
