"""
FastAPI API routes and endpoints.

- routes.py: Provider endpoints (chat, models, embeddings, images, failover, health)
- dependencies.py: Dependency injection for settings and the gateway
- models.py: API-specific request/response models
- error_handlers.py: Exception handlers for structured error responses
- middleware.py: Request ID tracing
"""

from provider_gateway.api import dependencies, error_handlers, models
from provider_gateway.api.routes import router

__all__ = [
    "router",
    "dependencies",
    "error_handlers",
    "models",
]
