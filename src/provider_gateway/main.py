"""
FastAPI application entry point for the Provider Gateway.
"""

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from provider_gateway.api.dependencies import get_gateway
from provider_gateway.api.error_handlers import EXCEPTION_HANDLERS
from provider_gateway.api.middleware import RequestTracingMiddleware
from provider_gateway.api.routes import router
from provider_gateway.config import settings
from provider_gateway.logging_config import configure_logging

# Configure structured logging before any other imports
configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT)
logger = structlog.get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Unified chat, streaming and failover across third-party LLM providers",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Request tracing middleware (must be first for request_id in all logs)
app.add_middleware(RequestTracingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.include_router(router, tags=["providers"])


@app.on_event("startup")
async def startup():
    """Log which providers can be used; a missing key is not fatal."""
    gateway = get_gateway()
    configured = [d.id.value for d in gateway.registry.configured()]
    logger.info(
        "Application startup",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        configured_providers=configured,
        failover_classes=sorted(gateway.failover.chains),
    )
    if not configured:
        logger.warning("No provider credentials found in the environment")


@app.on_event("shutdown")
async def shutdown():
    """Close the pooled provider HTTP client."""
    logger.info("Application shutdown")
    await get_gateway().close()
    logger.info("Application shutdown complete")


if settings.PROMETHEUS_ENABLED:
    Instrumentator().instrument(app).expose(app)


@app.get("/")
async def root():
    """Root endpoint with API documentation links."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/api/health",
        "providers": "/api/providers",
        "metrics": "/metrics" if settings.PROMETHEUS_ENABLED else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "provider_gateway.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
