"""
FastAPI dependency injection for the provider gateway.

The gateway owns the pooled HTTP client, so it is created once per process
and closed on application shutdown.
"""

from functools import lru_cache

from provider_gateway.config import Settings, settings
from provider_gateway.gateway import ProviderGateway


@lru_cache()
def get_settings() -> Settings:
    """
    Get settings singleton.

    Returns:
        Settings instance
    """
    return settings


@lru_cache()
def get_gateway() -> ProviderGateway:
    """
    Get singleton gateway with connection pooling.

    Tests override this dependency with a gateway built on
    ``httpx.MockTransport``.

    Returns:
        ProviderGateway instance
    """
    return ProviderGateway(settings=get_settings())
