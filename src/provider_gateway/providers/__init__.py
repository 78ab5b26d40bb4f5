"""
Provider descriptors and registry.

Components:
- ProviderDescriptor: Base class (endpoint, headers, capabilities, cold-start rule)
- OpenRouterProvider, HuggingFaceProvider, FeatherlessProvider,
  VeniceProvider, TogetherProvider: The closed set of variants
- ProviderRegistry: Fixed lookup by provider id
"""

from provider_gateway.providers.base import (
    Capabilities,
    ChatTarget,
    ColdStartRule,
    ProviderDescriptor,
)
from provider_gateway.providers.featherless import FeatherlessProvider
from provider_gateway.providers.huggingface import (
    FEATHERLESS_ROUTE_SUFFIX,
    HuggingFaceProvider,
    with_featherless_route,
)
from provider_gateway.providers.openrouter import OpenRouterProvider
from provider_gateway.providers.registry import ProviderRegistry
from provider_gateway.providers.together import TogetherProvider
from provider_gateway.providers.venice import VeniceProvider

__all__ = [
    "Capabilities",
    "ChatTarget",
    "ColdStartRule",
    "ProviderDescriptor",
    "FeatherlessProvider",
    "HuggingFaceProvider",
    "OpenRouterProvider",
    "TogetherProvider",
    "VeniceProvider",
    "ProviderRegistry",
    "FEATHERLESS_ROUTE_SUFFIX",
    "with_featherless_route",
]
