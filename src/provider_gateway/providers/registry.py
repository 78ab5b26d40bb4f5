"""
Provider registry.

A fixed enumeration of descriptors, one per ProviderId, built once from
Settings. Lookups of anything outside the enumeration fail with
UnknownProvider; there is no runtime registration.
"""

import os
from collections.abc import Iterator, Mapping
from typing import Optional, Union

import structlog

from provider_gateway.config import Settings
from provider_gateway.exceptions import UnknownProvider
from provider_gateway.models.enums import ProviderId
from provider_gateway.providers.base import ProviderDescriptor
from provider_gateway.providers.featherless import FeatherlessProvider
from provider_gateway.providers.huggingface import HuggingFaceProvider
from provider_gateway.providers.openrouter import OpenRouterProvider
from provider_gateway.providers.together import TogetherProvider
from provider_gateway.providers.venice import VeniceProvider


logger = structlog.get_logger(__name__)


class ProviderRegistry:
    """
    Lookup of provider descriptors by id.

    Args:
        settings: Application settings (base URLs, attribution headers)
        environ: Mapping credentials are read from at call time. Defaults to
            ``os.environ`` itself (a live view, not a copy).
    """

    def __init__(self, settings: Settings, environ: Optional[Mapping[str, str]] = None):
        env = os.environ if environ is None else environ
        descriptors: list[ProviderDescriptor] = [
            OpenRouterProvider(
                settings.OPENROUTER_BASE_URL,
                env,
                app_url=settings.APP_URL,
                app_title=settings.APP_TITLE,
            ),
            HuggingFaceProvider(
                settings.HUGGINGFACE_BASE_URL,
                env,
                inference_url=settings.HF_INFERENCE_URL,
            ),
            FeatherlessProvider(settings.FEATHERLESS_BASE_URL, env),
            VeniceProvider(settings.VENICE_BASE_URL, env),
            TogetherProvider(settings.TOGETHER_BASE_URL, env),
        ]
        self._providers: dict[ProviderId, ProviderDescriptor] = {d.id: d for d in descriptors}

        logger.info(
            "Provider registry initialized",
            providers=[p.value for p in self._providers],
            configured=[d.id.value for d in self.configured()],
        )

    def get(self, provider: Union[str, ProviderId]) -> ProviderDescriptor:
        try:
            return self._providers[ProviderId(provider)]
        except ValueError:
            raise UnknownProvider(str(provider)) from None

    def is_configured(self, provider: Union[str, ProviderId]) -> bool:
        return self.get(provider).is_configured()

    def configured(self) -> list[ProviderDescriptor]:
        return [d for d in self._providers.values() if d.is_configured()]

    def describe(self) -> dict[str, dict]:
        return {d.id.value: d.describe() for d in self._providers.values()}

    def __iter__(self) -> Iterator[ProviderDescriptor]:
        return iter(self._providers.values())

    def __contains__(self, provider: object) -> bool:
        try:
            ProviderId(provider)
        except ValueError:
            return False
        return True
