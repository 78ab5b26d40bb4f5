"""
Base provider descriptor.

A descriptor is everything the dispatcher needs to talk to one provider:
where it lives, how to authenticate, what it can do and which of its error
responses mean "the model is still loading". Provider-specific behavior is
expressed by subclassing (see the sibling modules), not by branching on the
provider id inside the dispatcher.

Descriptors are created once at startup. Credentials are NOT captured at
construction: ``headers()`` reads the environment mapping on every call so a
rotated key is picked up without a restart.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from provider_gateway.models.enums import ProviderId, StreamShape


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Capabilities:
    vision: bool = False
    image_gen: bool = False
    function_calling: bool = False
    web_search: bool = False
    cold_start_prone: bool = False

    def as_dict(self) -> dict[str, bool]:
        return {
            "vision": self.vision,
            "imageGen": self.image_gen,
            "functionCalling": self.function_calling,
            "webSearch": self.web_search,
            "coldStarts": self.cold_start_prone,
        }


@dataclass(frozen=True)
class ColdStartRule:
    """
    Which response means "model not loaded yet" for a provider.

    Attributes:
        status_code: The provider's designated "not ready" status
        markers: Lower-case substrings searched for in the error body
    """

    status_code: int
    markers: tuple[str, ...]


@dataclass(frozen=True)
class ChatTarget:
    """Where a chat request for a given model goes and how it streams back."""

    path: str
    shape: StreamShape = StreamShape.CHAT_DELTA


class ProviderDescriptor:
    """
    Base class for provider descriptors.

    Subclasses set the class attributes and override ``headers`` /
    ``chat_target`` / ``shape_chat_body`` when the provider deviates from the
    OpenAI-compatible defaults.
    """

    id: ProviderId
    display_name: str
    credential_envs: tuple[str, ...] = ()
    capabilities: Capabilities = Capabilities()
    vision_models: tuple[str, ...] = ()
    cold_start: Optional[ColdStartRule] = None
    # SSE comment/keep-alive prefix (e.g. ": OPENROUTER PROCESSING")
    comment_prefix: str = ":"
    chat_path: str = "/chat/completions"
    models_path: str = "/models"
    embeddings_path: str = "/embeddings"
    image_generation_path: str = "/images/generations"

    def __init__(self, base_url: str, environ: Mapping[str, str]):
        self._base_url = base_url.rstrip("/")
        self._environ = environ

    def base_url(self) -> str:
        return self._base_url

    def api_key(self) -> Optional[str]:
        """Current credential, read from the environment at call time."""
        for name in self.credential_envs:
            value = self._environ.get(name)
            if value:
                return value
        return None

    def is_configured(self) -> bool:
        return self.api_key() is not None

    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        key = self.api_key()
        if key:
            headers["Authorization"] = f"Bearer {key}"
        else:
            logger.warning(
                "Provider credential missing, sending unauthenticated request",
                provider=self.id.value,
                credential_envs=list(self.credential_envs),
            )
        return headers

    def url_for(self, path: str) -> str:
        """Absolute URLs are used as-is; anything else is joined to the base URL."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    def chat_target(self, model: str) -> ChatTarget:
        return ChatTarget(path=self.chat_path)

    def shape_chat_body(self, body: dict[str, Any], target: ChatTarget) -> dict[str, Any]:
        """Translate an OpenAI-style body into what ``target`` expects."""
        return body

    def supports_vision(self, model: str) -> bool:
        return self.capabilities.vision and model in self.vision_models

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.id.value,
            "displayName": self.display_name,
            "baseUrl": self._base_url,
            "configured": self.is_configured(),
            "features": self.capabilities.as_dict(),
            "visionModels": list(self.vision_models),
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(base_url={self._base_url})"
