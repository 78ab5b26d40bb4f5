"""
OpenRouter provider.

Routing service in front of 400+ models. Requires attribution headers and
emits ``: OPENROUTER PROCESSING`` keep-alive comments while a request queues.
Web search is done with the ``:online`` model suffix, not a request flag.
"""

from collections.abc import Mapping

from provider_gateway.models.enums import ProviderId
from provider_gateway.providers.base import Capabilities, ProviderDescriptor


class OpenRouterProvider(ProviderDescriptor):
    id = ProviderId.OPENROUTER
    display_name = "OpenRouter"
    credential_envs = ("OPENROUTER_API_KEY",)
    capabilities = Capabilities(
        vision=True,
        image_gen=True,
        function_calling=True,
        web_search=False,
        cold_start_prone=False,
    )
    vision_models = (
        "google/gemini-2.0-flash-exp",
        "google/gemini-pro-vision",
        "anthropic/claude-3-opus",
        "anthropic/claude-3-sonnet",
        "anthropic/claude-3-haiku",
        "openai/gpt-4o",
        "openai/gpt-4-vision-preview",
        "meta-llama/llama-3.2-90b-vision-instruct",
    )

    def __init__(
        self,
        base_url: str,
        environ: Mapping[str, str],
        app_url: str = "http://localhost:3000",
        app_title: str = "AI Suite",
    ):
        super().__init__(base_url, environ)
        self.app_url = app_url
        self.app_title = app_title

    def headers(self) -> dict[str, str]:
        headers = super().headers()
        headers["HTTP-Referer"] = self.app_url
        headers["X-Title"] = self.app_title
        return headers
