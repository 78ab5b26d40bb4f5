"""Venice provider. Web search via ``venice_parameters.enable_web_search``."""

from provider_gateway.models.enums import ProviderId
from provider_gateway.providers.base import Capabilities, ProviderDescriptor


class VeniceProvider(ProviderDescriptor):
    id = ProviderId.VENICE
    display_name = "Venice"
    credential_envs = ("VENICE_API_KEY",)
    capabilities = Capabilities(
        vision=True,
        image_gen=True,
        function_calling=False,
        web_search=True,
        cold_start_prone=False,
    )
    vision_models = ("mistral-31-24b", "llama-4-maverick")
    image_generation_path = "/image/generate"
