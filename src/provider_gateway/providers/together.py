"""Together provider. Function calling, JSON mode and image generation."""

from provider_gateway.models.enums import ProviderId
from provider_gateway.providers.base import Capabilities, ProviderDescriptor


class TogetherProvider(ProviderDescriptor):
    id = ProviderId.TOGETHER
    display_name = "Together"
    credential_envs = ("TOGETHER_API_KEY",)
    capabilities = Capabilities(
        vision=True,
        image_gen=True,
        function_calling=True,
        web_search=False,
        cold_start_prone=False,
    )
    vision_models = (
        "meta-llama/Llama-3.2-90B-Vision-Instruct-Turbo",
        "meta-llama/Llama-3.2-11B-Vision-Instruct-Turbo",
        "Qwen/Qwen2-VL-72B-Instruct",
    )
