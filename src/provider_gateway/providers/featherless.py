"""
Featherless provider.

Serverless access to thousands of open-weight models behind an
OpenAI-compatible API, flat pricing. Models that are not warm answer
400 with ``{"message": "Model is Cold"}`` (or "Not Ready") until loaded.
"""

from provider_gateway.models.enums import ProviderId
from provider_gateway.providers.base import Capabilities, ColdStartRule, ProviderDescriptor


class FeatherlessProvider(ProviderDescriptor):
    id = ProviderId.FEATHERLESS
    display_name = "Featherless"
    credential_envs = ("FEATHERLESS_API_KEY",)
    capabilities = Capabilities(
        vision=True,
        image_gen=False,
        function_calling=False,
        web_search=False,
        cold_start_prone=True,
    )
    vision_models = (
        "google/gemma-3-27b-it",
        "mistralai/Mistral-Small-3.1-24B-Instruct-2503",
    )
    cold_start = ColdStartRule(status_code=400, markers=("cold", "not ready"))
