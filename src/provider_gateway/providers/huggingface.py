"""
HuggingFace provider.

Two endpoint shapes live behind one provider id:

- The inference router (``router.huggingface.co/v1``) speaks the OpenAI chat
  schema. Instruction/chat-tuned models and any model carrying a
  ``:<backend>`` routing suffix go there.
- The serverless text-generation API (``api-inference.huggingface.co``) takes
  ``{inputs, parameters}`` and streams raw tokens. Base models go there.

The router can forward to Featherless when the model id ends with
``:featherless-ai`` (billed through HF unless a Featherless key is linked in
the HF account).

Cold starts surface as 502 with a "loading" message while the model spins up.
"""

import re
from collections.abc import Mapping
from typing import Any

from provider_gateway.models.enums import MessageRole, ProviderId, StreamShape
from provider_gateway.providers.base import (
    Capabilities,
    ChatTarget,
    ColdStartRule,
    ProviderDescriptor,
)


FEATHERLESS_ROUTE_SUFFIX = ":featherless-ai"

_CHAT_MODEL_PATTERNS = (
    re.compile(r"instruct", re.IGNORECASE),
    re.compile(r"chat", re.IGNORECASE),
    re.compile(r"llama-3", re.IGNORECASE),
    re.compile(r"mistral.*instruct", re.IGNORECASE),
    re.compile(r"mixtral.*instruct", re.IGNORECASE),
    re.compile(r"zephyr", re.IGNORECASE),
    re.compile(r"openchat", re.IGNORECASE),
    re.compile(r"dolphin", re.IGNORECASE),
)

_ROLE_LABELS = {
    MessageRole.SYSTEM.value: "System",
    MessageRole.USER.value: "User",
    MessageRole.ASSISTANT.value: "Assistant",
}


def with_featherless_route(model: str) -> str:
    """Append the Featherless routing suffix unless it is already there."""
    if FEATHERLESS_ROUTE_SUFFIX in model:
        return model
    return f"{model}{FEATHERLESS_ROUTE_SUFFIX}"


def uses_chat_endpoint(model: str) -> bool:
    if ":" in model:
        # Explicit router backend, e.g. "google/gemma-3-27b-it:featherless-ai"
        return True
    return any(pattern.search(model) for pattern in _CHAT_MODEL_PATTERNS)


def format_messages_as_prompt(messages: list[dict[str, Any]]) -> str:
    lines = []
    for message in messages:
        content = message.get("content", "")
        if isinstance(content, list):
            content = "".join(
                part.get("text", "") for part in content if part.get("type") == "text"
            )
        label = _ROLE_LABELS.get(message.get("role", ""))
        lines.append(f"{label}: {content}" if label else content)
    return "\n".join(lines) + "\nAssistant:"


class HuggingFaceProvider(ProviderDescriptor):
    id = ProviderId.HUGGINGFACE
    display_name = "HuggingFace"
    credential_envs = ("HF_TOKEN", "HUGGINGFACE_API_KEY")
    capabilities = Capabilities(
        vision=True,
        image_gen=True,
        function_calling=False,
        web_search=False,
        cold_start_prone=True,
    )
    vision_models = (
        "Qwen/Qwen2-VL-7B-Instruct",
        "Qwen/Qwen2-VL-72B-Instruct",
        "llava-hf/llava-1.5-7b-hf",
        "google/gemma-3-27b-it:featherless-ai",
    )
    cold_start = ColdStartRule(status_code=502, markers=("loading", "cold", "not ready"))

    def __init__(
        self,
        base_url: str,
        environ: Mapping[str, str],
        inference_url: str = "https://api-inference.huggingface.co",
    ):
        super().__init__(base_url, environ)
        self.inference_url = inference_url.rstrip("/")

    def chat_target(self, model: str) -> ChatTarget:
        if uses_chat_endpoint(model):
            return ChatTarget(path=self.chat_path, shape=StreamShape.CHAT_DELTA)
        return ChatTarget(
            path=f"{self.inference_url}/models/{model}",
            shape=StreamShape.TOKEN_STREAM,
        )

    def shape_chat_body(self, body: dict[str, Any], target: ChatTarget) -> dict[str, Any]:
        if target.shape is not StreamShape.TOKEN_STREAM:
            return body

        parameters: dict[str, Any] = {"return_full_text": False, "do_sample": True}
        if body.get("max_tokens") is not None:
            parameters["max_new_tokens"] = body["max_tokens"]
        if body.get("temperature") is not None:
            parameters["temperature"] = body["temperature"]
        if body.get("top_p") is not None:
            parameters["top_p"] = body["top_p"]
        stop = body.get("stop")
        if stop is not None:
            parameters["stop_sequences"] = [stop] if isinstance(stop, str) else list(stop)

        shaped: dict[str, Any] = {
            "inputs": format_messages_as_prompt(body.get("messages", [])),
            "parameters": parameters,
        }
        if body.get("stream"):
            shaped["stream"] = True
        return shaped
