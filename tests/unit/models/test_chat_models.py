"""
Unit tests for chat and failover models.
"""

import pytest
from pydantic import ValidationError

from provider_gateway.exceptions import ProviderResponseError
from provider_gateway.models.chat import (
    ChatCompletion,
    ChatMessage,
    ChatRequest,
    ImagePart,
    ImageUrl,
    TextPart,
)
from provider_gateway.models.dispatch import DispatchAttempt, NormalizedChunk
from provider_gateway.models.enums import MessageRole, StreamShape
from provider_gateway.models.failover import FailoverChain, TaggedCompletion


def test_chat_request_payload_core_fields():
    request = ChatRequest(
        model="m",
        messages=(
            ChatMessage(role=MessageRole.SYSTEM, content="Be nice"),
            ChatMessage(role=MessageRole.USER, content="Hi"),
        ),
        max_tokens=50,
        stop=("###",),
    )

    payload = request.to_payload()

    assert payload == {
        "model": "m",
        "messages": [
            {"role": "system", "content": "Be nice"},
            {"role": "user", "content": "Hi"},
        ],
        "max_tokens": 50,
        "stop": ["###"],
    }


def test_chat_request_extensions_do_not_override_core_fields():
    request = ChatRequest(
        model="m",
        messages=(ChatMessage(role=MessageRole.USER, content="Hi"),),
        extensions={"model": "other", "tools": [{"type": "function"}], "provider": {"order": ["x"]}},
    )

    payload = request.to_payload()

    assert payload["model"] == "m"
    assert payload["tools"] == [{"type": "function"}]
    assert payload["provider"] == {"order": ["x"]}


def test_chat_request_stream_flag_only_when_set():
    base = ChatRequest(model="m", messages=(ChatMessage(role=MessageRole.USER, content="Hi"),))

    assert "stream" not in base.to_payload()
    assert base.model_copy(update={"stream": True}).to_payload()["stream"] is True


def test_chat_request_is_frozen():
    request = ChatRequest(model="m", messages=(ChatMessage(role=MessageRole.USER, content="Hi"),))

    with pytest.raises(ValidationError):
        request.model = "other"


def test_chat_request_requires_messages():
    with pytest.raises(ValidationError):
        ChatRequest(model="m", messages=())


def test_chat_request_rejects_out_of_range_temperature():
    with pytest.raises(ValidationError):
        ChatRequest(
            model="m",
            messages=(ChatMessage(role=MessageRole.USER, content="Hi"),),
            temperature=3.5,
        )


def test_multimodal_message_preserves_part_order():
    message = ChatMessage(
        role=MessageRole.USER,
        content=(
            TextPart(text="What is "),
            ImagePart(image_url=ImageUrl(url="data:image/png;base64,AAAA")),
            TextPart(text="this?"),
        ),
    )

    payload = message.to_payload()

    assert [part["type"] for part in payload["content"]] == ["text", "image_url", "text"]
    assert payload["content"][1] == {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}}
    assert message.text() == "What is this?"


def test_message_parts_parsed_from_dicts():
    message = ChatMessage.model_validate(
        {
            "role": "user",
            "content": [
                {"type": "text", "text": "Look"},
                {"type": "image_url", "image_url": {"url": "https://img.test/cat.png", "detail": "low"}},
            ],
        }
    )

    assert isinstance(message.content[1], ImagePart)
    assert message.content[1].image_url.detail == "low"


def test_completion_from_chat_payload():
    data = {
        "id": "gen-42",
        "model": "openai/gpt-4o",
        "created": 1700000000,
        "choices": [{"index": 0, "message": {"role": "assistant", "content": "Yes"}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 3, "completion_tokens": 1, "total_tokens": 4},
    }

    completion = ChatCompletion.from_payload("openrouter", "openai/gpt-4o", data)

    assert completion.id == "gen-42"
    assert completion.text == "Yes"
    assert completion.usage.prompt_tokens == 3
    assert completion.created == 1700000000


def test_completion_from_text_generation_payload():
    completion = ChatCompletion.from_payload(
        "huggingface", "gpt2", [{"generated_text": "  Hello world "}], StreamShape.TOKEN_STREAM
    )

    assert completion.text == "Hello world"
    assert completion.choices[0].finish_reason == "stop"
    assert completion.model == "gpt2"


def test_completion_without_choices_has_empty_text():
    completion = ChatCompletion.from_payload("together", "m", {"choices": []})

    assert completion.text == ""
    assert completion.usage is None


@pytest.mark.parametrize(
    "data,shape",
    [
        (["just a string"], StreamShape.TOKEN_STREAM),
        ([{"generated_text": 42}], StreamShape.TOKEN_STREAM),
        (["not", "an", "object"], StreamShape.CHAT_DELTA),
        ({"choices": ["text"]}, StreamShape.CHAT_DELTA),
        ({"choices": [{"message": "plain"}]}, StreamShape.CHAT_DELTA),
    ],
)
def test_completion_from_unexpected_payload_raises(data, shape):
    with pytest.raises(ProviderResponseError) as exc_info:
        ChatCompletion.from_payload("huggingface", "gpt2", data, shape)

    assert exc_info.value.provider == "huggingface"
    assert exc_info.value.details["model"] == "gpt2"


def test_dispatch_attempt_validation():
    with pytest.raises(ValueError):
        DispatchAttempt(provider="together", url="u", attempts=0)
    with pytest.raises(ValueError):
        DispatchAttempt(provider="together", url="u", attempts=1, elapsed_delay_ms=-1)

    assert DispatchAttempt(provider="together", url="u", attempts=3).retries == 2


def test_normalized_chunk_defaults():
    chunk = NormalizedChunk(id="x", provider="venice", model="m")

    assert chunk.delta == ""
    assert chunk.finish_reason is None


def test_failover_chain_requires_entries():
    with pytest.raises(ValidationError):
        FailoverChain.from_config("empty", [])


def test_tagged_completion_as_dict():
    tagged = TaggedCompletion(provider="venice", model="qwen3-235b", data={"id": "1", "choices": []})

    assert tagged.as_dict() == {
        "id": "1",
        "choices": [],
        "_provider": "venice",
        "_model": "qwen3-235b",
    }
