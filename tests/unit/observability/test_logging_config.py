"""
Unit tests for logging processors.
"""

from provider_gateway.logging_config import MASK, add_app_context, mask_credentials


def test_credential_keys_masked_at_any_depth():
    event = {
        "event": "Dispatching",
        "headers": {"Authorization": "Bearer sk-or-123", "Content-Type": "application/json"},
        "config": {"providers": [{"api_key": "tgp_v1_abc", "name": "together"}]},
    }

    masked = mask_credentials(None, "info", event)

    assert masked["headers"] == {"Authorization": MASK, "Content-Type": "application/json"}
    assert masked["config"]["providers"][0] == {"api_key": MASK, "name": "together"}
    assert masked["event"] == "Dispatching"


def test_bearer_token_in_upstream_body_masked():
    event = {"event": "Provider error", "body": 'echo: {"authorization": "Bearer hf_abcDEF.123-x"}'}

    masked = mask_credentials(None, "error", event)

    assert "hf_abcDEF" not in masked["body"]
    assert f"Bearer {MASK}" in masked["body"]


def test_non_string_values_untouched():
    event = {"event": "Retrying", "attempt": 2, "delay_ms": 1500.0, "retryable": True, "tags": ("a", "b")}

    assert mask_credentials(None, "info", event) == event


def test_app_context_added():
    assert add_app_context(None, "info", {"event": "x"})["app"] == "provider-gateway"
