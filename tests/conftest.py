"""Shared test fixtures and configuration for all tests.

Provider HTTP traffic is served by ``httpx.MockTransport``; nothing here
touches the network. Retry sleeps are recorded instead of awaited.
"""

from typing import Dict, Optional

import httpx
import pytest

from fixtures.provider_http import Handler, SleepRecorder
from provider_gateway.config import Settings
from provider_gateway.dispatch.dispatcher import RetryingDispatcher
from provider_gateway.dispatch.policy import RetryPolicy
from provider_gateway.gateway import ProviderGateway
from provider_gateway.providers.registry import ProviderRegistry
from provider_gateway.ratelimit import RateLimitTracker


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            settings = test_settings.model_copy(update={"GENERIC_MAX_RETRIES": 1})
    """
    return Settings(
        APP_NAME="Provider Gateway (Test)",
        APP_VERSION="0.1.0",
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
        APP_URL="http://localhost:3000",
        APP_TITLE="AI Suite",
        OPENROUTER_BASE_URL="https://openrouter.test/api/v1",
        HUGGINGFACE_BASE_URL="https://router.hf.test/v1",
        HF_INFERENCE_URL="https://inference.hf.test",
        FEATHERLESS_BASE_URL="https://featherless.test/v1",
        VENICE_BASE_URL="https://venice.test/api/v1",
        TOGETHER_BASE_URL="https://together.test/v1",
        RETRY_MAX_ELAPSED_SECONDS=None,
        PROMETHEUS_ENABLED=False,  # Disable metrics in tests unless explicitly needed
    )


@pytest.fixture
def provider_env() -> Dict[str, str]:
    """Credentials for every provider. Tests delete keys to simulate gaps."""
    return {
        "OPENROUTER_API_KEY": "or-test-key",
        "HF_TOKEN": "hf-test-key",
        "FEATHERLESS_API_KEY": "fl-test-key",
        "VENICE_API_KEY": "vn-test-key",
        "TOGETHER_API_KEY": "tg-test-key",
    }


@pytest.fixture
def registry(test_settings: Settings, provider_env: Dict[str, str]) -> ProviderRegistry:
    return ProviderRegistry(test_settings, provider_env)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def fixed_jitter_policy(test_settings: Settings) -> RetryPolicy:
    """Policy whose transient jitter factor is exactly 1.0."""
    return RetryPolicy.from_settings(test_settings, rand=lambda: 0.5)


@pytest.fixture
def make_dispatcher(test_settings, registry, sleep_recorder, fixed_jitter_policy):
    """Factory fixture building a dispatcher on a mock transport.

    Usage:
        def test_something(make_dispatcher):
            provider = ScriptedProvider(json_response(200, {}))
            dispatcher = make_dispatcher(provider)
    """

    def _create(handler: Handler, policy: Optional[RetryPolicy] = None) -> RetryingDispatcher:
        return RetryingDispatcher(
            registry,
            RateLimitTracker(),
            test_settings,
            policy=policy or fixed_jitter_policy,
            transport=httpx.MockTransport(handler),
            sleep=sleep_recorder,
        )

    return _create


@pytest.fixture
def make_gateway(test_settings, provider_env, sleep_recorder, fixed_jitter_policy):
    """Factory fixture building a full gateway on a mock transport."""

    def _create(handler: Handler, environ: Optional[Dict[str, str]] = None) -> ProviderGateway:
        return ProviderGateway(
            settings=test_settings,
            environ=provider_env if environ is None else environ,
            transport=httpx.MockTransport(handler),
            sleep=sleep_recorder,
            policy=fixed_jitter_policy,
        )

    return _create
