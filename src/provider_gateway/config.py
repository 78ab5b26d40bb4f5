"""
Configuration settings for the Provider Gateway.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.

Provider credentials (OPENROUTER_API_KEY, HF_TOKEN, ...) are deliberately NOT
settings fields: they are read from the process environment at call time so
that a rotated key takes effect without a restart.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_FAILOVER_CHAINS: dict[str, list[dict[str, str]]] = {
    "gpt-4-class": [
        {"provider": "openrouter", "model": "openai/gpt-4o"},
        {"provider": "together", "model": "meta-llama/Llama-3.3-70B-Instruct-Turbo"},
    ],
    "claude-class": [
        {"provider": "openrouter", "model": "anthropic/claude-3-sonnet"},
        {"provider": "venice", "model": "qwen3-235b"},
    ],
    "llama-70b-class": [
        {"provider": "together", "model": "meta-llama/Llama-3.3-70B-Instruct-Turbo"},
        {"provider": "featherless", "model": "meta-llama/Meta-Llama-3.1-70B-Instruct"},
        {"provider": "openrouter", "model": "meta-llama/llama-3.1-70b-instruct"},
    ],
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Provider Gateway"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === OpenRouter attribution headers ===
    APP_URL: str = "http://localhost:3000"
    APP_TITLE: str = "AI Suite"

    # === Provider endpoints (override for proxies / self-hosted mirrors) ===
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    HUGGINGFACE_BASE_URL: str = "https://router.huggingface.co/v1"
    HF_INFERENCE_URL: str = "https://api-inference.huggingface.co"  # text-generation models
    FEATHERLESS_BASE_URL: str = "https://api.featherless.ai/v1"
    VENICE_BASE_URL: str = "https://api.venice.ai/api/v1"
    TOGETHER_BASE_URL: str = "https://api.together.xyz/v1"

    # === HTTP transport ===
    REQUEST_TIMEOUT: float = 120.0  # seconds, cold starts can be slow
    MAX_CONNECTIONS: int = 100
    MAX_KEEPALIVE_CONNECTIONS: int = 20

    # === Retry: generic transient statuses (429/5xx) ===
    GENERIC_MAX_RETRIES: int = 3
    GENERIC_BACKOFF_BASE_MS: float = 1000.0

    # === Retry: provider cold starts ===
    COLD_START_MAX_RETRIES: int = 5
    COLD_START_BASE_DELAY_MS: float = 5000.0
    COLD_START_BACKOFF_FACTOR: float = 1.5

    # === Retry: shared ===
    MAX_RETRY_DELAY_MS: float = 30000.0
    RETRY_MAX_ELAPSED_SECONDS: Optional[float] = None  # None = bounded by attempt count only

    # === Model catalog ===
    MODEL_CACHE_TTL_SECONDS: int = 300

    # === Failover ===
    FAILOVER_CHAINS: dict[str, list[dict[str, str]]] = DEFAULT_FAILOVER_CHAINS

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True


# Global settings instance
settings = Settings()
