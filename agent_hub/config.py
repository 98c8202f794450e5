"""Configuration management for the agent hub.

Settings come from environment variables (or a ``.env`` file). Components
never read the environment through ``Settings`` implicitly; callers build
component configs with ``AIClientConfig.from_settings`` /
``NotifierConfig.from_settings`` or pass explicit values.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Attributes:
        ai_provider: Primary AI provider
        anthropic_api_key: Anthropic API key
        anthropic_model: Anthropic model override
        openai_api_key: OpenAI API key
        openai_model: OpenAI model override
        ai_max_tokens: Maximum tokens per AI response
        ai_fallback_enabled: Try the other provider when the primary fails
        slack_webhook_url: Slack incoming webhook
        telegram_bot_token: Telegram Bot API token
        telegram_chat_id: Telegram chat receiving notifications
        notify_webhook_url: Generic JSON webhook for notifications
        log_level: Root log level
        log_json: Emit structured JSON logs
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # AI
    ai_provider: Literal["anthropic", "openai"] = "anthropic"
    anthropic_api_key: str | None = None
    anthropic_model: str | None = None
    openai_api_key: str | None = None
    openai_model: str | None = None
    ai_max_tokens: int = 4096
    ai_fallback_enabled: bool = True

    # Notifications
    slack_webhook_url: str | None = None
    telegram_bot_token: str | None = None
    telegram_chat_id: str | None = None
    notify_webhook_url: str | None = None

    # Logging
    log_level: str = "INFO"
    log_json: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Example:
        >>> settings = get_settings()
        >>> print(settings.ai_provider)
    """
    return Settings()
