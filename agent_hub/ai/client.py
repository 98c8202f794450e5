"""
AI Client with automatic provider fallback and usage accounting.

Every call goes to the primary provider first. On any failure the client
retries once on the fallback provider (the other known provider type). A
``UsageRecord`` is produced for every attempt, successful or not.

Usage:
    from agent_hub.ai import get_ai_client

    client = get_ai_client()
    response = await client.chat([AIMessage("user", "Summarize this email")])

    result = await client.analyze(email_body, "Classify this email", CLASSIFY_TOOL)
    if result is None:
        result = DEFAULT_CLASSIFICATION
"""

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, fields, replace
from typing import Any, TypeVar

from agent_hub.ai.usage import UsageTracker, get_usage_tracker
from agent_hub.config import Settings
from agent_hub.providers import create_provider
from agent_hub.providers.base import (
    AIMessage,
    AIProvider,
    AIResponse,
    AITool,
    ProviderOptions,
    ProviderType,
    analysis_prompt,
    first_tool_input,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")

_DISABLED = object()


@dataclass
class AIClientConfig:
    """Provider selection and credentials for ``AIClient``."""

    provider: ProviderType = ProviderType.ANTHROPIC
    anthropic_api_key: str | None = None
    anthropic_model: str | None = None
    openai_api_key: str | None = None
    openai_model: str | None = None
    max_tokens: int = 4096
    fallback_enabled: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "AIClientConfig":
        """Build config from application settings."""
        return cls(
            provider=ProviderType(settings.ai_provider),
            anthropic_api_key=settings.anthropic_api_key,
            anthropic_model=settings.anthropic_model,
            openai_api_key=settings.openai_api_key,
            openai_model=settings.openai_model,
            max_tokens=settings.ai_max_tokens,
            fallback_enabled=settings.ai_fallback_enabled,
        )

    def options_for(self, provider: ProviderType) -> ProviderOptions:
        """Provider options for one provider type."""
        if provider == ProviderType.ANTHROPIC:
            return ProviderOptions(
                api_key=self.anthropic_api_key,
                model=self.anthropic_model,
                max_tokens=self.max_tokens,
            )
        return ProviderOptions(
            api_key=self.openai_api_key,
            model=self.openai_model,
            max_tokens=self.max_tokens,
        )


class AIClient:
    """Unified AI client over a primary and an optional fallback provider.

    Args:
        config: Provider selection and credentials
        primary: Pre-built primary provider (skips construction from config)
        fallback: Pre-built fallback provider; pass None to disable fallback
        usage_tracker: Where usage records go (defaults to the process tracker)

    Raises:
        ConfigurationError: If the primary provider cannot be constructed
    """

    def __init__(
        self,
        config: AIClientConfig | None = None,
        *,
        primary: AIProvider | None = None,
        fallback: Any = _DISABLED,
        usage_tracker: UsageTracker | None = None,
    ):
        self.config = config or AIClientConfig()
        self._usage = usage_tracker or get_usage_tracker()

        self.primary_provider = primary or create_provider(
            self.config.provider, self.config.options_for(self.config.provider)
        )

        if fallback is not _DISABLED:
            self.fallback_provider: AIProvider | None = fallback
        elif primary is None and self.config.fallback_enabled:
            self.fallback_provider = self._create_fallback()
        else:
            self.fallback_provider = None

        logger.info(
            "AIClient ready (primary=%s/%s, fallback=%s)",
            self.primary_provider.name.value,
            self.primary_provider.model,
            self.fallback_provider.name.value if self.fallback_provider else "disabled",
        )

    def _create_fallback(self) -> AIProvider | None:
        fallback_type = self.config.provider.other
        try:
            return create_provider(fallback_type, self.config.options_for(fallback_type))
        except Exception as e:
            logger.info("Fallback provider %s not available: %s", fallback_type.value, e)
            return None

    def get_active_provider(self) -> dict[str, str]:
        """Name and model of the primary provider."""
        return {
            "name": self.primary_provider.name.value,
            "model": self.primary_provider.model,
        }

    async def chat(
        self,
        messages: list[AIMessage],
        system_prompt: str | None = None,
    ) -> AIResponse:
        """Send a conversation and return the reply."""
        return await self._execute_with_fallback(
            lambda provider: provider.chat(messages, system_prompt)
        )

    async def chat_with_tools(
        self,
        messages: list[AIMessage],
        tools: list[AITool],
        system_prompt: str | None = None,
    ) -> AIResponse:
        """Send a conversation with tools the model may call."""
        return await self._execute_with_fallback(
            lambda provider: provider.chat_with_tools(messages, tools, system_prompt)
        )

    async def analyze(
        self,
        text: str,
        instruction: str,
        schema: AITool,
    ) -> dict[str, Any] | None:
        """Structured analysis through exactly one ``chat_with_tools`` call.

        Returns:
            The first tool call's input, or None if the model answered in
            free text (callers supply their own default)
        """
        response = await self.chat_with_tools(
            [AIMessage(role="user", content=analysis_prompt(text, instruction))],
            [schema],
        )
        return first_tool_input(response)

    async def _execute_with_fallback(
        self,
        operation: Callable[[AIProvider], Awaitable[R]],
    ) -> R:
        """Run ``operation`` on the primary provider, then once on the fallback."""
        primary = self.primary_provider
        started = time.perf_counter()
        try:
            result = await operation(primary)
        except Exception as primary_error:
            message = str(primary_error) or type(primary_error).__name__
            logger.error(
                "Provider %s failed: %s",
                primary.name.value,
                message,
                extra={"provider": primary.name.value},
            )
            await self._usage.track(
                primary.name.value, primary.model, 0, 0, _elapsed_ms(started), False, message
            )

            fallback = self.fallback_provider
            if fallback is None:
                raise

            logger.info("Trying fallback provider %s", fallback.name.value)
            fallback_started = time.perf_counter()
            try:
                result = await operation(fallback)
            except Exception as fallback_error:
                fallback_message = str(fallback_error) or type(fallback_error).__name__
                logger.error(
                    "Fallback provider %s failed too: %s",
                    fallback.name.value,
                    fallback_message,
                    extra={"provider": fallback.name.value},
                )
                await self._usage.track(
                    fallback.name.value,
                    fallback.model,
                    0,
                    0,
                    _elapsed_ms(fallback_started),
                    False,
                    fallback_message,
                )
                raise

            await self._track_success(fallback, result, fallback_started)
            return result

        await self._track_success(primary, result, started)
        return result

    async def _track_success(self, provider: AIProvider, result: Any, started: float) -> None:
        usage = getattr(result, "usage", None)
        if usage is None:
            return
        await self._usage.track(
            provider.name.value,
            provider.model,
            usage.input_tokens,
            usage.output_tokens,
            _elapsed_ms(started),
            True,
        )


def _elapsed_ms(started: float) -> int:
    return max(0, round((time.perf_counter() - started) * 1000))


# Process-wide defaults
_global_config = AIClientConfig()
_shared_client: AIClient | None = None


def configure_ai_client(**overrides: Any) -> None:
    """Merge overrides into the global client config and drop the cached client.

    Example:
        >>> configure_ai_client(provider="openai", openai_api_key="sk-...")
    """
    global _global_config, _shared_client
    known = {f.name for f in fields(AIClientConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise TypeError(f"Unknown AI client options: {', '.join(sorted(unknown))}")
    if "provider" in overrides:
        overrides["provider"] = ProviderType(overrides["provider"])
    _global_config = replace(_global_config, **overrides)
    _shared_client = None
    logger.info("AIClient configured: provider=%s", _global_config.provider.value)


def get_ai_client(config: AIClientConfig | None = None) -> AIClient:
    """Return the shared client; an explicit config rebuilds it."""
    global _shared_client
    if _shared_client is None or config is not None:
        _shared_client = AIClient(config or _global_config)
    return _shared_client


def recreate_ai_client() -> None:
    """Force the next ``get_ai_client()`` to build a new client."""
    global _shared_client
    _shared_client = None
