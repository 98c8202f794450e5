"""
AI Provider Abstraction Layer.

Uniform interface over pluggable LLM backends, so agents and the
``AIClient`` never depend on a vendor SDK directly.

Architecture:
    Agents
      ↓
    AIClient (fallback + usage accounting)
      ↓
    AIProvider Interface (this module)
      ↓
    Concrete Adapters (Anthropic, OpenAI, Mock)
      ↓
    LLM APIs

Usage:
    from agent_hub.providers import ProviderOptions, create_provider

    provider = create_provider("anthropic", ProviderOptions(api_key="..."))
    response = await provider.chat([AIMessage("user", "Hello")])

Concrete adapters import their SDK lazily through ``create_provider``.
"""

from agent_hub.providers.base import (
    AIMessage,
    AIProvider,
    AIResponse,
    AITool,
    ProviderOptions,
    ProviderType,
    TokenUsage,
    ToolCall,
)
from agent_hub.providers.pricing import (
    AVAILABLE_MODELS,
    MODEL_PRICING,
    calculate_cost,
    format_cost,
)


def create_provider(
    provider: ProviderType | str,
    options: ProviderOptions | None = None,
) -> AIProvider:
    """Build a concrete provider.

    Raises:
        ConfigurationError: If the provider's API key is missing
        ValueError: If the provider type is unknown
    """
    provider_type = ProviderType(provider)
    if provider_type == ProviderType.ANTHROPIC:
        from agent_hub.providers.anthropic_provider import AnthropicProvider

        return AnthropicProvider(options)

    from agent_hub.providers.openai_provider import OpenAIProvider

    return OpenAIProvider(options)


__all__ = [
    "AIMessage",
    "AIProvider",
    "AIResponse",
    "AITool",
    "ProviderOptions",
    "ProviderType",
    "TokenUsage",
    "ToolCall",
    "AVAILABLE_MODELS",
    "MODEL_PRICING",
    "calculate_cost",
    "format_cost",
    "create_provider",
]
