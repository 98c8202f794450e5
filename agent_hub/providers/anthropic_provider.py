"""Anthropic (Claude) provider."""

import logging
import os
from typing import Any

import anthropic
from anthropic import AsyncAnthropic

from agent_hub.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ModelNotFoundError,
    ProviderError,
    RateLimitError,
)
from agent_hub.providers.base import (
    AIMessage,
    AIProvider,
    AIResponse,
    AITool,
    ProviderOptions,
    ProviderType,
    TokenUsage,
    ToolCall,
    parse_retry_after,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"


class AnthropicProvider(AIProvider):
    """Provider backed by the Anthropic Messages API.

    Example:
        >>> provider = AnthropicProvider(ProviderOptions(api_key="sk-ant-..."))
        >>> response = await provider.chat([AIMessage("user", "Hello")])
    """

    name = ProviderType.ANTHROPIC

    def __init__(self, options: ProviderOptions | None = None, client: AsyncAnthropic | None = None):
        """Initialize provider.

        Args:
            options: API key, model and max tokens (API key defaults to
                ANTHROPIC_API_KEY)
            client: Pre-built SDK client (tests)

        Raises:
            ConfigurationError: If no API key is available
        """
        options = options or ProviderOptions()
        api_key = options.api_key or os.environ.get("ANTHROPIC_API_KEY")
        if client is None and not api_key:
            raise ConfigurationError(
                "Anthropic API key not found. Set ANTHROPIC_API_KEY environment variable",
                service="anthropic",
            )

        self._client = client or AsyncAnthropic(api_key=api_key)
        self._model = options.model or DEFAULT_MODEL
        self._max_tokens = options.max_tokens

    @property
    def model(self) -> str:
        return self._model

    async def chat(
        self,
        messages: list[AIMessage],
        system_prompt: str | None = None,
    ) -> AIResponse:
        """Send a conversation and return the text reply."""
        response = await self._create(messages, system_prompt)
        return self._to_response(response)

    async def chat_with_tools(
        self,
        messages: list[AIMessage],
        tools: list[AITool],
        system_prompt: str | None = None,
    ) -> AIResponse:
        """Send a conversation with tools the model may call."""
        response = await self._create(
            messages,
            system_prompt,
            tools=[
                {
                    "name": tool.name,
                    "description": tool.description,
                    "input_schema": tool.input_schema,
                }
                for tool in tools
            ],
        )
        return self._to_response(response)

    async def _create(
        self,
        messages: list[AIMessage],
        system_prompt: str | None,
        **extra: Any,
    ) -> Any:
        params: dict[str, Any] = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "messages": [message.to_dict() for message in messages],
            **extra,
        }
        if system_prompt:
            params["system"] = system_prompt

        try:
            return await self._client.messages.create(**params)
        except anthropic.AuthenticationError as e:
            raise AuthenticationError(str(e), service="anthropic") from e
        except anthropic.RateLimitError as e:
            retry_after = e.response.headers.get("retry-after") if e.response else None
            raise RateLimitError(
                str(e),
                retry_after=parse_retry_after(retry_after),
                service="anthropic",
            ) from e
        except anthropic.NotFoundError as e:
            raise ModelNotFoundError(str(e), service="anthropic") from e
        except anthropic.APIError as e:
            logger.error("Anthropic API error: %s", e)
            raise ProviderError(str(e), service="anthropic") from e

    @staticmethod
    def _to_response(response: Any) -> AIResponse:
        text = next((block.text for block in response.content if block.type == "text"), "")
        tool_calls = [
            ToolCall(id=block.id, name=block.name, input=dict(block.input))
            for block in response.content
            if block.type == "tool_use"
        ]
        usage = None
        if response.usage is not None:
            usage = TokenUsage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            )
        return AIResponse(content=text, tool_calls=tool_calls, usage=usage)
