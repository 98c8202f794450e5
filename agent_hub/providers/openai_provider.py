"""OpenAI (GPT) provider."""

import json
import logging
import os
from typing import Any

import openai
from openai import AsyncOpenAI

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

DEFAULT_MODEL = "gpt-4o"


class OpenAIProvider(AIProvider):
    """Provider backed by the OpenAI Chat Completions API."""

    name = ProviderType.OPENAI

    def __init__(self, options: ProviderOptions | None = None, client: AsyncOpenAI | None = None):
        """Initialize provider.

        Args:
            options: API key, model and max tokens (API key defaults to
                OPENAI_API_KEY)
            client: Pre-built SDK client (tests)

        Raises:
            ConfigurationError: If no API key is available
        """
        options = options or ProviderOptions()
        api_key = options.api_key or os.environ.get("OPENAI_API_KEY")
        if client is None and not api_key:
            raise ConfigurationError(
                "OpenAI API key not found. Set OPENAI_API_KEY environment variable",
                service="openai",
            )

        self._client = client or AsyncOpenAI(api_key=api_key)
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
        response = await self._create(self._to_openai_messages(messages, system_prompt))
        return self._to_response(response)

    async def chat_with_tools(
        self,
        messages: list[AIMessage],
        tools: list[AITool],
        system_prompt: str | None = None,
    ) -> AIResponse:
        """Send a conversation with tools exposed as functions."""
        response = await self._create(
            self._to_openai_messages(messages, system_prompt),
            tools=[
                {
                    "type": "function",
                    "function": {
                        "name": tool.name,
                        "description": tool.description,
                        "parameters": tool.input_schema,
                    },
                }
                for tool in tools
            ],
            tool_choice="auto",
        )
        return self._to_response(response)

    @staticmethod
    def _to_openai_messages(
        messages: list[AIMessage], system_prompt: str | None
    ) -> list[dict[str, str]]:
        converted = []
        if system_prompt:
            converted.append({"role": "system", "content": system_prompt})
        for message in messages:
            role = "user" if message.role == "user" else "assistant"
            converted.append({"role": role, "content": message.content})
        return converted

    async def _create(self, messages: list[dict[str, str]], **extra: Any) -> Any:
        try:
            return await self._client.chat.completions.create(
                model=self._model,
                max_tokens=self._max_tokens,
                messages=messages,
                **extra,
            )
        except openai.AuthenticationError as e:
            raise AuthenticationError(str(e), service="openai") from e
        except openai.RateLimitError as e:
            retry_after = e.response.headers.get("retry-after") if e.response else None
            raise RateLimitError(
                str(e),
                retry_after=parse_retry_after(retry_after),
                service="openai",
            ) from e
        except openai.NotFoundError as e:
            raise ModelNotFoundError(str(e), service="openai") from e
        except openai.APIError as e:
            logger.error("OpenAI API error: %s", e)
            raise ProviderError(str(e), service="openai") from e

    @staticmethod
    def _to_response(response: Any) -> AIResponse:
        choice = response.choices[0] if response.choices else None
        message = choice.message if choice else None

        tool_calls = []
        for call in (message.tool_calls if message else None) or []:
            try:
                arguments = json.loads(call.function.arguments or "{}")
            except json.JSONDecodeError as e:
                raise ProviderError(
                    f"Tool call {call.function.name} returned invalid JSON: {e}",
                    service="openai",
                ) from e
            tool_calls.append(ToolCall(id=call.id, name=call.function.name, input=arguments))

        usage = TokenUsage(
            input_tokens=response.usage.prompt_tokens if response.usage else 0,
            output_tokens=response.usage.completion_tokens if response.usage else 0,
        )
        return AIResponse(
            content=(message.content if message else None) or "",
            tool_calls=tool_calls,
            usage=usage,
        )
