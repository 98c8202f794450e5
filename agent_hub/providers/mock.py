"""
Mock AI Provider for Testing.

Deterministic provider that never touches the network. Returns scripted
responses (or raises scripted errors) in order, and records every call.

Usage:
    from agent_hub.providers.mock import MockProvider

    primary = MockProvider(errors=[AuthenticationError("bad key")])
    fallback = MockProvider(name=ProviderType.OPENAI, content="hello")
    client = AIClient(primary=primary, fallback=fallback)
"""

import asyncio
from collections import deque
from typing import Any

from agent_hub.providers.base import (
    AIMessage,
    AIProvider,
    AIResponse,
    AITool,
    ProviderType,
    TokenUsage,
)


class MockProvider(AIProvider):
    """Mock provider for testing without real API calls.

    Useful for:
    - Testing fallback and usage accounting
    - Running agents offline
    - CI pipelines without API costs
    """

    def __init__(
        self,
        name: ProviderType = ProviderType.ANTHROPIC,
        model: str = "mock-model-v1",
        content: str = "Mock response generated successfully.",
        responses: list[AIResponse] | None = None,
        errors: list[Exception | None] | None = None,
        latency_ms: float = 0.0,
        input_tokens: int = 10,
        output_tokens: int = 5,
    ):
        """Initialize mock provider.

        Args:
            name: Provider type to impersonate
            model: Model identifier
            content: Text returned when no scripted response is queued
            responses: Responses returned in order, before falling back to ``content``
            errors: Per-call errors in order (None entries mean "succeed")
            latency_ms: Simulated latency
            input_tokens: Reported input tokens for default responses
            output_tokens: Reported output tokens for default responses
        """
        self.name = name
        self._model = model
        self._content = content
        self._responses: deque[AIResponse] = deque(responses or [])
        self._errors: deque[Exception | None] = deque(errors or [])
        self._latency_ms = latency_ms
        self._input_tokens = input_tokens
        self._output_tokens = output_tokens
        self.calls: list[dict[str, Any]] = []

    @property
    def model(self) -> str:
        return self._model

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def chat(
        self,
        messages: list[AIMessage],
        system_prompt: str | None = None,
    ) -> AIResponse:
        """Return the next scripted response."""
        return await self._respond("chat", messages=messages, system_prompt=system_prompt)

    async def chat_with_tools(
        self,
        messages: list[AIMessage],
        tools: list[AITool],
        system_prompt: str | None = None,
    ) -> AIResponse:
        """Return the next scripted response (tool calls included)."""
        return await self._respond(
            "chat_with_tools", messages=messages, tools=tools, system_prompt=system_prompt
        )

    async def _respond(self, method: str, **kwargs: Any) -> AIResponse:
        self.calls.append({"method": method, **kwargs})

        if self._latency_ms:
            await asyncio.sleep(self._latency_ms / 1000)

        if self._errors:
            error = self._errors.popleft()
            if error is not None:
                raise error

        if self._responses:
            return self._responses.popleft()

        return AIResponse(
            content=self._content,
            usage=TokenUsage(self._input_tokens, self._output_tokens),
        )
