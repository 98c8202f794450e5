"""
Base classes for AI Providers.

This module defines the interface every LLM backend implements. The
interface is designed to be:
- Minimal: chat, tool-augmented chat and structured analysis
- Uniform: every backend returns the same ``AIResponse``
- Testable: easy to mock (see ``agent_hub.providers.mock``)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any, Literal


class ProviderType(str, Enum):
    """Known provider backends."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"

    @property
    def other(self) -> "ProviderType":
        """The provider used as fallback for this one."""
        return ProviderType.OPENAI if self == ProviderType.ANTHROPIC else ProviderType.ANTHROPIC


@dataclass(frozen=True)
class AIMessage:
    """One conversation turn."""

    role: Literal["user", "assistant"]
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class AITool:
    """Tool definition in JSON-schema form.

    ``input_schema`` must be an object schema::

        {"type": "object", "properties": {...}, "required": [...]}
    """

    name: str
    description: str
    input_schema: dict[str, Any]

    def __post_init__(self):
        if self.input_schema.get("type") != "object":
            raise ValueError(f"Tool {self.name} input_schema must have type 'object'")


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the model."""

    id: str
    name: str
    input: dict[str, Any]


@dataclass(frozen=True)
class TokenUsage:
    """Token counts reported by the provider."""

    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class AIResponse:
    """Standardized response from any provider.

    All providers must return this format, regardless of underlying API.
    """

    content: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    usage: TokenUsage | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "content": self.content,
            "tool_calls": [
                {"id": call.id, "name": call.name, "input": call.input}
                for call in self.tool_calls
            ],
            "usage": (
                {
                    "input_tokens": self.usage.input_tokens,
                    "output_tokens": self.usage.output_tokens,
                }
                if self.usage
                else None
            ),
        }


@dataclass
class ProviderOptions:
    """Options for constructing a provider.

    Missing values fall back to the provider's environment variable and
    default model.
    """

    api_key: str | None = None
    model: str | None = None
    max_tokens: int = 4096


def analysis_prompt(text: str, instruction: str) -> str:
    """User message used by ``analyze()``."""
    return f"{instruction}\n\nText to analyze:\n{text}"


class AIProvider(ABC):
    """Abstract base class for AI providers.

    Example:
        class ClaudeProvider(AIProvider):
            name = ProviderType.ANTHROPIC

            async def chat(self, messages, system_prompt=None):
                # Call Claude API
                return AIResponse(...)
    """

    name: ProviderType

    @property
    @abstractmethod
    def model(self) -> str:
        """The specific model being used (e.g., 'claude-sonnet-4-20250514')."""
        pass

    @abstractmethod
    async def chat(
        self,
        messages: list[AIMessage],
        system_prompt: str | None = None,
    ) -> AIResponse:
        """Send a conversation and return the reply.

        Raises:
            ProviderError: If the API call fails
            RateLimitError: If rate limited
            AuthenticationError: If authentication fails
        """
        pass

    @abstractmethod
    async def chat_with_tools(
        self,
        messages: list[AIMessage],
        tools: list[AITool],
        system_prompt: str | None = None,
    ) -> AIResponse:
        """Send a conversation with tools the model may call.

        Raises:
            ProviderError: If the API call fails
        """
        pass

    async def analyze(
        self,
        text: str,
        instruction: str,
        schema: AITool,
    ) -> dict[str, Any] | None:
        """Structured single-shot analysis.

        Makes one ``chat_with_tools`` call with ``schema`` as the only tool
        and returns the first tool call's input, or None when the model
        answered in free text.
        """
        response = await self.chat_with_tools(
            [AIMessage(role="user", content=analysis_prompt(text, instruction))],
            [schema],
        )
        return first_tool_input(response)


def first_tool_input(response: AIResponse) -> dict[str, Any] | None:
    """Input of the first tool call in ``response``, if any."""
    if response.tool_calls:
        return response.tool_calls[0].input
    return None


def parse_retry_after(value: str | None) -> float | None:
    """Seconds to wait from a Retry-After header (delta-seconds or HTTP-date)."""
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    return max(0.0, (when - datetime.now(UTC)).total_seconds())
