"""Tests for agent_hub/providers - concrete adapters with mocked SDK clients."""

from datetime import UTC, datetime, timedelta
from email.utils import format_datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from agent_hub.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ModelNotFoundError,
    ProviderError,
    RateLimitError,
)
from agent_hub.providers import create_provider
from agent_hub.providers.base import (
    AIMessage,
    AIResponse,
    AITool,
    ProviderOptions,
    ProviderType,
    TokenUsage,
    ToolCall,
    parse_retry_after,
)
from agent_hub.providers.mock import MockProvider

TOOL = AITool(
    name="classify",
    description="Classify text",
    input_schema={"type": "object", "properties": {"label": {"type": "string"}}},
)


def status_response(status_code, url, headers=None):
    return httpx.Response(status_code, headers=headers, request=httpx.Request("POST", url))


class TestBaseTypes:
    """Tests for provider data types."""

    def test_tool_requires_object_schema(self):
        """Tool schemas must be JSON objects."""
        with pytest.raises(ValueError):
            AITool(name="bad", description="", input_schema={"type": "string"})

    def test_provider_type_other(self):
        """Each provider type falls back to the other one."""
        assert ProviderType.ANTHROPIC.other == ProviderType.OPENAI
        assert ProviderType.OPENAI.other == ProviderType.ANTHROPIC

    def test_response_to_dict(self):
        """AIResponse serializes tool calls and usage."""
        response = AIResponse(
            content="hi",
            tool_calls=[ToolCall(id="t1", name="classify", input={"label": "x"})],
            usage=TokenUsage(3, 4),
        )

        data = response.to_dict()

        assert data["tool_calls"][0]["input"] == {"label": "x"}
        assert data["usage"] == {"input_tokens": 3, "output_tokens": 4}
        assert response.usage.total_tokens == 7

    def test_parse_retry_after_seconds(self):
        """Delta-seconds values are returned as floats."""
        assert parse_retry_after("30") == 30.0
        assert parse_retry_after("1.5") == 1.5

    def test_parse_retry_after_http_date(self):
        """HTTP-dates become seconds from now."""
        future = datetime.now(UTC) + timedelta(seconds=120)

        seconds = parse_retry_after(format_datetime(future, usegmt=True))

        assert 100 < seconds <= 120

    @pytest.mark.parametrize("value", [None, "", "soon"])
    def test_parse_retry_after_unusable(self, value):
        """Missing or unparseable values give None."""
        assert parse_retry_after(value) is None


class TestMockProvider:
    """Tests for MockProvider scripting."""

    @pytest.mark.asyncio
    async def test_errors_then_success(self):
        """Queued errors raise in order, None entries succeed."""
        provider = MockProvider(errors=[None, ProviderError("second call fails")])

        first = await provider.chat([AIMessage("user", "a")])
        with pytest.raises(ProviderError):
            await provider.chat([AIMessage("user", "b")])
        third = await provider.chat([AIMessage("user", "c")])

        assert first.usage == TokenUsage(10, 5)
        assert third.content == first.content
        assert provider.call_count == 3

    @pytest.mark.asyncio
    async def test_provider_analyze(self):
        """AIProvider.analyze() returns the first tool input."""
        provider = MockProvider(
            responses=[
                AIResponse(content="", tool_calls=[ToolCall("1", "classify", {"label": "a"})])
            ]
        )

        assert await provider.analyze("text", "label it", TOOL) == {"label": "a"}


class TestCreateProvider:
    """Tests for create_provider()."""

    def test_missing_key_raises(self):
        """Without credentials construction fails."""
        with pytest.raises(ConfigurationError):
            create_provider("anthropic")
        with pytest.raises(ConfigurationError):
            create_provider(ProviderType.OPENAI, ProviderOptions())

    def test_key_from_environment(self, monkeypatch):
        """API keys are read from the environment when not passed."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")

        provider = create_provider("openai")

        assert provider.name == ProviderType.OPENAI
        assert provider.model == "gpt-4o"

    def test_unknown_provider(self):
        """Unknown provider names raise ValueError."""
        with pytest.raises(ValueError):
            create_provider("cohere")


class TestAnthropicProvider:
    """Tests for AnthropicProvider with a mocked SDK client."""

    def make_provider(self, create):
        from agent_hub.providers.anthropic_provider import AnthropicProvider

        client = MagicMock()
        client.messages.create = create
        return AnthropicProvider(ProviderOptions(api_key="k", max_tokens=256), client=client)

    @pytest.mark.asyncio
    async def test_chat(self):
        """Text blocks and usage are mapped to AIResponse."""
        create = AsyncMock(
            return_value=SimpleNamespace(
                content=[SimpleNamespace(type="text", text="Hello there")],
                usage=SimpleNamespace(input_tokens=12, output_tokens=3),
            )
        )
        provider = self.make_provider(create)

        response = await provider.chat([AIMessage("user", "Hi")], system_prompt="Be nice")

        assert response.content == "Hello there"
        assert response.usage == TokenUsage(12, 3)
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "claude-sonnet-4-20250514"
        assert kwargs["max_tokens"] == 256
        assert kwargs["system"] == "Be nice"
        assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]

    @pytest.mark.asyncio
    async def test_chat_with_tools(self):
        """tool_use blocks become ToolCalls."""
        create = AsyncMock(
            return_value=SimpleNamespace(
                content=[
                    SimpleNamespace(
                        type="tool_use", id="tu_1", name="classify", input={"label": "spam"}
                    )
                ],
                usage=SimpleNamespace(input_tokens=1, output_tokens=1),
            )
        )
        provider = self.make_provider(create)

        response = await provider.chat_with_tools([AIMessage("user", "x")], [TOOL])

        assert response.content == ""
        assert response.tool_calls == [ToolCall("tu_1", "classify", {"label": "spam"})]
        assert create.call_args.kwargs["tools"][0]["input_schema"] == TOOL.input_schema
        assert "system" not in create.call_args.kwargs

    @pytest.mark.asyncio
    async def test_auth_error_mapped(self):
        """SDK authentication errors become AuthenticationError."""
        import anthropic

        error = anthropic.AuthenticationError(
            "invalid x-api-key",
            response=status_response(401, "https://api.anthropic.com/v1/messages"),
            body=None,
        )
        provider = self.make_provider(AsyncMock(side_effect=error))

        with pytest.raises(AuthenticationError) as exc_info:
            await provider.chat([AIMessage("user", "x")])

        assert exc_info.value.service == "anthropic"
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_rate_limit_mapped(self):
        """Rate limits keep the retry-after header."""
        import anthropic

        error = anthropic.RateLimitError(
            "slow down",
            response=status_response(
                429, "https://api.anthropic.com/v1/messages", headers={"retry-after": "30"}
            ),
            body=None,
        )
        provider = self.make_provider(AsyncMock(side_effect=error))

        with pytest.raises(RateLimitError) as exc_info:
            await provider.chat([AIMessage("user", "x")])

        assert exc_info.value.retry_after == 30.0

    @pytest.mark.asyncio
    async def test_not_found_mapped(self):
        """Unknown models become ModelNotFoundError."""
        import anthropic

        error = anthropic.NotFoundError(
            "model not found",
            response=status_response(404, "https://api.anthropic.com/v1/messages"),
            body=None,
        )
        provider = self.make_provider(AsyncMock(side_effect=error))

        with pytest.raises(ModelNotFoundError):
            await provider.chat([AIMessage("user", "x")])


class TestOpenAIProvider:
    """Tests for OpenAIProvider with a mocked SDK client."""

    def make_provider(self, create, model=None):
        from agent_hub.providers.openai_provider import OpenAIProvider

        client = MagicMock()
        client.chat.completions.create = create
        return OpenAIProvider(ProviderOptions(api_key="k", model=model), client=client)

    @staticmethod
    def completion(content=None, tool_calls=None):
        return SimpleNamespace(
            choices=[
                SimpleNamespace(message=SimpleNamespace(content=content, tool_calls=tool_calls))
            ],
            usage=SimpleNamespace(prompt_tokens=20, completion_tokens=8),
        )

    @pytest.mark.asyncio
    async def test_chat_with_system_prompt(self):
        """The system prompt becomes the first message."""
        create = AsyncMock(return_value=self.completion(content="Hi!"))
        provider = self.make_provider(create, model="gpt-4o-mini")

        response = await provider.chat(
            [AIMessage("user", "Hello"), AIMessage("assistant", "Yes?")], system_prompt="Sys"
        )

        assert response.content == "Hi!"
        assert response.usage == TokenUsage(20, 8)
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"] == [
            {"role": "system", "content": "Sys"},
            {"role": "user", "content": "Hello"},
            {"role": "assistant", "content": "Yes?"},
        ]

    @pytest.mark.asyncio
    async def test_tool_arguments_parsed(self):
        """Function call arguments are parsed from JSON."""
        call = SimpleNamespace(
            id="call_1",
            function=SimpleNamespace(name="classify", arguments='{"label": "urgent"}'),
        )
        create = AsyncMock(return_value=self.completion(tool_calls=[call]))
        provider = self.make_provider(create)

        response = await provider.chat_with_tools([AIMessage("user", "x")], [TOOL])

        assert response.content == ""
        assert response.tool_calls == [ToolCall("call_1", "classify", {"label": "urgent"})]
        kwargs = create.call_args.kwargs
        assert kwargs["tool_choice"] == "auto"
        assert kwargs["tools"][0]["function"]["parameters"] == TOOL.input_schema

    @pytest.mark.asyncio
    async def test_invalid_tool_json(self):
        """Malformed arguments raise ProviderError."""
        call = SimpleNamespace(
            id="call_1", function=SimpleNamespace(name="classify", arguments="{not json")
        )
        provider = self.make_provider(AsyncMock(return_value=self.completion(tool_calls=[call])))

        with pytest.raises(ProviderError, match="invalid JSON"):
            await provider.chat_with_tools([AIMessage("user", "x")], [TOOL])

    @pytest.mark.asyncio
    async def test_auth_error_mapped(self):
        """SDK authentication errors become AuthenticationError."""
        import openai

        error = openai.AuthenticationError(
            "Incorrect API key",
            response=status_response(401, "https://api.openai.com/v1/chat/completions"),
            body=None,
        )
        provider = self.make_provider(AsyncMock(side_effect=error))

        with pytest.raises(AuthenticationError) as exc_info:
            await provider.chat([AIMessage("user", "x")])

        assert exc_info.value.service == "openai"

    @pytest.mark.asyncio
    async def test_rate_limit_with_http_date(self):
        """An HTTP-date Retry-After still maps to RateLimitError."""
        import openai

        error = openai.RateLimitError(
            "slow down",
            response=status_response(
                429,
                "https://api.openai.com/v1/chat/completions",
                headers={"retry-after": "Wed, 21 Oct 2015 07:28:00 GMT"},
            ),
            body=None,
        )
        provider = self.make_provider(AsyncMock(side_effect=error))

        with pytest.raises(RateLimitError) as exc_info:
            await provider.chat([AIMessage("user", "x")])

        # Date is in the past
        assert exc_info.value.retry_after == 0.0
        assert exc_info.value.service == "openai"
