"""Tests for agent_hub/exceptions.py."""

import pytest

from agent_hub.exceptions import (
    AgentExecutionError,
    AgentHubError,
    AgentInitializationError,
    AgentNotFoundError,
    AuthenticationError,
    ConfigurationError,
    NotificationError,
    ProviderError,
    RateLimitError,
)


class TestHierarchy:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize(
        "error_class",
        [
            AgentNotFoundError,
            AgentInitializationError,
            AgentExecutionError,
            ProviderError,
            ConfigurationError,
            NotificationError,
        ],
    )
    def test_all_inherit_base(self, error_class):
        """Every hub error derives from AgentHubError."""
        assert issubclass(error_class, AgentHubError)

    def test_provider_errors(self):
        """Auth and rate limit errors are provider errors."""
        assert issubclass(AuthenticationError, ProviderError)
        assert issubclass(RateLimitError, ProviderError)


class TestMessages:
    """Tests for error attributes and text."""

    def test_not_found(self):
        """AgentNotFoundError is a KeyError with a readable message."""
        error = AgentNotFoundError("email")

        assert isinstance(error, KeyError)
        assert error.agent_id == "email"
        assert str(error) == "Agent not found: email"

    def test_service_prefix(self):
        """The service name prefixes the message."""
        error = ProviderError("overloaded", service="anthropic", details={"status": 529})

        assert str(error) == "[anthropic] overloaded"
        assert error.details == {"status": 529}

    def test_rate_limit_retry_after(self):
        """RateLimitError keeps retry_after."""
        error = RateLimitError(retry_after=12.0)

        assert error.retry_after == 12.0
        assert str(error) == "Rate limit exceeded"
