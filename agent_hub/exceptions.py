"""
Unified Exception Hierarchy for agent_hub.

Every error raised by the hub inherits from ``AgentHubError`` so callers can
catch the whole family with a single except clause, while still being able
to react to the specific failure.

Usage:
    from agent_hub.exceptions import (
        AgentNotFoundError,
        AgentInitializationError,
        ProviderError,
        RateLimitError,
    )

    try:
        await scheduler.start("email")
    except AgentNotFoundError:
        # Unknown id - registry lookup failed
        ...
    except AgentInitializationError as e:
        logger.error("Agent failed to initialize: %s", e.__cause__)

Note:
    Steady-state agent failures are *not* exceptions. ``Agent.run_once``
    always returns an ``AgentResult``; exceptions are reserved for
    configuration-time and registry-lookup errors.
"""

from typing import Any


class AgentHubError(Exception):
    """Base exception for all agent_hub errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dict with additional error context.
        agent_id: Agent the error relates to, if any.
        service: Name of the external service involved, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        agent_id: str | None = None,
        service: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.agent_id = agent_id
        self.service = service

    def __str__(self) -> str:
        parts = [self.message]
        if self.service:
            parts.insert(0, f"[{self.service}]")
        return " ".join(parts)


# ============================================================================
# AGENT LIFECYCLE
# ============================================================================


class AgentNotFoundError(AgentHubError, KeyError):
    """Raised when a scheduler operation names an unregistered agent id."""

    def __init__(self, agent_id: str, **kwargs: Any) -> None:
        super().__init__(f"Agent not found: {agent_id}", agent_id=agent_id, **kwargs)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.message


class AgentInitializationError(AgentHubError):
    """Raised from ``Agent.start()`` when ``initialize()`` fails.

    The exception thrown by ``initialize()`` is kept as ``__cause__``.
    """

    pass


class AgentExecutionError(AgentHubError):
    """Raised by concrete agents from ``execute()``.

    ``Agent.run_once`` catches it (like any other exception), forces the
    agent into the ``error`` status and returns a failed ``AgentResult``.
    """

    pass


# ============================================================================
# AI PROVIDERS
# ============================================================================


class ProviderError(AgentHubError):
    """Base exception for AI provider errors."""

    pass


class AuthenticationError(ProviderError):
    """Provider rejected the credentials (invalid or expired API key)."""

    pass


class RateLimitError(ProviderError):
    """Rate limit exceeded.

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API).
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        retry_after: float | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ModelNotFoundError(ProviderError):
    """Requested model doesn't exist for the provider."""

    pass


# ============================================================================
# CONFIGURATION / NOTIFICATIONS
# ============================================================================


class ConfigurationError(AgentHubError):
    """Configuration is invalid or missing.

    Raised when:
    - Provider credentials are absent
    - A schedule is malformed (e.g. non-positive interval)
    - A notification channel is used without its settings
    """

    pass


class NotificationError(AgentHubError):
    """A notification channel failed to deliver.

    Only raised inside channel senders; ``Notifier.send`` converts it to
    a ``False`` return value.
    """

    pass


__all__ = [
    "AgentHubError",
    "AgentNotFoundError",
    "AgentInitializationError",
    "AgentExecutionError",
    "ProviderError",
    "AuthenticationError",
    "RateLimitError",
    "ModelNotFoundError",
    "ConfigurationError",
    "NotificationError",
]
