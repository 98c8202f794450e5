"""AI usage accounting.

Every provider call attempt (primary or fallback, success or failure)
produces one ``UsageRecord``. Records are handed to a single save function
(usually a persistence collaborator) and not kept afterwards.

Usage:
    from agent_hub.ai.usage import set_usage_save_function

    async def save(record: UsageRecord) -> None:
        await db.insert_usage(record.to_dict())

    set_usage_save_function(save)
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Union

from agent_hub.ai.context import get_ai_context
from agent_hub.providers.pricing import calculate_cost, format_cost

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UsageRecord:
    """Accounting entry for one AI call attempt.

    Attributes:
        provider: Provider name ("anthropic", "openai")
        model: Model id
        input_tokens: Prompt tokens (0 on failure)
        output_tokens: Completion tokens (0 on failure)
        estimated_cost: Cost in micro-dollars
        duration_ms: Wall-clock duration of the attempt
        success: Whether the attempt succeeded
        error_message: Error text for failed attempts
        user_id / agent_id / operation: Attribution from the AI context
    """

    provider: str
    model: str
    input_tokens: int
    output_tokens: int
    estimated_cost: int
    duration_ms: int
    success: bool
    error_message: str | None = None
    user_id: str | None = None
    agent_id: str | None = None
    operation: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "provider": self.provider,
            "model": self.model,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "estimated_cost": self.estimated_cost,
            "duration_ms": self.duration_ms,
            "success": self.success,
            "error_message": self.error_message,
            "user_id": self.user_id,
            "agent_id": self.agent_id,
            "operation": self.operation,
            "created_at": self.created_at.isoformat(),
        }


UsageSaveFunction = Callable[[UsageRecord], Union[None, Awaitable[None]]]


class UsageTracker:
    """Builds usage records and forwards them to the save function.

    Tracking never raises: a missing save function makes it a no-op and a
    failing one is logged.
    """

    def __init__(self, save_function: UsageSaveFunction | None = None):
        self._save_function = save_function

    @property
    def save_function(self) -> UsageSaveFunction | None:
        return self._save_function

    def set_save_function(self, fn: UsageSaveFunction | None) -> None:
        """Install the sink for usage records."""
        if self._save_function is not None and fn is not None and fn != self._save_function:
            logger.warning("Replacing existing usage save function")
        self._save_function = fn

    async def track(
        self,
        provider: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
        duration_ms: int,
        success: bool,
        error_message: str | None = None,
    ) -> UsageRecord:
        """Record one call attempt and hand it to the save function."""
        context = get_ai_context()
        record = UsageRecord(
            provider=provider,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            estimated_cost=calculate_cost(model, input_tokens, output_tokens),
            duration_ms=duration_ms,
            success=success,
            error_message=error_message,
            user_id=context.user_id if context else None,
            agent_id=context.agent_id if context else None,
            operation=context.operation if context else None,
        )

        logger.info(
            "%s/%s: %d+%d tokens, %s, %dms%s",
            provider,
            model,
            input_tokens,
            output_tokens,
            format_cost(record.estimated_cost),
            duration_ms,
            "" if success else " (failed)",
            extra={"provider": provider, "agent_id": record.agent_id},
        )

        if self._save_function is None:
            return record

        try:
            outcome = self._save_function(record)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error("Failed to save usage record: %s", e)

        return record


_default_tracker = UsageTracker()


def get_usage_tracker() -> UsageTracker:
    """Process-wide tracker used by clients built without one."""
    return _default_tracker


def set_usage_save_function(fn: UsageSaveFunction | None) -> None:
    """Configure where usage records go (once, at process start)."""
    _default_tracker.set_save_function(fn)
