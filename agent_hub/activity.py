"""Agent activity log.

Human-readable activity entries ("Processed 12 emails") shown in a
dashboard, plus an audit trail of lifecycle events. Entries are buffered
and flushed in batches to an optional sink (for example a database writer).

Usage:
    activity = ActivityLog(sink=save_entries)
    scheduler.on_event(activity.event_handler)

    log = create_agent_logger("email", "Email Agent", user_id="u1", activity=activity)
    log.success("Processed 12 emails")
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Union

from agent_hub.types import AgentEvent, AgentEventType

logger = logging.getLogger(__name__)


class ActivityLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    DEBUG = "debug"


_DEFAULT_EMOJI = {
    ActivityLevel.INFO: "ℹ️",
    ActivityLevel.SUCCESS: "✅",
    ActivityLevel.WARNING: "⚠️",
    ActivityLevel.ERROR: "❌",
    ActivityLevel.DEBUG: "🔍",
}

_LOG_LEVEL = {
    ActivityLevel.INFO: logging.INFO,
    ActivityLevel.SUCCESS: logging.INFO,
    ActivityLevel.WARNING: logging.WARNING,
    ActivityLevel.ERROR: logging.ERROR,
    ActivityLevel.DEBUG: logging.DEBUG,
}

_EVENT_LEVEL = {
    AgentEventType.STARTED: ActivityLevel.INFO,
    AgentEventType.COMPLETED: ActivityLevel.SUCCESS,
    AgentEventType.FAILED: ActivityLevel.ERROR,
    AgentEventType.PAUSED: ActivityLevel.WARNING,
    AgentEventType.RESUMED: ActivityLevel.INFO,
}


@dataclass(frozen=True)
class ActivityEntry:
    """One activity line."""

    agent_id: str
    level: ActivityLevel
    message: str
    agent_name: str | None = None
    user_id: str | None = None
    emoji: str | None = None
    details: dict[str, Any] | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "agent_name": self.agent_name,
            "user_id": self.user_id,
            "level": self.level.value,
            "emoji": self.emoji,
            "message": self.message,
            "details": self.details,
            "created_at": self.created_at.isoformat(),
        }


ActivitySink = Callable[[list[ActivityEntry]], Union[None, Awaitable[None]]]


class ActivityLog:
    """Buffer of activity entries with batched flushing.

    ``add`` schedules a flush ``flush_delay`` seconds later when an event
    loop is running; ``flush`` can also be awaited directly (shutdown).
    A failing sink is logged and the batch is dropped.
    """

    def __init__(self, sink: ActivitySink | None = None, flush_delay: float = 1.0):
        self._sink = sink
        self._flush_delay = flush_delay
        self._buffer: list[ActivityEntry] = []
        self._flush_handle: asyncio.TimerHandle | None = None
        self._flush_tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> list[ActivityEntry]:
        """Entries not yet flushed."""
        return list(self._buffer)

    def add(self, entry: ActivityEntry) -> None:
        self._buffer.append(entry)
        if self._sink is None or self._flush_handle is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._flush_handle = loop.call_later(self._flush_delay, self._schedule_flush, loop)

    def _schedule_flush(self, loop: asyncio.AbstractEventLoop) -> None:
        task = loop.create_task(self.flush())
        self._flush_tasks.add(task)
        task.add_done_callback(self._flush_tasks.discard)

    async def flush(self) -> int:
        """Send buffered entries to the sink.

        Returns:
            Number of entries flushed
        """
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None

        if not self._buffer or self._sink is None:
            return 0

        batch, self._buffer = self._buffer, []
        try:
            outcome = self._sink(batch)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error("Failed to save %d activity entries: %s", len(batch), e)
            return 0
        return len(batch)

    def event_handler(self, event: AgentEvent) -> None:
        """Scheduler subscriber: record every lifecycle event."""
        details = event.to_dict()["details"]
        message = f"Agent {event.type.value}"
        if event.details and event.details.get("error"):
            message = f"{message}: {event.details['error']}"
        self.add(
            ActivityEntry(
                agent_id=event.agent_id,
                level=_EVENT_LEVEL[event.type],
                message=message,
                details=details,
                created_at=event.timestamp,
            )
        )


class AgentActivityLogger:
    """Per-agent logger that also records activity entries.

    Log records carry ``agent_id`` / ``user_id`` extras so ``JSONFormatter``
    emits them as fields.
    """

    def __init__(
        self,
        agent_id: str,
        agent_name: str,
        user_id: str | None = None,
        activity: ActivityLog | None = None,
    ):
        self.agent_id = agent_id
        self.agent_name = agent_name
        self.user_id = user_id
        self.activity = activity
        self._logger = logging.LoggerAdapter(
            logging.getLogger(f"agent_hub.agents.{agent_id}"),
            {"agent_id": agent_id, "user_id": user_id},
        )

    def record(self, level: ActivityLevel, message: str, emoji: str | None = None) -> ActivityEntry:
        emoji = emoji or _DEFAULT_EMOJI[level]
        self._logger.log(_LOG_LEVEL[level], "[%s] %s %s", self.agent_name, emoji, message)
        entry = ActivityEntry(
            agent_id=self.agent_id,
            agent_name=self.agent_name,
            user_id=self.user_id,
            level=level,
            emoji=emoji,
            message=message,
        )
        if self.activity is not None:
            self.activity.add(entry)
        return entry

    def info(self, message: str, emoji: str | None = None) -> ActivityEntry:
        return self.record(ActivityLevel.INFO, message, emoji)

    def success(self, message: str, emoji: str | None = None) -> ActivityEntry:
        return self.record(ActivityLevel.SUCCESS, message, emoji)

    def warning(self, message: str, emoji: str | None = None) -> ActivityEntry:
        return self.record(ActivityLevel.WARNING, message, emoji)

    def error(self, message: str, emoji: str | None = None) -> ActivityEntry:
        return self.record(ActivityLevel.ERROR, message, emoji)

    def debug(self, message: str, emoji: str | None = None) -> ActivityEntry:
        return self.record(ActivityLevel.DEBUG, message, emoji)


def create_agent_logger(
    agent_id: str,
    agent_name: str,
    user_id: str | None = None,
    activity: ActivityLog | None = None,
) -> AgentActivityLogger:
    """Logger for one agent that feeds the activity log."""
    return AgentActivityLogger(agent_id, agent_name, user_id=user_id, activity=activity)
