"""Core data model shared by agents, the scheduler and collaborators.

All records here are immutable dataclasses. Mutable lifecycle state
(status, run counter, last run, timer) lives inside ``Agent`` and is only
ever exposed through ``AgentInfo`` snapshots.
"""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class AgentStatus(str, Enum):
    """Lifecycle status of an agent."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    ERROR = "error"


class AgentEventType(str, Enum):
    """Kinds of lifecycle events an agent emits.

    ``stop()`` reports ``PAUSED``; there is no separate stopped event.
    """

    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    PAUSED = "paused"
    RESUMED = "resumed"


class ScheduleType(str, Enum):
    """How an agent gets triggered."""

    INTERVAL = "interval"
    CRON = "cron"
    MANUAL = "manual"


@dataclass(frozen=True)
class ScheduleSpec:
    """Tagged schedule variant.

    Use the constructors instead of building it by hand:

        >>> ScheduleSpec.interval(15)
        >>> ScheduleSpec.cron("0 8 * * *")
        >>> ScheduleSpec.manual()

    Attributes:
        type: Schedule kind
        value: Minutes for interval, cron expression for cron, None for manual
    """

    type: ScheduleType
    value: int | str | None = None

    def __post_init__(self):
        """Validate the value against the schedule type."""
        if self.type == ScheduleType.INTERVAL:
            if isinstance(self.value, bool) or not isinstance(self.value, int) or self.value <= 0:
                raise ValueError(
                    f"Interval schedule needs a positive integer of minutes, got {self.value!r}"
                )
        elif self.type == ScheduleType.CRON:
            if not isinstance(self.value, str) or not self.value.strip():
                raise ValueError("Cron schedule needs a non-empty expression")
        elif self.value is not None:
            raise ValueError("Manual schedule takes no value")

    @classmethod
    def interval(cls, minutes: int) -> "ScheduleSpec":
        """Self-triggering schedule every ``minutes`` minutes."""
        return cls(ScheduleType.INTERVAL, minutes)

    @classmethod
    def cron(cls, expression: str) -> "ScheduleSpec":
        """Cron schedule (stored, only executed by a cron collaborator)."""
        return cls(ScheduleType.CRON, expression)

    @classmethod
    def manual(cls) -> "ScheduleSpec":
        """Externally driven schedule."""
        return cls(ScheduleType.MANUAL)

    @property
    def interval_minutes(self) -> int | None:
        """Minutes between runs for interval schedules, else None."""
        return self.value if self.type == ScheduleType.INTERVAL else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"type": self.type.value, "value": self.value}


@dataclass(frozen=True)
class AgentDescriptor:
    """Identity and configuration of an agent.

    Attributes:
        id: Unique registry key
        name: Human-readable name
        description: What the agent does
        enabled: Whether ``AgentScheduler.start_all`` starts it
        schedule: Optional schedule (None behaves like manual)
    """

    id: str
    name: str
    description: str = ""
    enabled: bool = True
    schedule: ScheduleSpec | None = None

    def with_schedule(self, schedule: ScheduleSpec | None) -> "AgentDescriptor":
        """Return a copy with a different schedule."""
        return replace(self, schedule=schedule)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "enabled": self.enabled,
            "schedule": self.schedule.to_dict() if self.schedule else None,
        }


@dataclass(frozen=True)
class AgentResult(Generic[T]):
    """Outcome of one execution.

    Attributes:
        success: Whether the run succeeded
        data: Optional typed payload
        error: Error message if failed
        timestamp: When the result was produced
        duration: Wall-clock duration in milliseconds
    """

    success: bool
    data: T | None = None
    error: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    duration: float = 0.0

    @classmethod
    def ok(cls, data: T | None = None) -> "AgentResult[T]":
        """Build a successful result."""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, data: T | None = None) -> "AgentResult[T]":
        """Build a reported (structured) failure."""
        return cls(success=False, data=data, error=error)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "success": self.success,
            "data": self.data,
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
            "duration": self.duration,
        }


@dataclass(frozen=True)
class AgentEvent:
    """Immutable record of a lifecycle transition."""

    type: AgentEventType
    agent_id: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization.

        ``AgentResult`` values inside details are flattened as well.
        """
        details = None
        if self.details is not None:
            details = {
                key: value.to_dict() if isinstance(value, AgentResult) else value
                for key, value in self.details.items()
            }
        return {
            "type": self.type.value,
            "agent_id": self.agent_id,
            "timestamp": self.timestamp.isoformat(),
            "details": details,
        }


@dataclass(frozen=True)
class AgentInfo:
    """Read-only snapshot of an agent's state."""

    config: AgentDescriptor
    status: AgentStatus
    last_run: datetime | None
    run_count: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "config": self.config.to_dict(),
            "status": self.status.value,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "run_count": self.run_count,
        }
