"""Validation schemas for agent and notification payloads.

API handlers and stored configuration hand the hub plain dicts; these
pydantic models validate them and convert to the core dataclasses.
"""

from typing import Any

from pydantic import BaseModel, Field, model_validator

from agent_hub.notifier import Notification, NotificationChannel, NotificationPriority
from agent_hub.types import AgentDescriptor, ScheduleSpec, ScheduleType


class ScheduleSchema(BaseModel):
    """Schedule as stored: ``{"type": "interval", "value": 5}``."""

    type: ScheduleType
    value: int | str | None = None

    @model_validator(mode="after")
    def check_value(self) -> "ScheduleSchema":
        # Reuse the dataclass rules so both paths agree
        self.to_spec()
        return self

    def to_spec(self) -> ScheduleSpec:
        value = self.value
        if self.type == ScheduleType.INTERVAL and isinstance(value, str) and value.isdigit():
            value = int(value)
        return ScheduleSpec(self.type, value)


class AgentConfigSchema(BaseModel):
    """Agent descriptor payload."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    enabled: bool = True
    schedule: ScheduleSchema | None = None

    def to_descriptor(self) -> AgentDescriptor:
        return AgentDescriptor(
            id=self.id,
            name=self.name,
            description=self.description,
            enabled=self.enabled,
            schedule=self.schedule.to_spec() if self.schedule else None,
        )


class NotificationSchema(BaseModel):
    """Notification payload (id and timestamp are generated)."""

    channel: NotificationChannel
    priority: NotificationPriority = NotificationPriority.MEDIUM
    title: str = Field(min_length=1)
    message: str
    metadata: dict[str, Any] | None = None

    def to_notification(self) -> Notification:
        return Notification(
            channel=self.channel,
            priority=self.priority,
            title=self.title,
            message=self.message,
            metadata=self.metadata,
        )


def parse_agent_config(data: dict[str, Any]) -> AgentDescriptor:
    """Validate a dict and return an ``AgentDescriptor``.

    Raises:
        pydantic.ValidationError: If the payload is invalid
    """
    return AgentConfigSchema.model_validate(data).to_descriptor()
