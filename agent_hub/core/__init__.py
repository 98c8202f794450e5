"""Agent core - lifecycle, scheduling and event fan-out.

Modules:
    agent: ``Agent`` base class (state machine, interval timer, run_once)
    scheduler: ``AgentScheduler`` registry and bulk control
    events: ``EventBus`` typed pub/sub for lifecycle events
    manager: ``AgentManager`` one scheduler per user
    cron: ``CronDispatcher`` APScheduler-driven cron triggers (imported lazily)
"""

from agent_hub.core.agent import Agent
from agent_hub.core.events import EventBus, EventHandler
from agent_hub.core.manager import AgentManager
from agent_hub.core.scheduler import AgentScheduler, get_scheduler

__all__ = [
    # Agent
    "Agent",
    # Events
    "EventBus",
    "EventHandler",
    # Scheduler
    "AgentScheduler",
    "get_scheduler",
    # Multi-tenant
    "AgentManager",
    # Cron
    "CronDispatcher",
]


def __getattr__(name: str):
    """Lazy import so APScheduler is only loaded when cron is used."""
    if name == "CronDispatcher":
        from agent_hub.core.cron import CronDispatcher

        return CronDispatcher
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
