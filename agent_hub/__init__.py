"""Agent Hub - scheduled autonomous agents with a fault-tolerant AI layer.

Agents run on an interval, on demand or (with ``CronDispatcher``) on a cron
expression. Their AI calls go through ``AIClient``, which falls back to a
second provider and accounts for every attempt.

Note: Imports are lazy so the provider SDKs load only when used.
Use explicit imports: `from agent_hub.core import Agent, AgentScheduler`
"""

__version__ = "0.1.0"

_EXPORTS = {
    "Agent": "agent_hub.core.agent",
    "AgentScheduler": "agent_hub.core.scheduler",
    "get_scheduler": "agent_hub.core.scheduler",
    "AgentManager": "agent_hub.core.manager",
    "AIClient": "agent_hub.ai.client",
    "get_ai_client": "agent_hub.ai.client",
    "Notifier": "agent_hub.notifier",
    "AppContext": "agent_hub.context",
    "build_app_context": "agent_hub.context",
    "AgentDescriptor": "agent_hub.types",
    "AgentResult": "agent_hub.types",
    "ScheduleSpec": "agent_hub.types",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str):
    """Lazy import of the public API."""
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    import importlib

    return getattr(importlib.import_module(module_name), name)
