"""
Pytest configuration and shared fixtures.

Provides a scriptable ``Agent`` implementation, a fast clock for interval
timers and isolation of the process-wide defaults (usage tracker, shared
AI client, shared scheduler, cached settings).
"""

import logging
from collections import deque

import pytest

from agent_hub.core.agent import Agent
from agent_hub.types import AgentDescriptor, AgentResult, ScheduleSpec

# Seconds per schedule minute in timer tests
FAST_MINUTE = 0.1


class ScriptedAgent(Agent):
    """Agent whose ``execute`` outcomes are queued in advance.

    Each outcome is an ``AgentResult`` (returned) or an exception (raised).
    With no outcome queued, ``execute`` succeeds with the run number.
    """

    def __init__(self, config, outcomes=None, init_error=None):
        super().__init__(config)
        self.outcomes = deque(outcomes or [])
        self.init_error = init_error
        self.inputs = []
        self.initialize_calls = 0
        self.cleanup_calls = 0

    async def initialize(self):
        self.initialize_calls += 1
        if self.init_error is not None:
            raise self.init_error

    async def cleanup(self):
        self.cleanup_calls += 1

    async def execute(self, input=None):
        self.inputs.append(input)
        if self.outcomes:
            outcome = self.outcomes.popleft()
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        return AgentResult.ok({"run": self.run_count})


@pytest.fixture
def make_agent():
    """Factory for ``ScriptedAgent`` instances."""

    def _make(
        agent_id="test-agent",
        schedule=None,
        enabled=True,
        outcomes=None,
        init_error=None,
    ):
        config = AgentDescriptor(
            id=agent_id,
            name=agent_id.replace("-", " ").title(),
            enabled=enabled,
            schedule=schedule,
        )
        return ScriptedAgent(config, outcomes=outcomes, init_error=init_error)

    return _make


@pytest.fixture
def interval_schedule():
    return ScheduleSpec.interval(1)


@pytest.fixture
def fast_minutes(monkeypatch):
    """Shrink one schedule minute to ``FAST_MINUTE`` seconds."""
    monkeypatch.setattr("agent_hub.core.agent.SECONDS_PER_MINUTE", FAST_MINUTE)
    return FAST_MINUTE


@pytest.fixture(autouse=True)
def isolate_globals(monkeypatch):
    """Reset process-wide defaults around every test."""
    import agent_hub.ai.client as client_module
    import agent_hub.ai.usage as usage_module
    import agent_hub.core.scheduler as scheduler_module
    from agent_hub.config import get_settings

    monkeypatch.setattr(usage_module, "_default_tracker", usage_module.UsageTracker())
    monkeypatch.setattr(client_module, "_global_config", client_module.AIClientConfig())
    monkeypatch.setattr(client_module, "_shared_client", None)
    monkeypatch.setattr(scheduler_module, "_shared_scheduler", None)
    for name in ("ANTHROPIC_API_KEY", "OPENAI_API_KEY", "AI_PROVIDER"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def restore_root_logger():
    """Put back root handlers and level after setup_logging()."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
