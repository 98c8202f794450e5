"""Agent Scheduler - process-wide registry and supervisor for agents.

The scheduler owns the set of live agents, starts and stops them in bulk,
and re-broadcasts every agent event to scheduler-level subscribers (for
example an audit log writer).

Bulk operations run each agent in its own task and wait for all of them to
settle, so one agent failing to start never blocks or fails the others.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from agent_hub.core.agent import Agent
from agent_hub.core.events import EventBus, EventHandler
from agent_hub.exceptions import AgentNotFoundError
from agent_hub.types import AgentEvent, AgentInfo, AgentResult, AgentStatus, ScheduleSpec

logger = logging.getLogger(__name__)


@dataclass
class ScheduledEntry:
    """Registry slot for one agent.

    Attributes:
        agent: The registered agent
        unsubscribe: Detaches the scheduler from the agent's event bus
    """

    agent: Agent
    unsubscribe: Callable[[], None] | None = None


class AgentScheduler:
    """Central manager of agent lifecycles.

    The registry is only mutated from the event loop thread; readers get
    ``AgentInfo`` snapshots, never references to internal state.

    Example:
        >>> scheduler = AgentScheduler()
        >>> scheduler.register(EmailAgent(config))
        >>> scheduler.on_event(audit_log.event_handler)
        >>> await scheduler.start_all()
        >>> await scheduler.update_agent_interval("email", 10)
    """

    def __init__(self, name: str = "scheduler"):
        self.name = name
        self._agents: dict[str, ScheduledEntry] = {}
        self._events = EventBus(name=name)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register(self, agent: Agent) -> bool:
        """Add an agent to the registry.

        Registering an id twice is a no-op with a warning.

        Returns:
            True if the agent was added
        """
        agent_id = agent.id
        if agent_id in self._agents:
            logger.warning("[%s] Agent %s already registered", self.name, agent_id)
            return False

        unsubscribe = agent.on_event(self._handle_agent_event)
        self._agents[agent_id] = ScheduledEntry(agent=agent, unsubscribe=unsubscribe)
        logger.info(
            "[%s] Registered agent: %s", self.name, agent.name, extra={"agent_id": agent_id}
        )
        return True

    async def unregister(self, agent_id: str) -> None:
        """Stop an agent and remove it. Unknown ids are ignored."""
        entry = self._agents.get(agent_id)
        if entry is None:
            return

        await entry.agent.stop()
        # Another unregister may have won the race while we awaited stop()
        if self._agents.get(agent_id) is entry:
            del self._agents[agent_id]
            if entry.unsubscribe:
                entry.unsubscribe()
            logger.info("[%s] Removed agent: %s", self.name, agent_id)

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    # ------------------------------------------------------------------
    # Bulk control
    # ------------------------------------------------------------------

    async def start_all(self) -> None:
        """Start every enabled agent concurrently.

        Failures are logged per agent; this method never raises for them.
        """
        agents = [entry.agent for entry in self._agents.values() if entry.agent.config.enabled]
        logger.info("[%s] Starting %d agent(s)", self.name, len(agents))
        await self._settle_all("start", agents, lambda agent: agent.start())

    async def stop_all(self) -> None:
        """Stop every registered agent concurrently."""
        agents = [entry.agent for entry in self._agents.values()]
        logger.info("[%s] Stopping %d agent(s)", self.name, len(agents))
        await self._settle_all("stop", agents, lambda agent: agent.stop())

    async def _settle_all(self, action: str, agents: list[Agent], operation) -> None:
        results = await asyncio.gather(
            *(operation(agent) for agent in agents),
            return_exceptions=True,
        )
        for agent, outcome in zip(agents, results):
            if isinstance(outcome, BaseException):
                logger.error(
                    "[%s] Failed to %s agent %s: %s",
                    self.name,
                    action,
                    agent.id,
                    outcome,
                    extra={"agent_id": agent.id},
                )

    async def shutdown(self) -> None:
        """Stop everything and wait for in-flight runs and event handlers."""
        await self.stop_all()
        await asyncio.gather(
            *(entry.agent.wait_for_runs() for entry in self._agents.values()),
            return_exceptions=True,
        )
        await self._events.drain()

    # ------------------------------------------------------------------
    # Single agent control
    # ------------------------------------------------------------------

    def _require(self, agent_id: str) -> Agent:
        entry = self._agents.get(agent_id)
        if entry is None:
            raise AgentNotFoundError(agent_id)
        return entry.agent

    async def start(self, agent_id: str) -> None:
        """Start one agent.

        Raises:
            AgentNotFoundError: If the id is not registered
            AgentInitializationError: If the agent fails to initialize
        """
        await self._require(agent_id).start()

    async def stop(self, agent_id: str) -> None:
        """Stop one agent.

        Raises:
            AgentNotFoundError: If the id is not registered
        """
        await self._require(agent_id).stop()

    async def run_once(self, agent_id: str, input: Any = None) -> AgentResult:
        """Execute one agent manually and return its result.

        Raises:
            AgentNotFoundError: If the id is not registered
        """
        return await self._require(agent_id).run_once(input)

    def pause(self, agent_id: str) -> None:
        """Pause one agent (see ``Agent.pause``)."""
        self._require(agent_id).pause()

    def resume(self, agent_id: str) -> None:
        """Resume one agent."""
        self._require(agent_id).resume()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_agents(self) -> list[AgentInfo]:
        """Snapshots of all registered agents."""
        return [entry.agent.get_info() for entry in list(self._agents.values())]

    def get_agent(self, agent_id: str) -> AgentInfo | None:
        """Snapshot of one agent, or None if unknown."""
        entry = self._agents.get(agent_id)
        return entry.agent.get_info() if entry else None

    def get_agent_instance(self, agent_id: str) -> Agent:
        """The registered agent object itself.

        Raises:
            AgentNotFoundError: If the id is not registered
        """
        return self._require(agent_id)

    # ------------------------------------------------------------------
    # Reconfiguration
    # ------------------------------------------------------------------

    async def update_agent_interval(self, agent_id: str, minutes: int) -> bool:
        """Switch an agent to ``Interval(minutes)``.

        A running agent is stopped and started again so the new timer takes
        effect immediately. A paused agent keeps its status but its timer is
        re-armed on the new period, without an immediate run.

        Returns:
            True on success, False if the agent is unknown or any step failed
        """
        entry = self._agents.get(agent_id)
        if entry is None:
            logger.warning("[%s] Agent %s not found for interval update", self.name, agent_id)
            return False

        agent = entry.agent
        was_running = agent.status == AgentStatus.RUNNING

        try:
            schedule = ScheduleSpec.interval(minutes)

            if was_running:
                logger.info("[%s] Stopping %s to apply new interval", self.name, agent_id)
                await agent.stop()

            agent.reschedule(schedule)
            logger.info(
                "[%s] Interval of %s set to %d min",
                self.name,
                agent_id,
                minutes,
                extra={"agent_id": agent_id},
            )

            if was_running:
                await agent.start()
                logger.info("[%s] Restarted %s", self.name, agent_id)
            elif agent.status == AgentStatus.PAUSED:
                await agent.rearm_timer()

            return True
        except Exception as e:
            logger.error(
                "[%s] Failed to update interval of %s: %s",
                self.name,
                agent_id,
                e,
                extra={"agent_id": agent_id},
            )
            return False

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_event(self, handler: EventHandler) -> Callable[[], None]:
        """Subscribe to events from every registered agent.

        Returns:
            Function that removes the subscription
        """
        return self._events.subscribe(handler)

    def _handle_agent_event(self, event: AgentEvent) -> None:
        self._events.emit(event)


# Lazily created process-wide default
_shared_scheduler: AgentScheduler | None = None


def get_scheduler() -> AgentScheduler:
    """Return the process-wide scheduler, creating it on first use.

    Tests and multi-tenant code should build their own ``AgentScheduler``.
    """
    global _shared_scheduler
    if _shared_scheduler is None:
        _shared_scheduler = AgentScheduler()
    return _shared_scheduler
