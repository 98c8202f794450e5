"""AgentManager - one scheduler per tenant.

Each user gets an independent ``AgentScheduler`` holding that user's agent
instances, so one tenant's reconfiguration or failure never touches
another's agents.

Usage:
    async def build_agents(user_id: str) -> list[Agent]:
        config = await load_user_config(user_id)
        return [EmailAgent(config.email, notifier=...)]

    manager = AgentManager(build_agents, event_handler=audit.event_handler)
    await manager.initialize_for_user("u1")
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import replace
from typing import Union

from agent_hub.core.agent import Agent
from agent_hub.core.events import EventHandler
from agent_hub.core.scheduler import AgentScheduler
from agent_hub.types import AgentEvent

logger = logging.getLogger(__name__)

AgentFactory = Callable[[str], Union[Iterable[Agent], Awaitable[Iterable[Agent]]]]


class AgentManager:
    """Creates, starts and stops per-user agent sets."""

    def __init__(self, agent_factory: AgentFactory, event_handler: EventHandler | None = None):
        """Initialize manager.

        Args:
            agent_factory: Builds the agents for a user id (sync or async)
            event_handler: Receives every user's events, with ``user_id``
                added to the event details
        """
        self._agent_factory = agent_factory
        self._event_handler = event_handler
        self._schedulers: dict[str, AgentScheduler] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        return self._locks.setdefault(user_id, asyncio.Lock())

    async def initialize_for_user(self, user_id: str) -> AgentScheduler:
        """(Re)build and start the agent set for a user.

        Any agents already running for the user are stopped first.
        """
        async with self._lock_for(user_id):
            await self._stop_user(user_id)

            logger.info("Initializing agents for user %s", user_id, extra={"user_id": user_id})
            agents = self._agent_factory(user_id)
            if inspect.isawaitable(agents):
                agents = await agents

            scheduler = AgentScheduler(name=f"scheduler:{user_id}")
            for agent in agents:
                scheduler.register(agent)

            if self._event_handler is not None:
                scheduler.on_event(self._tag_events(user_id))

            self._schedulers[user_id] = scheduler
            await scheduler.start_all()
            logger.info(
                "Started %d agent(s) for user %s",
                len(scheduler),
                user_id,
                extra={"user_id": user_id},
            )
            return scheduler

    async def stop_for_user(self, user_id: str) -> None:
        """Stop and forget a user's agents (no-op for unknown users)."""
        async with self._lock_for(user_id):
            await self._stop_user(user_id)

    async def _stop_user(self, user_id: str) -> None:
        scheduler = self._schedulers.pop(user_id, None)
        if scheduler is None:
            return
        await scheduler.stop_all()
        logger.info("Stopped agents for user %s", user_id, extra={"user_id": user_id})

    async def stop_all(self) -> None:
        """Stop every user's agents concurrently."""
        await asyncio.gather(
            *(self.stop_for_user(user_id) for user_id in list(self._schedulers)),
            return_exceptions=True,
        )

    def get_scheduler_for_user(self, user_id: str) -> AgentScheduler | None:
        return self._schedulers.get(user_id)

    def get_active_users(self) -> list[str]:
        return list(self._schedulers)

    def _tag_events(self, user_id: str) -> Callable[[AgentEvent], object]:
        handler = self._event_handler

        def forward(event: AgentEvent) -> object:
            details = {**(event.details or {}), "user_id": user_id}
            return handler(replace(event, details=details))

        return forward
