"""Cron evaluator for agents with ``Cron`` schedules.

The core stores cron expressions without evaluating them. Plugging a
``CronDispatcher`` into a scheduler makes those agents fire on their cron
expression by calling ``AgentScheduler.run_once``. Without it, cron agents
behave like manual ones.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from agent_hub.core.scheduler import AgentScheduler
from agent_hub.exceptions import ConfigurationError
from agent_hub.types import ScheduleType

logger = logging.getLogger(__name__)


class CronDispatcher:
    """Triggers cron-scheduled agents through APScheduler.

    Example:
        >>> dispatcher = CronDispatcher(scheduler, timezone="America/Sao_Paulo")
        >>> dispatcher.sync()      # pick up cron agents currently registered
        >>> dispatcher.start()
    """

    def __init__(self, scheduler: AgentScheduler, timezone: str = "UTC"):
        self.scheduler = scheduler
        self.timezone = timezone
        self._apscheduler = AsyncIOScheduler(timezone=timezone)
        self.running = False

    @staticmethod
    def _job_id(agent_id: str) -> str:
        return f"cron_{agent_id}"

    def sync(self) -> list[str]:
        """Add or refresh jobs for enabled cron agents and drop stale ones.

        Returns:
            Ids of agents that have a cron job after syncing
        """
        wanted: dict[str, str] = {}
        for info in self.scheduler.get_agents():
            schedule = info.config.schedule
            if info.config.enabled and schedule and schedule.type == ScheduleType.CRON:
                wanted[info.config.id] = str(schedule.value)

        for job in self._apscheduler.get_jobs():
            agent_id = job.id.removeprefix("cron_")
            if agent_id not in wanted:
                job.remove()
                logger.info("Removed cron job for agent %s", agent_id)

        for agent_id, expression in wanted.items():
            self.add(agent_id, expression)

        return sorted(wanted)

    def add(self, agent_id: str, expression: str) -> None:
        """Schedule ``agent_id`` on a five-field crontab expression.

        Raises:
            ConfigurationError: If the expression is invalid
        """
        try:
            trigger = CronTrigger.from_crontab(expression, timezone=self.timezone)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid cron expression for agent {agent_id}: {expression}",
                agent_id=agent_id,
            ) from e

        # Jobs added before start() are queued without replacement
        self.remove(agent_id)
        self._apscheduler.add_job(
            self._fire,
            trigger=trigger,
            args=[agent_id],
            id=self._job_id(agent_id),
            name=f"Agent: {agent_id}",
            replace_existing=True,
        )
        logger.info(
            "Scheduled agent %s with cron: %s", agent_id, expression, extra={"agent_id": agent_id}
        )

    def remove(self, agent_id: str) -> None:
        job = self._apscheduler.get_job(self._job_id(agent_id))
        if job:
            job.remove()

    def job_ids(self) -> list[str]:
        return [job.id for job in self._apscheduler.get_jobs()]

    async def _fire(self, agent_id: str) -> None:
        if agent_id not in self.scheduler:
            logger.warning("Cron fired for unregistered agent %s", agent_id)
            self.remove(agent_id)
            return
        result = await self.scheduler.run_once(agent_id)
        if not result.success:
            logger.warning(
                "Cron run of %s failed: %s", agent_id, result.error, extra={"agent_id": agent_id}
            )

    def start(self) -> None:
        """Start firing jobs (needs a running event loop)."""
        if self.running:
            return
        self._apscheduler.start()
        self.running = True
        logger.info("CronDispatcher started with %d job(s)", len(self._apscheduler.get_jobs()))

    def shutdown(self) -> None:
        if not self.running:
            return
        self._apscheduler.shutdown(wait=False)
        self.running = False
