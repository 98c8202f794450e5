"""Application context - the collaborators an agent host wires together.

``build_app_context`` creates a fresh scheduler, usage tracker, AI client
and notifier from ``Settings`` without touching the process-wide defaults,
so several hosts (or tests) can coexist in one process.

Usage:
    app = build_app_context(configure_logging=True)
    app.scheduler.register(InboxAgent(descriptor, ai=app.ai_client, notifier=app.notifier))
    await app.scheduler.start_all()
    ...
    await app.close()
"""

import logging
from dataclasses import dataclass

from agent_hub.ai.client import AIClient, AIClientConfig
from agent_hub.ai.usage import UsageSaveFunction, UsageTracker
from agent_hub.config import Settings
from agent_hub.core.scheduler import AgentScheduler
from agent_hub.exceptions import ConfigurationError
from agent_hub.logging_config import setup_logging
from agent_hub.notifier import Notifier, NotifierConfig

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Bundle of configured collaborators.

    Attributes:
        settings: Settings the context was built from
        scheduler: Agent registry for this host
        usage_tracker: Sink for AI usage records
        notifier: Multi-channel notifier
        ai_client: AI client, or None when no provider credentials are set
    """

    settings: Settings
    scheduler: AgentScheduler
    usage_tracker: UsageTracker
    notifier: Notifier
    ai_client: AIClient | None = None

    async def close(self) -> None:
        """Stop every agent and release HTTP resources."""
        await self.scheduler.shutdown()
        await self.notifier.close()


def build_app_context(
    settings: Settings | None = None,
    usage_save_function: UsageSaveFunction | None = None,
    configure_logging: bool = False,
) -> AppContext:
    """Construct an ``AppContext`` from settings.

    Args:
        settings: Settings to use (read from the environment if omitted)
        usage_save_function: Where AI usage records go
        configure_logging: Set up root logging from ``log_level`` and
            ``log_json`` (for hosts that own the process)

    Missing AI credentials are not fatal: the context is built without an
    AI client and a warning is logged.
    """
    settings = settings or Settings()
    if configure_logging:
        setup_logging(settings.log_level, settings.log_json)

    usage_tracker = UsageTracker(usage_save_function)

    try:
        ai_client = AIClient(AIClientConfig.from_settings(settings), usage_tracker=usage_tracker)
    except ConfigurationError as e:
        logger.warning("AI client not available: %s", e)
        ai_client = None

    return AppContext(
        settings=settings,
        scheduler=AgentScheduler(),
        usage_tracker=usage_tracker,
        notifier=Notifier(NotifierConfig.from_settings(settings)),
        ai_client=ai_client,
    )
