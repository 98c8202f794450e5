"""Agent - abstract unit of recurring or on-demand work.

An agent is a small state machine::

    idle ──start()──> running ──pause()──> paused
     ^                  │  ^                 │
     └─────stop()───────┘  └───resume()──────┘

    any ──initialize()/execute() raises──> error

Concrete agents implement ``execute()`` and may override ``initialize()``
and ``cleanup()``. Everything else (timers, run counters, events, failure
isolation) is handled here.

Concurrency:
    Agents live on one asyncio event loop. ``start()`` and ``stop()`` are
    additionally serialised by a per-agent lock, so a ``stop()`` issued
    while ``start()`` is still initializing runs after it. ``run_once()``
    does not take that lock: an execution that is in flight when ``stop()``
    is called completes and still emits its event.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from agent_hub.ai.context import AIContext, ai_context, get_ai_context
from agent_hub.core.events import EventBus, EventHandler
from agent_hub.exceptions import AgentInitializationError
from agent_hub.types import (
    AgentDescriptor,
    AgentEvent,
    AgentEventType,
    AgentInfo,
    AgentResult,
    AgentStatus,
    ScheduleSpec,
    ScheduleType,
)

logger = logging.getLogger(__name__)

TInput = TypeVar("TInput")
TOutput = TypeVar("TOutput")

# Length of one schedule minute in seconds (tests shrink it)
SECONDS_PER_MINUTE = 60.0

PAUSED_ERROR = "Agent is paused"


def _error_message(error: BaseException) -> str:
    return str(error) or type(error).__name__


class Agent(ABC, Generic[TInput, TOutput]):
    """Base class for all autonomous agents.

    Example:
        class InboxAgent(Agent[None, dict]):
            async def execute(self, input=None):
                emails = await self.gmail.fetch_unread()
                return AgentResult.ok({"processed": len(emails)})

        agent = InboxAgent(
            AgentDescriptor(
                id="inbox",
                name="Inbox",
                schedule=ScheduleSpec.interval(5),
            )
        )
        await agent.start()  # runs now, then every 5 minutes
    """

    def __init__(self, config: AgentDescriptor):
        """Initialize agent.

        Args:
            config: Identity and schedule of this agent
        """
        self._config = config
        self._status = AgentStatus.IDLE
        self._last_run: datetime | None = None
        self._run_count = 0
        self._timer: asyncio.Task | None = None
        self._runs: set[asyncio.Task] = set()
        self._lifecycle_lock = asyncio.Lock()
        self.events = EventBus(name=config.id)

    # ------------------------------------------------------------------
    # Extension points
    # ------------------------------------------------------------------

    @abstractmethod
    async def execute(self, input: TInput | None = None) -> AgentResult[TOutput]:
        """Do one unit of work.

        Return ``AgentResult.fail(...)`` for expected failures; raise for
        unexpected ones (the agent then moves to ``error``).
        """
        pass

    async def initialize(self) -> None:
        """Prepare resources. Runs on every ``start()`` before the agent is running."""
        return None

    async def cleanup(self) -> None:
        """Release resources. Runs on ``stop()`` before the agent goes idle."""
        return None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._config.id

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def config(self) -> AgentDescriptor:
        return self._config

    @property
    def status(self) -> AgentStatus:
        return self._status

    @property
    def run_count(self) -> int:
        return self._run_count

    @property
    def last_run(self) -> datetime | None:
        return self._last_run

    @property
    def has_timer(self) -> bool:
        """Whether an interval timer is currently armed."""
        return self._timer is not None and not self._timer.done()

    def get_info(self) -> AgentInfo:
        """Snapshot of config and runtime state."""
        return AgentInfo(
            config=self._config,
            status=self._status,
            last_run=self._last_run,
            run_count=self._run_count,
        )

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_event(self, handler: EventHandler):
        """Subscribe to every lifecycle event. Returns an unsubscribe function."""
        return self.events.subscribe(handler)

    def on(self, event_type: AgentEventType, handler: EventHandler):
        """Subscribe to one kind of lifecycle event."""
        return self.events.subscribe(handler, event_type)

    def _emit(self, event_type: AgentEventType, details: dict[str, Any] | None = None) -> None:
        self.events.emit(AgentEvent(type=event_type, agent_id=self.id, details=details))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the agent; interval agents run immediately and then periodically.

        Calling ``start()`` on a running agent is a no-op.

        Raises:
            AgentInitializationError: If ``initialize()`` fails. The agent
                is left in ``error`` and no timer is armed.
        """
        async with self._lifecycle_lock:
            if self._status == AgentStatus.RUNNING:
                logger.info("[%s] Agent already running", self.name, extra={"agent_id": self.id})
                return

            # A paused agent keeps its timer; never arm a second one
            await self._cancel_timer()

            try:
                await self.initialize()
            except Exception as e:
                message = _error_message(e)
                self._status = AgentStatus.ERROR
                logger.error(
                    "[%s] Initialization failed: %s",
                    self.name,
                    message,
                    extra={"agent_id": self.id},
                )
                self._emit(AgentEventType.FAILED, {"error": message})
                raise AgentInitializationError(
                    f"Agent {self.id} failed to initialize: {message}",
                    agent_id=self.id,
                ) from e

            self._status = AgentStatus.RUNNING
            self._emit(AgentEventType.STARTED)
            logger.info("[%s] Agent started", self.name, extra={"agent_id": self.id})

            minutes = self._interval_minutes()
            if minutes is not None:
                self._spawn_run()
                self._timer = asyncio.create_task(
                    self._tick(minutes), name=f"agent-timer:{self.id}"
                )

    async def stop(self) -> None:
        """Stop the agent: cancel its timer, run ``cleanup()``, go idle.

        Emits ``paused`` (there is no separate stopped event).
        """
        async with self._lifecycle_lock:
            await self._cancel_timer()
            await self.cleanup()
            self._status = AgentStatus.IDLE
            self._emit(AgentEventType.PAUSED)
            logger.info("[%s] Agent stopped", self.name, extra={"agent_id": self.id})

    def pause(self) -> None:
        """Suspend a running agent.

        The interval timer stays armed; its ticks hit the paused guard in
        ``run_once()`` and do nothing until ``resume()`` or ``stop()``.
        """
        if self._status != AgentStatus.RUNNING:
            return
        self._status = AgentStatus.PAUSED
        self._emit(AgentEventType.PAUSED)
        logger.info("[%s] Agent paused", self.name, extra={"agent_id": self.id})

    def resume(self) -> None:
        """Resume a paused agent."""
        if self._status != AgentStatus.PAUSED:
            return
        self._status = AgentStatus.RUNNING
        self._emit(AgentEventType.RESUMED)
        logger.info("[%s] Agent resumed", self.name, extra={"agent_id": self.id})

    def reschedule(self, schedule: ScheduleSpec | None) -> None:
        """Replace the schedule in the descriptor.

        Only ``AgentScheduler.update_agent_interval`` should call this; it
        takes effect on the next ``start()`` or ``rearm_timer()``.
        """
        self._config = self._config.with_schedule(schedule)

    async def rearm_timer(self) -> None:
        """Replace an armed timer with one on the current schedule.

        No run is fired. Used for paused agents whose interval changed.
        """
        async with self._lifecycle_lock:
            if not self.has_timer:
                return
            await self._cancel_timer()
            minutes = self._interval_minutes()
            if minutes is not None:
                self._timer = asyncio.create_task(
                    self._tick(minutes), name=f"agent-timer:{self.id}"
                )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run_once(self, input: TInput | None = None) -> AgentResult[TOutput]:
        """Execute once and report the outcome.

        Never raises for execution failures:
        - paused: returns a failed result without counting the run or emitting
        - ``execute()`` returns ``success=False``: emits ``failed``, status unchanged
        - ``execute()`` raises: status becomes ``error``, emits ``failed``
        """
        if self._status == AgentStatus.PAUSED:
            return AgentResult(success=False, error=PAUSED_ERROR, duration=0.0)

        started = time.perf_counter()
        self._last_run = datetime.now(UTC)
        self._run_count += 1
        logger.info(
            "[%s] Executing (run #%d)",
            self.name,
            self._run_count,
            extra={"agent_id": self.id},
        )

        try:
            with ai_context(self._ai_context()):
                result = await self.execute(input)
            if not isinstance(result, AgentResult):
                raise TypeError(
                    f"execute() must return AgentResult, got {type(result).__name__}"
                )
        except Exception as e:
            duration = _elapsed_ms(started)
            message = _error_message(e)
            self._status = AgentStatus.ERROR
            logger.error(
                "[%s] Execution failed: %s",
                self.name,
                message,
                extra={"agent_id": self.id},
            )
            self._emit(AgentEventType.FAILED, {"error": message})
            return AgentResult(success=False, error=message, duration=duration)

        duration = _elapsed_ms(started)
        result = AgentResult(
            success=result.success,
            data=result.data,
            error=result.error,
            timestamp=result.timestamp,
            duration=duration,
        )

        if result.success:
            self._emit(AgentEventType.COMPLETED, {"result": result, "duration": duration})
        else:
            logger.warning(
                "[%s] Run reported failure: %s",
                self.name,
                result.error,
                extra={"agent_id": self.id},
            )
            self._emit(AgentEventType.FAILED, {"error": result.error, "duration": duration})

        return result

    async def wait_for_runs(self) -> None:
        """Wait for background runs started by the timer to finish."""
        while self._runs:
            await asyncio.gather(*list(self._runs), return_exceptions=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _interval_minutes(self) -> int | None:
        schedule = self._config.schedule
        if schedule is None or schedule.type != ScheduleType.INTERVAL:
            return None
        return schedule.interval_minutes

    def _ai_context(self) -> AIContext:
        inherited = get_ai_context()
        if inherited is None:
            return AIContext(agent_id=self.id, operation="execute")
        return AIContext(
            user_id=inherited.user_id,
            agent_id=self.id,
            operation=inherited.operation or "execute",
        )

    async def _tick(self, minutes: int) -> None:
        """Fire ``run_once()`` every ``minutes`` until cancelled."""
        period = minutes * SECONDS_PER_MINUTE
        loop = asyncio.get_running_loop()
        next_at = loop.time() + period
        while True:
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            next_at += period
            self._spawn_run()

    def _spawn_run(self) -> None:
        """Start a supervised background run (fire-and-forget)."""
        task = asyncio.create_task(self.run_once(), name=f"agent-run:{self.id}")
        self._runs.add(task)
        task.add_done_callback(self._on_run_done)

    def _on_run_done(self, task: asyncio.Task) -> None:
        self._runs.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is None:
            return
        # run_once catches execute() failures; this is anything that escaped it
        message = _error_message(error)
        logger.error(
            "[%s] Background run crashed: %s",
            self.name,
            message,
            exc_info=error,
            extra={"agent_id": self.id},
        )
        self._status = AgentStatus.ERROR
        self._emit(AgentEventType.FAILED, {"error": message, "background": True})

    async def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is None or timer.done():
            return
        timer.cancel()
        try:
            await timer
        except asyncio.CancelledError:
            pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r} status={self._status.value}>"


def _elapsed_ms(started: float) -> float:
    return max(0.0, (time.perf_counter() - started) * 1000)
