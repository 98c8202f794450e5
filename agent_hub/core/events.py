"""Typed in-process event bus for agent lifecycle events.

Agents own one bus each; the scheduler owns another and re-broadcasts
every agent event onto it. Delivery is at-most-once: a handler that raises
is logged and skipped, and the remaining handlers still receive the event.

Handlers may be plain callables or coroutine functions. Coroutine handlers
are scheduled as tasks on the running loop so a slow persistence sink never
blocks the lifecycle transition that emitted the event.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Union

from agent_hub.types import AgentEvent, AgentEventType

logger = logging.getLogger(__name__)

EventHandler = Callable[[AgentEvent], Union[None, Awaitable[None]]]


class EventBus:
    """Fan-out of ``AgentEvent`` to typed and catch-all subscribers.

    Example:
        >>> bus = EventBus()
        >>> unsubscribe = bus.subscribe(print)  # every event
        >>> bus.subscribe(on_failure, AgentEventType.FAILED)
        >>> bus.emit(AgentEvent(AgentEventType.FAILED, agent_id="email"))
        >>> unsubscribe()
    """

    def __init__(self, name: str = "events"):
        self.name = name
        self._handlers: list[tuple[AgentEventType | None, EventHandler]] = []
        self._pending: set[asyncio.Task] = set()

    def subscribe(
        self,
        handler: EventHandler,
        event_type: AgentEventType | None = None,
    ) -> Callable[[], None]:
        """Register a handler.

        Args:
            handler: Callable receiving each matching event
            event_type: Only deliver this kind of event (None for all)

        Returns:
            Function that removes the subscription
        """
        entry = (event_type, handler)
        self._handlers.append(entry)

        def unsubscribe() -> None:
            if entry in self._handlers:
                self._handlers.remove(entry)

        return unsubscribe

    def emit(self, event: AgentEvent) -> None:
        """Deliver an event to every matching handler."""
        # Copy so handlers may (un)subscribe while we iterate
        for event_type, handler in list(self._handlers):
            if event_type is not None and event_type != event.type:
                continue
            try:
                outcome = handler(event)
                if inspect.isawaitable(outcome):
                    self._track(outcome, event)
            except Exception:
                logger.exception(
                    "[%s] Event handler failed for %s",
                    self.name,
                    event.type.value,
                    extra={"agent_id": event.agent_id},
                )

    def _track(self, awaitable: Awaitable[None], event: AgentEvent) -> None:
        """Run an async handler in the background and log its failure."""
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)

        def _done(finished: asyncio.Task) -> None:
            self._pending.discard(finished)
            if finished.cancelled():
                return
            error = finished.exception()
            if error is not None:
                logger.error(
                    "[%s] Async event handler failed for %s: %s",
                    self.name,
                    event.type.value,
                    error,
                    extra={"agent_id": event.agent_id},
                )

        task.add_done_callback(_done)

    async def drain(self) -> None:
        """Wait for async handlers that are still running."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def handler_count(self) -> int:
        """Number of active subscriptions."""
        return len(self._handlers)
