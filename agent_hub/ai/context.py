"""Per-call AI context used to attribute usage records.

The context travels with the current asyncio task (``contextvars``), so
every AI call made while an agent executes is stamped with that agent's id
without threading it through every function signature.
"""

import inspect
from collections.abc import Awaitable, Callable
from contextvars import ContextVar
from dataclasses import dataclass, replace
from typing import Any, TypeVar

R = TypeVar("R")


@dataclass(frozen=True)
class AIContext:
    """Who is spending tokens and why."""

    user_id: str | None = None
    agent_id: str | None = None
    operation: str | None = None


_ai_context: ContextVar[AIContext | None] = ContextVar("ai_context", default=None)


def run_with_ai_context(context: AIContext, fn: Callable[..., R], *args: Any, **kwargs: Any) -> R:
    """Call ``fn`` with ``context`` active.

    When ``fn`` returns an awaitable, a coroutine is returned instead that
    keeps ``context`` active until the awaitable completes.
    """
    token = _ai_context.set(context)
    try:
        result = fn(*args, **kwargs)
    finally:
        _ai_context.reset(token)

    if inspect.isawaitable(result):
        return _await_in_context(context, result)
    return result


async def _await_in_context(context: AIContext, awaitable: Awaitable[R]) -> R:
    with ai_context(context):
        return await awaitable


class ai_context:  # noqa: N801 - used like a function
    """Context manager that activates an ``AIContext``.

    Example:
        >>> with ai_context(AIContext(agent_id="email", operation="classify")):
        ...     await client.chat(messages)
    """

    def __init__(self, context: AIContext):
        self._context = context
        self._token = None

    def __enter__(self) -> AIContext:
        self._token = _ai_context.set(self._context)
        return self._context

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _ai_context.reset(self._token)


def get_ai_context() -> AIContext | None:
    """Return the active context, if any."""
    return _ai_context.get()


def set_ai_context_value(key: str, value: Any) -> None:
    """Update one field of the active context.

    No-op when no context is active.
    """
    current = _ai_context.get()
    if current is None:
        return
    if key not in AIContext.__dataclass_fields__:
        raise AttributeError(f"Unknown AI context field: {key}")
    _ai_context.set(replace(current, **{key: value}))
