"""Tests for agent_hub/ai/usage.py and agent_hub/ai/context.py."""

import asyncio
import logging

import pytest

from agent_hub.ai.context import (
    AIContext,
    ai_context,
    get_ai_context,
    run_with_ai_context,
    set_ai_context_value,
)
from agent_hub.ai.usage import (
    UsageTracker,
    get_usage_tracker,
    set_usage_save_function,
)


class TestUsageTracker:
    """Tests for UsageTracker.track()."""

    @pytest.mark.asyncio
    async def test_no_sink_is_noop(self):
        """Tracking without a save function still returns the record."""
        record = await UsageTracker().track("anthropic", "claude-3-haiku-20240307", 10, 5, 12, True)

        assert record.provider == "anthropic"
        assert record.duration_ms == 12

    @pytest.mark.asyncio
    async def test_cost_in_micro_dollars(self):
        """estimated_cost uses the price table."""
        record = await UsageTracker().track("anthropic", "claude-sonnet-4-20250514", 1000, 500, 1, True)

        # 1000 * $3/M + 500 * $15/M = $0.0105
        assert record.estimated_cost == 10_500

    @pytest.mark.asyncio
    async def test_sync_sink(self):
        """A plain function sink receives each record."""
        saved = []
        tracker = UsageTracker(saved.append)

        record = await tracker.track("openai", "gpt-4o", 1, 1, 1, False, "boom")

        assert saved == [record]
        assert saved[0].error_message == "boom"

    @pytest.mark.asyncio
    async def test_async_sink(self):
        """Coroutine sinks are awaited."""
        saved = []

        async def save(record):
            await asyncio.sleep(0)
            saved.append(record)

        await UsageTracker(save).track("openai", "gpt-4o", 1, 1, 1, True)

        assert len(saved) == 1

    @pytest.mark.asyncio
    async def test_failing_sink_swallowed(self, caplog):
        """Sink errors are logged and never raised."""

        def save(record):
            raise RuntimeError("db offline")

        with caplog.at_level(logging.ERROR):
            record = await UsageTracker(save).track("openai", "gpt-4o", 1, 1, 1, True)

        assert record is not None
        assert "db offline" in caplog.text

    def test_replacing_sink_warns(self, caplog):
        """Setting a second save function logs a warning."""
        tracker = UsageTracker()
        tracker.set_save_function(print)

        with caplog.at_level(logging.WARNING):
            tracker.set_save_function(repr)

        assert tracker.save_function is repr
        assert "Replacing" in caplog.text

    def test_reinstalling_same_bound_method_is_silent(self, caplog):
        """A fresh bound method of the same sink does not count as a replacement."""
        records = []
        tracker = UsageTracker(records.append)

        with caplog.at_level(logging.WARNING):
            tracker.set_save_function(records.append)

        assert tracker.save_function == records.append
        assert "Replacing" not in caplog.text

    def test_module_level_helpers(self):
        """set_usage_save_function() configures the default tracker."""
        set_usage_save_function(print)

        assert get_usage_tracker().save_function is print

    def test_record_to_dict(self):
        """UsageRecord serializes timestamps as ISO strings."""
        from agent_hub.ai.usage import UsageRecord

        record = UsageRecord("openai", "gpt-4o", 1, 2, 3, 4, True)

        data = record.to_dict()
        assert data["estimated_cost"] == 3
        assert isinstance(data["created_at"], str)


class TestAIContext:
    """Tests for the contextvars-based AI context."""

    def test_no_context_by_default(self):
        """No context is active outside a block."""
        assert get_ai_context() is None

    def test_run_with_ai_context(self):
        """run_with_ai_context() activates the context for the call only."""
        context = AIContext(user_id="u1", operation="summarize")

        seen = run_with_ai_context(context, get_ai_context)

        assert seen == context
        assert get_ai_context() is None

    @pytest.mark.asyncio
    async def test_run_with_ai_context_async_fn(self):
        """An async function sees the context for its whole body."""
        context = AIContext(user_id="u1", agent_id="email")

        async def work():
            await asyncio.sleep(0)
            return get_ai_context()

        seen = await run_with_ai_context(context, work)

        assert seen == context
        assert get_ai_context() is None

    @pytest.mark.asyncio
    async def test_async_fn_usage_attributed(self):
        """Usage tracked inside an async function carries the context ids."""
        records = []
        tracker = UsageTracker(records.append)

        async def work():
            await tracker.track("anthropic", "claude-3-haiku-20240307", 10, 5, 12, True)

        await run_with_ai_context(AIContext(user_id="u1", agent_id="email"), work)

        assert records[0].user_id == "u1"
        assert records[0].agent_id == "email"

    def test_context_manager_restores(self):
        """Nested blocks restore the outer context."""
        outer = AIContext(agent_id="outer")
        inner = AIContext(agent_id="inner")

        with ai_context(outer):
            with ai_context(inner):
                assert get_ai_context().agent_id == "inner"
            assert get_ai_context().agent_id == "outer"

    def test_set_value(self):
        """set_ai_context_value() updates one field."""
        with ai_context(AIContext(agent_id="email")):
            set_ai_context_value("operation", "classify")

            assert get_ai_context() == AIContext(agent_id="email", operation="classify")

    def test_set_value_without_context(self):
        """Updating with no active context does nothing."""
        set_ai_context_value("operation", "x")

        assert get_ai_context() is None

    def test_set_unknown_field(self):
        """Unknown fields raise AttributeError."""
        with ai_context(AIContext()):
            with pytest.raises(AttributeError):
                set_ai_context_value("tenant", "x")

    @pytest.mark.asyncio
    async def test_context_isolated_per_task(self):
        """Concurrent tasks keep separate contexts."""

        async def worker(agent_id):
            with ai_context(AIContext(agent_id=agent_id)):
                await asyncio.sleep(0.01)
                return get_ai_context().agent_id

        results = await asyncio.gather(worker("a"), worker("b"))

        assert results == ["a", "b"]
