"""AI call path: client with fallback, usage accounting and attribution context."""

from agent_hub.ai.client import (
    AIClient,
    AIClientConfig,
    configure_ai_client,
    get_ai_client,
    recreate_ai_client,
)
from agent_hub.ai.context import (
    AIContext,
    ai_context,
    get_ai_context,
    run_with_ai_context,
    set_ai_context_value,
)
from agent_hub.ai.usage import (
    UsageRecord,
    UsageTracker,
    get_usage_tracker,
    set_usage_save_function,
)

__all__ = [
    "AIClient",
    "AIClientConfig",
    "configure_ai_client",
    "get_ai_client",
    "recreate_ai_client",
    "AIContext",
    "ai_context",
    "get_ai_context",
    "run_with_ai_context",
    "set_ai_context_value",
    "UsageRecord",
    "UsageTracker",
    "get_usage_tracker",
    "set_usage_save_function",
]
