"""Model pricing and cost calculation.

Costs are integers in micro-dollars (1 USD = 1_000_000) so that many small
charges can be summed without floating-point drift.
"""

from dataclasses import dataclass

MICRO_DOLLARS_PER_USD = 1_000_000


@dataclass(frozen=True)
class ModelPricing:
    """USD per million tokens."""

    input_per_1m: float
    output_per_1m: float


MODEL_PRICING: dict[str, ModelPricing] = {
    # Anthropic
    "claude-sonnet-4-20250514": ModelPricing(3.00, 15.00),
    "claude-3-5-sonnet-20241022": ModelPricing(3.00, 15.00),
    "claude-3-haiku-20240307": ModelPricing(0.25, 1.25),
    # OpenAI
    "gpt-4o": ModelPricing(2.50, 10.00),
    "gpt-4o-2024-11-20": ModelPricing(2.50, 10.00),
    "gpt-4o-mini": ModelPricing(0.15, 0.60),
    "gpt-4o-mini-2024-07-18": ModelPricing(0.15, 0.60),
}

# Blended rate for models missing from the table
FALLBACK_PRICING = ModelPricing(2.00, 10.00)

AVAILABLE_MODELS: dict[str, list[dict[str, object]]] = {
    "anthropic": [
        {"id": "claude-sonnet-4-20250514", "name": "Claude Sonnet 4", "default": True},
        {"id": "claude-3-haiku-20240307", "name": "Claude 3 Haiku"},
    ],
    "openai": [
        {"id": "gpt-4o", "name": "GPT-4o", "default": True},
        {"id": "gpt-4o-mini", "name": "GPT-4o Mini"},
    ],
}


def get_pricing(model: str) -> ModelPricing:
    """Pricing for ``model``, or the blended fallback rate."""
    return MODEL_PRICING.get(model, FALLBACK_PRICING)


def calculate_cost(model: str, input_tokens: int, output_tokens: int) -> int:
    """Estimated cost of a call in micro-dollars.

    Example:
        >>> calculate_cost("gpt-4o", 1_000_000, 0)
        2500000
    """
    pricing = get_pricing(model)
    # tokens / 1M * USD-per-1M * 1M micro-dollars == tokens * USD-per-1M
    return round(input_tokens * pricing.input_per_1m + output_tokens * pricing.output_per_1m)


def format_cost(micro_dollars: int) -> str:
    """Format micro-dollars for display, e.g. ``$0.0123``."""
    return f"${micro_dollars / MICRO_DOLLARS_PER_USD:.4f}"


def default_model(provider: str) -> str:
    """Default model id for a provider name."""
    for entry in AVAILABLE_MODELS.get(provider, []):
        if entry.get("default"):
            return str(entry["id"])
    raise KeyError(f"Unknown provider: {provider}")
