"""Advisory token and cost estimation."""

import math
from dataclasses import dataclass

from docsmith.constants import (
    CHARS_PER_TOKEN,
    DEFAULT_EMBEDDING_RATE,
    DEFAULT_TOKEN_RATE,
    EMBEDDING_RATES,
    GENERATION_RATES,
)


@dataclass(frozen=True)
class CostEstimate:
    """Estimated token count and USD cost for one request."""

    tokens: int
    estimated_cost: float
    provider: str
    model: str


def estimate_tokens(length: int) -> int:
    """Approximate token count for a character length."""
    return math.ceil(length / CHARS_PER_TOKEN)


def _rate_for(
    table: dict[str, list[tuple[str | None, float]]], default: float, provider: str, model: str
) -> float:
    for pattern, rate in table.get(provider.lower(), []):
        if pattern is None or pattern in model:
            return rate
    return default


def estimate_cost(length: int, provider: str, model: str, embedding: bool = False) -> CostEstimate:
    """Estimate the cost of sending ``length`` characters to a model.

    Args:
        length: Input length in characters.
        provider: Provider name.
        model: Provider model name.
        embedding: Use the embedding rate table.

    Returns:
        CostEstimate for the request.
    """
    tokens = estimate_tokens(length)
    if embedding:
        rate = _rate_for(EMBEDDING_RATES, DEFAULT_EMBEDDING_RATE, provider, model)
    else:
        rate = _rate_for(GENERATION_RATES, DEFAULT_TOKEN_RATE, provider, model)
    return CostEstimate(
        tokens=tokens, estimated_cost=tokens * rate, provider=provider, model=model
    )
