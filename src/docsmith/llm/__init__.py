"""Oracle client: provider access, concurrency, caching and retry."""

from docsmith.llm.client import (
    LLMAuthenticationError,
    LLMClient,
    LLMConnectionError,
    LLMError,
    LLMRateLimitError,
    LLMResponseError,
)
from docsmith.llm.costs import CostEstimate, estimate_cost
from docsmith.llm.gate import ConcurrencyGate
from docsmith.llm.models import GenerationResponse, ResponseStatus
from docsmith.llm.service import DocClient
from docsmith.llm.similarity import cosine_similarity, rank_similar

__all__ = [
    "ConcurrencyGate",
    "CostEstimate",
    "DocClient",
    "GenerationResponse",
    "LLMAuthenticationError",
    "LLMClient",
    "LLMConnectionError",
    "LLMError",
    "LLMRateLimitError",
    "LLMResponseError",
    "ResponseStatus",
    "cosine_similarity",
    "estimate_cost",
    "rank_similar",
]
