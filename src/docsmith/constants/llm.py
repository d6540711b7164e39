"""Oracle client configuration.

Default parameters for generation and embedding calls, and the static rate
tables used for advisory cost estimation. Values here are the fallbacks used
when no INI file overrides them.
"""

# =============================================================================
# Generation Defaults
# =============================================================================
# Doc comments are short and structured, so a low temperature keeps output
# consistent between runs. MAX_TOKENS caps a single reply.

DEFAULT_TEMPERATURE = 0.2
MAX_TOKENS = 4096
DEFAULT_TOP_P = 0.8

# =============================================================================
# Retry Policy
# =============================================================================
# A failed call is retried up to MAX_RETRIES additional times. The delay before
# attempt n (0-based) is RETRY_DELAY_MS * 2**n.

MAX_RETRIES = 5
RETRY_DELAY_MS = 1000
MAX_CONCURRENT_REQUESTS = 3

# =============================================================================
# Oracle Replies
# =============================================================================
# The oracle answers SKIP_REPLY when it declines to document a declaration.

SKIP_REPLY = "SKIP"

# =============================================================================
# Token Estimation
# =============================================================================
# One token is roughly four characters for most models.

CHARS_PER_TOKEN = 4

# =============================================================================
# Rate Tables (USD per token)
# =============================================================================
# Matched by substring against the model name, first match wins. The None key
# is the provider default. Unknown providers fall back to DEFAULT_TOKEN_RATE.

GENERATION_RATES: dict[str, list[tuple[str | None, float]]] = {
    "openai": [
        ("gpt-4o", 0.000015),
        ("gpt-4", 0.00003),
        ("gpt-3.5", 0.000002),
        (None, 0.000015),
    ],
    "google": [
        ("gemini-1.5-pro", 0.000035),
        ("gemini-1.5-flash", 0.000015),
        (None, 0.000025),
    ],
    "anthropic": [
        ("claude-3-opus", 0.000075),
        ("claude-3-sonnet", 0.000015),
        ("claude-3-haiku", 0.000001),
        (None, 0.000015),
    ],
}
DEFAULT_TOKEN_RATE = 0.000015

EMBEDDING_RATES: dict[str, list[tuple[str | None, float]]] = {
    "openai": [
        ("text-embedding-3-large", 0.00000013),
        ("text-embedding-3-small", 0.00000002),
        ("text-embedding-ada-002", 0.0000001),
        (None, 0.00000013),
    ],
    "google": [
        (None, 0.00000125),
    ],
}
DEFAULT_EMBEDDING_RATE = 0.00000013
