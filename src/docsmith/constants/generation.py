"""Documentation generation configuration.

These settings control which declarations are documented, how much context is
sent to the oracle, and how generated comments are reconciled with existing
ones.
"""

# =============================================================================
# Unit Selection
# =============================================================================
# Kinds documented when no include list is configured, and kinds that are never
# documented unless the configuration says otherwise.

DEFAULT_INCLUDE_KINDS = (
    "class",
    "function",
    "method",
    "interface",
    "type_alias",
    "enum",
    "variable",
)
DEFAULT_EXCLUDE_KINDS = (
    "constructor",
    "get_accessor",
    "set_accessor",
)

# A variable binding is only documented when its initializer is one of these
# tree-sitter node types. Plain scalar bindings are skipped.
DOCUMENTABLE_INITIALIZERS = frozenset(
    {
        "arrow_function",
        "function_expression",
        "function",
        "class",
        "call_expression",
        "new_expression",
        "object",
    }
)

# =============================================================================
# Context Limits
# =============================================================================
# Snippets longer than the configured limit are cut and marked so the oracle
# knows the code continues.

MAX_SNIPPET_LENGTH = 3500
SURROUNDING_MAX_LENGTH = 1500
SNIPPET_TRUNCATION_MARKER = "\n// ... (snippet truncated)"
SURROUNDING_TRUNCATION_MARKER = "\n// ... (surrounding context truncated)"
SIGNATURE_ERROR_PLACEHOLDER = "(Error extracting signature details: {error})"

# =============================================================================
# Reconciliation
# =============================================================================
# MIN_DOC_LENGTH rejects trivially short replies. Sticky tags survive a merge
# unless the generated comment defines the same tag. DESCRIPTION_PREFIX_LENGTH
# is how much of a generated description is compared against the existing one
# before it is appended.

MIN_DOC_LENGTH = 100
STICKY_TAGS = frozenset({"deprecated", "ignore", "internal", "beta", "alpha", "todo", "fixme"})
DESCRIPTION_TAGS = frozenset({"description", "desc"})
SUMMARY_TAG = "summary"
DESCRIPTION_PREFIX_LENGTH = 50

# =============================================================================
# Batching
# =============================================================================
# Files are grouped so that one batch stays under MAX_TOKENS_PER_BATCH
# estimated tokens. MAX_CONCURRENT_FILES bounds file-level parallelism.

MAX_CONCURRENT_FILES = 4
MAX_TOKENS_PER_BATCH = 8000
