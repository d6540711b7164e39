"""Reconciliation, run state and orchestration.

The file processor and batch orchestrator live in their own modules and are
imported from there, since they depend on the embeddings package.
"""

from docsmith.generation.context import Feature, FeatureFlags, RunContext
from docsmith.generation.docblock import DocBlock, DocBlockError, DocTag, parse_docblock
from docsmith.generation.hooks import AFTER_PROCESSING, BEFORE_PROCESSING, HookError, HookRegistry
from docsmith.generation.reconciler import ReconcileOutcome, ReconcilePolicy, Reconciler
from docsmith.generation.stats import ErrorRecord, RunStatistics

__all__ = [
    "AFTER_PROCESSING",
    "BEFORE_PROCESSING",
    "DocBlock",
    "DocBlockError",
    "DocTag",
    "ErrorRecord",
    "Feature",
    "FeatureFlags",
    "HookError",
    "HookRegistry",
    "ReconcileOutcome",
    "ReconcilePolicy",
    "Reconciler",
    "RunContext",
    "RunStatistics",
    "parse_docblock",
]
