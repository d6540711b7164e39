"""Context extraction for documentable declarations."""

from docsmith.extraction.extractor import ContextExtractor
from docsmith.extraction.models import (
    ContextBundle,
    RelatedSymbol,
    SymbolUsage,
    WorkspacePackage,
)

__all__ = [
    "ContextBundle",
    "ContextExtractor",
    "RelatedSymbol",
    "SymbolUsage",
    "WorkspacePackage",
]
