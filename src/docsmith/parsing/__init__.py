"""Source parsing: declarations, doc comments and span-based edits."""

from docsmith.parsing.models import (
    Declaration,
    DeclarationKind,
    DocComment,
    ImportStatement,
    Parameter,
    ParseError,
    ParseResult,
    SourceDocument,
)
from docsmith.parsing.base import BaseParser
from docsmith.parsing.typescript_parser import TypeScriptParser
from docsmith.parsing.registry import ParserRegistry

__all__ = [
    "Declaration",
    "DeclarationKind",
    "DocComment",
    "ImportStatement",
    "Parameter",
    "ParseError",
    "ParseResult",
    "SourceDocument",
    "BaseParser",
    "TypeScriptParser",
    "ParserRegistry",
]
