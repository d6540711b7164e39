# src/docsmith/parsing/registry.py
"""Parser registry for selecting the appropriate parser."""

from pathlib import Path

from docsmith.parsing.base import BaseParser
from docsmith.parsing.models import ParseError, ParseResult, SourceDocument
from docsmith.parsing.typescript_parser import TypeScriptParser


class ParserRegistry:
    """Registry that selects the appropriate parser for a file."""

    def __init__(self, base_dir: Path | None = None):
        """Initialize registry with all available parsers.

        Args:
            base_dir: Workspace root. Declaration ids use paths relative to it.
        """
        self.base_dir = base_dir
        self._parsers: list[BaseParser] = [TypeScriptParser()]

    def get_parser(self, file_path: Path) -> BaseParser | None:
        """Get the parser for a file, or None if the file is unsupported.

        Args:
            file_path: Path to file.

        Returns:
            Parser instance that can handle the file.
        """
        for parser in self._parsers:
            if parser.can_parse(file_path):
                return parser
        return None

    def relative_path(self, file_path: Path) -> str:
        """Workspace-relative POSIX path for ids and reports."""
        if self.base_dir is not None:
            try:
                return file_path.resolve().relative_to(self.base_dir.resolve()).as_posix()
            except ValueError:
                pass
        return file_path.as_posix()

    def parse_file(self, file_path: Path) -> SourceDocument:
        """Read and parse a file.

        Args:
            file_path: Path to file.

        Returns:
            The parsed document.

        Raises:
            ParseError: If the file is unsupported, unreadable or unparseable.
        """
        parser = self.get_parser(file_path)
        if parser is None:
            raise ParseError(f"Unsupported file type: {file_path}")
        try:
            # Decoded from bytes so CRLF line endings survive the round trip
            content = file_path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ParseError(f"Cannot read {file_path}: {e}") from e

        result: ParseResult = parser.parse(file_path, content, self.relative_path(file_path))
        if not result.ok or result.document is None:
            raise ParseError(result.error or f"Failed to parse {file_path}")
        return result.document

    @property
    def supported_extensions(self) -> list[str]:
        """All file extensions any registered parser handles."""
        return [ext for p in self._parsers for ext in p.supported_extensions]
