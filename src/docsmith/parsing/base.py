"""Base parser interface."""

from abc import ABC, abstractmethod
from pathlib import Path

from docsmith.parsing.models import ParseResult


class BaseParser(ABC):
    """Abstract base class for language-specific parsers."""

    @property
    @abstractmethod
    def supported_extensions(self) -> list[str]:
        """File extensions this parser handles (e.g., ['.ts'])."""
        pass

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Human-readable language name."""
        pass

    @abstractmethod
    def parse(self, file_path: Path, content: str, relative_path: str | None = None) -> ParseResult:
        """Parse file content and collect documentable declarations.

        Args:
            file_path: Path to the file (for error messages and saving).
            content: File content as string.
            relative_path: Workspace-relative path used in declaration ids.
                Defaults to ``file_path`` as given.

        Returns:
            ParseResult with the parsed document or an error.
        """
        pass

    def can_parse(self, file_path: Path) -> bool:
        """Check if this parser can handle the given file.

        Args:
            file_path: Path to check.

        Returns:
            True if this parser supports the file extension.
        """
        return file_path.suffix.lower() in self.supported_extensions
