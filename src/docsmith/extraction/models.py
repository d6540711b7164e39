"""Context data passed from extraction to generation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from docsmith.parsing.models import Parameter


@dataclass(frozen=True)
class WorkspacePackage:
    """A package in the workspace, as reported by workspace discovery."""

    name: str
    path: Path
    type: str = "library"


@dataclass(frozen=True)
class SymbolUsage:
    """A place where a declaration is referenced."""

    file_path: str
    line: int
    snippet: str = ""


@dataclass
class RelatedSymbol:
    """A declaration judged similar by embedding distance."""

    id: str
    name: str
    kind: str
    file_path: str
    score: float
    snippet: str = ""


@dataclass
class ContextBundle:
    """Everything the oracle is told about one declaration.

    Attributes:
        id: Declaration identity.
        kind: Declaration kind tag.
        name: Display name.
        snippet: Declaration source, truncated.
        signature: Kind-dependent signature, or an error placeholder.
        file_path: Absolute path of the containing file.
        relative_path: Workspace-relative path.
        package: Package owning the file, if known.
        imports: Import statements worth showing the oracle.
        surrounding: Truncated source of the enclosing declaration.
        usages: Reference sites, excluding the declaration itself.
        related: Similar declarations found through embeddings.
        embedding: Precomputed vector for this declaration.
        custom_data: Free-form data hooks may attach.
    """

    id: str
    kind: str
    name: str
    snippet: str
    signature: str
    file_path: str
    relative_path: str
    package: WorkspacePackage | None = None
    imports: list[str] = field(default_factory=list)
    surrounding: str | None = None
    usages: list[SymbolUsage] = field(default_factory=list)
    related: list[RelatedSymbol] = field(default_factory=list)
    embedding: list[float] | None = None
    parameters: list[Parameter] = field(default_factory=list)
    return_type: str | None = None
    is_async: bool = False
    is_exported: bool = False
    access: str = "public"
    existing_doc: str | None = None
    custom_data: dict[str, Any] = field(default_factory=dict)

    def embedding_text(self) -> str:
        """Text embedded for relationship discovery."""
        return f"{self.kind} {self.name}\n{self.signature}\n{self.snippet}"
