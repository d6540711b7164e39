# src/docsmith/extraction/extractor.py
"""Documentable unit selection and context assembly."""

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from docsmith.config import JSDocConfig
from docsmith.constants import (
    DOCUMENTABLE_INITIALIZERS,
    SIGNATURE_ERROR_PLACEHOLDER,
    SNIPPET_TRUNCATION_MARKER,
    SURROUNDING_TRUNCATION_MARKER,
)
from docsmith.extraction.models import ContextBundle, SymbolUsage, WorkspacePackage
from docsmith.parsing import structure
from docsmith.parsing.models import (
    Declaration,
    DeclarationKind,
    ImportStatement,
    Parameter,
    SourceDocument,
)

logger = logging.getLogger(__name__)

# Declarations whose source is shown as surrounding context for their members
SURROUNDING_KINDS = frozenset(
    {
        DeclarationKind.CLASS,
        DeclarationKind.INTERFACE,
        DeclarationKind.MODULE,
        DeclarationKind.ENUM,
    }
)

INTERFACE_MEMBER_KINDS = frozenset(
    {DeclarationKind.PROPERTY_SIGNATURE, DeclarationKind.METHOD_SIGNATURE}
)

VARIABLE_STATEMENT_TYPES = frozenset({"lexical_declaration", "variable_declaration"})


def truncate(text: str, limit: int, marker: str) -> str:
    """Cut text to limit characters, appending marker when cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + marker


def format_parameter(param: Parameter) -> str:
    text = param.name
    if param.optional and param.default is None and not text.endswith("?"):
        text += "?"
    if param.type:
        text += f": {param.type}"
    if param.default is not None:
        text += f" = {param.default}"
    return text


class ContextExtractor:
    """Selects documentable declarations and builds their context bundles.

    The symbol-usage and embedding indices are supplied from outside and can
    be replaced or extended at any time without re-extracting.
    """

    def __init__(
        self,
        config: JSDocConfig,
        packages: Iterable[WorkspacePackage] = (),
        symbol_index: Mapping[str, list[SymbolUsage]] | None = None,
        embedding_index: Mapping[str, list[float]] | None = None,
    ):
        """Initialize the extractor.

        Args:
            config: Selection and context settings.
            packages: Workspace packages for import classification.
            symbol_index: Usage sites keyed by declaration id.
            embedding_index: Vectors keyed by declaration id.
        """
        self.config = config
        self._include = frozenset(config.include_kinds)
        self._exclude = frozenset(config.exclude_kinds)
        self._packages: list[WorkspacePackage] = list(packages)
        self._symbol_index: dict[str, list[SymbolUsage]] = dict(symbol_index or {})
        self._embedding_index: dict[str, list[float]] = dict(embedding_index or {})

    # -------------------------------------------------------------------------
    # Index maintenance
    # -------------------------------------------------------------------------

    def update_symbol_index(
        self, index: Mapping[str, list[SymbolUsage]], replace: bool = False
    ) -> None:
        """Merge usage sites into the symbol index, or replace it."""
        if replace:
            self._symbol_index.clear()
        self._symbol_index.update(index)

    def update_embedding_index(
        self, index: Mapping[str, list[float]], replace: bool = False
    ) -> None:
        """Merge vectors into the embedding index, or replace it."""
        if replace:
            self._embedding_index.clear()
        self._embedding_index.update(index)

    def update_packages(self, packages: Iterable[WorkspacePackage]) -> None:
        """Replace the known workspace packages."""
        self._packages = list(packages)

    @property
    def embedding_index(self) -> Mapping[str, list[float]]:
        return self._embedding_index

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def is_exported(self, decl: Declaration) -> bool:
        """Export status, falling back to the parent statement.

        Only two parent shapes are recognized: the declaration sits directly
        in an ``export`` statement, or it is a declarator of a variable
        statement that sits in one. Anything else counts as not exported.
        """
        if decl.exported is not None:
            return decl.exported
        parent = decl.node.parent
        if parent is None:
            return False
        if parent.type == "export_statement":
            return True
        if parent.type in VARIABLE_STATEMENT_TYPES:
            grandparent = parent.parent
            return grandparent is not None and grandparent.type == "export_statement"
        return False

    def is_documentable(self, decl: Declaration) -> bool:
        """Apply the selection rules in precedence order."""
        kind = decl.kind.value
        if kind in self._exclude:
            return False
        if self.config.prioritize_exports and self.is_exported(decl):
            return True
        if self._include and kind not in self._include:
            return False
        if (
            decl.kind == DeclarationKind.VARIABLE
            and decl.initializer_type not in DOCUMENTABLE_INITIALIZERS
        ):
            return False
        if not self.config.include_private and decl.is_private:
            return False
        if (
            decl.kind in INTERFACE_MEMBER_KINDS
            and decl.parent is not None
            and self.is_documentable(decl.parent)
        ):
            return False
        return True

    def collect_units(self, document: SourceDocument) -> list[Declaration]:
        """Return the documentable declarations of a document, deduplicated by span."""
        seen: set[tuple[int, int]] = set()
        units: list[Declaration] = []
        for decl in document.declarations:
            if decl.span in seen:
                continue
            seen.add(decl.span)
            if self.is_documentable(decl):
                units.append(decl)
            else:
                logger.debug(f"Skipping {decl.kind.value} {decl.name} in {decl.relative_path}")
        return units

    # -------------------------------------------------------------------------
    # Context
    # -------------------------------------------------------------------------

    def build_context(self, unit: Declaration, document: SourceDocument) -> ContextBundle:
        """Assemble the context bundle for one unit.

        Structural details are best-effort: if deriving them raises, the
        signature becomes an explanatory placeholder and extraction goes on.
        """
        try:
            params = structure.parameters(unit)
            returns = structure.return_type(unit)
            signature = self._signature(unit, params, returns)
        except Exception as e:
            logger.error(f"Error extracting signature for {unit.name} in {unit.relative_path}: {e}")
            params = []
            returns = None
            signature = SIGNATURE_ERROR_PLACEHOLDER.format(error=e)

        file_path = Path(document.path)
        package = self._package_for(file_path)

        return ContextBundle(
            id=unit.id,
            kind=unit.kind.value,
            name=unit.name,
            snippet=truncate(unit.text, self.config.max_snippet_length, SNIPPET_TRUNCATION_MARKER),
            signature=signature,
            file_path=str(file_path),
            relative_path=unit.relative_path,
            package=package,
            imports=self._relevant_imports(document.imports, file_path, package),
            surrounding=self._surrounding(unit),
            usages=self._usages(unit) if self.config.include_symbol_references else [],
            embedding=self._embedding_index.get(unit.id),
            parameters=params,
            return_type=returns,
            is_async=unit.is_async,
            is_exported=self.is_exported(unit),
            access=self._access(unit),
            existing_doc=unit.get_doc(),
        )

    def _signature(
        self, unit: Declaration, params: list[Parameter], returns: str | None
    ) -> str:
        name = unit.name
        match unit.kind:
            case kind if kind.is_function_like:
                return self._callable_signature(name, params, returns)
            case DeclarationKind.VARIABLE:
                if structure.callable_node(unit) is not None:
                    return self._callable_signature(name, params, returns)
                value_type = structure.value_type(unit)
                return f"{name}: {value_type}" if value_type else name
            case (
                DeclarationKind.PROPERTY
                | DeclarationKind.PROPERTY_SIGNATURE
                | DeclarationKind.GET_ACCESSOR
                | DeclarationKind.SET_ACCESSOR
            ):
                return f"{name}: {structure.value_type(unit) or 'unknown'}"
            case DeclarationKind.ENUM:
                return f"enum {name} {{ {', '.join(structure.member_names(unit))} }}"
            case DeclarationKind.INTERFACE:
                return f"interface {name} {{ {', '.join(structure.member_names(unit))} }}"
            case DeclarationKind.TYPE_ALIAS:
                return f"type {name} = {structure.alias_type(unit)}"
            case DeclarationKind.CLASS:
                return f"class {name}"
            case DeclarationKind.MODULE:
                return f"namespace {name}"
        return name

    def _callable_signature(
        self, name: str, params: list[Parameter], returns: str | None
    ) -> str:
        rendered = f"{name}({', '.join(format_parameter(p) for p in params)})"
        return f"{rendered}: {returns}" if returns else rendered

    def _access(self, unit: Declaration) -> str:
        if unit.is_private:
            return "private"
        if "protected" in unit.modifiers:
            return "protected"
        return "public"

    def _surrounding(self, unit: Declaration) -> str | None:
        parent = unit.parent
        if parent is None or parent.kind not in SURROUNDING_KINDS:
            return None
        return truncate(
            parent.text, self.config.surrounding_max_length, SURROUNDING_TRUNCATION_MARKER
        )

    def _usages(self, unit: Declaration) -> list[SymbolUsage]:
        """Usage sites from the index, minus those inside the unit itself."""
        return [
            usage
            for usage in self._symbol_index.get(unit.id, [])
            if not (
                usage.file_path == unit.relative_path
                and unit.start_line <= usage.line <= unit.end_line
            )
        ]

    def _package_for(self, file_path: Path) -> WorkspacePackage | None:
        """The most specific package whose directory contains file_path."""
        resolved = file_path.resolve()
        best: WorkspacePackage | None = None
        best_depth = -1
        for package in self._packages:
            root = Path(package.path).resolve()
            if resolved == root or root in resolved.parents:
                depth = len(root.parts)
                if depth > best_depth:
                    best, best_depth = package, depth
        return best

    def _package_named(self, specifier: str) -> WorkspacePackage | None:
        for package in self._packages:
            if specifier == package.name or specifier.startswith(package.name + "/"):
                return package
        return None

    def _relevant_imports(
        self,
        imports: list[ImportStatement],
        file_path: Path,
        package: WorkspacePackage | None,
    ) -> list[str]:
        """External imports plus imports reaching into another workspace package."""
        relevant: list[str] = []
        for imp in imports:
            if imp.source.startswith("."):
                target = self._package_for(file_path.parent / imp.source)
                if target is not None and (package is None or target.name != package.name):
                    relevant.append(imp.text)
                continue
            target = self._package_named(imp.source)
            if target is not None and package is not None and target.name == package.name:
                continue
            relevant.append(imp.text)
        return relevant
