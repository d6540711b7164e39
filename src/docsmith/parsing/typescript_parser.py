"""TypeScript/JavaScript parser using tree-sitter."""

from pathlib import Path

import tree_sitter_javascript as ts_js
import tree_sitter_typescript as ts_typescript
from tree_sitter import Language, Parser

from docsmith.parsing.base import BaseParser
from docsmith.parsing.models import (
    Declaration,
    DeclarationKind,
    DocComment,
    ImportStatement,
    ParseResult,
    SourceDocument,
)

# Statement node types that map directly to a declaration kind
STATEMENT_KINDS: dict[str, DeclarationKind] = {
    "function_declaration": DeclarationKind.FUNCTION,
    "generator_function_declaration": DeclarationKind.FUNCTION,
    "function_signature": DeclarationKind.FUNCTION,
    "class_declaration": DeclarationKind.CLASS,
    "abstract_class_declaration": DeclarationKind.CLASS,
    "interface_declaration": DeclarationKind.INTERFACE,
    "type_alias_declaration": DeclarationKind.TYPE_ALIAS,
    "enum_declaration": DeclarationKind.ENUM,
    "internal_module": DeclarationKind.MODULE,
    "module": DeclarationKind.MODULE,
}

VARIABLE_STATEMENTS = frozenset({"lexical_declaration", "variable_declaration"})

# Keyword tokens recorded as modifiers when they appear as direct children
MODIFIER_TOKENS = frozenset(
    {"static", "readonly", "async", "abstract", "override", "declare", "get", "set"}
)


class TypeScriptParser(BaseParser):
    """Parser for TypeScript and JavaScript files using tree-sitter."""

    def __init__(self) -> None:
        """Initialize parsers for different file types."""
        self._ts_language = Language(ts_typescript.language_typescript())
        self._tsx_language = Language(ts_typescript.language_tsx())
        self._js_language = Language(ts_js.language())

        self._ts_parser: Parser = Parser(self._ts_language)
        self._tsx_parser: Parser = Parser(self._tsx_language)
        self._js_parser: Parser = Parser(self._js_language)

    @property
    def supported_extensions(self) -> list[str]:
        """File extensions this parser handles."""
        return [".ts", ".tsx", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs"]

    @property
    def language_name(self) -> str:
        """Human-readable language name."""
        return "TypeScript"

    def _get_parser_for_extension(self, extension: str) -> Parser:
        """Get the appropriate parser for a file extension.

        Args:
            extension: File extension (e.g., '.ts', '.tsx').

        Returns:
            The appropriate tree-sitter parser.
        """
        extension = extension.lower()
        if extension == ".tsx":
            return self._tsx_parser
        elif extension in (".ts", ".mts", ".cts"):
            return self._ts_parser
        else:
            # .js and .jsx use the JavaScript parser
            return self._js_parser

    def parse(self, file_path: Path, content: str, relative_path: str | None = None) -> ParseResult:
        """Parse TypeScript/JavaScript file content and collect declarations.

        Args:
            file_path: Path to the file.
            content: File content as string.
            relative_path: Workspace-relative path used in declaration ids.

        Returns:
            ParseResult with the parsed document or error.
        """
        try:
            source = content.encode("utf-8")
            parser = self._get_parser_for_extension(file_path.suffix)
            tree = parser.parse(source)
            root = tree.root_node

            language = (
                "typescript"
                if file_path.suffix.lower() in (".ts", ".tsx", ".mts", ".cts")
                else "javascript"
            )
            document = SourceDocument(
                path=file_path,
                relative_path=relative_path or str(file_path),
                source=source,
                language=language,
                tree=tree,
                export_names=self._collect_export_names(root),
            )
            self._walk_statements(root, document, parent=None)
            return ParseResult.success(document)

        except Exception as e:
            return ParseResult.failure(str(file_path), f"Parse error: {e}")

    def parse_string(self, code: str, filename: str = "<string>.ts") -> ParseResult:
        """Convenience method to parse a string of TypeScript/JavaScript code.

        Args:
            code: Source code as string.
            filename: Filename to use for extension detection and ids.

        Returns:
            ParseResult with the parsed document or error.
        """
        return self.parse(Path(filename), code, relative_path=filename)

    def _get_node_text(self, node) -> str:
        return node.text.decode("utf-8", errors="replace")

    def _collect_export_names(self, root) -> frozenset[str]:
        """Names exported through ``export { a, b as c }`` or ``export default a``."""
        names: set[str] = set()
        for child in root.named_children:
            if child.type != "export_statement" or child.child_by_field_name("declaration"):
                continue
            if child.child_by_field_name("source") is not None:
                # Re-export from another module
                continue
            for sub in child.named_children:
                if sub.type == "export_clause":
                    for spec in sub.named_children:
                        name = spec.child_by_field_name("name")
                        if name is not None:
                            names.add(self._get_node_text(name))
                elif sub.type == "identifier":
                    names.add(self._get_node_text(sub))
        return frozenset(names)

    def _walk_statements(
        self,
        container,
        document: SourceDocument,
        parent: Declaration | None,
    ) -> None:
        """Visit each statement of a program or namespace body."""
        for child in container.named_children:
            self._visit_statement(child, child, document, parent, exported=None)

    def _visit_statement(
        self,
        node,
        anchor,
        document: SourceDocument,
        parent: Declaration | None,
        exported: bool | None,
    ) -> None:
        """Record declarations introduced by one statement.

        Args:
            node: Statement node, possibly unwrapped from an export or
                declare wrapper.
            anchor: Outermost statement node the doc comment attaches to.
            document: Document being populated.
            parent: Enclosing namespace declaration, if any.
            exported: True when reached through an ``export`` wrapper.
        """
        node_type = node.type

        if node_type == "export_statement":
            inner = node.child_by_field_name("declaration")
            if inner is not None:
                self._visit_statement(inner, anchor, document, parent, exported=True)
            return

        if node_type == "ambient_declaration":
            for child in node.named_children:
                self._visit_statement(child, anchor, document, parent, exported)
            return

        if node_type == "expression_statement":
            # `namespace Foo {}` parses as an expression statement
            for child in node.named_children:
                if child.type in ("internal_module", "module"):
                    self._visit_statement(child, anchor, document, parent, exported)
            return

        if node_type == "import_statement":
            source_node = node.child_by_field_name("source")
            if source_node is not None:
                document.imports.append(
                    ImportStatement(
                        text=self._get_node_text(node),
                        source=self._get_node_text(source_node).strip("'\"`"),
                        line=node.start_point[0] + 1,
                    )
                )
            return

        if node_type in VARIABLE_STATEMENTS:
            self._extract_variables(node, anchor, document, parent)
            return

        kind = STATEMENT_KINDS.get(node_type)
        if kind is None:
            return

        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        name = self._get_node_text(name_node).strip("'\"")
        if exported is None and parent is None:
            exported = name in document.export_names

        decl = self._add_declaration(
            document,
            kind=kind,
            name=name,
            node=node,
            anchor=anchor,
            parent=parent,
            exported=bool(exported),
        )

        body = node.child_by_field_name("body")
        if body is None:
            return
        if kind == DeclarationKind.CLASS:
            self._extract_class_members(body, document, decl)
        elif kind == DeclarationKind.INTERFACE:
            self._extract_interface_members(body, document, decl)
        elif kind == DeclarationKind.MODULE:
            self._walk_statements(body, document, decl)

    def _extract_variables(
        self,
        node,
        anchor,
        document: SourceDocument,
        parent: Declaration | None,
    ) -> None:
        """Record each named declarator of a const/let/var statement.

        Only the first declarator attaches its comment above the statement;
        later declarators in the same statement attach to themselves.
        """
        declarators = [c for c in node.named_children if c.type == "variable_declarator"]
        for index, declarator in enumerate(declarators):
            name_node = declarator.child_by_field_name("name")
            if name_node is None or name_node.type != "identifier":
                # Destructuring patterns have no single name
                continue
            name = self._get_node_text(name_node)
            value = declarator.child_by_field_name("value")
            # Declarators have no direct export answer unless named in an
            # export clause; the statement wrapper is inspected later.
            is_exported = True if parent is None and name in document.export_names else None
            self._add_declaration(
                document,
                kind=DeclarationKind.VARIABLE,
                name=name,
                node=declarator,
                anchor=anchor if index == 0 else declarator,
                parent=parent,
                exported=is_exported,
                initializer_type=value.type if value is not None else None,
                modifiers=self._modifiers(value) if value is not None else (),
            )

    def _extract_class_members(self, body, document: SourceDocument, owner: Declaration) -> None:
        """Record methods, accessors and fields of a class body."""
        for member in body.named_children:
            member_type = member.type
            if member_type == "method_definition":
                kind = self._method_kind(member)
            elif member_type in ("public_field_definition", "field_definition"):
                kind = DeclarationKind.PROPERTY
            elif member_type in ("method_signature", "abstract_method_signature"):
                kind = DeclarationKind.METHOD
            else:
                continue

            name_node = member.child_by_field_name("name") or member.child_by_field_name(
                "property"
            )
            if name_node is None:
                continue
            self._add_declaration(
                document,
                kind=kind,
                name=self._get_node_text(name_node),
                node=member,
                anchor=member,
                parent=owner,
                exported=False,
                modifiers=self._modifiers(member),
            )

    def _extract_interface_members(
        self, body, document: SourceDocument, owner: Declaration
    ) -> None:
        """Record property and method signatures of an interface body."""
        for member in body.named_children:
            if member.type == "property_signature":
                kind = DeclarationKind.PROPERTY_SIGNATURE
            elif member.type == "method_signature":
                kind = DeclarationKind.METHOD_SIGNATURE
            else:
                continue
            name_node = member.child_by_field_name("name")
            if name_node is None:
                continue
            self._add_declaration(
                document,
                kind=kind,
                name=self._get_node_text(name_node),
                node=member,
                anchor=member,
                parent=owner,
                exported=False,
                modifiers=self._modifiers(member),
            )

    def _method_kind(self, node) -> DeclarationKind:
        name_node = node.child_by_field_name("name")
        if name_node is not None and self._get_node_text(name_node) == "constructor":
            return DeclarationKind.CONSTRUCTOR
        for child in node.children:
            if child.type == "get":
                return DeclarationKind.GET_ACCESSOR
            if child.type == "set":
                return DeclarationKind.SET_ACCESSOR
        return DeclarationKind.METHOD

    def _modifiers(self, node) -> tuple[str, ...]:
        """Collect modifier keywords that are direct children of node."""
        modifiers: list[str] = []
        for child in node.children:
            if child.type == "accessibility_modifier":
                modifiers.append(self._get_node_text(child))
            elif child.type == "override_modifier":
                modifiers.append("override")
            elif child.type in MODIFIER_TOKENS:
                modifiers.append(child.type)
            elif child.type == "private_property_identifier":
                modifiers.append("private")
        return tuple(modifiers)

    def _add_declaration(
        self,
        document: SourceDocument,
        kind: DeclarationKind,
        name: str,
        node,
        anchor,
        parent: Declaration | None,
        exported: bool | None,
        initializer_type: str | None = None,
        modifiers: tuple[str, ...] | None = None,
    ) -> Declaration:
        decl = Declaration(
            kind=kind,
            name=name,
            node=node,
            anchor=anchor,
            relative_path=document.relative_path,
            parent=parent,
            modifiers=modifiers if modifiers is not None else self._modifiers(node),
            exported=exported,
            initializer_type=initializer_type,
            indent=self._indent_of(anchor, document.source),
            existing_doc=self._find_doc_comment(anchor, document.source),
        )
        document.declarations.append(decl)
        return decl

    def _indent_of(self, anchor, source: bytes) -> str:
        """Whitespace between the start of the anchor's line and the anchor."""
        line_start = source.rfind(b"\n", 0, anchor.start_byte) + 1
        prefix = source[line_start : anchor.start_byte].decode("utf-8", errors="replace")
        return prefix if not prefix.strip() else ""

    def _find_doc_comment(self, anchor, source: bytes) -> DocComment | None:
        """Return the ``/** */`` comment directly above anchor, if any."""
        prev = anchor.prev_sibling
        if prev is None or prev.type != "comment":
            return None
        text = self._get_node_text(prev)
        if not text.startswith("/**") or text.startswith("/**/"):
            return None
        if source[prev.end_byte : anchor.start_byte].strip():
            return None
        return DocComment(text=text, start_byte=prev.start_byte, end_byte=prev.end_byte)
