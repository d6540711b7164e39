"""Data models for parsed source files and their documentable declarations."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class ParseError(Exception):
    """Raised when a source file cannot be parsed."""

    pass


class DeclarationKind(str, Enum):
    """Closed set of declaration kinds that can carry a doc comment."""

    FUNCTION = "function"
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    GET_ACCESSOR = "get_accessor"
    SET_ACCESSOR = "set_accessor"
    PROPERTY = "property"
    PROPERTY_SIGNATURE = "property_signature"
    METHOD_SIGNATURE = "method_signature"
    CLASS = "class"
    INTERFACE = "interface"
    TYPE_ALIAS = "type_alias"
    ENUM = "enum"
    VARIABLE = "variable"
    MODULE = "module"

    @property
    def is_function_like(self) -> bool:
        """Kinds whose signature is ``name(params): returnType``."""
        return self in FUNCTION_LIKE_KINDS

    @property
    def is_member(self) -> bool:
        """Kinds that only occur inside a class or interface body."""
        return self in MEMBER_KINDS


FUNCTION_LIKE_KINDS = frozenset(
    {
        DeclarationKind.FUNCTION,
        DeclarationKind.METHOD,
        DeclarationKind.CONSTRUCTOR,
        DeclarationKind.METHOD_SIGNATURE,
    }
)

MEMBER_KINDS = frozenset(
    {
        DeclarationKind.METHOD,
        DeclarationKind.CONSTRUCTOR,
        DeclarationKind.GET_ACCESSOR,
        DeclarationKind.SET_ACCESSOR,
        DeclarationKind.PROPERTY,
        DeclarationKind.PROPERTY_SIGNATURE,
        DeclarationKind.METHOD_SIGNATURE,
    }
)


@dataclass
class Parameter:
    """A single formal parameter."""

    name: str
    type: str | None = None
    optional: bool = False
    default: str | None = None


@dataclass
class DocComment:
    """A ``/** ... */`` block found directly above a declaration."""

    text: str
    start_byte: int
    end_byte: int


@dataclass
class ImportStatement:
    """An import statement and its module specifier."""

    text: str
    source: str
    line: int


_UNSET: Any = object()


@dataclass(eq=False)
class Declaration:
    """One declaration in a source file that may carry a doc comment.

    The tree-sitter node is kept for structural queries. ``anchor`` is the
    node a doc comment attaches to: the outermost statement for top-level
    declarations (including an ``export`` wrapper), or the node itself for
    class and interface members.

    Attributes:
        kind: Declaration kind.
        name: Display name.
        node: The declaration's tree-sitter node.
        anchor: Node the doc comment sits directly above.
        relative_path: File path relative to the workspace root.
        parent: Enclosing declaration (class, interface or namespace).
        modifiers: Modifier keywords (private, static, async, ...).
        exported: True or False when the parser could answer directly, None
            when export status must be derived from the parent statement.
        initializer_type: Node type of a variable's initializer, if any.
        indent: Whitespace preceding the anchor on its line.
        existing_doc: Doc comment present in the unedited source.
    """

    kind: DeclarationKind
    name: str
    node: Any
    anchor: Any
    relative_path: str
    parent: "Declaration | None" = None
    modifiers: tuple[str, ...] = ()
    exported: bool | None = None
    initializer_type: str | None = None
    indent: str = ""
    existing_doc: DocComment | None = None
    _pending_doc: Any = field(default=_UNSET, repr=False)

    @property
    def start_byte(self) -> int:
        return self.node.start_byte

    @property
    def end_byte(self) -> int:
        return self.node.end_byte

    @property
    def start_line(self) -> int:
        """1-based line of the declaration node."""
        return self.node.start_point[0] + 1

    @property
    def end_line(self) -> int:
        return self.node.end_point[0] + 1

    @property
    def span(self) -> tuple[int, int]:
        return (self.node.start_byte, self.node.end_byte)

    @property
    def id(self) -> str:
        """Stable identity: relative path, start line and start offset."""
        return f"{self.relative_path}:{self.start_line}:{self.start_byte}"

    @property
    def text(self) -> str:
        """Source text of the declaration node."""
        return self.node.text.decode("utf-8", errors="replace")

    @property
    def is_private(self) -> bool:
        return "private" in self.modifiers or self.name.startswith("#")

    @property
    def is_async(self) -> bool:
        return "async" in self.modifiers

    # Doc comment capability

    def get_doc(self) -> str | None:
        """Current doc comment text, reflecting pending edits."""
        if self._pending_doc is not _UNSET:
            return self._pending_doc
        return self.existing_doc.text if self.existing_doc else None

    def has_doc(self) -> bool:
        return self.get_doc() is not None

    def set_doc(self, text: str) -> None:
        """Attach text as the declaration's doc comment, replacing any other."""
        self._pending_doc = text.strip()

    def remove_doc(self) -> None:
        """Detach the declaration's doc comment."""
        self._pending_doc = None

    @property
    def changed(self) -> bool:
        """True if the doc comment differs from the unedited source."""
        if self._pending_doc is _UNSET:
            return False
        original = self.existing_doc.text if self.existing_doc else None
        return self._pending_doc != original


def indent_block(block: str, indent: str, newline: str = "\n") -> str:
    """Re-indent a doc comment block for insertion at ``indent``.

    The first line is placed by the caller; continuation lines are aligned so
    their leading ``*`` sits one column right of ``/**``. Lines are joined
    with ``newline``.
    """
    lines = [line.strip() for line in block.strip().splitlines()]
    if not lines:
        return ""
    out = [lines[0]]
    for line in lines[1:]:
        if line.startswith("*"):
            out.append(f"{indent} {line}")
        elif line:
            out.append(f"{indent} * {line}")
        else:
            out.append(f"{indent} *")
    return newline.join(out)


@dataclass
class SourceDocument:
    """A parsed source file plus its pending doc comment edits."""

    path: Path
    relative_path: str
    source: bytes
    language: str
    tree: Any
    declarations: list[Declaration] = field(default_factory=list)
    imports: list[ImportStatement] = field(default_factory=list)
    export_names: frozenset[str] = frozenset()

    @property
    def text(self) -> str:
        return self.source.decode("utf-8", errors="replace")

    @property
    def changed(self) -> bool:
        return any(d.changed for d in self.declarations)

    @property
    def newline(self) -> str:
        """Line ending of the file, taken from its first line break."""
        index = self.source.find(b"\n")
        if index > 0 and self.source[index - 1 : index] == b"\r":
            return "\r\n"
        return "\n"

    def render(self) -> str:
        """Apply every pending doc comment edit and return the new source.

        Edits are applied from the end of the file backwards so earlier byte
        offsets stay valid.
        """
        edits: dict[int, tuple[int, int, bytes]] = {}
        newline = self.newline
        for decl in self.declarations:
            if not decl.changed:
                continue
            anchor_start = decl.anchor.start_byte
            new_doc = decl.get_doc()
            replacement = (
                f"{indent_block(new_doc, decl.indent, newline)}{newline}{decl.indent}".encode()
                if new_doc
                else b""
            )
            if decl.existing_doc is not None:
                start = decl.existing_doc.start_byte
            else:
                start = anchor_start
            # Several declarations may share an anchor; the last edit wins.
            edits[anchor_start] = (start, anchor_start, replacement)

        result = self.source
        for start, end, replacement in sorted(edits.values(), key=lambda e: e[0], reverse=True):
            result = result[:start] + replacement + result[end:]
        return result.decode("utf-8", errors="replace")

    def save(self) -> None:
        """Write the rendered source back to ``path``, keeping its line endings.

        Raises:
            OSError: If the file cannot be written.
        """
        self.path.write_text(self.render(), encoding="utf-8", newline="")


@dataclass
class ParseResult:
    """Result of a parse operation (success or failure)."""

    ok: bool
    document: SourceDocument | None
    error: str | None
    path: str | None = None

    @classmethod
    def success(cls, document: SourceDocument) -> "ParseResult":
        """Create a successful parse result."""
        return cls(ok=True, document=document, error=None, path=str(document.path))

    @classmethod
    def failure(cls, path: str, error: str) -> "ParseResult":
        """Create a failed parse result."""
        return cls(ok=False, document=None, error=error, path=path)
