"""Minimal JSDoc block reader and writer.

Only what reconciliation needs: a free-text description followed by a list of
``@tag text`` entries. Inline tags, type expressions and tag-specific syntax
are kept verbatim inside the tag text.
"""

import re
from dataclasses import dataclass, field

from docsmith.constants import DESCRIPTION_TAGS, SUMMARY_TAG

_TAG_LINE = re.compile(r"^@([A-Za-z][\w-]*)\s*(.*)$")
_WHITESPACE = re.compile(r"\s+")


class DocBlockError(ValueError):
    """Raised when text is not a readable ``/** ... */`` block."""

    pass


@dataclass
class DocTag:
    """One block tag, e.g. ``@param x the input``."""

    name: str
    text: str = ""

    def render_lines(self) -> list[str]:
        lines = self.text.split("\n") if self.text else [""]
        first = f"@{self.name} {lines[0]}".rstrip()
        return [first] + lines[1:]


@dataclass
class DocBlock:
    """Parsed doc comment."""

    description: str = ""
    tags: list[DocTag] = field(default_factory=list)

    @property
    def tag_names(self) -> set[str]:
        return {tag.name for tag in self.tags}

    def find(self, name: str) -> DocTag | None:
        return next((tag for tag in self.tags if tag.name == name), None)

    def render(self) -> str:
        """Render as a ``/** ... */`` block with one ``*`` per line."""
        body: list[str] = []
        if self.description:
            body.extend(self.description.split("\n"))
        if self.tags:
            if body:
                body.append("")
            for tag in self.tags:
                body.extend(tag.render_lines())
        if not body:
            return "/** */"
        lines = ["/**"]
        lines.extend(f" * {escape_terminators(line)}".rstrip() for line in body)
        lines.append(" */")
        return "\n".join(lines)


def escape_terminators(line: str) -> str:
    """Neutralize ``*/`` inside comment content so it cannot close the block."""
    return line.replace("*/", "*\\/")


def has_inner_terminator(text: str) -> bool:
    """True if ``*/`` occurs anywhere other than as the final terminator."""
    stripped = text.strip()
    if stripped.endswith("*/"):
        stripped = stripped[:-2]
    return "*/" in stripped


def is_block(text: str) -> bool:
    """True if text is one ``/** ... */`` block with no early terminator."""
    stripped = text.strip()
    return (
        stripped.startswith("/**")
        and stripped.endswith("*/")
        and len(stripped) >= 5
        and not has_inner_terminator(stripped)
    )


def strip_markers(text: str) -> list[str]:
    """Content lines of a comment with ``/**``, ``*/`` and leading ``*`` removed."""
    stripped = text.strip()
    if stripped.startswith("/**"):
        stripped = stripped[3:]
    if stripped.endswith("*/"):
        stripped = stripped[:-2]
    lines = []
    for line in stripped.split("\n"):
        line = line.strip()
        if line.startswith("*"):
            line = line[1:]
            if line.startswith(" "):
                line = line[1:]
        lines.append(line.rstrip())
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return lines


def parse_docblock(text: str, strict: bool = True) -> DocBlock:
    """Split a comment into description and tags.

    Args:
        text: Comment text.
        strict: Require ``/** ... */`` delimiters.

    Returns:
        The parsed block.

    Raises:
        DocBlockError: In strict mode, if text is not a doc block.
    """
    if strict and not is_block(text):
        raise DocBlockError("Not a /** ... */ documentation block")

    description: list[str] = []
    tags: list[DocTag] = []
    for line in strip_markers(text):
        match = _TAG_LINE.match(line.strip())
        if match:
            tags.append(DocTag(name=match.group(1), text=match.group(2).strip()))
        elif tags:
            current = tags[-1]
            current.text = f"{current.text}\n{line}" if current.text else line
        else:
            description.append(line)

    for tag in tags:
        tag.text = tag.text.rstrip()
    return DocBlock(description="\n".join(description).strip(), tags=tags)


def normalize(text: str) -> str:
    """Comparable form of a comment.

    Strips comment markers and indentation, drops empty lines, collapses
    whitespace and trims.
    """
    lines = [line.strip() for line in strip_markers(text) if line.strip()]
    return _WHITESPACE.sub(" ", " ".join(lines)).strip()


def extract_description(block: DocBlock) -> str:
    """Description region of a block.

    An explicit ``@description`` tag wins over leading text; a leading
    ``@summary`` tag stands in when neither exists.
    """
    for tag in block.tags:
        if tag.name in DESCRIPTION_TAGS:
            return tag.text.strip()
    if block.description:
        return block.description
    if block.tags and block.tags[0].name == SUMMARY_TAG:
        return block.tags[0].text.strip()
    return ""


def as_block(text: str) -> str:
    """Return text as a doc block.

    Bare comment content is wrapped, and a ``*/`` that would end the comment
    early is escaped as ``*\\/``.
    """
    if is_block(text):
        return text.strip()
    return parse_docblock(text, strict=False).render()
