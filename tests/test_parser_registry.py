"""Parser registry tests."""

from pathlib import Path

import pytest

from docsmith.parsing import ParseError, ParserRegistry, TypeScriptParser


def test_registry_selects_typescript_parser(tmp_path):
    """TypeScript and JavaScript files map to the TypeScript parser."""
    registry = ParserRegistry(tmp_path)

    assert isinstance(registry.get_parser(Path("a.ts")), TypeScriptParser)
    assert isinstance(registry.get_parser(Path("a.jsx")), TypeScriptParser)
    assert registry.get_parser(Path("a.py")) is None
    assert ".tsx" in registry.supported_extensions


def test_parse_file_uses_workspace_relative_ids(tmp_path):
    """Declaration ids use POSIX paths relative to the workspace."""
    source = tmp_path / "src" / "util.ts"
    source.parent.mkdir()
    source.write_text("export function util() {}\n")

    document = ParserRegistry(tmp_path).parse_file(source)

    assert document.relative_path == "src/util.ts"
    assert document.declarations[0].id == "src/util.ts:1:7"


def test_parse_file_unsupported_type(tmp_path):
    path = tmp_path / "notes.md"
    path.write_text("# notes")

    with pytest.raises(ParseError, match="Unsupported"):
        ParserRegistry(tmp_path).parse_file(path)


def test_parse_file_missing(tmp_path):
    with pytest.raises(ParseError, match="Cannot read"):
        ParserRegistry(tmp_path).parse_file(tmp_path / "missing.ts")


def test_save_writes_edits(tmp_path):
    """save() writes the rendered source back to disk."""
    path = tmp_path / "a.ts"
    path.write_text("function a() {}\n")
    document = ParserRegistry(tmp_path).parse_file(path)

    document.declarations[0].set_doc("/** Does a. */")
    document.save()

    assert path.read_text() == "/** Does a. */\nfunction a() {}\n"
