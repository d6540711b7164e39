"""Tests for doc comment edits on parsed documents."""

from docsmith.parsing.models import indent_block


def find(document, name: str):
    return next(d for d in document.declarations if d.name == name)


def test_unedited_document_is_unchanged(parse):
    """Rendering without edits reproduces the source."""
    code = "/** Existing. */\nexport function a() {}\n"
    document = parse(code)

    assert not document.changed
    assert document.render() == code


def test_insert_doc_above_export(parse):
    """A new block goes above the export statement, not the inner declaration."""
    document = parse("export function a() {}\n")

    find(document, "a").set_doc("/**\n * Does a.\n */")

    assert document.changed
    assert document.render() == "/**\n * Does a.\n */\nexport function a() {}\n"


def test_insert_doc_on_indented_member(parse):
    """Blocks for class members follow the member's indentation."""
    document = parse("export class Service {\n  run(): void {}\n}\n")

    find(document, "run").set_doc("/**\n * Runs.\n */")

    assert document.render() == (
        "export class Service {\n  /**\n   * Runs.\n   */\n  run(): void {}\n}\n"
    )


def test_replace_existing_doc(parse):
    """Setting a doc replaces the block that was there."""
    document = parse("/** Old. */\nfunction a() {}\n")
    unit = find(document, "a")

    unit.remove_doc()
    unit.set_doc("/** New. */")

    assert unit.get_doc() == "/** New. */"
    assert document.render() == "/** New. */\nfunction a() {}\n"


def test_remove_existing_doc(parse):
    document = parse("/** Old. */\nfunction a() {}\n")

    find(document, "a").remove_doc()

    assert document.render() == "function a() {}\n"


def test_setting_same_text_is_not_a_change(parse):
    """Re-setting the existing block leaves the document unchanged."""
    document = parse("/** Same. */\nfunction a() {}\n")

    find(document, "a").set_doc("/** Same. */")

    assert not document.changed


def test_edits_in_several_places(parse):
    """Edits are applied without disturbing each other's offsets."""
    document = parse("function a() {}\n\nfunction b() {}\n")

    find(document, "a").set_doc("/** A. */")
    find(document, "b").set_doc("/** B. */")

    assert document.render() == "/** A. */\nfunction a() {}\n\n/** B. */\nfunction b() {}\n"


def test_indent_block_realigns_continuation_lines():
    assert indent_block("/**\n* Text.\n*/", "    ") == "/**\n     * Text.\n     */"
