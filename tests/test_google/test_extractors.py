"""Tests for Docs/Sheets/Slides text extraction."""

from drive_analyzer.google.extractors import (
    extract_document_text,
    extract_sheet_text,
    extract_slides_text,
)


def _para(text):
    return {"paragraph": {"elements": [{"textRun": {"content": text}}]}}


def test_document_body_text():
    doc = {"body": {"content": [_para("Hello "), _para("world\n")]}}
    assert extract_document_text(doc) == "Hello world\n"


def test_document_table_and_rule():
    doc = {"body": {"content": [
        {"paragraph": {"elements": [{"horizontalRule": {}}]}},
        {"table": {"tableRows": [
            {"tableCells": [{"content": [_para("a")]}, {"content": [_para("b")]}]},
        ]}},
    ]}}
    assert extract_document_text(doc) == "\n---\na | b\n"


def test_document_without_content():
    assert extract_document_text({}) == "(No content found in document)"


def test_document_tabs_include_children():
    doc = {"tabs": [
        {
            "tabProperties": {"title": "Intro"},
            "documentTab": {"body": {"content": [_para("first")]}},
            "childTabs": [{"documentTab": {}}],
        },
    ]}
    text = extract_document_text(doc)
    assert text == "=== TAB: Intro ===\n\nfirst\n\n=== TAB: Tab 2 ===\n\n(No content in this tab)\n\n\n"


def test_sheet_text():
    ranges = [
        {"values": [["Name", "Age"], ["Ann", 31]]},
        {"values": []},
        {"values": [["x"]]},
    ]
    assert extract_sheet_text(ranges) == "--- Sheet 1 ---\nName\tAge\nAnn\t31\n\n--- Sheet 3 ---\nx"


def test_sheet_empty():
    assert extract_sheet_text([]) == "(No data found in spreadsheet)"
    assert extract_sheet_text(None) == "(No data found in spreadsheet)"


def test_slides_text_with_notes():
    presentation = {"slides": [{
        "pageElements": [
            {"shape": {"text": {"textElements": [{"textRun": {"content": "Title\n"}}]}}},
        ],
        "slideProperties": {"notesPage": {"pageElements": [
            {"shape": {"text": {"textElements": [{"textRun": {"content": " speak slowly \n"}}]}}},
        ]}},
    }]}
    assert extract_slides_text(presentation) == "--- Slide 1 ---\nTitle\n\n(Notes: speak slowly)"


def test_slides_empty():
    assert extract_slides_text({}) == "(No slides found in presentation)"
