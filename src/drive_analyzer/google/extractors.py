"""Turn Docs, Sheets and Slides API payloads into plain text.

These are pure functions: no network calls. They accept the JSON dicts
returned by the Google REST APIs.
"""

from __future__ import annotations


def extract_document_text(doc: dict) -> str:
    """Extract text from a Docs ``documents.get`` payload, including all tabs."""
    if doc.get("tabs"):
        return _extract_all_tabs(doc)
    content = (doc.get("body") or {}).get("content")
    if content:
        return _extract_content(content)
    return "(No content found in document)"


def _extract_all_tabs(doc: dict) -> str:
    tabs = _flatten_tabs(doc.get("tabs", []))
    if not tabs:
        return "(No tabs found in document)"

    text = ""
    for index, tab in enumerate(tabs):
        title = (tab.get("tabProperties") or {}).get("title") or f"Tab {index + 1}"
        text += f"=== TAB: {title} ===\n\n"

        content = ((tab.get("documentTab") or {}).get("body") or {}).get("content")
        if content:
            text += _extract_content(content)
        else:
            text += "(No content in this tab)\n"

        text += "\n\n"
    return text


def _flatten_tabs(tabs: list[dict]) -> list[dict]:
    """Depth-first list of tabs and their nested child tabs."""
    flat: list[dict] = []
    for tab in tabs:
        flat.append(tab)
        flat.extend(_flatten_tabs(tab.get("childTabs") or []))
    return flat


def _extract_content(elements: list[dict] | None) -> str:
    if not elements:
        return ""

    result = ""
    for element in elements:
        if "paragraph" in element:
            for pe in element["paragraph"].get("elements", []):
                text_run = pe.get("textRun") or {}
                if text_run.get("content"):
                    result += text_run["content"]
                elif "horizontalRule" in pe:
                    result += "\n---\n"
        elif "table" in element:
            for row in element["table"].get("tableRows", []):
                cells = [
                    _extract_content(cell.get("content"))
                    for cell in row.get("tableCells", [])
                ]
                result += " | ".join(cells) + "\n"
        elif "sectionBreak" in element:
            result += "\n\n"
    return result


def extract_sheet_text(value_ranges: list[dict] | None) -> str:
    """Extract text from the ``valueRanges`` of a Sheets ``values.batchGet``."""
    if not value_ranges:
        return "(No data found in spreadsheet)"

    text = ""
    for index, value_range in enumerate(value_ranges):
        values = value_range.get("values") or []
        if not values:
            continue
        text += f"--- Sheet {index + 1} ---\n"
        for row in values:
            text += "\t".join(str(cell) for cell in row) + "\n"
        text += "\n"
    return text.strip()


def extract_slides_text(presentation: dict) -> str:
    """Extract text from a Slides ``presentations.get`` payload."""
    slides = presentation.get("slides") or []
    if not slides:
        return "(No slides found in presentation)"

    text = ""
    for index, slide in enumerate(slides):
        text += f"--- Slide {index + 1} ---\n"

        for element in slide.get("pageElements") or []:
            shape_text = (element.get("shape") or {}).get("text")
            if shape_text:
                text += _text_runs(shape_text)
            elif "table" in element:
                for row in element["table"].get("tableRows") or []:
                    cells = [
                        _text_runs(cell.get("text") or {}).strip()
                        for cell in row.get("tableCells") or []
                    ]
                    text += " | ".join(cells) + "\n"

        notes_page = (slide.get("slideProperties") or {}).get("notesPage")
        if notes_page:
            text += f"\n(Notes: {_notes_text(notes_page)})\n"

        text += "\n"
    return text.strip()


def _text_runs(text_body: dict) -> str:
    return "".join(
        (te.get("textRun") or {}).get("content") or ""
        for te in text_body.get("textElements") or []
    )


def _notes_text(notes_page: dict) -> str:
    notes = ""
    for element in notes_page.get("pageElements") or []:
        shape_text = (element.get("shape") or {}).get("text")
        if shape_text:
            notes += _text_runs(shape_text)
    return notes.strip()
