"""Compose the final prompt from custom instructions, prior analyses and the user prompt."""

from __future__ import annotations

from typing import Iterable

from drive_analyzer.storage.models import SavedAnalysis

DOC_SEPARATOR = "\n\n--- DOC SEPARATOR ---\n\n"
INCLUDED_START = "=== START OF INCLUDED SAVED ANALYSES ==="
INCLUDED_END = "=== END OF INCLUDED SAVED ANALYSES ==="


def format_included_analyses(analyses: Iterable[SavedAnalysis]) -> str:
    blocks = [f"--- Analysis: {a.title} ---\n{a.ai_output}" for a in analyses]
    if not blocks:
        return ""
    return f"{INCLUDED_START}\n\n" + "\n\n".join(blocks) + f"\n\n{INCLUDED_END}"


def compose_prompt(
    user_prompt: str,
    custom_instructions: str = "",
    included_analyses: Iterable[SavedAnalysis] = (),
) -> str:
    """Custom instructions first, then included analyses, then the prompt.

    No length budget is applied.
    """
    parts = []
    if custom_instructions and custom_instructions.strip():
        parts.append(custom_instructions.strip())
    included = format_included_analyses(included_analyses)
    if included:
        parts.append(included)
    parts.append(user_prompt)
    return "\n\n".join(parts)


def combine_contents(pieces: Iterable[str]) -> str:
    return DOC_SEPARATOR.join(pieces)
