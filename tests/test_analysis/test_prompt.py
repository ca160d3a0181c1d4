"""Tests for prompt composition."""

from drive_analyzer.analysis.prompt import (
    DOC_SEPARATOR,
    INCLUDED_END,
    INCLUDED_START,
    combine_contents,
    compose_prompt,
    format_included_analyses,
)
from drive_analyzer.storage.models import SavedAnalysis


def _analysis(title, output):
    return SavedAnalysis(id=title, title=title, timestamp=0, prompt="p", ai_output=output)


def test_prompt_only():
    assert compose_prompt("Summarize") == "Summarize"


def test_custom_instructions_come_first():
    assert compose_prompt("Summarize", "  Be brief.  ") == "Be brief.\n\nSummarize"


def test_blank_instructions_are_ignored():
    assert compose_prompt("Summarize", "   ") == "Summarize"


def test_included_analyses_between_instructions_and_prompt():
    prompt = compose_prompt("Compare", "Be brief.", [_analysis("Q1", "q1 out"), _analysis("Q2", "q2 out")])
    assert prompt == (
        "Be brief.\n\n"
        f"{INCLUDED_START}\n\n"
        "--- Analysis: Q1 ---\nq1 out\n\n"
        "--- Analysis: Q2 ---\nq2 out\n\n"
        f"{INCLUDED_END}\n\n"
        "Compare"
    )


def test_format_included_analyses_empty():
    assert format_included_analyses([]) == ""


def test_combine_contents():
    assert DOC_SEPARATOR == "\n\n--- DOC SEPARATOR ---\n\n"
    assert combine_contents(["a", "b"]) == "a\n\n--- DOC SEPARATOR ---\n\nb"
    assert combine_contents(["only"]) == "only"
