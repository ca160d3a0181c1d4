"""Tests for the analysis pipeline."""

import asyncio
import json
from unittest.mock import MagicMock

import httpx
import pytest

from drive_analyzer.analysis.notify import Notifier
from drive_analyzer.analysis.pipeline import AnalysisPipeline, SourceBundle, default_title
from drive_analyzer.apify.models import (
    ACTOR_BING_SEARCH_SCRAPER,
    ACTOR_WEBSITE_CONTENT_CRAWLER,
    BingSearchScraperInput,
    UrlBatchResult,
)
from drive_analyzer.exceptions import StorageError
from drive_analyzer.google.models import GOOGLE_DOC, DriveFile
from drive_analyzer.results import Err, Ok
from drive_analyzer.storage.backend import JsonFileStore
from drive_analyzer.storage.models import SavedAnalysis
from drive_analyzer.storage.repositories import DocumentCache, SavedAnalysesRepository, SettingsStore


class RecordingNotifier(Notifier):
    def __init__(self):
        self.messages = []

    def success(self, message):
        self.messages.append(("success", message))

    def info(self, message):
        self.messages.append(("info", message))

    def warning(self, message):
        self.messages.append(("warning", message))

    def error(self, message):
        self.messages.append(("error", message))


@pytest.fixture
def store(tmp_path):
    return JsonFileStore(tmp_path)


@pytest.fixture
def analyzer():
    mock = MagicMock()
    mock.analyze.return_value = Ok("# Result")
    return mock


def make_pipeline(store, analyzer, **kwargs):
    kwargs.setdefault("notifier", RecordingNotifier())
    return AnalysisPipeline(
        analyzer,
        SavedAnalysesRepository(store),
        settings=kwargs.pop("settings", SettingsStore(store)),
        cache=kwargs.pop("cache", DocumentCache(store)),
        **kwargs,
    )


def test_default_title():
    assert default_title("## Quarterly review\nDetails") == "Quarterly review"
    assert default_title("\n\n   ") == "Untitled Analysis"
    long = default_title("x" * 100)
    assert len(long) == 60
    assert long.endswith("...")


def test_no_sources_aborts_without_calling_model(store, analyzer):
    pipeline = make_pipeline(store, analyzer)
    result = pipeline.run("Summarize", SourceBundle())

    assert not result.ok
    assert result.message == (
        "Please add at least one source: Google Drive files, local files, text, or URLs"
    )
    analyzer.analyze.assert_not_called()
    assert pipeline.status.is_processing is False
    assert ("error", result.message) in pipeline.notifier.messages


def test_empty_prompt_aborts(store, analyzer):
    result = make_pipeline(store, analyzer).run("   ", SourceBundle(pasted_text="hi"))
    assert result.message == "Please enter a prompt for the AI"


def test_missing_clients_abort(store, analyzer):
    pipeline = make_pipeline(store, analyzer)

    drive = SourceBundle(drive_files=[DriveFile("d1", "Doc", GOOGLE_DOC)])
    assert pipeline.run("p", drive).message == "Please sign in to Google Drive first"

    urls = SourceBundle(urls=["https://example.com"])
    assert pipeline.run("p", urls).message == "Apify API Token not found. Please set it in Settings."

    direct = SourceBundle(urls=["https://example.com"], direct_fetch=True)
    assert pipeline.run("p", direct).message == "Direct URL fetching is not available."

    no_model = make_pipeline(store, None)
    assert no_model.run("p", SourceBundle(pasted_text="x")).message == (
        "OpenRouter API key is not set. Please add it in Settings."
    )


def test_successful_run_saves_analysis(store, analyzer, tmp_path):
    local = tmp_path / "notes.txt"
    local.write_text("local notes")
    drive_client = MagicMock()
    drive_client.fetch_file_content.return_value = "drive text"

    pipeline = make_pipeline(store, analyzer, drive_client=drive_client)
    statuses = []
    pipeline.add_status_listener(statuses.append)

    sources = SourceBundle(
        pasted_text="pasted words",
        local_files=[local],
        drive_files=[DriveFile("d1", "Plan", GOOGLE_DOC)],
    )
    result = pipeline.run("# Weekly summary\nPlease summarize", sources, model="openai/gpt-4o")

    assert result.ok
    analysis = result.value
    assert analysis.title == "Weekly summary"
    assert analysis.ai_output == "# Result"
    assert [(s.type, s.name) for s in analysis.sources] == [
        ("text", "Pasted Text"),
        ("file", "notes.txt"),
        ("file", "Plan"),
    ]
    assert SavedAnalysesRepository(store).list() == [analysis]

    content, prompt = analyzer.analyze.call_args.args
    assert content == (
        "--- Pasted Text ---\npasted words"
        "\n\n--- DOC SEPARATOR ---\n\n"
        "### Local File: notes.txt\nlocal notes"
        "\n\n--- DOC SEPARATOR ---\n\n"
        "### Plan (ID: d1)\ndrive text"
    )
    assert prompt == "# Weekly summary\nPlease summarize"
    assert analyzer.analyze.call_args.kwargs["model"] == "openai/gpt-4o"

    progress = [s.progress for s in statuses]
    assert progress == sorted(progress[:-1]) + [0]
    assert 100 in progress
    assert statuses[-1].is_processing is False
    assert ("success", "Analysis completed successfully") in pipeline.notifier.messages


def test_model_failure_aborts_without_saving(store, analyzer):
    analyzer.analyze.return_value = Err("OpenRouter API error: boom")
    pipeline = make_pipeline(store, analyzer)

    result = pipeline.run("p", SourceBundle(pasted_text="text"))

    assert result.message == "Analysis failed: OpenRouter API error: boom"
    assert SavedAnalysesRepository(store).list() == []
    assert pipeline.status.is_processing is False


def test_nothing_extracted_aborts(store, analyzer):
    apify = MagicMock()
    apify.search_bing.return_value = Err("quota", source="python")
    pipeline = make_pipeline(store, analyzer, apify_client=apify)

    result = pipeline.run("p", SourceBundle(bing_searches=[BingSearchScraperInput("python")]))

    assert result.message == "No content could be extracted from the selected sources."
    assert ("warning", "Apify actor failed for python: quota") in pipeline.notifier.messages
    analyzer.analyze.assert_not_called()


def test_urls_and_actor_sources(store, analyzer):
    apify = MagicMock()
    apify.analyze_multiple_urls.return_value = UrlBatchResult(
        combined_text="### Analysis for URL: https://a.com\n\nok\n\n---\n\n",
        failed_urls=["https://b.com"],
    )
    apify.search_bing.return_value = Ok("bing results")
    pipeline = make_pipeline(store, analyzer, apify_client=apify)

    result = pipeline.run("p", SourceBundle(
        urls=["https://a.com", "https://b.com"],
        bing_searches=[BingSearchScraperInput("python")],
    ))

    assert result.ok
    assert [s.to_dict() for s in result.value.sources] == [
        {"type": "url", "name": "https://a.com", "actor": ACTOR_WEBSITE_CONTENT_CRAWLER},
        {"type": "search", "name": "python", "actor": ACTOR_BING_SEARCH_SCRAPER},
    ]
    content = analyzer.analyze.call_args.args[0]
    assert content.endswith("\n\n--- DOC SEPARATOR ---\n\nbing results")
    assert any("https://b.com" in m for kind, m in pipeline.notifier.messages if kind == "warning")


def test_direct_fetch_uses_web_fetcher(store, analyzer):
    fetcher = MagicMock()
    fetcher.scrape_urls.return_value = UrlBatchResult(combined_text="### Content retrieved from: https://a.com\n")
    pipeline = make_pipeline(store, analyzer, web_fetcher=fetcher)

    result = pipeline.run("p", SourceBundle(urls=["https://a.com"], direct_fetch=True))

    assert result.ok
    fetcher.scrape_urls.assert_called_once_with(["https://a.com"])
    assert result.value.sources[0].actor is None


def test_included_cached_documents_count_as_sources(store, analyzer):
    cache = DocumentCache(store)
    doc_id = cache.add("old.txt", "local", "cached body")
    cache.set_include_in_prompts(doc_id, True)

    result = make_pipeline(store, analyzer, cache=cache).run("p", SourceBundle())

    assert result.ok
    assert analyzer.analyze.call_args.args[0] == "### Cached Document: old.txt\ncached body"


def test_cache_documents_stores_extracted_text(store, analyzer):
    cache = DocumentCache(store)
    make_pipeline(store, analyzer, cache=cache).run(
        "p", SourceBundle(pasted_text="keep me", cache_documents=True)
    )
    docs = cache.list()
    assert [(d.name, d.type, d.content) for d in docs] == [("Pasted Text", "text", "keep me")]


def test_custom_instructions_and_included_analyses(store, analyzer):
    settings = SettingsStore(store)
    settings.custom_instructions = "Answer in French."
    repo = SavedAnalysesRepository(store)
    repo.save(SavedAnalysis(id="prev", title="Earlier", timestamp=1, prompt="q", ai_output="old output"))

    pipeline = make_pipeline(store, analyzer, settings=settings)
    pipeline.run("Compare", SourceBundle(pasted_text="x"), include_analysis_ids=["prev", "gone"])

    prompt = analyzer.analyze.call_args.args[1]
    assert prompt.startswith("Answer in French.\n\n")
    assert "--- Analysis: Earlier ---\nold output" in prompt
    assert prompt.endswith("\n\nCompare")
    assert ("warning", 'Saved analysis "gone" not found, skipping') in pipeline.notifier.messages


def test_webhook_success_and_failure(store, analyzer):
    settings = SettingsStore(store)
    settings.webhook_url = "https://hooks.example.com/in"
    received = []

    def ok_handler(request):
        received.append(json.loads(request.content))
        return httpx.Response(200)

    pipeline = make_pipeline(
        store, analyzer, settings=settings, webhook_transport=httpx.MockTransport(ok_handler)
    )
    result = pipeline.run("p", SourceBundle(pasted_text="x"))
    assert received == [result.value.to_dict()]
    assert ("info", "Analysis sent to webhook") in pipeline.notifier.messages

    def failing_handler(request):
        return httpx.Response(502, text="bad")

    pipeline = make_pipeline(
        store, analyzer, settings=settings, webhook_transport=httpx.MockTransport(failing_handler)
    )
    result = pipeline.run("p", SourceBundle(pasted_text="x"))
    assert result.ok
    assert any(kind == "warning" and "status 502" in m for kind, m in pipeline.notifier.messages)


def test_arun(store, analyzer):
    pipeline = make_pipeline(store, analyzer)
    result = asyncio.run(pipeline.arun("p", SourceBundle(pasted_text="x")))
    assert result.ok


def test_unexpected_analyzer_error_resets_status(store, analyzer):
    analyzer.analyze.side_effect = RuntimeError("connection reset")
    pipeline = make_pipeline(store, analyzer)

    result = pipeline.run("p", SourceBundle(pasted_text="x"))

    assert not result.ok
    assert result.message == "Analysis failed: connection reset"
    assert isinstance(result.details, RuntimeError)
    assert pipeline.status.is_processing is False
    assert pipeline.status.progress == 0
    assert ("error", "Analysis failed: connection reset") in pipeline.notifier.messages


def test_save_failure_resets_status(store, analyzer):
    analyses = MagicMock()
    analyses.list.return_value = []
    analyses.save.side_effect = StorageError("Failed to write analyses.json: disk full")
    pipeline = AnalysisPipeline(
        analyzer, analyses, settings=SettingsStore(store), notifier=RecordingNotifier()
    )

    result = pipeline.run("p", SourceBundle(pasted_text="x"))

    assert result.message == "Analysis failed: Failed to write analyses.json: disk full"
    assert pipeline.status.is_processing is False
    assert not any(kind == "success" for kind, _ in pipeline.notifier.messages)


def test_same_millisecond_runs_get_distinct_ids(store, analyzer, monkeypatch):
    monkeypatch.setattr("drive_analyzer.analysis.pipeline.now_ms", lambda: 1700000000000)
    pipeline = make_pipeline(store, analyzer)

    first = pipeline.run("p", SourceBundle(pasted_text="x")).value
    second = pipeline.run("p", SourceBundle(pasted_text="y")).value

    assert (first.id, second.id) == ("1700000000000", "1700000000000-1")
    assert [a.id for a in SavedAnalysesRepository(store).list()] == [second.id, first.id]
