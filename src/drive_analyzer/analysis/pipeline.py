"""Run an analysis: collect sources, call the model, save and export the result."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable

from drive_analyzer.analysis.notify import LoggingNotifier, Notifier
from drive_analyzer.analysis.prompt import combine_contents, compose_prompt
from drive_analyzer.analysis.status import ProcessingStatus
from drive_analyzer.analysis.webhook import send_to_webhook
from drive_analyzer.apify.models import (
    ACTOR_ARTICLE_EXTRACTOR_SMART,
    ACTOR_BING_SEARCH_SCRAPER,
    ACTOR_RSS_XML_SCRAPER,
    ACTOR_WEBSITE_CONTENT_CRAWLER,
    ArticleExtractorSmartInput,
    BingSearchScraperInput,
    CrawlingOptions,
    RssXmlScraperInput,
)
from drive_analyzer.exceptions import AnalysisAbortedError, LocalFileError
from drive_analyzer.google.models import DriveFile
from drive_analyzer.local.reader import MAX_DOC_CHARS, extract_text_from_file, guess_mime_type
from drive_analyzer.results import Err, Ok, Result
from drive_analyzer.storage.models import SavedAnalysis, SavedAnalysisSource, now_ms

logger = logging.getLogger(__name__)

PASTED_TEXT_HEADER = "--- Pasted Text ---"

# Upper bound of the progress bar at the end of each phase.
URLS_DONE = 15
TEXT_DONE = 20
LOCAL_DONE = 35
DRIVE_DONE = 80
ANALYSIS_STARTED = 85
ANALYSIS_DONE = 95
COMPLETE = 100

StatusListener = Callable[[ProcessingStatus], None]


@dataclass
class SourceBundle:
    """Everything selected for one analysis run."""

    urls: list[str] = field(default_factory=list)
    crawling_options: CrawlingOptions | None = None
    direct_fetch: bool = False
    articles: list[ArticleExtractorSmartInput] = field(default_factory=list)
    bing_searches: list[BingSearchScraperInput] = field(default_factory=list)
    rss_feeds: list[RssXmlScraperInput] = field(default_factory=list)
    pasted_text: str = ""
    local_files: list[Path] = field(default_factory=list)
    drive_files: list[DriveFile] = field(default_factory=list)
    include_cached_documents: bool = True
    cache_documents: bool = False

    @property
    def actor_inputs(self) -> list:
        return [*self.articles, *self.bing_searches, *self.rss_feeds]

    @property
    def needs_apify(self) -> bool:
        return bool(self.actor_inputs) or (bool(self.urls) and not self.direct_fetch)

    def count(self) -> int:
        """Number of explicitly selected sources."""
        return (
            len(self.urls)
            + len(self.actor_inputs)
            + (1 if self.pasted_text.strip() else 0)
            + len(self.local_files)
            + len(self.drive_files)
        )


def default_title(prompt: str, limit: int = 60) -> str:
    """First non-empty prompt line, without markdown heading marks."""
    for line in prompt.splitlines():
        line = line.strip().lstrip("#").strip()
        if line:
            return line if len(line) <= limit else line[: limit - 3] + "..."
    return "Untitled Analysis"


class AnalysisPipeline:
    """Orchestrates one analysis run end to end.

    Clients are optional; a run that needs a missing client aborts with a
    notification instead of raising.

    Args:
        analyzer: A BaseAnalyzer (OpenRouter or Claude).
        analyses: Where completed analyses are saved.
        settings: Source of custom instructions and the webhook URL.
        cache: Document cache for included and newly cached documents.
        drive_client: DriveClient for Drive files.
        apify_client: ApifyClient for URLs and actor inputs.
        web_fetcher: WebFetcher for direct URL fetching.
        notifier: Receives user-facing messages.
        webhook_transport: Optional httpx transport for the webhook POST.
    """

    def __init__(
        self,
        analyzer,
        analyses,
        settings=None,
        cache=None,
        drive_client=None,
        apify_client=None,
        web_fetcher=None,
        notifier: Notifier | None = None,
        webhook_transport=None,
    ):
        self.analyzer = analyzer
        self.analyses = analyses
        self.settings = settings
        self.cache = cache
        self.drive_client = drive_client
        self.apify_client = apify_client
        self.web_fetcher = web_fetcher
        self.notifier = notifier or LoggingNotifier()
        self.webhook_transport = webhook_transport
        self.status = ProcessingStatus.idle()
        self._listeners: list[StatusListener] = []

    # ---- Status ----

    def add_status_listener(self, listener: StatusListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def _set_status(self, status: ProcessingStatus) -> None:
        self.status = status
        for listener in list(self._listeners):
            listener(status)

    def _update(self, step: str, progress: int | None = None, processed: int | None = None) -> None:
        changes: dict = {"current_step": step}
        if progress is not None:
            changes["progress"] = max(self.status.progress, min(progress, COMPLETE))
        if processed is not None:
            changes["processed_files"] = processed
        self._set_status(replace(self.status, **changes))

    def _reset(self) -> None:
        self._set_status(ProcessingStatus.idle())

    def _abort(self, message: str) -> None:
        raise AnalysisAbortedError(message)

    # ---- Run ----

    def run(
        self,
        prompt: str,
        sources: SourceBundle,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        include_analysis_ids: list[str] | None = None,
        title: str | None = None,
    ) -> Result[SavedAnalysis]:
        """Run one analysis.

        Failures come back as ``Err`` after the notifier has been told, and
        the status is back to idle whenever this returns.
        """
        try:
            analysis = self._execute(
                prompt, sources, model, temperature, max_tokens, include_analysis_ids or [], title
            )
        except AnalysisAbortedError as e:
            logger.warning(f"Analysis aborted: {e}")
            self.notifier.error(str(e))
            self._reset()
            return Err(str(e))
        except Exception as e:
            message = f"Analysis failed: {e}"
            logger.error(message)
            self.notifier.error(message)
            self._reset()
            return Err(message, details=e)

        try:
            self._update("Analysis complete!", COMPLETE)
            self.notifier.success("Analysis completed successfully")
            self._deliver_webhook(analysis)
        finally:
            self._reset()
        return Ok(analysis)

    async def arun(self, prompt: str, sources: SourceBundle, **kwargs) -> Result[SavedAnalysis]:
        """Async version of run."""
        return await asyncio.to_thread(self.run, prompt, sources, **kwargs)

    def _execute(
        self, prompt, sources, model, temperature, max_tokens, include_ids, title
    ) -> SavedAnalysis:
        self._validate(prompt, sources)
        self._set_status(ProcessingStatus(
            is_processing=True,
            current_step="Starting analysis...",
            progress=0,
            total_files=sources.count(),
            processed_files=0,
        ))
        pieces, labels = self._collect(sources)
        if not pieces:
            self._abort("No content could be extracted from the selected sources.")

        combined = combine_contents(pieces)
        full_prompt = self._compose(prompt, include_ids)

        self._update("Analyzing with AI...", ANALYSIS_STARTED, sources.count())
        result = self.analyzer.analyze(
            combined, full_prompt, model=model, temperature=temperature, max_tokens=max_tokens
        )
        if not result.ok:
            self._abort(f"Analysis failed: {result.message}")

        self._update("Saving analysis...", ANALYSIS_DONE)
        analysis = SavedAnalysis(
            id=self._new_analysis_id(),
            title=title or default_title(prompt),
            timestamp=now_ms(),
            prompt=prompt,
            ai_output=result.value,
            sources=labels,
        )
        self.analyses.save(analysis)
        return analysis

    def _new_analysis_id(self) -> str:
        """Millisecond timestamp, suffixed when a saved analysis already has it."""
        base = str(now_ms())
        taken = {a.id for a in self.analyses.list()}
        analysis_id, n = base, 1
        while analysis_id in taken:
            analysis_id = f"{base}-{n}"
            n += 1
        return analysis_id

    def _validate(self, prompt: str, sources: SourceBundle) -> None:
        if not prompt or not prompt.strip():
            self._abort("Please enter a prompt for the AI")
        included_cached = (
            self.cache.included_documents()
            if self.cache is not None and sources.include_cached_documents
            else []
        )
        if sources.count() == 0 and not included_cached:
            self._abort(
                "Please add at least one source: Google Drive files, local files, text, or URLs"
            )
        if sources.drive_files and self.drive_client is None:
            self._abort("Please sign in to Google Drive first")
        if sources.needs_apify and self.apify_client is None:
            self._abort("Apify API Token not found. Please set it in Settings.")
        if sources.urls and sources.direct_fetch and self.web_fetcher is None:
            self._abort("Direct URL fetching is not available.")
        if self.analyzer is None:
            self._abort("OpenRouter API key is not set. Please add it in Settings.")

    def _compose(self, prompt: str, include_ids: list[str]) -> str:
        included = []
        for analysis_id in include_ids:
            analysis = self.analyses.get(analysis_id)
            if analysis is None:
                self.notifier.warning(f'Saved analysis "{analysis_id}" not found, skipping')
                continue
            included.append(analysis)
        instructions = self.settings.custom_instructions if self.settings is not None else ""
        return compose_prompt(prompt, instructions, included)

    # ---- Source collection ----

    def _collect(self, sources: SourceBundle) -> tuple[list[str], list[SavedAnalysisSource]]:
        pieces: list[str] = []
        labels: list[SavedAnalysisSource] = []
        processed = 0

        processed = self._collect_urls(sources, pieces, labels, processed)
        self._update("Processing URLs complete", URLS_DONE, processed)

        text = sources.pasted_text
        if text.strip():
            self._update("Adding pasted text...", TEXT_DONE)
            pieces.append(f"{PASTED_TEXT_HEADER}\n{text}")
            labels.append(SavedAnalysisSource("text", "Pasted Text"))
            if sources.cache_documents:
                self._cache("Pasted Text", "text", text)
            processed += 1
        self._update("Processing text complete", TEXT_DONE, processed)

        total_local = len(sources.local_files)
        for i, path in enumerate(sources.local_files):
            path = Path(path)
            self._update(
                f"Processing local file {i + 1} of {total_local}: {path.name}",
                TEXT_DONE + round((LOCAL_DONE - TEXT_DONE) * i / total_local),
                processed,
            )
            try:
                content = extract_text_from_file(path)
            except LocalFileError as e:
                self.notifier.warning(str(e))
                content = f"(Error: {e})"
            else:
                if sources.cache_documents:
                    self._cache(path.name, "local", content, mime_type=guess_mime_type(path))
            pieces.append(f"### Local File: {path.name}\n{content}")
            labels.append(SavedAnalysisSource("file", path.name))
            processed += 1
        self._update("Processing local files complete", LOCAL_DONE, processed)

        total_drive = len(sources.drive_files)
        for i, file in enumerate(sources.drive_files):
            self._update(
                f"Processing file {i + 1} of {total_drive}: {file.name}",
                LOCAL_DONE + round((DRIVE_DONE - LOCAL_DONE) * i / total_drive),
                processed,
            )
            try:
                content = self.drive_client.fetch_file_content(file)[:MAX_DOC_CHARS]
            except Exception as e:
                logger.error(f"Error processing file {file.name}: {e}")
                content = f"(Error extracting content: {e})"
            else:
                if sources.cache_documents:
                    self._cache(file.name, "google", content, mime_type=file.mime_type, original_id=file.id)
            pieces.append(f"### {file.name} (ID: {file.id})\n{content}")
            labels.append(SavedAnalysisSource("file", file.name))
            processed += 1
        self._update("Processing Google Drive files complete", DRIVE_DONE, processed)

        if self.cache is not None and sources.include_cached_documents:
            for doc in self.cache.included_documents():
                pieces.append(f"### Cached Document: {doc.name}\n{doc.content}")
                labels.append(SavedAnalysisSource(_CACHE_SOURCE_TYPES.get(doc.type, "file"), doc.name))

        return pieces, labels

    def _collect_urls(self, sources, pieces, labels, processed: int) -> int:
        if sources.urls:
            self._update(f"Fetching content from {len(sources.urls)} URL(s)...", 5, processed)
            if sources.direct_fetch:
                batch = self.web_fetcher.scrape_urls(sources.urls)
                actor = None
            else:
                batch = self.apify_client.analyze_multiple_urls(
                    sources.urls, sources.crawling_options
                )
                actor = ACTOR_WEBSITE_CONTENT_CRAWLER
            if batch.failed_urls:
                self.notifier.warning(
                    f"Failed to fetch content from {len(batch.failed_urls)} URL(s): "
                    + ", ".join(batch.failed_urls)
                )
            if batch.combined_text.strip():
                pieces.append(batch.combined_text)
                if sources.cache_documents:
                    self._cache(", ".join(sources.urls), "url", batch.combined_text)
            for url in sources.urls:
                if url not in batch.failed_urls:
                    labels.append(SavedAnalysisSource("url", url, actor))
            processed += len(sources.urls)

        for input in sources.actor_inputs:
            self._update(f"Running Apify actor for {input.identifier}...", URLS_DONE, processed)
            if isinstance(input, ArticleExtractorSmartInput):
                result = self.apify_client.extract_article(input)
                label = SavedAnalysisSource("url", input.identifier, ACTOR_ARTICLE_EXTRACTOR_SMART)
            elif isinstance(input, BingSearchScraperInput):
                result = self.apify_client.search_bing(input)
                label = SavedAnalysisSource("search", input.identifier, ACTOR_BING_SEARCH_SCRAPER)
            else:
                result = self.apify_client.scrape_rss_feed(input)
                label = SavedAnalysisSource("feed", input.identifier, ACTOR_RSS_XML_SCRAPER)
            processed += 1
            if not result.ok:
                self.notifier.warning(f"Apify actor failed for {result.source}: {result.message}")
                continue
            pieces.append(result.value)
            labels.append(label)
        return processed

    def _cache(self, name: str, type: str, content: str, **kwargs) -> None:
        if self.cache is None:
            return
        self.cache.add(name=name, type=type, content=content[:MAX_DOC_CHARS], size=len(content), **kwargs)

    # ---- Export ----

    def _deliver_webhook(self, analysis: SavedAnalysis) -> None:
        url = self.settings.webhook_url if self.settings is not None else ""
        if not url:
            return
        result = send_to_webhook(url, analysis.to_dict(), transport=self.webhook_transport)
        if result.ok:
            self.notifier.info("Analysis sent to webhook")
        else:
            self.notifier.warning(result.message)


_CACHE_SOURCE_TYPES = {"google": "file", "local": "file", "url": "url", "text": "text"}
