"""Apify REST client for the scraping actors used as URL sources."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable
from urllib.parse import urlparse

from drive_analyzer.apify.formatters import (
    format_article_extractor_smart_output,
    format_bing_search_scraper_output,
    format_dataset_items_to_text,
    format_rss_xml_scraper_output,
)
from drive_analyzer.apify.models import (
    ACTOR_ARTICLE_EXTRACTOR_SMART,
    ACTOR_BING_SEARCH_SCRAPER,
    ACTOR_RSS_XML_SCRAPER,
    ACTOR_WEBSITE_CONTENT_CRAWLER,
    ActorRunResult,
    ArticleExtractorSmartInput,
    BingSearchScraperInput,
    CrawlingOptions,
    RssXmlScraperInput,
    UrlBatchResult,
)
from drive_analyzer.exceptions import ApifyError, ApifyRunError
from drive_analyzer.results import Err, Ok, Result

logger = logging.getLogger(__name__)

APIFY_API_BASE = "https://api.apify.com/v2"
UNEXPECTED_FORMAT = "Unexpected response format from Apify."
INVALID_TOKEN = "Invalid Apify API token. Please check your token in Settings."
_TERMINAL_FAILURES = ("FAILED", "TIMED_OUT", "ABORTED")


def is_valid_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _error_message(response) -> str:
    """Pull a readable message out of an Apify error response."""
    try:
        data = response.json()
    except ValueError:
        return response.reason_phrase or f"HTTP error {response.status_code}"
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if data.get("message"):
            return str(data["message"])
    return f"HTTP error {response.status_code}"


class ApifyClient:
    """Apify actor runner.

    The four named actors go through the synchronous
    ``run-sync-get-dataset-items`` endpoint and come back as formatted text.
    ``run_actor`` is the generic start/poll/read path.

    Args:
        token: Apify API token.
        timeout: Request timeout in seconds. Synchronous runs can take minutes.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(self, token: str, timeout: float = 300.0, transport=None):
        if not token:
            raise ApifyError(
                "Apify API token is required. "
                "Set it in Settings or APIFY_API_TOKEN in your environment."
            )
        try:
            import httpx  # noqa: F401
        except ImportError:
            raise ImportError(
                "httpx is required for ApifyClient. "
                "Install with: pip install drive-analyzer[web]"
            )
        self.token = token
        self.timeout = timeout
        self._transport = transport

    def _client(self):
        import httpx

        return httpx.Client(timeout=self.timeout, transport=self._transport)

    # ---- Synchronous actor runs ----

    def run_sync_get_dataset_items(
        self, actor_id: str, payload: dict[str, Any]
    ) -> Result[list[dict]]:
        """Run an actor to completion and return its dataset items."""
        url = f"{APIFY_API_BASE}/acts/{actor_id}/run-sync-get-dataset-items"
        logger.debug(f"Running Apify actor {actor_id}")
        try:
            with self._client() as client:
                response = client.post(url, params={"token": self.token}, json=payload)
                if not response.is_success:
                    message = _error_message(response)
                    logger.error(f"Apify actor {actor_id} failed: {message}")
                    return Err(message, details=response.status_code)
                items = response.json()
        except Exception as e:
            logger.error(f"Error calling Apify actor {actor_id}: {e}")
            return Err(str(e) or "Unknown error during Apify analysis.", details=e)

        if not isinstance(items, list):
            logger.error(f"Unexpected response format from Apify actor {actor_id}: {items!r}")
            return Err(UNEXPECTED_FORMAT, details=items)

        logger.info(f"Apify actor {actor_id} returned {len(items)} items")
        return Ok(items)

    def _run_formatted(
        self,
        actor_id: str,
        payload: dict[str, Any],
        identifier: str,
        formatter: Callable[[list[dict]], str],
    ) -> Result[str]:
        result = self.run_sync_get_dataset_items(actor_id, payload)
        if not result.ok:
            return Err(result.message, source=identifier, details=result.details)
        return Ok(formatter(result.value))

    def extract_article(self, input: ArticleExtractorSmartInput) -> Result[str]:
        return self._run_formatted(
            ACTOR_ARTICLE_EXTRACTOR_SMART,
            input.to_payload(),
            input.identifier,
            format_article_extractor_smart_output,
        )

    def search_bing(self, input: BingSearchScraperInput) -> Result[str]:
        return self._run_formatted(
            ACTOR_BING_SEARCH_SCRAPER,
            input.to_payload(),
            input.identifier,
            format_bing_search_scraper_output,
        )

    def scrape_rss_feed(self, input: RssXmlScraperInput) -> Result[str]:
        return self._run_formatted(
            ACTOR_RSS_XML_SCRAPER,
            input.to_payload(),
            input.identifier,
            format_rss_xml_scraper_output,
        )

    def analyze_url(
        self, url: str, options: CrawlingOptions | None = None
    ) -> Result[str]:
        """Crawl one URL with the website content crawler."""
        if not is_valid_url(url):
            return Err("Invalid URL format.", source=url)
        options = options or CrawlingOptions()
        return self._run_formatted(
            ACTOR_WEBSITE_CONTENT_CRAWLER,
            options.to_actor_input(url),
            url,
            format_dataset_items_to_text,
        )

    def analyze_multiple_urls(
        self, urls: list[str], options: CrawlingOptions | None = None
    ) -> UrlBatchResult:
        """Crawl URLs one at a time and combine the per-URL sections."""
        combined = ""
        failed: list[str] = []
        for url in urls:
            result = self.analyze_url(url, options)
            combined += f"### Analysis for URL: {url}\n\n"
            if result.ok:
                combined += result.value + "\n\n"
            else:
                combined += f"Error: {result.message}\n\n"
                failed.append(url)
            combined += "---\n\n"
        if failed:
            logger.warning(f"Failed to crawl {len(failed)} of {len(urls)} URLs")
        return UrlBatchResult(combined_text=combined, failed_urls=failed)

    # ---- Generic start/poll/read ----

    def run_actor(
        self,
        actor_id: str,
        input: dict[str, Any],
        poll_interval: float = 5.0,
        max_attempts: int = 60,
    ) -> ActorRunResult:
        """Start an actor run, poll until it finishes, then read its dataset."""
        run_id = None
        dataset_id = None
        try:
            with self._client() as client:
                response = client.post(
                    f"{APIFY_API_BASE}/acts/{actor_id}/runs",
                    params={"token": self.token},
                    json=input,
                )
                if not response.is_success:
                    message = _error_message(response)
                    if response.status_code == 401:
                        message = f"{message} (401)"
                    raise ApifyRunError(message)
                run = response.json()["data"]
                run_id = run["id"]
                dataset_id = run.get("defaultDatasetId")
                logger.info(f"Started Apify run {run_id} for actor {actor_id}")

                for _ in range(max_attempts):
                    time.sleep(poll_interval)
                    status_response = client.get(
                        f"{APIFY_API_BASE}/actor-runs/{run_id}",
                        params={"token": self.token},
                    )
                    if not status_response.is_success:
                        raise ApifyRunError(
                            f"Failed to check run status: {status_response.reason_phrase}"
                        )
                    run_data = status_response.json()["data"]
                    status = run_data.get("status")
                    logger.debug(f"Apify run {run_id} status: {status}")

                    if status == "SUCCEEDED":
                        if not dataset_id:
                            return ActorRunResult(
                                success=True,
                                run_id=run_id,
                                error="Actor run succeeded but no default dataset was produced.",
                            )
                        items_response = client.get(
                            f"{APIFY_API_BASE}/datasets/{dataset_id}/items",
                            params={"token": self.token},
                        )
                        if not items_response.is_success:
                            raise ApifyRunError(
                                f"Failed to fetch dataset items: {items_response.reason_phrase}"
                            )
                        items = items_response.json()
                        return ActorRunResult(
                            success=True,
                            data=items if isinstance(items, list) else [],
                            run_id=run_id,
                            dataset_id=dataset_id,
                        )
                    if status in _TERMINAL_FAILURES:
                        return ActorRunResult(
                            success=False,
                            run_id=run_id,
                            dataset_id=dataset_id,
                            error=f"Actor run failed with status: {status}.",
                            details=run_data,
                        )
        except Exception as e:
            logger.error(f"Apify actor {actor_id} run failed: {e}")
            message = str(e) or "An unexpected error occurred during actor execution."
            if "Invalid token" in message or "401" in message:
                message = INVALID_TOKEN
            return ActorRunResult(
                success=False, run_id=run_id, dataset_id=dataset_id, error=message, details=e
            )

        return ActorRunResult(
            success=False,
            run_id=run_id,
            dataset_id=dataset_id,
            error="Actor run timed out after 5 minutes.",
        )

    # ---- Async wrappers (asyncio.to_thread) ----

    async def aanalyze_url(self, url: str, options: CrawlingOptions | None = None) -> Result[str]:
        """Async version of analyze_url."""
        return await asyncio.to_thread(self.analyze_url, url, options)

    async def aanalyze_multiple_urls(
        self, urls: list[str], options: CrawlingOptions | None = None
    ) -> UrlBatchResult:
        """Async version of analyze_multiple_urls."""
        return await asyncio.to_thread(self.analyze_multiple_urls, urls, options)

    async def arun_actor(self, actor_id: str, input: dict[str, Any], **kwargs) -> ActorRunResult:
        """Async version of run_actor."""
        return await asyncio.to_thread(self.run_actor, actor_id, input, **kwargs)
