"""Tests for the Apify client."""

import json

import httpx
import pytest

from drive_analyzer.apify.client import INVALID_TOKEN, ApifyClient, is_valid_url
from drive_analyzer.apify.models import (
    ACTOR_BING_SEARCH_SCRAPER,
    ACTOR_WEBSITE_CONTENT_CRAWLER,
    BingSearchScraperInput,
    CrawlingOptions,
    RssXmlScraperInput,
)
from drive_analyzer.exceptions import ApifyError


def make_client(handler):
    return ApifyClient(token="test-token", transport=httpx.MockTransport(handler))


def test_init_requires_token():
    with pytest.raises(ApifyError, match="token is required"):
        ApifyClient(token="")


def test_is_valid_url():
    assert is_valid_url("https://example.com/page")
    assert is_valid_url("http://example.com")
    assert not is_valid_url("not a url")
    assert not is_valid_url("ftp://example.com")
    assert not is_valid_url("https://")


def test_search_bing_posts_payload_and_formats():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["token"] = request.url.params["token"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[
            {"query": "python", "results": [{"title": "Python", "url": "https://python.org"}]}
        ])

    result = make_client(handler).search_bing(BingSearchScraperInput(search_queries="python"))

    assert result.ok
    assert '## Results for query: "python"' in result.value
    assert seen["path"] == f"/v2/acts/{ACTOR_BING_SEARCH_SCRAPER}/run-sync-get-dataset-items"
    assert seen["token"] == "test-token"
    assert seen["body"]["searchqueries"] == "python"
    assert seen["body"]["proxyConfiguration"] == {"useApifyProxy": True}


def test_error_message_from_response_body():
    def handler(request):
        return httpx.Response(400, json={"error": {"message": "Actor input is invalid"}})

    result = make_client(handler).scrape_rss_feed(
        RssXmlScraperInput(rss_urls=["https://example.com/feed.xml"])
    )

    assert not result.ok
    assert result.message == "Actor input is invalid"
    assert result.source == "https://example.com/feed.xml"
    assert result.details == 400


def test_error_message_falls_back_to_status():
    def handler(request):
        return httpx.Response(502, text="bad gateway")

    result = make_client(handler).run_sync_get_dataset_items("some~actor", {})
    assert not result.ok
    assert result.message == "Bad Gateway"


def test_non_list_response_is_unexpected_format():
    def handler(request):
        return httpx.Response(200, json={"items": []})

    result = make_client(handler).run_sync_get_dataset_items("some~actor", {})
    assert not result.ok
    assert result.message == "Unexpected response format from Apify."


def test_transport_error_becomes_err():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    result = make_client(handler).run_sync_get_dataset_items("some~actor", {})
    assert not result.ok
    assert "connection refused" in result.message


def test_analyze_url_rejects_invalid_url():
    def handler(request):
        raise AssertionError("no request expected")

    result = make_client(handler).analyze_url("not-a-url")
    assert not result.ok
    assert result.message == "Invalid URL format."
    assert result.source == "not-a-url"


def test_analyze_url_builds_crawler_input():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[{"url": "https://example.com", "text": "Hello"}])

    options = CrawlingOptions(max_crawl_pages=3, include_indirect_links=True, max_indirect_links=2)
    result = make_client(handler).analyze_url("https://example.com", options)

    assert result.ok
    assert "**Content (Text):**\nHello" in result.value
    assert seen["path"].endswith(f"/acts/{ACTOR_WEBSITE_CONTENT_CRAWLER}/run-sync-get-dataset-items")
    body = seen["body"]
    assert body["startUrls"] == [{"url": "https://example.com"}]
    assert body["maxCrawlPages"] == 3
    assert body["maxResults"] == 5
    assert body["linkSelector"] == "a[href]"
    assert body["pseudoUrls"] == [{"purl": r"[https?://([^/]+example\.com|example\.com)[/]?.*]"}]


def test_analyze_multiple_urls_partial_failure():
    def handler(request):
        url = json.loads(request.content)["startUrls"][0]["url"]
        if url == "https://one.example.com":
            return httpx.Response(200, json=[{"url": url, "markdown": "First page"}])
        return httpx.Response(500, json={"message": "Crawler crashed"})

    batch = make_client(handler).analyze_multiple_urls(
        ["https://one.example.com", "https://two.example.com"]
    )

    assert batch.failed_urls == ["https://two.example.com"]
    assert batch.combined_text.startswith("### Analysis for URL: https://one.example.com\n\n")
    assert "First page" in batch.combined_text
    assert "### Analysis for URL: https://two.example.com\n\nError: Crawler crashed\n\n---\n\n" in batch.combined_text


def _run_handler(final_status, items=None):
    def handler(request):
        path = request.url.path
        if path.endswith("/runs"):
            return httpx.Response(201, json={"data": {"id": "run-1", "defaultDatasetId": "ds-1"}})
        if path.endswith("/actor-runs/run-1"):
            return httpx.Response(200, json={"data": {"id": "run-1", "status": final_status}})
        if path.endswith("/datasets/ds-1/items"):
            return httpx.Response(200, json=items or [])
        return httpx.Response(404)
    return handler


def test_run_actor_succeeded():
    client = make_client(_run_handler("SUCCEEDED", [{"a": 1}]))
    result = client.run_actor("some~actor", {"x": 1}, poll_interval=0)

    assert result.success
    assert result.data == [{"a": 1}]
    assert result.run_id == "run-1"
    assert result.dataset_id == "ds-1"


def test_run_actor_failed_status():
    client = make_client(_run_handler("FAILED"))
    result = client.run_actor("some~actor", {}, poll_interval=0)

    assert not result.success
    assert result.error == "Actor run failed with status: FAILED."


def test_run_actor_times_out():
    client = make_client(_run_handler("RUNNING"))
    result = client.run_actor("some~actor", {}, poll_interval=0, max_attempts=3)

    assert not result.success
    assert result.error == "Actor run timed out after 5 minutes."


def test_run_actor_invalid_token():
    def handler(request):
        return httpx.Response(401, json={"error": {"message": "Unauthorized"}})

    result = make_client(handler).run_actor("some~actor", {}, poll_interval=0)
    assert not result.success
    assert result.error == INVALID_TOKEN
