"""Actor identifiers and input/result models for the Apify module."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import urlparse

ACTOR_WEBSITE_CONTENT_CRAWLER = "apify~website-content-crawler"
ACTOR_ARTICLE_EXTRACTOR_SMART = "lukaskrivka/article-extractor-smart"
ACTOR_BING_SEARCH_SCRAPER = "tri_angle/bing-search-scraper"
ACTOR_RSS_XML_SCRAPER = "jupri/rss-xml-scraper"

_APIFY_PROXY = {"useApifyProxy": True}


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    """Drop unset fields so the actor applies its own defaults."""
    return {k: v for k, v in payload.items() if v is not None}


@dataclass
class CrawlingOptions:
    """Options for the website content crawler actor."""

    max_crawl_depth: int = 0
    max_crawl_pages: int = 1
    max_results: int = 1
    crawler_type: str = "cheerio"
    use_sitemaps: bool = False
    include_indirect_links: bool = False
    max_indirect_links: int = 5
    max_requests_per_crawl: int = 10
    max_concurrency: int = 5
    save_snapshots: bool = False
    include_url_globs: list[str] = field(default_factory=list)
    exclude_url_globs: list[str] = field(default_factory=list)

    def merged(self, **overrides: Any) -> "CrawlingOptions":
        """Return a copy with ``overrides`` applied and result limits reconciled."""
        options = replace(self, **overrides)
        if options.max_results < options.max_crawl_pages:
            options.max_results = options.max_crawl_pages
        if options.include_indirect_links and options.max_indirect_links:
            total_pages = options.max_crawl_pages + options.max_indirect_links
            if options.max_results < total_pages:
                options.max_results = total_pages
        return options

    def to_actor_input(self, url: str) -> dict[str, Any]:
        """Build the crawler input for a single start URL."""
        options = self.merged()
        payload: dict[str, Any] = {
            "startUrls": [{"url": url}],
            "useSitemaps": options.use_sitemaps,
            "respectRobotsTxtFile": True,
            "crawlerType": options.crawler_type,
            "saveMarkdown": True,
            "maxResults": options.max_results,
            "maxCrawlPages": options.max_crawl_pages,
            "maxCrawlDepth": options.max_crawl_depth,
            "proxyConfiguration": dict(_APIFY_PROXY),
        }
        if options.include_indirect_links:
            hostname = urlparse(url).hostname
            if hostname:
                escaped = re.sub(r"\.", r"\\.", hostname)
                payload["pseudoUrls"] = [
                    {"purl": f"[https?://([^/]+{escaped}|{escaped})[/]?.*]"}
                ]
                payload["linkSelector"] = "a[href]"
        return payload


@dataclass
class ArticleExtractorSmartInput:
    """Input for the smart article extractor actor."""

    url: str | None = None
    start_urls: list[str] = field(default_factory=list)
    article_urls: list[str] = field(default_factory=list)
    only_new_articles: bool | None = None
    only_inside_articles: bool | None = None
    use_google_bot_headers: bool | None = None
    must_have_date: bool | None = None
    min_words: int | None = None
    use_browser: bool | None = None

    @property
    def identifier(self) -> str:
        if self.url:
            return self.url
        urls = self.article_urls or self.start_urls
        return urls[0] if urls else "Article"

    def to_payload(self) -> dict[str, Any]:
        payload = _compact({
            "url": self.url,
            "startUrls": [{"url": u} for u in self.start_urls] or None,
            "articleUrls": [{"url": u} for u in self.article_urls] or None,
            "onlyNewArticles": self.only_new_articles,
            "onlyInsideArticles": self.only_inside_articles,
            "useGoogleBotHeaders": self.use_google_bot_headers,
            "mustHaveDate": self.must_have_date,
            "minWords": self.min_words,
            "useBrowser": self.use_browser,
        })
        payload["proxyConfiguration"] = dict(_APIFY_PROXY)
        return payload


@dataclass
class BingSearchScraperInput:
    """Input for the Bing search scraper actor.

    ``search_queries`` is either one query or a list of queries; entries may
    also be full Bing search URLs.
    """

    search_queries: str | list[str]
    results_per_page: int | None = None
    max_pages_per_query: int | None = None
    market_code: str | None = None
    language_code: str | None = None

    @property
    def identifier(self) -> str:
        if isinstance(self.search_queries, str):
            return self.search_queries
        return self.search_queries[0] if self.search_queries else "Bing Search"

    def to_payload(self) -> dict[str, Any]:
        payload = _compact({
            "searchqueries": self.search_queries,
            "resultsPerPage": self.results_per_page,
            "maxPagesPerQuery": self.max_pages_per_query,
            "marketCode": self.market_code or None,
            "languageCode": self.language_code or None,
        })
        payload["proxyConfiguration"] = dict(_APIFY_PROXY)
        return payload


@dataclass
class RssXmlScraperInput:
    """Input for the RSS/XML scraper actor."""

    rss_urls: list[str] = field(default_factory=list)
    xml_urls: list[str] | None = None
    header: bool | None = None

    @property
    def identifier(self) -> str:
        if self.rss_urls:
            return self.rss_urls[0]
        if self.xml_urls:
            return self.xml_urls[0]
        return "RSS/XML Feed"

    def to_payload(self) -> dict[str, Any]:
        return _compact({
            "rssUrls": self.rss_urls,
            "xmlUrls": self.xml_urls,
            "header": self.header,
        })


@dataclass
class UrlBatchResult:
    """Combined text from several URLs plus the URLs that failed."""

    combined_text: str
    failed_urls: list[str] = field(default_factory=list)


@dataclass
class ActorRunResult:
    """Outcome of a generic (start, poll, read dataset) actor run."""

    success: bool
    data: list[dict] = field(default_factory=list)
    run_id: str | None = None
    dataset_id: str | None = None
    error: str | None = None
    details: Any = None
