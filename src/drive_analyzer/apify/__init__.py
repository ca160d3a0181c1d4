"""Apify actor clients and dataset formatters.

Heavy imports are deferred. Use explicit imports:
    from drive_analyzer.apify.client import ApifyClient
"""

# Light imports only (formatters need bs4/dateutil only when called)
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


def __getattr__(name):
    """Lazy imports for objects that require optional dependencies."""
    if name == "ApifyClient":
        from drive_analyzer.apify.client import ApifyClient
        return ApifyClient
    if name in (
        "format_article_extractor_smart_output",
        "format_bing_search_scraper_output",
        "format_rss_xml_scraper_output",
        "format_dataset_items_to_text",
    ):
        from drive_analyzer.apify import formatters
        return getattr(formatters, name)
    raise AttributeError(f"module 'drive_analyzer.apify' has no attribute {name!r}")


__all__ = [
    "ACTOR_ARTICLE_EXTRACTOR_SMART",
    "ACTOR_BING_SEARCH_SCRAPER",
    "ACTOR_RSS_XML_SCRAPER",
    "ACTOR_WEBSITE_CONTENT_CRAWLER",
    "ActorRunResult",
    "ApifyClient",
    "ArticleExtractorSmartInput",
    "BingSearchScraperInput",
    "CrawlingOptions",
    "RssXmlScraperInput",
    "UrlBatchResult",
    "format_article_extractor_smart_output",
    "format_bing_search_scraper_output",
    "format_dataset_items_to_text",
    "format_rss_xml_scraper_output",
]
