"""Format Apify actor dataset items into prompt-ready markdown text.

These are pure functions: no network calls, no logging. Their output is
stored inside saved analyses, so the templates are kept stable.
"""

from __future__ import annotations

import re
from datetime import timezone
from email.utils import format_datetime

import dateutil.parser
from bs4 import BeautifulSoup

NO_ARTICLE_CONTENT = "No article content was extracted."
NO_BING_RESULTS = "No Bing search results were found."
NO_FEED_ITEMS = "No RSS/XML feed items were found."
NO_WEBSITE_CONTENT = "No website content was found or crawled."

MAX_FEED_CONTENT_LENGTH = 300


def format_date(value) -> str:
    """Render a date as RFC 1123 GMT, or return it unchanged if unparseable."""
    raw = str(value)
    try:
        parsed = dateutil.parser.parse(raw)
    except (ValueError, OverflowError, TypeError):
        return raw
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return format_datetime(parsed.astimezone(timezone.utc), usegmt=True)


def strip_html(fragment: str | None) -> str:
    """Drop tags and collapse whitespace."""
    if not fragment:
        return ""
    text = BeautifulSoup(fragment, "html.parser").get_text()
    return re.sub(r"\s+", " ", text).strip()


def _truncate(text: str, limit: int = MAX_FEED_CONTENT_LENGTH) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def _join(value) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value if v)
    return str(value)


# ---- Smart article extractor ----

def format_article_extractor_smart_output(items: list[dict] | None) -> str:
    if not items:
        return NO_ARTICLE_CONTENT

    if len(items) == 1:
        text = "The following is an extracted article:\n\n"
    else:
        text = "The following are extracted articles:\n\n"

    text += "\n".join(_format_article(item) for item in items)
    return text


def _format_article(item: dict) -> str:
    url = item.get("url") or item.get("loadedUrl")
    title = item.get("title") or (f"Article from {url}" if url else "Untitled Article")

    out = "--- Start of Extracted Article ---\n\n"
    out += f"## Title: {title}\n\n"

    if item.get("text"):
        out += f"**Full Text:**\n{item['text']}\n\n"
    elif item.get("markdown"):
        out += f"**Full Text (Markdown):**\n{item['markdown']}\n\n"
    else:
        out += "No main text or markdown content found in the extracted article.\n\n"

    meta = ""
    author = item.get("author") or item.get("authors")
    if author:
        meta += f"**Author(s):** {_join(author)}\n"
    date = item.get("date") or item.get("datePublished")
    if date:
        meta += f"**Publication Date:** {format_date(date)}\n"
    if item.get("publisher"):
        meta += f"**Publisher:** {item['publisher']}\n"
    if item.get("description"):
        meta += f"**Description:** {item['description']}\n"
    keywords = item.get("keywords")
    if keywords:
        meta += f"**Keywords:** {_join(keywords)}\n"
    if url:
        meta += f"**Source URL:** {url}\n"
    if meta:
        out += meta + "\n"

    out += "--- End of Extracted Article ---\n"
    return out


# ---- Bing search scraper ----

def format_bing_search_scraper_output(items: list[dict] | None) -> str:
    if not items:
        return NO_BING_RESULTS

    text = "The following are Bing search results:\n\n"
    text += "--- Start of Bing Search Results ---\n\n"

    for index, batch in enumerate(items):
        if index > 0:
            text += "---\n\n"

        results = batch.get("results") or batch.get("organicResults") or []
        query = batch.get("query") or _query_from_context(results)
        if query:
            text += f'## Results for query: "{query}"\n\n'
        elif len(items) > 1:
            text += f"## Result Batch {index + 1}\n\n"

        if batch.get("error"):
            text += f"**Error for this query/batch:** {batch['error']}\n\n"
        elif not results:
            text += "No results found for this query/batch.\n\n"
        else:
            for position, result in enumerate(results, start=1):
                text += _format_bing_result(position, result)

    text += "--- End of Bing Search Results ---\n"
    return text.strip()


def _query_from_context(results: list[dict]) -> str | None:
    for result in results:
        original = (result.get("queryContext") or {}).get("originalQuery")
        if original:
            return original
    return None


def _format_bing_result(position: int, result: dict) -> str:
    out = f"### {position}. {result.get('title') or 'No Title Provided'}\n"
    link = result.get("url") or result.get("link")
    if link:
        out += f"**Link:** {link}\n"
    if result.get("displayedUrl"):
        out += f"**Displayed URL:** {result['displayedUrl']}\n"
    snippet = result.get("snippet") or result.get("description")
    if snippet:
        out += f"**Snippet:**\n{snippet}\n"
    return out + "\n"


# ---- RSS / XML scraper ----

def format_rss_xml_scraper_output(items: list[dict] | None) -> str:
    if not items:
        return NO_FEED_ITEMS

    text = "The following are items from RSS/XML feeds:\n\n"
    text += "--- Start of RSS/XML Feed Items ---\n\n"

    current_feed = None
    for position, item in enumerate(items, start=1):
        feed_info = item.get("feedInfo")
        if feed_info:
            feed_key = (feed_info.get("title"), feed_info.get("link"))
            if feed_key != current_feed:
                current_feed = feed_key
                text += _format_feed_header(feed_info)
        text += _format_feed_item(position, item)

    text += "--- End of RSS/XML Feed Items ---\n"
    return text.strip()


def _format_feed_header(feed_info: dict) -> str:
    out = f"## Feed: {feed_info.get('title') or 'Untitled Feed'}\n"
    if feed_info.get("link"):
        out += f"**Source URL:** {feed_info['link']}\n"
    if feed_info.get("description"):
        out += f"**Feed Description:** {feed_info['description']}\n"
    return out + "\n"


def _format_feed_item(position: int, item: dict) -> str:
    out = f"### {position}. {item.get('title') or 'No Title Provided'}\n"
    if item.get("link"):
        out += f"**Item Link:** {item['link']}\n"
    published = item.get("pubDate") or item.get("isoDate")
    if published:
        out += f"**Published:** {format_date(published)}\n"
    creator = item.get("creator") or item.get("author")
    if creator:
        out += f"**Author/Creator:** {creator}\n"
    if item.get("contentSnippet"):
        out += f"**Snippet:**\n{item['contentSnippet']}\n"
    elif item.get("content"):
        out += f"**Content Extract:**\n{_truncate(strip_html(item['content']))}\n"
    categories = item.get("categories")
    if categories:
        out += f"**Categories:** {_join(categories)}\n"
    return out + "\n"


# ---- Website content crawler ----

def format_dataset_items_to_text(items: list[dict] | None) -> str:
    if not items:
        return NO_WEBSITE_CONTENT

    text = "The following text contains crawled content from one or more web pages:\n\n"
    text += "--- Start of Website Content Analysis ---\n\n"

    for index, item in enumerate(items):
        if index > 0:
            text += "---\n\n"
        text += f"## Page {index + 1}: {item.get('url') or 'Unknown URL'}\n\n"
        if item.get("title"):
            text += f"### Title: {item['title']}\n\n"
        if item.get("markdown"):
            text += f"**Content (Markdown):**\n{item['markdown']}\n\n"
        elif item.get("text"):
            text += f"**Content (Text):**\n{item['text']}\n\n"
        else:
            text += "No textual content extracted for this page.\n\n"

    text += "--- End of Website Content Analysis ---\n"
    return text.strip()
