"""SSRF-safe direct URL fetcher, used when URLs are not sent through Apify."""

from __future__ import annotations

import ipaddress
import logging
import re
import socket
from urllib.parse import urlparse

from drive_analyzer.apify.models import UrlBatchResult
from drive_analyzer.exceptions import WebFetchError

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = {"http", "https"}
_USER_AGENT = "Mozilla/5.0 (compatible; DriveAnalyzer/1.0)"
PREVIEW_LENGTH = 500

_BLOCKED_NETWORKS = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]


def _validate_url(url: str) -> tuple[bool, str | None]:
    """Check a URL is http(s) and does not resolve to a private address."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False, "Invalid URL format"

    if parsed.scheme not in _ALLOWED_SCHEMES:
        return False, f"Blocked URL scheme: {parsed.scheme}. Only http/https allowed."

    hostname = parsed.hostname
    if not hostname:
        return False, "URL has no hostname"

    if hostname in ("localhost", "0.0.0.0"):
        return False, "Blocked: localhost access not allowed"

    try:
        for addr_info in socket.getaddrinfo(hostname, None):
            ip = ipaddress.ip_address(addr_info[4][0])
            if any(ip in network for network in _BLOCKED_NETWORKS):
                return False, f"Blocked: URL resolves to private/internal IP ({ip})"
    except socket.gaierror:
        return False, f"Cannot resolve hostname: {hostname}"

    return True, None


def _page_title(html: str) -> str:
    from bs4 import BeautifulSoup

    soup = BeautifulSoup(html, "html.parser")
    if soup.title and soup.title.string:
        return re.sub(r"\s+", " ", soup.title.string).strip()
    return ""


def _extract_text(html: str, content_type: str) -> str:
    from bs4 import BeautifulSoup

    if "html" not in content_type and not html.strip().startswith("<"):
        return html
    soup = BeautifulSoup(html, "html.parser")
    for element in soup(["script", "style", "nav", "footer", "header"]):
        element.decompose()
    return soup.get_text(separator="\n", strip=True)


class WebFetcher:
    """SSRF-safe URL fetcher with text extraction.

    Args:
        max_response_bytes: Maximum response size in bytes (default 1MB).
        max_redirects: Maximum number of redirects to follow (default 5).
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        max_response_bytes: int = 1_048_576,
        max_redirects: int = 5,
        timeout: float = 10.0,
        transport=None,
    ):
        try:
            import httpx  # noqa: F401
            import bs4  # noqa: F401
        except ImportError:
            raise ImportError(
                "httpx and beautifulsoup4 are required for WebFetcher. "
                "Install with: pip install drive-analyzer[web]"
            )
        self.max_response_bytes = max_response_bytes
        self.max_redirects = max_redirects
        self.timeout = timeout
        self._transport = transport

    def _headers(self, url: str) -> dict:
        return {
            "User-Agent": _USER_AGENT,
            "Accept": "text/html",
            "Host": urlparse(url).hostname or "",
        }

    def _next_url(self, response) -> str | None:
        """Return the validated redirect target, or None when not redirected."""
        if not (response.is_redirect and response.has_redirect_location):
            return None
        if response.next_request is None:
            return None
        redirect_url = str(response.next_request.url)
        safe, error = _validate_url(redirect_url)
        if not safe:
            raise WebFetchError(f"Redirect blocked: {error}")
        return redirect_url

    def _finish(self, response, max_length: int) -> dict:
        if response is None:
            raise WebFetchError("No response received")
        if len(response.content) > self.max_response_bytes:
            raise WebFetchError(f"Response too large (>{self.max_response_bytes} bytes)")
        response.raise_for_status()

        content_type = response.headers.get("content-type", "")
        raw_text = response.text
        extracted = _extract_text(raw_text, content_type)[:max_length]
        return {
            "url": str(response.url),
            "title": _page_title(raw_text) if "html" in content_type else "",
            "content": extracted,
            "content_length": len(extracted),
            "status_code": response.status_code,
            "content_type": content_type,
        }

    def fetch_sync(self, url: str, max_length: int = 50_000) -> dict:
        """Fetch a URL and return its title and cleaned text."""
        import httpx

        safe, error = _validate_url(url)
        if not safe:
            raise WebFetchError(error)

        try:
            with httpx.Client(
                timeout=self.timeout, follow_redirects=False, transport=self._transport
            ) as client:
                current_url = url
                response = None
                for _ in range(self.max_redirects):
                    response = client.get(current_url, headers=self._headers(current_url))
                    next_url = self._next_url(response)
                    if next_url is None:
                        break
                    current_url = next_url
                return self._finish(response, max_length)
        except WebFetchError:
            raise
        except Exception as e:
            raise WebFetchError(f"Fetch failed: {e}") from e

    async def fetch(self, url: str, max_length: int = 50_000) -> dict:
        """Async version of fetch_sync."""
        import httpx

        safe, error = _validate_url(url)
        if not safe:
            raise WebFetchError(error)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=False, transport=self._transport
            ) as client:
                current_url = url
                response = None
                for _ in range(self.max_redirects):
                    response = await client.get(current_url, headers=self._headers(current_url))
                    next_url = self._next_url(response)
                    if next_url is None:
                        break
                    current_url = next_url
                return self._finish(response, max_length)
        except WebFetchError:
            raise
        except Exception as e:
            raise WebFetchError(f"Fetch failed: {e}") from e

    def scrape_urls(self, urls: list[str]) -> UrlBatchResult:
        """Fetch each URL directly and summarize it with a title and preview."""
        combined = ""
        failed: list[str] = []
        for url in urls:
            try:
                page = self.fetch_sync(url)
            except WebFetchError as e:
                logger.warning(f"Failed to scrape {url}: {e}")
                failed.append(url)
                combined += f"### Failed to access: {url}\nError: {e}\n\n"
                continue

            combined += f"### Content retrieved from: {url}\n\n"
            if page["title"]:
                combined += f"Page Title: {page['title']}\n\n"
            preview = re.sub(r"\s+", " ", page["content"]).strip()[:PREVIEW_LENGTH]
            combined += f"Content Preview: {preview}...\n\n"
        return UrlBatchResult(combined_text=combined, failed_urls=failed)
