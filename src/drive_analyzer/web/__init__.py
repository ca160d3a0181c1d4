"""Direct web fetching."""

from drive_analyzer.web.fetcher import WebFetcher

__all__ = ["WebFetcher"]
