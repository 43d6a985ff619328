"""
Exceptions raised while turning a URL into an article.

Each exception carries an ``error_type`` code and a ``stage`` so callers can
tell a network failure from a broken selector rule without parsing messages.
"""

from typing import Any, Dict, Optional


class ScraperError(Exception):
    """Base exception for scraping errors."""

    stage = "scrape"

    def __init__(self, message: str, error_type: str = "SCRAPER_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_type = error_type
        self.details = details or {}


class InvalidUrlError(ScraperError):
    """The URL could not be parsed; nothing was fetched."""

    stage = "url"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "INVALID_URL", details)


class FetchError(ScraperError):
    """Every configured user agent failed to fetch the page."""

    stage = "network"

    def __init__(self, message: str, error_type: str = "ALL_USER_AGENTS_FAILED", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_type, details)


class ExtractionError(ScraperError):
    """
    The page was fetched but no article could be extracted from it.

    Error types:
        PARSE_FAILED, INVALID_SELECTOR, CONTENT_NOT_FOUND, CONTENT_EMPTY
            raised by the selector-based extractor
        READABILITY_FAILED, NO_CONTENT
            raised by the readability extractor
    """

    stage = "extraction"

    def __init__(self, message: str, error_type: str = "EXTRACTION_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_type, details)
