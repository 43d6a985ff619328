"""
Article scraper combining method lookup, HTTP fetching and extraction.

This module provides the primary interface for turning a URL into an Article:
it resolves the extraction method for the URL's domain, fetches the page and
dispatches the markup to the matching extractor.
"""

import ipaddress
from typing import Optional
from urllib.parse import urlparse

from ..config.logging import get_logger
from ..config.models import AutoMethod, ExtractionMethod, ManualMethod
from ..config.sites import AUTO, MethodRegistry
from .article import Article
from .errors import InvalidUrlError
from .extractor import ReadabilityExtractor
from .fetcher import HTTPFetcher
from .parser import SelectorExtractor


logger = get_logger(__name__)

WEB_SCHEMES = ("http", "https")

FORBIDDEN_HOST_CHARACTERS = frozenset(" \t\n\r#%/:<>?@[\\]^|")


def _is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def validate_url(url: str) -> None:
    """
    Check that *url* parses as an absolute URL.

    Raises:
        InvalidUrlError: If the URL is empty, has no scheme, does not parse, or
            is a web URL without a valid host
    """
    if not url or not isinstance(url, str):
        raise InvalidUrlError("URL is empty", {"url": url})

    try:
        parsed = urlparse(url)
        # Accessing the port validates it
        parsed.port
    except ValueError as e:
        raise InvalidUrlError(f"Invalid URL {url!r}: {e}", {"url": url}) from e

    if not parsed.scheme or not parsed.scheme[0].isalpha():
        raise InvalidUrlError(f"Invalid URL {url!r}: relative URL without a scheme", {"url": url})

    if parsed.scheme.lower() in WEB_SCHEMES:
        host = parsed.hostname
        if not host:
            raise InvalidUrlError(f"Invalid URL {url!r}: empty host", {"url": url})
        if not _is_ip_address(host) and any(c in FORBIDDEN_HOST_CHARACTERS for c in host):
            raise InvalidUrlError(f"Invalid URL {url!r}: invalid host {host!r}", {"url": url})


def extract_domain(url: str) -> Optional[str]:
    """
    Domain name of *url*, or None when the host is missing or an IP address.

    The host is lowercased by urlparse; no other normalization is applied.
    """
    hostname = urlparse(url).hostname
    if not hostname or _is_ip_address(hostname):
        return None
    return hostname


class ArticleScraper:
    """
    Turns a URL into an Article.

    The extraction method is decided once per URL from the domain registry;
    a failing method is never retried with the other one.
    """

    def __init__(
        self,
        registry: Optional[MethodRegistry] = None,
        fetcher: Optional[HTTPFetcher] = None,
        auto_extractor: Optional[ReadabilityExtractor] = None,
        manual_extractor: Optional[SelectorExtractor] = None
    ):
        """
        Initialize article scraper.

        Args:
            registry: Domain to extraction method mapping
            fetcher: HTTP fetcher, built with default user agents if omitted;
                a fetcher passed in is left open for the caller to close
            auto_extractor: Readability-based extractor
            manual_extractor: Selector-based extractor
        """
        self.registry = registry if registry is not None else MethodRegistry()
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or HTTPFetcher()
        self.auto_extractor = auto_extractor or ReadabilityExtractor()
        self.manual_extractor = manual_extractor or SelectorExtractor()

    def resolve_method(self, url: str) -> ExtractionMethod:
        """Extraction method for *url*; AutoMethod when the URL has no domain."""
        domain = extract_domain(url)
        if domain is None:
            return AUTO

        logger.info("Resolved domain", domain=domain, registered=domain in self.registry)
        return self.registry.lookup(domain)

    def fetch_article(self, url: str) -> Article:
        """
        Fetch and extract the article at *url*.

        Args:
            url: URL of the article

        Returns:
            Article

        Raises:
            InvalidUrlError: Before any network access if the URL is malformed
            FetchError: If every user agent failed
            ExtractionError: If the selected extractor failed
        """
        validate_url(url)

        method = self.resolve_method(url)
        method_name = "manual" if isinstance(method, ManualMethod) else "auto"
        logger.set_context(url=url, domain=extract_domain(url), method=method_name, component="article_scraper")

        with logger.timed_operation("fetch_article"):
            fetch_result = self.fetcher.fetch(url)
            return self.extract(url, fetch_result.content, method)

    def extract(self, url: str, html: str, method: ExtractionMethod) -> Article:
        """Dispatch *html* to the extractor for *method*."""
        if isinstance(method, ManualMethod):
            return self.manual_extractor.extract(url, html, method)
        if isinstance(method, AutoMethod):
            return self.auto_extractor.extract(url, html)
        raise TypeError(f"Unknown extraction method: {method!r}")

    def close(self) -> None:
        """Close the fetcher if this scraper built it."""
        if self._owns_fetcher:
            self.fetcher.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def fetch_article(registry: MethodRegistry, url: str, fetcher: Optional[HTTPFetcher] = None) -> Article:
    """Fetch and extract a single article with a throwaway scraper."""
    with ArticleScraper(registry, fetcher=fetcher) as scraper:
        return scraper.fetch_article(url)
