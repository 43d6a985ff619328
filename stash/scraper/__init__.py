"""
Article scraper module for stash.

This module provides the extraction engine: HTTP fetching with user agent
fallback, readability-based extraction, selector-based extraction for
configured domains, and the scraper that picks between them.
"""

# Lazy imports so importing the errors does not pull in lxml and requests
__all__ = [
    'ArticleScraper',
    'fetch_article',
    'Article',
    'HTTPFetcher',
    'FetchResult',
    'ErrorLogRecorder',
    'ReadabilityExtractor',
    'SelectorExtractor',
    'ScraperError',
    'InvalidUrlError',
    'FetchError',
    'ExtractionError'
]

_LOCATIONS = {
    'ArticleScraper': 'scraper',
    'fetch_article': 'scraper',
    'Article': 'article',
    'HTTPFetcher': 'fetcher',
    'FetchResult': 'fetcher',
    'ErrorLogRecorder': 'fetcher',
    'ReadabilityExtractor': 'extractor',
    'SelectorExtractor': 'parser',
    'ScraperError': 'errors',
    'InvalidUrlError': 'errors',
    'FetchError': 'errors',
    'ExtractionError': 'errors'
}


def __getattr__(name):
    if name in _LOCATIONS:
        from importlib import import_module
        module = import_module(f".{_LOCATIONS[name]}", __name__)
        return getattr(module, name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
