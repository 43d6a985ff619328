"""
Readability-based article extraction.

This module extracts an article without any per-site configuration: the body
comes from readability-lxml, while title, byline and publish time are read
from the page metadata (JSON-LD, Open Graph and ``<meta>`` tags) with
BeautifulSoup, falling back to common byline markup.
"""

import json
from typing import Any, Dict, Optional

from bs4 import BeautifulSoup, Tag
from readability import Document
from readability.readability import Unparseable

from ..config.logging import get_logger
from .article import Article
from .errors import ExtractionError


logger = get_logger(__name__)

NO_TITLE = "[no-title]"

ARTICLE_TYPES = frozenset({
    "article",
    "newsarticle",
    "blogposting",
    "techarticle",
    "reportage",
    "scholarlyarticle",
    "liveblogposting",
})

AUTHOR_META = (
    ("name", "author"),
    ("property", "article:author"),
    ("name", "article:author"),
    ("name", "byl"),
    ("name", "dc.creator"),
)

DATE_META = (
    ("property", "article:published_time"),
    ("name", "article:published_time"),
    ("itemprop", "datePublished"),
    ("name", "pubdate"),
    ("name", "publishdate"),
    ("name", "date"),
    ("name", "dc.date"),
)

BYLINE_SELECTOR = "[rel~=author], [itemprop~=author], .byline"


def _meta_content(soup: BeautifulSoup, attr: str, expected: str) -> Optional[str]:
    """Content of the first matching <meta> tag, attribute values compared case-insensitively."""
    for tag in soup.find_all("meta"):
        if not isinstance(tag, Tag):
            continue
        value = tag.get(attr)
        if isinstance(value, str) and value.lower() == expected.lower():
            content = (tag.get("content") or "").strip()
            if content:
                return content
    return None


def _jsonld_article(soup: BeautifulSoup) -> Dict[str, Any]:
    """First Article-like JSON-LD node on the page, or {}."""
    for script in soup.find_all("script", type="application/ld+json"):
        try:
            raw = json.loads(script.string or "")
        except (json.JSONDecodeError, TypeError):
            continue

        if isinstance(raw, dict):
            nodes = raw.get("@graph", [raw])
        elif isinstance(raw, list):
            nodes = raw
        else:
            continue

        for node in nodes:
            if not isinstance(node, dict):
                continue
            node_type = node.get("@type", "")
            types = node_type if isinstance(node_type, list) else [node_type]
            if any(str(t).lower() in ARTICLE_TYPES for t in types):
                return node

    return {}


def _jsonld_author(node: Dict[str, Any]) -> Optional[str]:
    author = node.get("author")
    if isinstance(author, dict):
        author = [author]
    if isinstance(author, list):
        names = []
        for entry in author:
            if isinstance(entry, dict) and entry.get("name"):
                names.append(str(entry["name"]).strip())
            elif isinstance(entry, str):
                names.append(entry.strip())
        return ", ".join(name for name in names if name) or None
    if isinstance(author, str):
        return author.strip() or None
    return None


class ReadabilityExtractor:
    """Extracts articles with the readability heuristic."""

    def extract(self, url: str, html: str) -> Article:
        """
        Extract an article from raw HTML.

        Args:
            url: Source URL, used to resolve relative links in the content
            html: Raw HTML content

        Returns:
            Article; authors and published_at are '' when the page has no markers

        Raises:
            ExtractionError: READABILITY_FAILED or NO_CONTENT
        """
        logger.set_context(component="readability_extractor", url=url, method="auto")

        if not isinstance(html, str) or not html.strip():
            raise ExtractionError("Empty HTML input", "NO_CONTENT", {"url": url})

        document = Document(html, url=url)
        try:
            content = document.summary(html_partial=True)
            readability_title = document.title()
        except Unparseable as e:
            raise ExtractionError(
                f"Readability could not parse the page: {e}",
                "READABILITY_FAILED",
                {"url": url}
            ) from e

        if not BeautifulSoup(content, "html.parser").get_text().strip():
            raise ExtractionError(
                "Readability found no article content.",
                "NO_CONTENT",
                {"url": url}
            )

        soup = BeautifulSoup(html, "html.parser")
        jsonld = _jsonld_article(soup)

        title = self._extract_title(soup, jsonld, readability_title)
        authors = self._extract_authors(soup, jsonld)
        published_at = self._extract_published_at(soup, jsonld)

        if not title:
            logger.warning("Title not found.", field="title")
        if not authors:
            logger.warning("Authors not found.", field="authors")
        if not published_at:
            logger.warning("Published At not found.", field="date")

        logger.log_extraction(title, content, authors, published_at)

        return Article(
            url=url,
            title=title,
            content=content,
            authors=authors,
            published_at=published_at
        )

    def _extract_title(self, soup: BeautifulSoup, jsonld: Dict[str, Any], readability_title: str) -> str:
        headline = jsonld.get("headline")
        if isinstance(headline, str) and headline.strip():
            return headline.strip()

        og_title = _meta_content(soup, "property", "og:title")
        if og_title:
            return og_title

        if readability_title and readability_title != NO_TITLE:
            return readability_title.strip()
        return ""

    def _extract_authors(self, soup: BeautifulSoup, jsonld: Dict[str, Any]) -> str:
        if author := _jsonld_author(jsonld):
            return author

        for attr, expected in AUTHOR_META:
            if author := _meta_content(soup, attr, expected):
                return author

        for byline in soup.select(BYLINE_SELECTOR):
            text = " ".join(byline.get_text().split())
            if text:
                return text

        return ""

    def _extract_published_at(self, soup: BeautifulSoup, jsonld: Dict[str, Any]) -> str:
        published = jsonld.get("datePublished")
        if isinstance(published, str) and published.strip():
            return published.strip()

        for attr, expected in DATE_META:
            if published := _meta_content(soup, attr, expected):
                return published

        return ""


def extract_auto(url: str, html: str) -> Article:
    """Extract an article from *html* with the readability heuristic."""
    return ReadabilityExtractor().extract(url, html)
