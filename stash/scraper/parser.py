"""
Selector-based article extraction.

This module extracts an article from HTML using four CSS selectors configured
for the page's domain, one per field. Title, authors and date are optional and
only produce a warning when missing; the body is mandatory.
"""

from typing import Optional

import soupsieve
from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup

from ..config.logging import get_logger
from ..config.models import ManualMethod
from .article import Article
from .errors import ExtractionError


logger = get_logger(__name__)

FIELD_LABELS = {
    "title": "Title",
    "authors": "Authors",
    "date": "Published At",
}


class SelectorExtractor:
    """Extracts article fields with site-specific CSS selectors."""

    def __init__(self, features: str = "html.parser"):
        """
        Initialize selector extractor.

        Args:
            features: BeautifulSoup tree builder
        """
        self.features = features

    def extract(self, url: str, html: str, method: ManualMethod) -> Article:
        """
        Extract an article with the selectors of *method*.

        Args:
            url: Source URL, copied onto the article
            html: Raw HTML content
            method: Selectors for title, body, authors and date

        Returns:
            Article with a non-empty content field

        Raises:
            ExtractionError: PARSE_FAILED, INVALID_SELECTOR, CONTENT_NOT_FOUND
                or CONTENT_EMPTY
        """
        logger.set_context(component="selector_extractor", url=url, method="manual")

        soup = self._parse(html)
        # Every selector must compile before anything is extracted
        compiled = {name: self._compile(name, selector) for name, selector in method.selectors()}

        title = self._extract_text(soup, compiled["title"], "title")
        authors = self._extract_text(soup, compiled["authors"], "authors")
        published_at = self._extract_text(soup, compiled["date"], "date")

        body = compiled["body"].select_one(soup)
        if body is None:
            raise ExtractionError(
                "Could not find main content element.",
                "CONTENT_NOT_FOUND",
                {"url": url, "selector": method.body}
            )

        content = body.decode_contents()
        if content == "":
            raise ExtractionError(
                "Main content element is empty.",
                "CONTENT_EMPTY",
                {"url": url, "selector": method.body}
            )

        logger.log_extraction(title, content, authors, published_at)

        return Article(
            url=url,
            title=title,
            content=content,
            authors=authors,
            published_at=published_at
        )

    def _parse(self, html: str) -> BeautifulSoup:
        """Parse HTML into a document tree."""
        if not isinstance(html, str):
            raise ExtractionError(
                f"HTML input must be string, got {type(html).__name__}",
                "PARSE_FAILED",
                {"input_type": type(html).__name__}
            )

        try:
            return BeautifulSoup(html, self.features)
        except ParserRejectedMarkup as e:
            raise ExtractionError(
                f"Failed to parse HTML content: {e}",
                "PARSE_FAILED",
                {"html_length": len(html), "html_preview": html[:200]}
            ) from e

    def _compile(self, field_name: str, selector: str) -> soupsieve.SoupSieve:
        """Compile one selector, naming the field on failure."""
        if not isinstance(selector, str) or not selector.strip():
            raise ExtractionError(
                f"Selector for {field_name} is empty",
                "INVALID_SELECTOR",
                {"field": field_name, "selector": selector}
            )

        try:
            return soupsieve.compile(selector)
        except soupsieve.SelectorSyntaxError as e:
            raise ExtractionError(
                f"Invalid selector for {field_name}: {selector!r}: {e}",
                "INVALID_SELECTOR",
                {"field": field_name, "selector": selector}
            ) from e

    def _extract_text(self, soup: BeautifulSoup, compiled: soupsieve.SoupSieve, field_name: str) -> str:
        """Concatenated descendant text of the first match, or ''."""
        element: Optional[Tag] = compiled.select_one(soup)
        if element is None:
            logger.warning(f"{FIELD_LABELS[field_name]} element not found.", field=field_name)
            return ""
        return element.get_text()


def extract_manual(
    url: str,
    html: str,
    title_sel: str,
    body_sel: str,
    authors_sel: str,
    date_sel: str
) -> Article:
    """Extract an article from *html* with four explicit selectors."""
    method = ManualMethod(title=title_sel, body=body_sel, authors=authors_sel, date=date_sel)
    return SelectorExtractor().extract(url, html, method)
