"""
EPUB packaging sink.

Writes an extracted article as a single-chapter EPUB named after the slug of
its title. The publish date is parsed on a best-effort basis.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import dateparser
from ebooklib import epub
from lxml import etree
from slugify import slugify

from ..config.logging import get_logger
from ..scraper.article import Article


logger = get_logger(__name__)

DEFAULT_FILENAME = "article"


class PackagingError(Exception):
    """Custom exception for EPUB packaging errors."""

    def __init__(self, message: str, error_type: str = "PACKAGING_ERROR", details: Optional[dict] = None):
        super().__init__(message)
        self.error_type = error_type
        self.details = details or {}


def parse_published_at(published_at: str) -> Optional[datetime]:
    """Parse a free-form publish date, returning None when it cannot be understood."""
    if not published_at or not published_at.strip():
        return None
    return dateparser.parse(published_at.strip())


class EpubPackager:
    """Builds EPUB files from articles."""

    def __init__(self, output_dir: Union[str, Path], language: str = "en"):
        """
        Initialize EPUB packager.

        Args:
            output_dir: Directory receiving the EPUB files; '~' is expanded
            language: Language code stored in the book metadata
        """
        self.output_dir = Path(output_dir).expanduser()
        self.language = language

    def output_path(self, article: Article) -> Path:
        """File the article will be written to."""
        filename = slugify(article.title) or DEFAULT_FILENAME
        return self.output_dir / f"{filename}.epub"

    def build_book(self, article: Article) -> epub.EpubBook:
        """Assemble the in-memory EPUB for *article*."""
        book = epub.EpubBook()
        book.set_identifier(article.url)
        book.set_title(article.title)
        book.set_language(self.language)
        if article.authors:
            book.add_author(article.authors)
        book.add_metadata("DC", "description", article.url)

        published = parse_published_at(article.published_at)
        if published is not None:
            book.add_metadata("DC", "date", published.date().isoformat())
        elif article.published_at:
            logger.warning("Failed to parse published datetime", published_at=article.published_at)

        chapter = epub.EpubHtml(title=article.title or DEFAULT_FILENAME, file_name="main.xhtml", lang=self.language)
        chapter.content = article.content
        book.add_item(chapter)

        book.toc = (chapter,)
        book.add_item(epub.EpubNcx())
        book.add_item(epub.EpubNav())
        book.spine = ["nav", chapter]

        return book

    def package(self, article: Article) -> Path:
        """
        Write *article* to an EPUB file.

        Returns:
            Path of the written file

        Raises:
            PackagingError: If the book cannot be built or written
        """
        path = self.output_path(article)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            book = self.build_book(article)
            epub.write_epub(str(path), book, {})
        except (OSError, ValueError, etree.LxmlError) as e:
            raise PackagingError(
                f"Failed to write EPUB {path}: {e}",
                details={"path": str(path), "url": article.url}
            ) from e

        logger.info("EPUB written", path=str(path))
        return path
