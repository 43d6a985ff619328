"""
Output sinks for extracted articles.

This module provides the EPUB packaging sink and the remote submission sink.
"""

from .packager import EpubPackager, PackagingError
from .submitter import ArticleSubmitter, ExternalAPIError

__all__ = [
    "EpubPackager",
    "PackagingError",
    "ArticleSubmitter",
    "ExternalAPIError"
]
