"""
stash: a web article extractor.

Fetches a single web page, extracts the article with either the readability
heuristic or per-domain CSS selector rules, and hands it to an output sink.
"""

__version__ = "0.1.0"
