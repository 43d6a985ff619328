"""
Command line entry point for stash.

Fetches one article, prints a preview, asks for confirmation and hands the
article to the configured sink (EPUB packaging or remote submission).
"""

import argparse
import sys
from typing import List, Optional, TextIO

from .config.logging import configure_logging, get_logger
from .config.manager import ConfigManager
from .config.models import LOG_LEVELS, SINKS, SystemConfig
from .config.validation import ConfigurationError
from .postprocess.packager import EpubPackager, PackagingError
from .postprocess.submitter import ArticleSubmitter, ExternalAPIError
from .scraper.article import Article
from .scraper.errors import ScraperError
from .scraper.fetcher import ErrorLogRecorder, HTTPFetcher
from .scraper.scraper import ArticleScraper


logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stash",
        description=(
            "A web article extractor. Uses automatic or manually-defined-rule "
            "extraction, then generates an epub from the extracted content."
        )
    )
    parser.add_argument("url", metavar="URL", help="Url to extract.")
    parser.add_argument(
        "--config-dir",
        dest="config_dir",
        default=None,
        help="Directory holding config.toml and sites.toml"
    )
    parser.add_argument(
        "--sink",
        choices=SINKS,
        default=None,
        help="Where to send the article (overrides config.toml)"
    )
    parser.add_argument(
        "--yes", "-y",
        dest="assume_yes",
        action="store_true",
        default=False,
        help="Skip the confirmation prompt"
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=None,
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level"
    )
    return parser


def format_preview(article: Article) -> str:
    """Human-readable summary of the extracted fields."""
    return "\n".join([
        f"Title: {article.title}",
        f"Authors: {article.authors}",
        f"Published: {article.published_at}",
        f"Content: {article.content}",
    ])


def ask_confirm(question: str, stdin: TextIO, stdout: TextIO) -> bool:
    """True only if the answer starts with 'y' or 'Y'."""
    print(question, file=stdout, flush=True)
    answer = stdin.readline()
    return answer[:1] in ("y", "Y")


def run_sink(article: Article, config: SystemConfig, stdout: TextIO) -> None:
    """Hand *article* to the configured sink and report the outcome."""
    if config.sink == "submit":
        submitter = ArticleSubmitter(config.external_api_config)
        try:
            submitter.submit(article)
        finally:
            submitter.close()
        print(f"Submitted to {config.external_api_config.endpoint_url}", file=stdout)
        return

    path = EpubPackager(config.output_dir).package(article)
    print(path, file=stdout)


def main(
    argv: Optional[List[str]] = None,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None
) -> int:
    """
    Run the command line tool.

    Returns:
        Process exit code: 0 on success or when the user declines, 1 on error
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    args = build_parser().parse_args(argv)

    try:
        manager = ConfigManager(args.config_dir)
        config = manager.load_configuration()
        if args.sink:
            config.sink = args.sink
        if args.log_level:
            config.log_level = args.log_level
        configure_logging(config.log_level, config.enable_structured_logging)

        registry = manager.load_registry()

        fetcher = HTTPFetcher(
            user_agents=config.user_agents,
            failure_recorder=ErrorLogRecorder(config.error_log_path)
        )
        try:
            article = ArticleScraper(registry, fetcher=fetcher).fetch_article(args.url)
        finally:
            fetcher.close()
        logger.info("Article extracted", title=article.title, content_length=len(article.content))

        print(format_preview(article), file=stdout)
        if not args.assume_yes and not ask_confirm("Ok? [y/N]", stdin, stdout):
            return 0

        run_sink(article, config, stdout)
        return 0

    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=stderr)
    except ScraperError as e:
        print(f"Error ({e.stage}, {e.error_type}): {e}", file=stderr)
        if e.stage == "network":
            print(f"Response content, if any, was written to {config.error_log_path}.", file=stderr)
    except (PackagingError, ExternalAPIError) as e:
        print(f"Output error ({e.error_type}): {e}", file=stderr)

    return 1
