"""
HTTP client that fetches a page, falling back across client identities.

Some sites block certain clients, so the fetcher tries each configured user
agent in order and returns the first successful response. Error pages are
written to a diagnostic log through a small recorder interface.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, Union

import requests

from ..config.defaults import DEFAULT_USER_AGENTS
from ..config.logging import get_logger
from ..config.timeouts import TimeoutManager, get_timeout_manager
from .errors import FetchError


logger = get_logger(__name__)

# Used when the Content-Type header names no charset
DEFAULT_ENCODING = "utf-8"


@dataclass
class FetchResult:
    """Result of a successful HTTP fetch."""

    url: str
    content: str
    status_code: int
    user_agent: str
    final_url: Optional[str] = None
    encoding: Optional[str] = None
    fetch_time_ms: int = 0
    attempts: int = 1


class FailureRecorder(Protocol):
    """Side channel receiving the body of every non-success response."""

    def record_failure(self, user_agent: str, status_code: int, body: str) -> None:
        ...


class NullFailureRecorder:
    """Discards failure bodies."""

    def record_failure(self, user_agent: str, status_code: int, body: str) -> None:
        pass


class ErrorLogRecorder:
    """
    Writes the body of the latest failed response to a file.

    Writing is best effort: an unwritable location is logged and ignored so the
    fetch failure itself is what reaches the caller.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def record_failure(self, user_agent: str, status_code: int, body: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(body, encoding="utf-8")
        except OSError as e:
            logger.warning(
                "Unable to write response body to error log",
                path=str(self.path),
                user_agent=user_agent,
                status_code=status_code,
                error=str(e)
            )
            return

        logger.info(
            "Response body written to error log",
            path=str(self.path),
            user_agent=user_agent,
            status_code=status_code
        )


class HTTPFetcher:
    """
    HTTP client trying an ordered list of user agents.

    Exactly one GET is issued per user agent. Attempts are sequential and the
    loop stops at the first 2xx response.
    """

    def __init__(
        self,
        user_agents: Sequence[str] = DEFAULT_USER_AGENTS,
        failure_recorder: Optional[FailureRecorder] = None,
        timeout_manager: Optional[TimeoutManager] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize HTTP fetcher.

        Args:
            user_agents: Client identities, tried in order
            failure_recorder: Receives bodies of non-success responses
            timeout_manager: Source of (connect, read) timeouts
            session: Optional pre-built requests session
        """
        if not user_agents:
            raise ValueError("At least one user agent is required")

        self.user_agents = tuple(user_agents)
        self.failure_recorder = failure_recorder or NullFailureRecorder()
        self.timeout_manager = timeout_manager or get_timeout_manager()
        self.session = session or requests.Session()

    def _get_headers(self, user_agent: str) -> Dict[str, str]:
        """Headers sent with every attempt."""
        return {
            "User-Agent": user_agent,
            "Accept": (
                "text/html,application/xhtml+xml,application/xml;"
                "q=0.9,*/*;q=0.8"
            ),
            "Accept-Language": "en-US,en;q=0.9",
        }

    def _decode(self, response: requests.Response) -> str:
        """Response body as text, read as UTF-8 unless the server named a charset."""
        content_type = response.headers.get("Content-Type", "")
        if "charset" not in content_type.lower():
            response.encoding = DEFAULT_ENCODING
        return response.text

    def fetch(self, url: str) -> FetchResult:
        """
        Fetch a page, trying each user agent until one succeeds.

        Args:
            url: URL to fetch

        Returns:
            FetchResult for the first 2xx response

        Raises:
            FetchError: If every user agent failed
        """
        start_time = time.time()
        attempts: List[Dict[str, object]] = []

        logger.set_context(component="http_fetcher", url=url)
        logger.info("Starting HTTP fetch", user_agents=len(self.user_agents))

        for user_agent in self.user_agents:
            attempt_start = time.time()

            try:
                response = self.session.get(
                    url,
                    headers=self._get_headers(user_agent),
                    timeout=self.timeout_manager.get_http_timeout("fetch"),
                    allow_redirects=True
                )
            except requests.exceptions.RequestException as e:
                logger.warning(
                    "HTTP request failed",
                    user_agent=user_agent,
                    error=str(e),
                    error_type=type(e).__name__
                )
                attempts.append({"user_agent": user_agent, "error": str(e)})
                continue

            attempt_time_ms = int((time.time() - attempt_start) * 1000)
            success = 200 <= response.status_code < 300

            logger.log_fetch_attempt(url, user_agent, response.status_code, attempt_time_ms, success)

            if success:
                content = self._decode(response)
                fetch_time_ms = int((time.time() - start_time) * 1000)
                logger.info(
                    "HTTP fetch completed successfully",
                    status_code=response.status_code,
                    content_length=len(content),
                    user_agent=user_agent,
                    attempts=len(attempts) + 1,
                    total_time_ms=fetch_time_ms
                )

                return FetchResult(
                    url=url,
                    content=content,
                    status_code=response.status_code,
                    user_agent=user_agent,
                    final_url=response.url,
                    encoding=response.encoding,
                    fetch_time_ms=fetch_time_ms,
                    attempts=len(attempts) + 1
                )

            logger.warning(
                "HTTP request returned an error status",
                status_code=response.status_code,
                reason=response.reason,
                user_agent=user_agent
            )
            self.failure_recorder.record_failure(user_agent, response.status_code, self._decode(response))
            attempts.append({"user_agent": user_agent, "status_code": response.status_code})

        fetch_time_ms = int((time.time() - start_time) * 1000)
        logger.error(
            "HTTP fetch failed for all user agents",
            attempts=attempts,
            total_time_ms=fetch_time_ms
        )

        raise FetchError(
            f"All user agents failed to fetch {url}",
            details={"url": url, "attempts": attempts}
        )

    def close(self) -> None:
        """Close the HTTP session."""
        if self.session:
            self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
