"""
Remote submission sink.

POSTs the extracted article as JSON to a configured endpoint, retrying
transient failures with exponential backoff.
"""

import time
from typing import Any, Dict, Optional

import requests

from ..config.logging import get_logger
from ..config.models import ExternalAPIConfig
from ..config.timeouts import TimeoutManager, get_timeout_manager
from ..scraper.article import Article


logger = get_logger(__name__)

ACCEPTED_STATUS_CODES = (200, 201, 202)


class ExternalAPIError(Exception):
    """Custom exception for external API errors."""

    def __init__(self, message: str, error_type: str = "API_ERROR", details: Optional[Dict] = None):
        super().__init__(message)
        self.error_type = error_type
        self.details = details or {}


class ArticleSubmitter:
    """Submits articles to a remote endpoint."""

    def __init__(
        self,
        external_api_config: ExternalAPIConfig,
        timeout_manager: Optional[TimeoutManager] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize article submitter.

        Args:
            external_api_config: Endpoint, credentials and retry settings
            timeout_manager: Source of (connect, read) timeouts
            session: Optional pre-built requests session
        """
        self.external_api_config = external_api_config
        self.timeout_manager = timeout_manager or get_timeout_manager()
        self.session = session or requests.Session()

    def _calculate_retry_delay(self, attempt: int) -> float:
        return self.timeout_manager.get_retry_delay(attempt, self.external_api_config.retry_delay_seconds)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.external_api_config.auth_header:
            headers["Authorization"] = self.external_api_config.auth_header
        return headers

    def submit(self, article: Article) -> bool:
        """
        POST *article* to the configured endpoint with retry logic.

        Returns:
            True once the endpoint accepted the article

        Raises:
            ExternalAPIError: If no endpoint is configured or every attempt failed
        """
        if not self.external_api_config.endpoint_url:
            raise ExternalAPIError("No submission endpoint configured", "NOT_CONFIGURED")

        payload: Dict[str, Any] = article.to_dict()
        max_attempts = self.external_api_config.max_retries + 1
        last_error: Optional[ExternalAPIError] = None

        for attempt in range(max_attempts):
            try:
                logger.info(f"Submitting article (attempt {attempt + 1}/{max_attempts})", url=article.url)

                response = self.session.post(
                    self.external_api_config.endpoint_url,
                    json=payload,
                    headers=self._headers(),
                    timeout=self.timeout_manager.get_http_timeout("submit")
                )

                if response.status_code in ACCEPTED_STATUS_CODES:
                    logger.info("Article submitted", status_code=response.status_code)
                    return True

                error_msg = f"External API returned status {response.status_code}: {response.text[:200]}"
                logger.warning(error_msg, attempt=attempt + 1)
                last_error = ExternalAPIError(
                    error_msg,
                    "HTTP_ERROR",
                    {
                        "status_code": response.status_code,
                        "response_text": response.text[:500],
                        "attempt": attempt + 1
                    }
                )

            except requests.exceptions.Timeout as e:
                connect_timeout, read_timeout = self.timeout_manager.get_http_timeout("submit")
                error_msg = f"External API request timed out after {connect_timeout}s connect, {read_timeout}s read"
                logger.warning(error_msg, attempt=attempt + 1)
                last_error = ExternalAPIError(
                    error_msg,
                    "TIMEOUT_ERROR",
                    {"error": str(e), "attempt": attempt + 1}
                )

            except requests.exceptions.ConnectionError as e:
                error_msg = f"Failed to connect to external API: {e}"
                logger.warning(error_msg, attempt=attempt + 1)
                last_error = ExternalAPIError(
                    error_msg,
                    "CONNECTION_ERROR",
                    {"connection_error": str(e), "attempt": attempt + 1}
                )

            except requests.exceptions.RequestException as e:
                error_msg = f"External API request failed: {e}"
                logger.warning(error_msg, attempt=attempt + 1)
                last_error = ExternalAPIError(
                    error_msg,
                    "REQUEST_ERROR",
                    {"request_error": str(e), "attempt": attempt + 1}
                )

            if attempt < max_attempts - 1:
                delay = self._calculate_retry_delay(attempt)
                logger.info(f"Waiting {delay:.2f}s before retry...")
                time.sleep(delay)

        logger.error(f"Failed to submit article after {max_attempts} attempts", error=last_error)
        raise last_error

    def close(self) -> None:
        """Close the HTTP session."""
        if self.session:
            self.session.close()
