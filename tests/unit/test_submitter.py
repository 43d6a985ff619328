"""
Unit tests for the remote submission sink.
"""

import pytest
from unittest.mock import Mock, patch
import requests

from stash.config.models import ExternalAPIConfig
from stash.config.timeouts import TimeoutConfig, TimeoutManager
from stash.postprocess.submitter import ArticleSubmitter, ExternalAPIError
from stash.scraper.article import Article


ARTICLE = Article(
    url="https://example.com/post",
    title="Title",
    content="<p>Body</p>",
    authors="Jane Doe",
    published_at="2024-01-15"
)


def make_response(status_code, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    return response


def make_submitter(session, **config):
    config.setdefault("endpoint_url", "https://reader.example.com/api")
    return ArticleSubmitter(
        ExternalAPIConfig(**config),
        timeout_manager=TimeoutManager(TimeoutConfig()),
        session=session
    )


class TestArticleSubmitter:
    """Test cases for ArticleSubmitter class."""

    def test_successful_submit(self):
        """Test that the article is posted as JSON."""
        session = Mock()
        session.post.return_value = make_response(201)

        assert make_submitter(session, auth_header="Bearer token").submit(ARTICLE) is True

        session.post.assert_called_once()
        args, kwargs = session.post.call_args
        assert args[0] == "https://reader.example.com/api"
        assert kwargs["json"] == ARTICLE.to_dict()
        assert kwargs["headers"]["Authorization"] == "Bearer token"
        assert kwargs["timeout"] == (5, 15)

    def test_not_configured(self):
        """Test that a missing endpoint fails without a request."""
        session = Mock()

        with pytest.raises(ExternalAPIError) as exc_info:
            make_submitter(session, endpoint_url=None).submit(ARTICLE)

        assert exc_info.value.error_type == "NOT_CONFIGURED"
        session.post.assert_not_called()

    @patch('stash.postprocess.submitter.time.sleep')
    def test_retries_then_succeeds(self, mock_sleep):
        """Test that a transient failure is retried with backoff."""
        session = Mock()
        session.post.side_effect = [make_response(503, "busy"), make_response(200)]

        assert make_submitter(session, max_retries=2, retry_delay_seconds=0.5).submit(ARTICLE) is True

        assert session.post.call_count == 2
        mock_sleep.assert_called_once_with(0.5)

    @patch('stash.postprocess.submitter.time.sleep')
    def test_http_error_after_retries(self, mock_sleep):
        """Test that the last error is raised once attempts run out."""
        session = Mock()
        session.post.return_value = make_response(500, "boom")

        with pytest.raises(ExternalAPIError) as exc_info:
            make_submitter(session, max_retries=1).submit(ARTICLE)

        assert exc_info.value.error_type == "HTTP_ERROR"
        assert exc_info.value.details["status_code"] == 500
        assert session.post.call_count == 2
        assert mock_sleep.call_count == 1

    @patch('stash.postprocess.submitter.time.sleep')
    def test_timeout_error(self, mock_sleep):
        session = Mock()
        session.post.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(ExternalAPIError) as exc_info:
            make_submitter(session, max_retries=0).submit(ARTICLE)

        assert exc_info.value.error_type == "TIMEOUT_ERROR"
        mock_sleep.assert_not_called()

    @patch('stash.postprocess.submitter.time.sleep')
    def test_connection_error(self, mock_sleep):
        session = Mock()
        session.post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(ExternalAPIError) as exc_info:
            make_submitter(session, max_retries=0).submit(ARTICLE)

        assert exc_info.value.error_type == "CONNECTION_ERROR"
