"""
Unit tests for HTTP fetcher functionality.
"""

import pytest
from unittest.mock import Mock, patch
import requests

from stash.config.defaults import DEFAULT_USER_AGENTS
from stash.config.timeouts import TimeoutConfig, TimeoutManager
from stash.scraper.errors import FetchError
from stash.scraper.fetcher import ErrorLogRecorder, FetchResult, HTTPFetcher


def make_response(status_code, text="", url="https://example.com/post"):
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.url = url
    response.reason = "Reason"
    response.encoding = "utf-8"
    response.headers = {"Content-Type": "text/html; charset=utf-8"}
    return response


def make_real_response(status_code, body, content_type, url="https://example.com/post"):
    """A requests.Response with the encoding set the way HTTPAdapter sets it."""
    response = requests.Response()
    response.status_code = status_code
    response._content = body
    response.headers["Content-Type"] = content_type
    response.encoding = requests.utils.get_encoding_from_headers(response.headers)
    response.url = url
    response.reason = "Reason"
    return response


def sent_user_agents(mock_get):
    return [call.kwargs["headers"]["User-Agent"] for call in mock_get.call_args_list]


class TestHTTPFetcher:
    """Test cases for HTTPFetcher class."""

    def test_init_with_defaults(self):
        """Test fetcher initialization with default values."""
        fetcher = HTTPFetcher()
        assert fetcher.user_agents == DEFAULT_USER_AGENTS

    def test_init_requires_user_agents(self):
        """Test that an empty user agent list is rejected."""
        with pytest.raises(ValueError):
            HTTPFetcher(user_agents=[])

    @patch('stash.scraper.fetcher.requests.Session.get')
    def test_successful_fetch(self, mock_get):
        """Test successful HTTP fetch with the first user agent."""
        mock_get.return_value = make_response(200, "<html><body>Test content</body></html>")

        fetcher = HTTPFetcher(user_agents=["ua-1", "ua-2"])
        result = fetcher.fetch("https://example.com/post")

        assert isinstance(result, FetchResult)
        assert result.status_code == 200
        assert result.content == "<html><body>Test content</body></html>"
        assert result.user_agent == "ua-1"
        assert result.attempts == 1
        assert mock_get.call_count == 1

    @patch('stash.scraper.fetcher.requests.Session.get')
    def test_falls_back_in_order(self, mock_get):
        """Test that user agents are tried in order and the loop stops at success."""
        mock_get.side_effect = [
            make_response(403, "blocked"),
            make_response(200, "<html>ok</html>"),
            make_response(200, "<html>never</html>"),
        ]

        fetcher = HTTPFetcher(user_agents=["ua-1", "ua-2", "ua-3"])
        result = fetcher.fetch("https://example.com/post")

        assert result.content == "<html>ok</html>"
        assert result.user_agent == "ua-2"
        assert result.attempts == 2
        assert sent_user_agents(mock_get) == ["ua-1", "ua-2"]

    @patch('stash.scraper.fetcher.requests.Session.get')
    def test_all_user_agents_fail(self, mock_get):
        """Test that exhausting the list raises FetchError."""
        mock_get.side_effect = [make_response(403, "first"), make_response(503, "second")]

        fetcher = HTTPFetcher(user_agents=["ua-1", "ua-2"])

        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch("https://example.com/post")

        error = exc_info.value
        assert error.error_type == "ALL_USER_AGENTS_FAILED"
        assert error.stage == "network"
        assert [attempt["status_code"] for attempt in error.details["attempts"]] == [403, 503]
        assert sent_user_agents(mock_get) == ["ua-1", "ua-2"]

    @patch('stash.scraper.fetcher.requests.Session.get')
    def test_failure_bodies_recorded(self, mock_get):
        """Test that every non-success body is handed to the recorder."""
        mock_get.side_effect = [make_response(403, "first"), make_response(200, "ok")]
        recorder = Mock()

        fetcher = HTTPFetcher(user_agents=["ua-1", "ua-2"], failure_recorder=recorder)
        fetcher.fetch("https://example.com/post")

        recorder.record_failure.assert_called_once_with("ua-1", 403, "first")

    @patch('stash.scraper.fetcher.requests.Session.get')
    def test_transport_error_moves_on(self, mock_get):
        """Test that a connection failure counts as a failed attempt."""
        mock_get.side_effect = [
            requests.exceptions.ConnectionError("refused"),
            make_response(200, "<html>ok</html>"),
        ]
        recorder = Mock()

        fetcher = HTTPFetcher(user_agents=["ua-1", "ua-2"], failure_recorder=recorder)
        result = fetcher.fetch("https://example.com/post")

        assert result.user_agent == "ua-2"
        recorder.record_failure.assert_not_called()

    @patch('stash.scraper.fetcher.requests.Session.get')
    def test_timeout_passed(self, mock_get):
        """Test that the fetch timeout pair is used."""
        mock_get.return_value = make_response(200, "ok")
        manager = TimeoutManager(TimeoutConfig(http_connect_timeout=2, http_read_timeout=4))

        HTTPFetcher(user_agents=["ua"], timeout_manager=manager).fetch("https://example.com/")

        assert mock_get.call_args.kwargs["timeout"] == (2, 4)
        assert mock_get.call_args.kwargs["allow_redirects"] is True

    def test_utf8_body_without_charset(self):
        """Test that a page served without a charset is read as UTF-8."""
        body = "<html><body><p>Café naïve — résumé</p></body></html>"
        session = Mock()
        session.get.return_value = make_real_response(200, body.encode("utf-8"), "text/html")

        result = HTTPFetcher(user_agents=["ua"], session=session).fetch("https://example.com/post")

        assert result.content == body
        assert result.encoding == "utf-8"

    def test_declared_charset_respected(self):
        """Test that an explicit charset in Content-Type wins."""
        body = "<html><body><p>Café</p></body></html>"
        session = Mock()
        session.get.return_value = make_real_response(
            200, body.encode("iso-8859-1"), "text/html; charset=ISO-8859-1"
        )

        result = HTTPFetcher(user_agents=["ua"], session=session).fetch("https://example.com/post")

        assert result.content == body

    def test_failure_body_decoded_as_utf8(self):
        """Test that error pages without a charset reach the recorder as UTF-8 text."""
        session = Mock()
        session.get.side_effect = [
            make_real_response(403, "Accès refusé".encode("utf-8"), "text/html"),
            make_real_response(200, b"<p>ok</p>", "text/html"),
        ]
        recorder = Mock()

        HTTPFetcher(user_agents=["ua-1", "ua-2"], failure_recorder=recorder, session=session).fetch(
            "https://example.com/post"
        )

        recorder.record_failure.assert_called_once_with("ua-1", 403, "Accès refusé")

    def test_context_manager(self):
        """Test that the session is closed on exit."""
        session = Mock()

        with HTTPFetcher(session=session):
            pass

        session.close.assert_called_once()


class TestErrorLogRecorder:
    """Test cases for the diagnostic error log."""

    def test_overwrites_with_latest_body(self, tmp_path):
        """Test that only the most recent failure body is kept."""
        path = tmp_path / "cache" / "stash-error.log"
        recorder = ErrorLogRecorder(path)

        recorder.record_failure("ua-1", 403, "first body")
        recorder.record_failure("ua-2", 503, "second body")

        assert path.read_text(encoding="utf-8") == "second body"

    @patch('stash.scraper.fetcher.requests.Session.get')
    def test_log_holds_last_failure(self, mock_get, tmp_path):
        """Test the log contents after every user agent failed."""
        mock_get.side_effect = [make_response(403, "first"), make_response(500, "second")]
        path = tmp_path / "stash-error.log"

        fetcher = HTTPFetcher(user_agents=["ua-1", "ua-2"], failure_recorder=ErrorLogRecorder(path))
        with pytest.raises(FetchError):
            fetcher.fetch("https://example.com/post")

        assert path.read_text(encoding="utf-8") == "second"

    def test_unwritable_location_is_ignored(self, tmp_path):
        """Test that a write failure does not raise."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("", encoding="utf-8")
        recorder = ErrorLogRecorder(blocker / "stash-error.log")

        recorder.record_failure("ua-1", 403, "body")

        assert blocker.read_text(encoding="utf-8") == ""
