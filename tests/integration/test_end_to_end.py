"""
End-to-end integration test for stash.

These tests run the command line flow with real configuration files, real
extractors and a real EPUB writer; only the network is mocked.
"""

import io
import zipfile

import pytest
from unittest.mock import Mock, patch


PARAGRAPH = (
    "Researchers published a detailed survey of river water quality this week, "
    "covering more than two hundred sampling sites and ten years of measurements "
    "collected by volunteers across the region."
)

AUTO_PAGE = f"""
<html>
  <head>
    <title>River survey | Example Science</title>
    <meta property="og:title" content="River survey results">
    <meta name="author" content="Ada Lovelace">
    <meta property="article:published_time" content="2024-03-02T08:30:00Z">
  </head>
  <body>
    <nav><a href="/">Home</a></nav>
    <div class="story">{"".join(f"<p>{PARAGRAPH}</p>" for _ in range(6))}</div>
    <footer>Copyright Example Science</footer>
  </body>
</html>
"""

MANUAL_PAGE = """
<html><body>
  <h2 class="headline">Selector Story</h2>
  <a class="writer">Grace Hopper</a>
  <span class="stamp">March 3, 2024</span>
  <section id="text"><p>First.</p><p>Second.</p></section>
</body></html>
"""

SITES = """
["manual.example.com"]
title = "h2.headline"
body = "section#text"
authors = "a.writer"
date = "span.stamp"
"""


def make_response(status_code, text):
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.url = "https://example.com/"
    response.reason = "Reason"
    response.encoding = "utf-8"
    response.headers = {"Content-Type": "text/html; charset=utf-8"}
    return response


@pytest.fixture
def environment(tmp_path, monkeypatch):
    for name in ("STASH_OUTPUT_DIR", "STASH_SINK", "STASH_SUBMIT_ENDPOINT", "STASH_SUBMIT_TOKEN", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))

    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "config.toml").write_text(f'output_dir = "{(tmp_path / "out").as_posix()}"\n', encoding="utf-8")
    (config_dir / "sites.toml").write_text(SITES, encoding="utf-8")
    return config_dir


def run(config_dir, url):
    from stash.cli import main

    stdin, stdout, stderr = io.StringIO(), io.StringIO(), io.StringIO()
    code = main(["--config-dir", str(config_dir), "--yes", url], stdin=stdin, stdout=stdout, stderr=stderr)
    return code, stdout.getvalue(), stderr.getvalue()


@patch('stash.cli.configure_logging')
class TestEndToEndIntegration:
    """End-to-end integration tests."""

    @patch('requests.Session.get')
    def test_automatic_extraction_to_epub(self, mock_get, mock_logging, environment, tmp_path):
        """Test an unregistered domain going through readability into an EPUB."""
        mock_get.return_value = make_response(200, AUTO_PAGE)

        code, stdout, stderr = run(environment, "https://science.example.org/rivers")

        assert code == 0, stderr
        assert "Title: River survey results" in stdout
        assert "Authors: Ada Lovelace" in stdout
        assert "Published: 2024-03-02T08:30:00Z" in stdout

        path = tmp_path / "out" / "river-survey-results.epub"
        assert path.exists()
        with zipfile.ZipFile(path) as archive:
            chapter = next(name for name in archive.namelist() if name.endswith("main.xhtml"))
            assert "sampling sites" in archive.read(chapter).decode("utf-8")

    @patch('requests.Session.get')
    def test_manual_extraction_with_fallback_user_agent(self, mock_get, mock_logging, environment, tmp_path):
        """Test a registered domain fetched by the second user agent."""
        mock_get.side_effect = [make_response(403, "Forbidden for curl"), make_response(200, MANUAL_PAGE)]

        code, stdout, stderr = run(environment, "https://manual.example.com/story")

        assert code == 0, stderr
        assert "Title: Selector Story" in stdout
        assert "Authors: Grace Hopper" in stdout
        assert "Published: March 3, 2024" in stdout
        assert "Content: <p>First.</p><p>Second.</p>" in stdout
        assert (tmp_path / "out" / "selector-story.epub").exists()

        agents = [call.kwargs["headers"]["User-Agent"] for call in mock_get.call_args_list]
        assert agents[0] == "curl/8.11"
        assert "Chrome" in agents[1]
        assert (tmp_path / "cache" / "stash-error.log").read_text(encoding="utf-8") == "Forbidden for curl"

    @patch('requests.Session.get')
    def test_every_user_agent_blocked(self, mock_get, mock_logging, environment, tmp_path):
        """Test that a blocked page leaves the last response in the error log."""
        mock_get.side_effect = [make_response(403, "first"), make_response(429, "second")]

        code, stdout, stderr = run(environment, "https://manual.example.com/story")

        assert code == 1
        assert "ALL_USER_AGENTS_FAILED" in stderr
        assert (tmp_path / "cache" / "stash-error.log").read_text(encoding="utf-8") == "second"
        assert not (tmp_path / "out").exists()
