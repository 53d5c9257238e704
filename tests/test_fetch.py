"""Unit tests for HTTP fetching (network mocked)."""

from __future__ import annotations

import gzip
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from webclip.fetch import FetchError, fetch_html, fetch_rendered


def _make_mock_response(body: bytes, charset: str = "utf-8", encoding: str = "") -> MagicMock:
    resp = MagicMock()
    resp.read.return_value = body
    resp.headers.get.return_value = encoding
    resp.headers.get_content_charset.return_value = charset
    resp.__enter__ = lambda s: s
    resp.__exit__ = MagicMock(return_value=False)
    return resp


class TestFetchHtml:
    def test_returns_string(self):
        resp = _make_mock_response("<p>こんにちは</p>".encode())
        with patch("urllib.request.urlopen", return_value=resp):
            assert fetch_html("https://example.com/post") == "<p>こんにちは</p>"

    def test_declared_charset_used(self):
        resp = _make_mock_response("<p>日本語</p>".encode("shift_jis"), charset="shift_jis")
        with patch("urllib.request.urlopen", return_value=resp):
            assert "日本語" in fetch_html("https://example.com/post")

    def test_gzip_body_decoded(self):
        resp = _make_mock_response(gzip.compress(b"<p>zipped</p>"), encoding="gzip")
        with patch("urllib.request.urlopen", return_value=resp):
            assert fetch_html("https://example.com/post") == "<p>zipped</p>"

    def test_corrupt_gzip_raises(self):
        resp = _make_mock_response(b"not gzip", encoding="gzip")
        with patch("urllib.request.urlopen", return_value=resp), pytest.raises(FetchError):
            fetch_html("https://example.com/post")

    def test_invalid_scheme(self):
        with pytest.raises(FetchError) as exc_info:
            fetch_html("ftp://example.com/file.txt")
        assert "scheme" in str(exc_info.value).lower()

    def test_http_404_not_retried(self):
        error = urllib.error.HTTPError("https://example.com", 404, "Not Found", {}, None)
        with patch("urllib.request.urlopen", side_effect=error) as urlopen, \
             patch("time.sleep") as sleep, pytest.raises(FetchError) as exc_info:
            fetch_html("https://example.com/missing")
        assert exc_info.value.status == 404
        assert exc_info.value.url == "https://example.com/missing"
        assert urlopen.call_count == 1
        sleep.assert_not_called()

    def test_http_503_retried_then_succeeds(self):
        error = urllib.error.HTTPError("https://example.com", 503, "Unavailable", {}, None)
        resp = _make_mock_response(b"<p>ok</p>")
        with patch("urllib.request.urlopen", side_effect=[error, resp]) as urlopen, \
             patch("time.sleep") as sleep:
            assert fetch_html("https://example.com/post") == "<p>ok</p>"
        assert urlopen.call_count == 2
        assert sleep.call_count == 1

    def test_url_error_retries_exhausted(self):
        with patch("urllib.request.urlopen",
                   side_effect=urllib.error.URLError("Connection refused")) as urlopen, \
             patch("time.sleep"), pytest.raises(FetchError):
            fetch_html("https://example.com/post", max_retries=2)
        assert urlopen.call_count == 3

    def test_user_agent_header(self):
        resp = _make_mock_response(b"<p>ok</p>")
        with patch("urllib.request.urlopen", return_value=resp) as urlopen:
            fetch_html("https://example.com/post", user_agent="webclip-test")
        request = urlopen.call_args.args[0]
        assert request.get_header("User-agent") == "webclip-test"


class TestFetchRendered:
    def test_missing_playwright_raises_fetch_error(self):
        with patch.dict("sys.modules", {"playwright": None, "playwright.sync_api": None}), \
             pytest.raises(FetchError, match="playwright"):
            fetch_rendered("https://example.com/post")
