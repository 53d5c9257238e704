"""Unit tests for the fallback extraction facade."""

from __future__ import annotations

import threading
from unittest.mock import patch

import pytest

URL = "https://example.com/page"
HTML = (
    "<html><head><title>Fallback Title</title></head>"
    "<body><div><span>Body words only.</span></div></body></html>"
)


class _StaticChannel:
    def __init__(self, reply):
        self.reply = reply
        self.calls: list[tuple[str, dict]] = []

    def send(self, tab_id, message):
        self.calls.append((tab_id, message))
        return self.reply


class _SlowChannel:
    def __init__(self):
        self.release = threading.Event()

    def send(self, tab_id, message):
        self.release.wait(5)
        return {"success": False, "error": "too late"}


class TestStrategyOrder:
    def test_dom_result_returned_first(self):
        from webclip.robust import RobustExtractor

        channel = _StaticChannel({"success": True, "content": {"content": "from message"}})
        result = RobustExtractor(channel=channel).extract_with_fallback(
            URL, "<article><h1>DOM</h1><p>Direct text.</p></article>",
        )
        assert result.title == "DOM"
        assert result.extraction_method == "generic"
        assert channel.calls == []

    def test_third_strategy_wins_after_failures(self):
        from webclip.items import ExtractedContent
        from webclip.robust import RobustExtractor

        robust = RobustExtractor()
        with patch.object(robust, "extract_via_dom", side_effect=RuntimeError("dom broke")), \
             patch.object(robust, "extract_via_message",
                          return_value=ExtractedContent(url=URL, content="")):
            result = robust.extract_with_fallback(URL, HTML)
        assert result.extraction_method == "basic"
        assert result.title == "Fallback Title"
        assert result.content == "Body words only."

    def test_message_strategy_used_when_dom_empty(self):
        from webclip.items import ExtractedContent
        from webclip.robust import RobustExtractor

        channel = _StaticChannel({
            "success": True,
            "content": {"title": "Rendered", "content": "Rendered body.", "url": "ignored"},
        })
        robust = RobustExtractor(channel=channel)
        with patch.object(robust, "extract_via_dom", return_value=ExtractedContent(url=URL)):
            result = robust.extract_with_fallback(URL, HTML, tab_id="tab-7")
        assert channel.calls == [("tab-7", {"action": "extractContent"})]
        assert result.title == "Rendered"
        assert result.url == URL
        assert result.extraction_method == "message"

    def test_all_strategies_fail(self):
        from webclip.exceptions import ExtractionFailedError
        from webclip.robust import RobustExtractor

        with pytest.raises(ExtractionFailedError) as exc_info:
            RobustExtractor().extract_with_fallback(URL, "<html><head></head><body></body></html>")
        assert exc_info.value.url == URL
        assert [r.split(":")[0] for r in exc_info.value.reasons] == ["dom", "message", "basic"]

    def test_malformed_url_raised_immediately(self):
        from webclip.exceptions import MalformedURLError
        from webclip.robust import RobustExtractor

        robust = RobustExtractor()
        with patch.object(robust, "extract_via_dom") as dom, pytest.raises(MalformedURLError):
            robust.extract_with_fallback("no-host", HTML)
        dom.assert_not_called()


class TestMessageStrategy:
    def test_no_channel_returns_none(self):
        from webclip.robust import RobustExtractor

        assert RobustExtractor().extract_via_message(URL) is None

    def test_failure_reply_raises(self):
        from webclip.exceptions import ExtractorError
        from webclip.robust import RobustExtractor

        robust = RobustExtractor(channel=_StaticChannel({"success": False, "error": "no tab"}))
        with pytest.raises(ExtractorError, match="no tab"):
            robust.extract_via_message(URL)

    def test_reply_without_content_raises(self):
        from webclip.exceptions import ExtractorError
        from webclip.robust import RobustExtractor

        robust = RobustExtractor(channel=_StaticChannel({"success": True}))
        with pytest.raises(ExtractorError):
            robust.extract_via_message(URL)

    def test_timeout(self):
        from webclip.robust import RobustExtractor

        channel = _SlowChannel()
        robust = RobustExtractor(channel=channel, message_timeout=0.05)
        try:
            with pytest.raises(TimeoutError):
                robust.extract_via_message(URL)
        finally:
            channel.release.set()

    def test_timeout_falls_through_to_basic(self):
        from webclip.items import ExtractedContent
        from webclip.robust import RobustExtractor

        channel = _SlowChannel()
        robust = RobustExtractor(channel=channel, message_timeout=0.05)
        try:
            with patch.object(robust, "extract_via_dom", return_value=ExtractedContent(url=URL)):
                result = robust.extract_with_fallback(URL, HTML)
        finally:
            channel.release.set()
        assert result.extraction_method == "basic"

    def test_local_channel_round_trip(self):
        from webclip.messaging import LocalChannel
        from webclip.robust import RobustExtractor

        channel = LocalChannel()
        channel.register("tab-1", URL, "<article><h1>Local</h1><p>Tab text.</p></article>")
        result = RobustExtractor(channel=channel).extract_via_message(URL, "tab-1")
        assert result is not None
        assert result.title == "Local"
        assert result.structure is not None
        assert result.extraction_method == "message"


class TestBasicStrategy:
    def test_missing_title_uses_sentinel(self):
        from bs4 import BeautifulSoup

        from webclip.robust import RobustExtractor

        soup = BeautifulSoup("<body><p>Just text</p></body>", "lxml")
        result = RobustExtractor().extract_basic(URL, soup)
        assert result.title == "無題"
        assert result.content == "Just text"
        assert result.author == "不明"
