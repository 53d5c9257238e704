"""Robust extraction facade: ordered fallback across three strategies.

1. ``dom``      direct extraction with :class:`ContentExtractor`
2. ``message``  ask a page context to extract over a :class:`MessagingChannel`
3. ``basic``    ``<title>`` plus raw body text, everything else defaulted

The first strategy returning non-empty ``content`` wins.  When all of them
come back empty :class:`ExtractionFailedError` is raised; callers record it
against the page and move on.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import Any

from bs4 import BeautifulSoup

from webclip import settings
from webclip.exceptions import ExtractionFailedError, ExtractorError, MalformedURLError
from webclip.extractor import ContentExtractor, as_soup, hostname_of
from webclip.extractors.text import normalize
from webclip.items import ExtractedContent
from webclip.messaging import EXTRACT_ACTION, MessagingChannel

logger = logging.getLogger(__name__)


class RobustExtractor:
    def __init__(
        self,
        extractor: ContentExtractor | None = None,
        channel: MessagingChannel | None = None,
        message_timeout: float = settings.MESSAGE_TIMEOUT,
    ) -> None:
        self.extractor = extractor or ContentExtractor()
        self.channel = channel
        self.message_timeout = message_timeout

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def extract_via_dom(self, url: str, soup: BeautifulSoup) -> ExtractedContent:
        return self.extractor.extract(url, soup)

    def extract_via_message(self, url: str, tab_id: str | None = None) -> ExtractedContent | None:
        """One request/reply round-trip, bounded by ``message_timeout`` seconds."""
        if self.channel is None:
            logger.debug("No messaging channel configured; skipping")
            return None

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="webclip-message")
        try:
            future = executor.submit(self.channel.send, tab_id or url, {"action": EXTRACT_ACTION})
            try:
                response: Any = future.result(timeout=self.message_timeout)
            except FuturesTimeout as exc:
                raise TimeoutError(f"no reply within {self.message_timeout}s") from exc
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        if not isinstance(response, dict) or not response.get("success"):
            error = response.get("error") if isinstance(response, dict) else response
            raise ExtractorError(f"page context reported failure: {error}")
        payload = response.get("content")
        if not payload:
            raise ExtractorError("reply carried no content")
        content = ExtractedContent.model_validate(payload)
        return content.model_copy(update={"url": url, "extraction_method": "message"})

    def extract_basic(self, url: str, soup: BeautifulSoup) -> ExtractedContent:
        title_tag = soup.find("title")
        body = soup.body or soup
        return ExtractedContent(
            url=url,
            title=title_tag.get_text() if title_tag else "",
            content=normalize(body.get_text(" ")),
            extraction_method="basic",
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract_with_fallback(
        self,
        url: str,
        document: BeautifulSoup | str | bytes,
        tab_id: str | None = None,
    ) -> ExtractedContent:
        """Run the strategies in order and return the first usable result.

        Raises:
            MalformedURLError:     *url* has no hostname (raised immediately).
            ExtractionFailedError: no strategy produced content.
        """
        hostname_of(url)
        soup = as_soup(document)

        strategies = (
            ("dom", lambda: self.extract_via_dom(url, soup)),
            ("message", lambda: self.extract_via_message(url, tab_id)),
            ("basic", lambda: self.extract_basic(url, soup)),
        )
        reasons: list[str] = []
        for name, strategy in strategies:
            try:
                result = strategy()
            except MalformedURLError:
                raise
            except Exception as exc:
                logger.warning("Strategy %s failed for %s: %s", name, url, exc)
                reasons.append(f"{name}: {exc}")
                continue
            if result is not None and normalize(result.content):
                logger.debug("Strategy %s succeeded for %s", name, url)
                return result
            reasons.append(f"{name}: no content")

        raise ExtractionFailedError(url, reasons)
