"""Exceptions raised across the extraction core."""

from __future__ import annotations


class WebclipError(Exception):
    """Base exception for webclip errors."""


class MalformedURLError(WebclipError, ValueError):
    """The page URL has no parseable hostname, so no extractor can be chosen."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Malformed URL (no hostname): {url!r}")
        self.url = url


class ExtractorError(WebclipError):
    """A single site-specific extractor failed.

    Never escapes the orchestrator; it is logged and treated as "no result".
    """


class ExtractionFailedError(WebclipError):
    """Every fallback strategy was exhausted without usable content.

    Attributes:
        url     -- the page that could not be extracted
        reasons -- one entry per strategy describing why it produced nothing
    """

    def __init__(self, url: str, reasons: list[str] | None = None) -> None:
        self.url = url
        self.reasons = list(reasons or [])
        detail = "; ".join(self.reasons) if self.reasons else "no strategy produced content"
        super().__init__(f"All extraction strategies failed for {url}: {detail}")
