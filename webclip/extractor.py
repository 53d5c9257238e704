"""Extraction orchestrator: site-specific extractors first, generic fallback.

Usage::

    from webclip.extractor import extract

    content = extract("https://example.com/post", html)
    print(content.title, content.author, content.date)
    for block in content.structure or []:
        print(block.type)
"""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from webclip.exceptions import ExtractorError, MalformedURLError
from webclip.extractors.generic import RawExtraction, extract_generic
from webclip.extractors.metadata import resolve_date
from webclip.extractors.sites import SITE_RULES, Fetcher, SiteRule, matching_rules
from webclip.extractors.text import clean_structured_text, normalize
from webclip.items import ExtractedContent, flatten_blocks
from webclip.profiles import ExtractionOptions

logger = logging.getLogger(__name__)


def hostname_of(url: str) -> str:
    """Lower-cased hostname of *url*; raises MalformedURLError when absent."""
    try:
        hostname = urlparse(url).hostname
    except ValueError as exc:
        raise MalformedURLError(url) from exc
    if not hostname:
        raise MalformedURLError(url)
    return hostname


def as_soup(document: BeautifulSoup | str | bytes) -> BeautifulSoup:
    if isinstance(document, BeautifulSoup):
        return document
    return BeautifulSoup(document, "lxml")


class ContentExtractor:
    """Pick an extractor by hostname, run it, and validate the result.

    Args:
        rules:   Site rules to consult, in order (default :data:`SITE_RULES`).
        fetcher: ``url -> text`` callable used by extractors that bypass the
                 DOM (GitHub raw files).  ``None`` disables those fetches.
        options: Content length limits; defaults come from settings.
    """

    def __init__(
        self,
        rules: tuple[SiteRule, ...] = SITE_RULES,
        fetcher: Fetcher | None = None,
        options: ExtractionOptions | None = None,
    ) -> None:
        self.rules = rules
        self.fetcher = fetcher
        self.options = options or ExtractionOptions()

    def _run_rule(self, rule: SiteRule, soup: BeautifulSoup, url: str) -> RawExtraction | None:
        try:
            return rule.extract(soup, url, self.fetcher)
        except Exception as exc:
            raise ExtractorError(f"{rule.name} extractor failed: {exc}") from exc

    def extract(self, url: str, document: BeautifulSoup | str | bytes) -> ExtractedContent:
        """Extract *document* (parsed or raw HTML) fetched from *url*.

        Raises:
            MalformedURLError: *url* has no hostname.
        """
        hostname = hostname_of(url)
        soup = as_soup(document)

        for rule in matching_rules(hostname, self.rules):
            try:
                raw = self._run_rule(rule, soup, url)
            except ExtractorError as exc:
                logger.warning("%s; falling through", exc)
                continue
            if raw is not None and normalize(raw.content):
                logger.debug("Extracted %s with the %s extractor", url, rule.name)
                return self.validate_and_clean(raw, url)
            logger.debug("%s extractor found no content on %s", rule.name, url)

        logger.debug("Using generic extractor for %s", url)
        return self.validate_and_clean(extract_generic(soup, url), url)

    def validate_and_clean(self, raw: RawExtraction, url: str) -> ExtractedContent:
        """Normalise every field, substitute sentinels, and record warnings."""
        warnings: list[str] = []
        structure = raw.structure or None

        if structure:
            content = flatten_blocks(structure)
        elif raw.type == "markdown":
            content = clean_structured_text(raw.content)
        else:
            content = normalize(raw.content)

        cap = self.options.max_content_chars
        if cap is not None and len(content) > cap:
            content = content[:cap]
            structure = None
            warnings.append(f"Content truncated to {cap} characters")

        length = len(normalize(content))
        if length < self.options.min_content_chars:
            logger.warning("Content too short for %s: %d characters", url, length)
            warnings.append(f"Content too short: {length} characters")

        date = resolve_date(raw.date, warnings)

        return ExtractedContent(
            url=url,
            title=raw.title,
            content=content,
            structure=structure,
            author=raw.author,
            date=date,
            images=raw.images,
            tags=[t for t in (normalize(t) for t in raw.tags) if t],
            code_blocks=raw.code_blocks,
            type=raw.type or "article",
            extraction_method=raw.method,
            warnings=warnings,
        )


def extract(
    url: str,
    document: BeautifulSoup | str | bytes,
    *,
    fetcher: Fetcher | None = None,
    options: ExtractionOptions | None = None,
) -> ExtractedContent:
    """One-shot :meth:`ContentExtractor.extract` with the default site table."""
    return ContentExtractor(fetcher=fetcher, options=options).extract(url, document)
