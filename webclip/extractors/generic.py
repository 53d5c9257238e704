"""Generic whole-document extraction (used when no site extractor applies).

1. Strip boilerplate from a working copy of the document.
2. Locate the main content element (falling back to ``<body>``).
3. Build structured blocks from it.
4. Run the title / author / date / image candidate chains.
"""

from __future__ import annotations

import contextlib
import copy
import logging
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag

from webclip.extractors.blocks import build_blocks
from webclip.extractors.locator import locate_main_content
from webclip.extractors.metadata import (
    extract_author,
    extract_images,
    extract_raw_date,
    extract_title,
)
from webclip.extractors.text import normalize
from webclip.items import CodeSnippet, ContentBlock, ImageRef, flatten_blocks

logger = logging.getLogger(__name__)

# Removed from the working copy before locating content
BOILERPLATE_SELECTORS: tuple[str, ...] = (
    "script",
    "style",
    "noscript",
    "iframe",
    "nav",
    "header",
    "footer",
    "aside",
    ".advertisement",
    ".ads",
    ".banner",
    ".navigation",
    ".menu",
    ".sidebar",
    "#comments",
    ".related-articles",
    ".social-share",
    ".cookie-notice",
)


@dataclass
class RawExtraction:
    """Unvalidated fields returned by a single extractor."""

    title: str = ""
    content: str = ""
    author: str = ""
    date: str = ""
    images: list[ImageRef] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    code_blocks: list[CodeSnippet] = field(default_factory=list)
    structure: list[ContentBlock] | None = None
    type: str = "article"
    method: str = "generic"


def strip_boilerplate(soup: BeautifulSoup | Tag) -> None:
    """Remove boilerplate elements from *soup* in-place."""
    for selector in BOILERPLATE_SELECTORS:
        with contextlib.suppress(Exception):
            for el in soup.select(selector):
                if isinstance(el, Tag):
                    el.decompose()


def extract_generic(soup: BeautifulSoup, url: str = "") -> RawExtraction:
    """Extract from the whole document without site-specific knowledge.

    *soup* itself is never modified: boilerplate is stripped from a copy.
    Title, author and date are read from the untouched document because
    they often live inside ``<header>``, which the stripping removes.
    """
    work = copy.copy(soup)
    strip_boilerplate(work)

    main = locate_main_content(work)
    if main is None:
        logger.debug("No main content candidate for %s; using <body>", url)
        main = work.body or work

    structure = build_blocks(main, url)
    content = flatten_blocks(structure) if structure else normalize(main.get_text(" "))

    return RawExtraction(
        title=extract_title(soup),
        content=content,
        author=extract_author(soup),
        date=extract_raw_date(soup),
        images=extract_images(work, url),
        structure=structure or None,
        method="generic",
    )
