"""Title / author / date / image extraction via ordered candidate chains.

Each chain is a tuple of ``(css_selector, attribute)`` pairs tried in order;
``attribute=None`` means "use the element's text".  The first candidate that
yields non-empty text wins.
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import urljoin, urlparse

import dateparser
from bs4 import BeautifulSoup, Tag

from webclip import settings
from webclip.extractors.text import normalize, safe_str
from webclip.items import CodeSnippet, ImageRef, utc_now_iso

logger = logging.getLogger(__name__)

Chain = tuple[tuple[str, str | None], ...]

TITLE_CHAIN: Chain = (
    ("h1", None),
    ("article h1", None),
    (".title", None),
    ('[class*="title"]', None),
    ('meta[property="og:title"]', "content"),
    ("title", None),
)

AUTHOR_CHAIN: Chain = (
    ('[class*="author"]', None),
    ('[class*="writer"]', None),
    ('[class*="byline"]', None),
    ('meta[name="author"]', "content"),
    ('meta[property="article:author"]', "content"),
)

DATE_CHAIN: Chain = (
    ("time", "datetime"),
    ("time", None),
    ('[class*="date"]', None),
    ('[class*="publish"]', None),
    ('meta[property="article:published_time"]', "content"),
)

# Scoped image queries take priority over a document-wide <img> sweep
_SCOPED_IMAGE_SELECTORS: tuple[str, ...] = ("article img", "main img", ".content img")

_CODE_SELECTORS = "pre code, pre, .code-block"
_LANG_CLASS_RE = re.compile(r"language-(\w+)")
_SKIPPED_IMAGE_NAMES: tuple[str, ...] = ("logo", "icon")


# ---------------------------------------------------------------------------
# Candidate chains
# ---------------------------------------------------------------------------

def _candidate_text(root: BeautifulSoup | Tag, selector: str, attr: str | None) -> str:
    try:
        el = root.select_one(selector)
    except Exception as exc:
        logger.debug("CSS selector %r failed: %s", selector, exc)
        return ""
    if not isinstance(el, Tag):
        return ""
    if attr:
        return normalize(safe_str(el.get(attr)))
    return normalize(el.get_text(" "))


def first_text(root: BeautifulSoup | Tag | None, chain: Chain) -> str:
    """Return the first non-empty normalised candidate from *chain*, or ``""``."""
    if root is None:
        return ""
    for selector, attr in chain:
        text = _candidate_text(root, selector, attr)
        if text:
            return text
    return ""


def select_text(root: BeautifulSoup | Tag | None, selectors: tuple[str, ...]) -> str:
    """Text of the first selector in *selectors* that yields non-empty text."""
    return first_text(root, tuple((s, None) for s in selectors))


def select_first(root: BeautifulSoup | Tag | None, selectors: tuple[str, ...]) -> Tag | None:
    """First element matched by *selectors* (tried in order) that holds any text."""
    if root is None:
        return None
    for selector in selectors:
        try:
            el = root.select_one(selector)
        except Exception as exc:
            logger.debug("CSS selector %r failed: %s", selector, exc)
            continue
        if isinstance(el, Tag) and normalize(el.get_text(" ")):
            return el
    return None


def extract_title(root: BeautifulSoup | Tag) -> str:
    return first_text(root, TITLE_CHAIN)


def extract_author(root: BeautifulSoup | Tag) -> str:
    return first_text(root, AUTHOR_CHAIN)


def extract_raw_date(root: BeautifulSoup | Tag, chain: Chain = DATE_CHAIN) -> str:
    return first_text(root, chain)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def parse_date(raw: str | None) -> str | None:
    """Parse a date string to ISO 8601.

    Returns None on failure or when the year falls outside the accepted range
    (catches epoch defaults like 1970-01-01 and far-future typos).
    """
    raw = normalize(raw)
    if not raw:
        return None
    try:
        parsed = dateparser.parse(
            raw,
            settings={
                "RETURN_AS_TIMEZONE_AWARE": True,
                "PREFER_DAY_OF_MONTH": "first",
                "PREFER_LOCALE_DATE_ORDER": False,
            },
        )
        if parsed:
            if not (settings.DATE_MIN_YEAR <= parsed.year <= settings.DATE_MAX_YEAR):
                return None
            return parsed.isoformat()
    except Exception as exc:
        logger.debug("Date parse failed for %r: %s", raw, exc)
    return None


def resolve_date(raw: str | None, warnings: list[str] | None = None) -> str:
    """Best-effort ISO date for *raw*.

    Absent → current time.  Unparseable → *raw* unchanged, with a warning
    logged and appended to *warnings*.
    """
    raw = normalize(raw)
    if not raw:
        return utc_now_iso()
    parsed = parse_date(raw)
    if parsed:
        return parsed
    message = f"Unparseable date kept as-is: {raw!r}"
    logger.warning(message)
    if warnings is not None:
        warnings.append(message)
    return raw


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

def image_src(img: Tag, base_url: str = "") -> str:
    """Resolved src of *img*, falling back to the first ``srcset`` candidate."""
    src = safe_str(img.get("src")).strip()
    if not src:
        srcset = safe_str(img.get("srcset")).strip()
        if srcset:
            src = srcset.split(",")[0].strip().split(" ")[0]
    if src and base_url and not src.lower().startswith("data:"):
        src = urljoin(base_url, src)
    return src


def is_content_image(src: str) -> bool:
    """False for data-URIs and logo/icon files."""
    if not src or src.lower().startswith("data:"):
        return False
    filename = urlparse(src).path.rsplit("/", 1)[-1].lower()
    return not any(name in filename for name in _SKIPPED_IMAGE_NAMES)


def images_from(imgs: Any, base_url: str = "") -> list[ImageRef]:
    """ImageRefs for *imgs* in order, skipping rejects and duplicate sources."""
    images: list[ImageRef] = []
    seen: set[str] = set()
    for img in imgs:
        if not isinstance(img, Tag):
            continue
        src = image_src(img, base_url)
        if not is_content_image(src) or src in seen:
            continue
        seen.add(src)
        images.append(ImageRef(src=src, alt=normalize(safe_str(img.get("alt")))))
    return images


def extract_images(root: BeautifulSoup | Tag, base_url: str = "") -> list[ImageRef]:
    """Images from article/main/.content scopes, else every <img> on the page."""
    scoped: list[Tag] = []
    for selector in _SCOPED_IMAGE_SELECTORS:
        try:
            scoped.extend(root.select(selector))
        except Exception as exc:
            logger.debug("CSS selector %r failed: %s", selector, exc)
    images = images_from(scoped, base_url)
    if images:
        return images
    return images_from(root.find_all("img"), base_url)


def select_images(
    root: BeautifulSoup | Tag, selectors: tuple[str, ...], base_url: str = "",
) -> list[ImageRef]:
    imgs: list[Tag] = []
    for selector in selectors:
        try:
            imgs.extend(root.select(selector))
        except Exception as exc:
            logger.debug("CSS selector %r failed: %s", selector, exc)
    return images_from(imgs, base_url)


# ---------------------------------------------------------------------------
# Code blocks
# ---------------------------------------------------------------------------

def _contains(outer: Tag, inner: Tag) -> bool:
    # identity check; Tag.__eq__ compares markup
    return any(p is outer for p in inner.parents)


def extract_code_blocks(element: Tag | None) -> list[CodeSnippet]:
    """Code snippets under *element* (``pre code``, ``pre``, ``.code-block``).

    A ``<pre>`` that wraps an already collected ``<code>`` is not repeated.
    """
    if element is None:
        return []
    snippets: list[CodeSnippet] = []
    seen: list[Tag] = []
    for block in element.select(_CODE_SELECTORS):
        if any(_contains(s, block) or _contains(block, s) for s in seen):
            continue
        code = block.get_text()
        if not code.strip():
            continue
        seen.append(block)
        language = "text"
        for el in (block, block.find("code"), block.parent):
            if not isinstance(el, Tag):
                continue
            m = _LANG_CLASS_RE.search(safe_str(el.get("class")))
            if m:
                language = m.group(1)
                break
        snippets.append(CodeSnippet(language=language, code=code.strip("\n")))
    return snippets
