"""Heuristic main-content locator.

Step 1: semantic landmark selectors, first one holding enough text wins.
Step 2: score every block-level element and keep the best positive score.

Weights live in :mod:`webclip.settings`; they are empirically tuned, so a
change there changes which element gets picked.
"""

from __future__ import annotations

import contextlib
import logging

from bs4 import BeautifulSoup, Tag

from webclip import settings
from webclip.extractors.text import normalize, safe_str

logger = logging.getLogger(__name__)

# Landmark selectors for step 1 (tried in order)
_LANDMARK_SELECTORS: tuple[str, ...] = (
    "main",
    "article",
    '[role="main"]',
    ".content",
    ".main-content",
    ".article-body",
    "#content",
    "#main",
    ".entry-content",
    ".post-content",
    ".page-content",
)

# Elements scored in step 2
_CANDIDATE_TAGS: tuple[str, ...] = ("div", "section", "article", "main")

# Class/id substrings (each counted at most once per element)
_POSITIVE_HINTS: tuple[str, ...] = (
    "content",
    "article",
    "main",
    "body",
    "text",
    "post",
    "entry",
)
_NEGATIVE_HINTS: tuple[str, ...] = (
    "sidebar",
    "menu",
    "nav",
    "footer",
    "header",
    "comment",
    "ad",
)


def _class_and_id(tag: Tag) -> str:
    return (safe_str(tag.get("class")) + " " + safe_str(tag.get("id"))).lower()


def content_score(tag: Tag) -> float:
    """Score *tag* as a main-content candidate.

    Text length, paragraph count, link density and class/id keywords all
    contribute.  Elements without text score 0.
    """
    text_len = len(normalize(tag.get_text(" ")))
    if not text_len:
        return 0.0

    score = text_len / settings.SCORE_CHARS_PER_POINT
    score += len(tag.find_all("p")) * settings.SCORE_PER_PARAGRAPH

    link_len = sum(len(normalize(a.get_text(" "))) for a in tag.find_all("a"))
    score -= (link_len / text_len) * settings.SCORE_LINK_DENSITY_PENALTY

    hints = _class_and_id(tag)
    score += sum(settings.SCORE_POSITIVE_KEYWORD for h in _POSITIVE_HINTS if h in hints)
    score -= sum(settings.SCORE_NEGATIVE_KEYWORD for h in _NEGATIVE_HINTS if h in hints)
    return score


def find_landmark(root: BeautifulSoup | Tag) -> Tag | None:
    """Return the first landmark element with more than the minimum text."""
    for selector in _LANDMARK_SELECTORS:
        try:
            el = root.select_one(selector)
        except Exception as exc:
            logger.debug("CSS selector %r failed: %s", selector, exc)
            continue
        if isinstance(el, Tag) and len(normalize(el.get_text(" "))) > settings.LANDMARK_MIN_CHARS:
            logger.debug("Landmark %r selected as main content", selector)
            return el
    return None


def find_by_score(root: BeautifulSoup | Tag) -> Tag | None:
    """Return the highest-scoring block element, or None if none scores above 0.

    Ties go to the element met first in document order.
    """
    best: Tag | None = None
    best_score = 0.0
    for el in root.find_all(_CANDIDATE_TAGS):
        if not isinstance(el, Tag):
            continue
        score = 0.0
        with contextlib.suppress(Exception):
            score = content_score(el)
        if score > best_score:
            best, best_score = el, score
    if best is not None:
        logger.debug("Scoring picked <%s class=%r> (%.1f)", best.name, best.get("class"), best_score)
    return best


def locate_main_content(root: BeautifulSoup | Tag) -> Tag | None:
    """Return the element most likely to hold the page's main content.

    ``None`` means nothing qualified; callers fall back to ``<body>``.
    """
    try:
        return find_landmark(root) or find_by_score(root)
    except Exception as exc:
        logger.warning("Main content location failed: %s", exc)
        return None
