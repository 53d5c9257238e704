"""Site-specific extractors for known publishing platforms.

``SITE_RULES`` is an ordered, immutable table of ``SiteRule`` entries.  A rule
applies when its key appears anywhere in the page hostname (so
``"hatenablog"`` covers every ``*.hatenablog.com`` / ``*.hatenablog.jp``
blog).  The orchestrator tries matching rules in registration order.

Most platforms are described purely by selector lists (``SiteProfile``);
GitHub adds a raw-file fetch for ``/blob/`` URLs.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import NamedTuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from webclip.extractors.generic import RawExtraction
from webclip.extractors.metadata import (
    extract_code_blocks,
    first_text,
    select_first,
    select_images,
    select_text,
)
from webclip.extractors.text import normalize
from webclip.items import utc_now_iso

logger = logging.getLogger(__name__)

# url -> response text; raises on failure
Fetcher = Callable[[str], str]

SiteExtractor = Callable[[BeautifulSoup, str, Fetcher | None], RawExtraction]


class SiteRule(NamedTuple):
    name: str
    matches: Callable[[str], bool]
    extract: SiteExtractor


@dataclass(frozen=True)
class SiteProfile:
    """Selector lists for one platform; each list is tried in order."""

    title: tuple[str, ...]
    content: tuple[str, ...]
    author: tuple[str, ...] = ()
    date: tuple[str, ...] = ("time",)
    images: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    fixed_author: str | None = None
    date_is_now: bool = False
    code_blocks: bool = False


def _host_contains(key: str) -> Callable[[str], bool]:
    return lambda hostname: key in hostname


def _date_chain(selectors: tuple[str, ...]) -> tuple[tuple[str, str | None], ...]:
    # machine-readable datetime attribute first, then visible text
    chain: list[tuple[str, str | None]] = []
    for selector in selectors:
        chain.extend(((selector, "datetime"), (selector, None)))
    return tuple(chain)


def _tag_texts(soup: BeautifulSoup, selectors: tuple[str, ...]) -> list[str]:
    tags: list[str] = []
    for selector in selectors:
        for el in soup.select(selector):
            text = normalize(el.get_text(" "))
            if text and text not in tags:
                tags.append(text)
    return tags


def extract_with_profile(
    profile: SiteProfile, name: str, soup: BeautifulSoup, url: str,
) -> RawExtraction:
    content_el = select_first(soup, profile.content)
    return RawExtraction(
        title=select_text(soup, profile.title),
        content=normalize(content_el.get_text(" ")) if content_el is not None else "",
        author=profile.fixed_author or select_text(soup, profile.author),
        date=utc_now_iso() if profile.date_is_now else first_text(soup, _date_chain(profile.date)),
        images=select_images(soup, profile.images, url),
        tags=_tag_texts(soup, profile.tags) if profile.tags else [],
        code_blocks=extract_code_blocks(content_el) if profile.code_blocks else [],
        method=f"site:{name}",
    )


def _profile_extractor(name: str, profile: SiteProfile) -> SiteExtractor:
    def _extract(soup: BeautifulSoup, url: str, fetch: Fetcher | None = None) -> RawExtraction:
        return extract_with_profile(profile, name, soup, url)

    return _extract


# ---------------------------------------------------------------------------
# Platform profiles
# ---------------------------------------------------------------------------

YAHOO_NEWS = SiteProfile(
    title=("article header h1", "h1.sc-gBOOmk", ".article-header h1"),
    content=("div.article_body", ".sc-eVJWDD", "article .article-main"),
    author=("span.author", ".article-author"),
    images=("article img", ".article_body img"),
)

NHK = SiteProfile(
    title=("h1.content--title", ".content-title", "h1"),
    content=(".content--summary", ".content--detail", ".body-text"),
    fixed_author="NHK",
    date=("time", ".content--date"),
    images=(".content img", "figure img"),
)

ASAHI = SiteProfile(
    title=("h1.Title", "h1", ".article-title"),
    content=(".ArticleBody", ".article-body", ".tk_honbun"),
    author=(".Author", ".writer"),
    date=("time", ".date", ".updatedate"),
    images=(".ArticleBody img", "figure img"),
)

YOMIURI = SiteProfile(
    title=(".article-header h1", "h1.title", "h1"),
    content=(".article-body", ".p-main-contents", ".article-text"),
    author=(".byline", ".writer"),
    date=("time", ".date"),
    images=(".article-body img", "figure img"),
)

NIKKEI = SiteProfile(
    title=(".article-header h1", "h1.title", "h1"),
    content=(".article-body", ".cmn-article_text", ".body"),
    author=(".author", ".writer"),
    date=("time", ".date-area"),
    images=(".article-body img", "figure img"),
)

NOTE = SiteProfile(
    title=("h1.o-noteContentHeader__title", "h1", ".note-title"),
    content=("div.note-common-styles__textnote", ".p-article__content", ".note-body"),
    author=("a.o-noteContentHeader__userNameLink", ".o-noteContentHeader__name"),
    date=("time", ".o-noteContentHeader__publishedAt"),
    images=("figure img", ".note-embed img"),
)

HATENA_BLOG = SiteProfile(
    title=(".entry-title", "h1.title", "h1"),
    content=(".entry-content", ".entry-body", "article"),
    author=(".author", ".entry-author-name"),
    date=("time", ".date", ".entry-date"),
    images=(".entry-content img", "article img"),
)

QIITA = SiteProfile(
    title=("h1.it-Header_title", "h1"),
    content=(".it-MdContent", ".p-items_main"),
    author=(".it-Header_authorName", ".it-Header_author"),
    date=("time", ".it-Header_time"),
    images=(".it-MdContent img",),
    tags=(".it-Tags_item", ".tagList_item"),
    code_blocks=True,
)

ZENN = SiteProfile(
    title=("h1", ".article-title"),
    content=(".znc", ".article-content", "article"),
    author=(".author-name", ".article-author"),
    date=("time", ".article-date"),
    images=(".znc img", "article img"),
    code_blocks=True,
)

MEDIUM = SiteProfile(
    title=("h1", "article h1"),
    content=("article section", "article", "main"),
    author=('[data-testid="authorName"]', ".author-name"),
    date=("time", '[data-testid="storyPublishDate"]'),
    images=("article img", "figure img"),
)

WIKIPEDIA = SiteProfile(
    title=("h1.firstHeading", "h1#firstHeading", "h1"),
    content=("#mw-content-text .mw-parser-output", "#mw-content-text"),
    fixed_author="Wikipedia",
    date_is_now=True,
    images=("#mw-content-text img",),
)

GITHUB = SiteProfile(
    title=(".markdown-body h1", "h1", '[itemprop="name"] a'),
    content=(".markdown-body", ".repository-content", ".blob-wrapper"),
    fixed_author="GitHub",
    date_is_now=True,
    images=(".markdown-body img",),
)

PR_TIMES = SiteProfile(
    title=("h1.title", "h1", ".release-title"),
    content=(".release-body", ".content", "article"),
    author=(".company-name", ".release-company"),
    date=("time", ".release-date"),
    images=(".release-body img", "article img"),
)


# ---------------------------------------------------------------------------
# GitHub raw view
# ---------------------------------------------------------------------------

_MARKDOWN_TITLE_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)


def github_raw_url(url: str) -> str | None:
    """raw.githubusercontent.com URL for a ``/<owner>/<repo>/blob/<ref>/<path>`` page."""
    parts = [p for p in urlparse(url).path.split("/") if p]
    # /tree/ pages are directory listings with no raw file; they go through the DOM
    if len(parts) < 5 or parts[2] != "blob":
        return None
    owner, repo, _, ref, *path = parts
    return f"https://raw.githubusercontent.com/{owner}/{repo}/{ref}/{'/'.join(path)}"


def markdown_title(text: str) -> str:
    m = _MARKDOWN_TITLE_RE.search(text)
    return m.group(1).strip() if m else "README"


def extract_github(soup: BeautifulSoup, url: str, fetch: Fetcher | None = None) -> RawExtraction:
    """GitHub pages; file views are fetched raw instead of read from the DOM."""
    raw_url = github_raw_url(url)
    if raw_url and fetch is not None:
        try:
            text = fetch(raw_url)
        except Exception as exc:
            logger.warning("Raw fetch of %s failed, using page DOM: %s", raw_url, exc)
        else:
            if text.strip():
                return RawExtraction(
                    title=markdown_title(text),
                    content=text,
                    author="GitHub",
                    date=utc_now_iso(),
                    type="markdown",
                    method="site:github.com",
                )
    return extract_with_profile(GITHUB, "github.com", soup, url)


# ---------------------------------------------------------------------------
# Registration table
# ---------------------------------------------------------------------------

def _rule(key: str, extract: SiteExtractor) -> SiteRule:
    return SiteRule(key, _host_contains(key), extract)


SITE_RULES: tuple[SiteRule, ...] = (
    _rule("news.yahoo.co.jp", _profile_extractor("news.yahoo.co.jp", YAHOO_NEWS)),
    _rule("www3.nhk.or.jp", _profile_extractor("www3.nhk.or.jp", NHK)),
    _rule("asahi.com", _profile_extractor("asahi.com", ASAHI)),
    _rule("yomiuri.co.jp", _profile_extractor("yomiuri.co.jp", YOMIURI)),
    _rule("nikkei.com", _profile_extractor("nikkei.com", NIKKEI)),
    _rule("note.com", _profile_extractor("note.com", NOTE)),
    _rule("hatenablog", _profile_extractor("hatenablog", HATENA_BLOG)),
    _rule("qiita.com", _profile_extractor("qiita.com", QIITA)),
    _rule("zenn.dev", _profile_extractor("zenn.dev", ZENN)),
    _rule("medium.com", _profile_extractor("medium.com", MEDIUM)),
    _rule("wikipedia.org", _profile_extractor("wikipedia.org", WIKIPEDIA)),
    _rule("github.com", extract_github),
    _rule("prtimes.jp", _profile_extractor("prtimes.jp", PR_TIMES)),
)


def matching_rules(hostname: str, rules: tuple[SiteRule, ...] = SITE_RULES) -> list[SiteRule]:
    """Rules whose key occurs in *hostname*, in registration order."""
    hostname = hostname.lower()
    return [rule for rule in rules if rule.matches(hostname)]
