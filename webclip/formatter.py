"""Turn an ExtractedContent into Google Docs ``batchUpdate`` requests.

Layout::

    抽出日時 / 元URL / 著者 / 公開日     (10pt grey metadata header)
    ──────────────────────────────────
    Title                               (HEADING_1)
    body: one request group per block
    ──────────────────────────────────
    元URL: ...                          (9pt grey footer)

Requests are keyed by a running insertion index that starts at 1.  The
backend counts indices in UTF-16 code units, so every length below is
measured that way (an emoji outside the BMP advances the index by 2).
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from webclip import settings
from webclip.extractors.text import normalize, unescape_emphasis
from webclip.items import (
    CodeBlock,
    ExtractedContent,
    HeadingBlock,
    ImageBlock,
    ListBlock,
    ParagraphBlock,
    QuoteBlock,
)

RULE = "─" * 50

_HEADING_SPACING: dict[int, tuple[int, int]] = {1: (18, 6), 2: (14, 4), 3: (12, 4)}
_GREY = {"color": {"rgbColor": {"red": 0.5, "green": 0.5, "blue": 0.5}}}
_ORDERED_PRESET = "NUMBERED_DECIMAL_ALPHA_ROMAN"
_BULLET_PRESET = "BULLET_DISC_CIRCLE_SQUARE"

# escaped literal asterisk | **bold** | *italic*; markers must hug non-space text
_EMPHASIS_RE = re.compile(
    r"\\\*"
    r"|\*\*(?=\S)(.+?)(?<=[^\s\\])\*\*"
    r"|\*(?=\S)(.+?)(?<=[^\s\\])\*",
    re.DOTALL,
)
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n+")
_SENTENCE_CHUNK_RE = re.compile(r".{1,1000}[。！？\s]|.{1,1000}", re.DOTALL)
_MAX_PARAGRAPH_CHARS = 1000

_UNSAFE_NAME_RE = re.compile(r'[\\/:*?"<>|]')
_NAME_WS_RE = re.compile(r"\s+")
_MULTI_UNDERSCORE_RE = re.compile(r"_{2,}")
_MAX_NAME_CHARS = 100


def utf16_len(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def _pt(value: float) -> dict[str, Any]:
    return {"magnitude": value, "unit": "PT"}


def split_emphasis(text: str) -> tuple[str, list[tuple[int, int, str]]]:
    """Strip ``**bold**`` / ``*italic*`` markers.

    Returns the plain text and ``(start, end, "bold"|"italic")`` ranges in
    UTF-16 units relative to the start of the plain text.  A marker only
    counts when it hugs non-space text, and an escaped ``\\*`` is a literal
    asterisk.
    """
    plain: list[str] = []
    ranges: list[tuple[int, int, str]] = []
    offset = 0
    pos = 0
    for m in _EMPHASIS_RE.finditer(text):
        before = text[pos:m.start()]
        plain.append(before)
        offset += utf16_len(before)
        pos = m.end()
        if m.group(1) is None and m.group(2) is None:
            plain.append("*")
            offset += 1
            continue
        inner = unescape_emphasis(m.group(1) if m.group(1) is not None else m.group(2))
        style = "bold" if m.group(1) is not None else "italic"
        plain.append(inner)
        ranges.append((offset, offset + utf16_len(inner), style))
        offset += utf16_len(inner)
    plain.append(text[pos:])
    return "".join(plain), ranges


def split_paragraphs(text: str) -> list[str]:
    """Blank-line separated paragraphs; long ones are cut at sentence ends."""
    out: list[str] = []
    for para in _PARAGRAPH_SPLIT_RE.split(text or ""):
        para = para.strip()
        if not para:
            continue
        if len(para) <= _MAX_PARAGRAPH_CHARS:
            out.append(para)
            continue
        out.extend(c.strip() for c in _SENTENCE_CHUNK_RE.findall(para) if c.strip())
    return out


class DocsRequestBuilder:
    """Accumulates requests while tracking the running insertion index."""

    def __init__(self, start_index: int = 1) -> None:
        self.index = start_index
        self.requests: list[dict[str, Any]] = []

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def insert(self, text: str) -> tuple[int, int]:
        """Insert *text*; return the (start, end) range it occupies."""
        start = self.index
        self.requests.append({"insertText": {"text": text, "location": {"index": start}}})
        self.index += utf16_len(text)
        return start, self.index

    def insert_line(self, text: str) -> tuple[int, int]:
        """Insert *text* plus a newline; the returned range excludes the newline."""
        start, end = self.insert(text + "\n")
        return start, end - 1

    def paragraph_style(self, start: int, end: int, style: dict[str, Any]) -> None:
        self.requests.append({
            "updateParagraphStyle": {
                "range": {"startIndex": start, "endIndex": end},
                "paragraphStyle": style,
                "fields": ",".join(style),
            },
        })

    def text_style(self, start: int, end: int, style: dict[str, Any]) -> None:
        if end <= start:
            return
        self.requests.append({
            "updateTextStyle": {
                "range": {"startIndex": start, "endIndex": end},
                "textStyle": style,
                "fields": ",".join(style),
            },
        })

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def header(self, content: ExtractedContent, extracted_at: datetime) -> None:
        lines = [
            f"抽出日時: {extracted_at.strftime('%Y/%m/%d %H:%M:%S')}",
            f"元URL: {content.url}",
        ]
        if content.author:
            lines.append(f"著者: {content.author}")
        if content.date:
            lines.append(f"公開日: {content.date}")
        start, end = self.insert_line("\n".join(lines))
        self.text_style(start, end, {"fontSize": _pt(10), "foregroundColor": _GREY})
        self.insert_line(RULE)

    def heading(self, text: str, level: int) -> None:
        above, below = _HEADING_SPACING[level]
        start, end = self.insert_line(text)
        self.paragraph_style(start, end, {
            "namedStyleType": f"HEADING_{level}",
            "spaceAbove": _pt(above),
            "spaceBelow": _pt(below),
        })

    def rich_paragraph(self, text: str) -> None:
        plain, ranges = split_emphasis(text)
        start, _ = self.insert_line(plain)
        for lo, hi, style in ranges:
            self.text_style(start + lo, start + hi, {style: True})

    def bullet_list(self, items: list[str], ordered: bool) -> None:
        first = self.index
        styles: list[tuple[int, int, str]] = []
        for item in items:
            plain, ranges = split_emphasis(item)
            start, _ = self.insert_line(plain)
            styles.extend((start + lo, start + hi, s) for lo, hi, s in ranges)
        self.requests.append({
            "createParagraphBullets": {
                "range": {"startIndex": first, "endIndex": self.index - 1},
                "bulletPreset": _ORDERED_PRESET if ordered else _BULLET_PRESET,
            },
        })
        for lo, hi, style in styles:
            self.text_style(lo, hi, {style: True})

    def quote(self, text: str) -> None:
        plain, ranges = split_emphasis(text)
        start, end = self.insert_line(plain)
        self.paragraph_style(start, end, {
            "indentFirstLine": _pt(0),
            "indentStart": _pt(36),
            "borderLeft": {
                "color": {"color": {"rgbColor": {"red": 0.8, "green": 0.8, "blue": 0.8}}},
                "width": _pt(3),
                "padding": _pt(12),
                "dashStyle": "SOLID",
            },
        })
        for lo, hi, style in ranges:
            self.text_style(start + lo, start + hi, {style: True})

    def code(self, code: str) -> None:
        start, end = self.insert_line(code.rstrip("\n"))
        self.text_style(start, end, {
            "weightedFontFamily": {"fontFamily": "Courier New"},
            "fontSize": _pt(10),
            "backgroundColor": {
                "color": {"rgbColor": {"red": 0.95, "green": 0.95, "blue": 0.95}},
            },
        })
        self.paragraph_style(start, end, {"indentFirstLine": _pt(0), "indentStart": _pt(36)})

    def image(self, src: str, alt: str) -> None:
        if not src.lower().startswith(("http://", "https://")):
            self.insert_line(f"[画像: {alt or 'image'}]")
            return
        self.requests.append({
            "insertInlineImage": {
                "uri": src,
                "location": {"index": self.index},
                "objectSize": {"height": _pt(300), "width": _pt(400)},
            },
        })
        self.index += 1
        self.insert("\n")
        if alt:
            start, end = self.insert_line(f"図: {alt}")
            self.text_style(start, end, {"italic": True, "fontSize": _pt(9)})

    def footer(self, url: str) -> None:
        self.insert("\n" + RULE + "\n")
        start, end = self.insert(f"元URL: {url}")
        self.text_style(start, end, {"fontSize": _pt(9), "foregroundColor": _GREY})

    def block(self, block: Any) -> None:
        if isinstance(block, HeadingBlock):
            self.heading(block.text, block.level)
        elif isinstance(block, ParagraphBlock):
            self.rich_paragraph(block.text)
        elif isinstance(block, ListBlock):
            self.bullet_list(block.items, block.ordered)
        elif isinstance(block, QuoteBlock):
            self.quote(block.text)
        elif isinstance(block, CodeBlock):
            self.code(block.code)
        elif isinstance(block, ImageBlock):
            self.image(block.src, block.alt)


def build_requests(
    content: ExtractedContent,
    extracted_at: datetime | None = None,
    start_index: int = 1,
) -> list[dict[str, Any]]:
    """Full request list for one document, in application order."""
    builder = DocsRequestBuilder(start_index)
    builder.header(content, extracted_at or datetime.now())
    builder.heading(content.title, 1)
    if content.structure:
        blocks = list(content.structure)
        # the page's own h1 usually repeats the title already written above
        first = blocks[0]
        if isinstance(first, HeadingBlock) and normalize(first.text) == normalize(content.title):
            blocks = blocks[1:]
        for block in blocks:
            builder.block(block)
    else:
        for para in split_paragraphs(content.content):
            builder.rich_paragraph(para)
    builder.footer(content.url)
    return builder.requests


def chunk_requests(
    requests: list[dict[str, Any]], size: int = settings.DOCS_BATCH_CHUNK_SIZE,
) -> list[list[dict[str, Any]]]:
    """Split *requests* into batches of at most *size*, order preserved."""
    if size < 1:
        raise ValueError("chunk size must be positive")
    return [requests[i:i + size] for i in range(0, len(requests), size)]


def _sanitize(text: str) -> str:
    text = _UNSAFE_NAME_RE.sub("_", text)
    text = _NAME_WS_RE.sub("_", text)
    return _MULTI_UNDERSCORE_RE.sub("_", text).strip()


def document_name(index: int, name: str = "", subject: str = "") -> str:
    """``NNN_name_subject`` title, at most 100 characters.

    Empty parts become 名前なし / 件名なし; the subject is shortened first.
    """
    prefix = f"{index:03d}"
    safe_name = _sanitize(name or "名前なし")
    safe_subject = _sanitize(subject or "件名なし")
    doc_name = f"{prefix}_{safe_name}_{safe_subject}"
    if len(doc_name) > _MAX_NAME_CHARS:
        available = _MAX_NAME_CHARS - len(prefix) - len(safe_name) - 2
        doc_name = f"{prefix}_{safe_name}_{safe_subject[:max(available, 10)]}"
    return doc_name[:_MAX_NAME_CHARS]
