"""Convert a DOM subtree into typed content blocks.

Block types: heading | paragraph | list | quote | code | image

Headings deeper than h3 are demoted to level 3 (the document backend only
styles three heading levels).  Inline emphasis survives as ``**bold**`` /
``*italic*`` markers, literal asterisks are escaped as ``\\*`` and
``<br>`` becomes a newline.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Tag
from bs4.element import NavigableString, PreformattedString

from webclip.extractors.metadata import image_src, is_content_image
from webclip.extractors.text import (
    clean_structured_text,
    escape_emphasis,
    normalize,
    safe_str,
)
from webclip.items import (
    CodeBlock,
    ContentBlock,
    HeadingBlock,
    ImageBlock,
    ListBlock,
    ParagraphBlock,
    QuoteBlock,
)

logger = logging.getLogger(__name__)

# Heading tags → level number (capped at 3)
_HEADING_LEVELS: dict[str, int] = {f"h{i}": min(i, 3) for i in range(1, 7)}

_SKIP_TAGS = frozenset(
    {
        "script", "style", "noscript", "template", "head", "title", "meta",
        "link", "svg", "button", "input", "select", "textarea",
    }
)

_BOLD_TAGS = frozenset({"strong", "b"})
_ITALIC_TAGS = frozenset({"em", "i"})

# Tags whose text flows into the surrounding block
_INLINE_TAGS = frozenset(
    {
        "a", "abbr", "b", "bdi", "bdo", "br", "cite", "code", "data", "del",
        "dfn", "em", "font", "i", "ins", "kbd", "label", "mark", "q", "rp",
        "rt", "ruby", "s", "samp", "small", "span", "strong", "sub", "sup",
        "time", "u", "var", "wbr",
    }
)

_LANG_CLASS_RE = re.compile(r"^language-([\w+#-]+)$")


def code_language(tag: Tag) -> str:
    """Detect language from class="language-X" on *tag* or its <code> child."""
    for el in (tag, tag.find("code")):
        if not isinstance(el, Tag):
            continue
        for cls in el.get("class") or []:
            m = _LANG_CLASS_RE.match(str(cls))
            if m:
                return m.group(1)
    return "text"


# ---------------------------------------------------------------------------
# Inline text
# ---------------------------------------------------------------------------

def _inline_piece(node: NavigableString | Tag) -> str:
    if isinstance(node, NavigableString):
        return "" if isinstance(node, PreformattedString) else escape_emphasis(str(node))
    if not isinstance(node, Tag) or node.name in _SKIP_TAGS:
        return ""
    if node.name == "br":
        return "\n"
    if node.name in _BOLD_TAGS or node.name in _ITALIC_TAGS:
        raw = node.get_text(" ")
        # edge whitespace stays outside the markers
        lead = " " if raw[:1].isspace() else ""
        trail = " " if raw[-1:].isspace() else ""
        inner = normalize(escape_emphasis(raw))
        if not inner:
            return lead or trail
        marker = "**" if node.name in _BOLD_TAGS else "*"
        return f"{lead}{marker}{inner}{marker}{trail}"
    return inline_text(node, clean=False)


def inline_text(el: Tag, clean: bool = True) -> str:
    """Text of *el* with emphasis markers and ``<br>`` line breaks kept."""
    text = "".join(_inline_piece(child) for child in el.children)
    return clean_structured_text(text) if clean else text


# ---------------------------------------------------------------------------
# Block handlers
# ---------------------------------------------------------------------------

def _image_blocks(imgs: list[Tag], base_url: str) -> list[ImageBlock]:
    blocks: list[ImageBlock] = []
    for img in imgs:
        src = image_src(img, base_url)
        if src and is_content_image(src):
            blocks.append(ImageBlock(src=src, alt=normalize(safe_str(img.get("alt")))))
    return blocks


def _inside_item(li: Tag, list_tag: Tag) -> bool:
    """True when *li* sits inside another ``<li>`` below *list_tag*."""
    for parent in li.parents:
        if parent is list_tag:
            return False
        if parent.name == "li":
            return True
    return False


def _list_items(list_tag: Tag) -> list[str]:
    """Item texts of *list_tag*; nested list items follow their parent item."""
    lis = list_tag.find_all("li", recursive=False) or [
        li for li in list_tag.find_all("li") if not _inside_item(li, list_tag)
    ]
    items: list[str] = []
    for li in lis:
        own = "".join(
            _inline_piece(child)
            for child in li.children
            if not (isinstance(child, Tag) and child.name in ("ul", "ol"))
        )
        own = normalize(own)
        if own:
            items.append(own)
        for nested in li.find_all(["ul", "ol"], recursive=False):
            items.extend(_list_items(nested))
    return items


def _quote_text(quote: Tag) -> str:
    """Quote text; block-level children are joined with newlines."""
    lines: list[str] = []
    pending: list[str] = []

    def _flush() -> None:
        text = clean_structured_text("".join(pending))
        if text:
            lines.append(text)
        pending.clear()

    for child in quote.children:
        if isinstance(child, Tag) and child.name not in _INLINE_TAGS:
            _flush()
            if child.name in _SKIP_TAGS:
                continue
            if child.name in ("ul", "ol"):
                lines.extend(_list_items(child))
                continue
            text = inline_text(child)
            if text:
                lines.append(text)
        else:
            pending.append(_inline_piece(child))
    _flush()
    return "\n".join(lines)


def _process_element(el: Tag, base_url: str, blocks: list[ContentBlock]) -> bool:
    """Emit blocks for *el*; return False when *el* is a plain container."""
    tag_name = el.name

    # Headings
    if tag_name in _HEADING_LEVELS:
        text = normalize(el.get_text(" "))
        if text:
            blocks.append(HeadingBlock(level=_HEADING_LEVELS[tag_name], text=text))
        return True

    # Paragraphs (image-only paragraphs become image blocks)
    if tag_name == "p":
        imgs = [i for i in el.find_all("img") if isinstance(i, Tag)]
        text = inline_text(el)
        if normalize(text):
            blocks.append(ParagraphBlock(text=text))
        blocks.extend(_image_blocks(imgs, base_url))
        return True

    # Lists
    if tag_name in ("ul", "ol"):
        items = _list_items(el)
        if items:
            blocks.append(ListBlock(ordered=tag_name == "ol", items=items))
        return True

    # Block quotes
    if tag_name == "blockquote":
        text = _quote_text(el)
        if normalize(text):
            blocks.append(QuoteBlock(text=text))
        return True

    # Code blocks (<pre> wrapping <code>)
    if tag_name == "pre":
        code_el = el.find("code")
        code = (code_el if isinstance(code_el, Tag) else el).get_text()
        if code.strip():
            blocks.append(CodeBlock(language=code_language(el), code=code.strip("\n")))
        return True

    # Standalone image
    if tag_name == "img":
        blocks.extend(_image_blocks([el], base_url))
        return True

    # Figure: image(s) plus caption paragraph; imageless figures are containers
    if tag_name == "figure":
        imgs = [i for i in el.find_all("img") if isinstance(i, Tag)]
        if not imgs:
            return False
        blocks.extend(_image_blocks(imgs, base_url))
        caption = el.find("figcaption")
        if isinstance(caption, Tag):
            text = inline_text(caption)
            if normalize(text):
                blocks.append(ParagraphBlock(text=text))
        return True

    return False


def _walk(node: Tag, base_url: str, blocks: list[ContentBlock]) -> None:
    pending: list[str] = []

    def _flush() -> None:
        text = clean_structured_text("".join(pending))
        if normalize(text):
            blocks.append(ParagraphBlock(text=text))
        pending.clear()

    for child in node.children:
        if isinstance(child, NavigableString):
            pending.append(_inline_piece(child))
            continue
        if not isinstance(child, Tag) or child.name in _SKIP_TAGS:
            continue
        if child.name in _INLINE_TAGS:
            pending.append(_inline_piece(child))
            # linked or wrapped images (<a><img></a>) still become image blocks
            imgs = [i for i in child.find_all("img") if isinstance(i, Tag)]
            if imgs:
                _flush()
                blocks.extend(_image_blocks(imgs, base_url))
            continue
        _flush()
        if not _process_element(child, base_url, blocks):
            # Generic container (div, section, article, ...): recurse
            _walk(child, base_url, blocks)
    _flush()


def build_blocks(root: BeautifulSoup | Tag | None, base_url: str = "") -> list[ContentBlock]:
    """Walk *root* depth-first and return its content blocks in document order.

    Empty blocks are dropped rather than emitted.  Never raises: a failure
    part-way through returns the blocks built so far.
    """
    blocks: list[ContentBlock] = []
    if root is None:
        return blocks
    try:
        if isinstance(root, Tag) and _process_element(root, base_url, blocks):
            return blocks
        _walk(root, base_url, blocks)
    except Exception as exc:
        logger.warning("Structure building stopped early: %s", exc)
    return blocks
