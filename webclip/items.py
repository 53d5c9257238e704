"""Pydantic models for extracted pages and their structured content blocks."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from webclip.extractors.text import clean_structured_text, normalize, unescape_emphasis
from webclip.settings import UNKNOWN_AUTHOR, UNTITLED


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


# ---------------------------------------------------------------------------
# Small value objects
# ---------------------------------------------------------------------------

class ImageRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    src: str
    alt: str = ""


class CodeSnippet(BaseModel):
    model_config = ConfigDict(frozen=True)

    language: str = "text"
    code: str


# ---------------------------------------------------------------------------
# Content blocks (tagged by ``type``)
# ---------------------------------------------------------------------------

class _Block(BaseModel):
    model_config = ConfigDict(frozen=True)


class _TextBlock(_Block):
    text: str

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        if not normalize(v):
            raise ValueError("block text is empty after normalisation")
        return v


class HeadingBlock(_TextBlock):
    type: Literal["heading"] = "heading"
    level: Literal[1, 2, 3]


class ParagraphBlock(_TextBlock):
    type: Literal["paragraph"] = "paragraph"


class QuoteBlock(_TextBlock):
    type: Literal["quote"] = "quote"


class ListBlock(_Block):
    type: Literal["list"] = "list"
    ordered: bool = False
    items: list[str]

    @field_validator("items")
    @classmethod
    def items_not_blank(cls, v: list[str]) -> list[str]:
        if not v or any(not normalize(item) for item in v):
            raise ValueError("list blocks need at least one non-empty item")
        return v


class CodeBlock(_Block):
    type: Literal["code"] = "code"
    language: str = "text"
    code: str

    @field_validator("code")
    @classmethod
    def code_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("code block is empty")
        return v


class ImageBlock(_Block):
    type: Literal["image"] = "image"
    src: str
    alt: str = ""

    @field_validator("src")
    @classmethod
    def src_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("image block needs a src")
        return v


ContentBlock = Annotated[
    HeadingBlock | ParagraphBlock | ListBlock | QuoteBlock | CodeBlock | ImageBlock,
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Flattening (structure -> text)
# ---------------------------------------------------------------------------

def _flatten_block(block: Any) -> str:
    if isinstance(block, HeadingBlock):
        return "#" * block.level + " " + block.text
    if isinstance(block, ListBlock):
        return "\n".join(
            (f"{i}. " if block.ordered else "- ") + item
            for i, item in enumerate(block.items, 1)
        )
    if isinstance(block, QuoteBlock):
        return "\n".join("> " + line for line in block.text.split("\n"))
    if isinstance(block, CodeBlock):
        return f"```{block.language}\n{block.code.rstrip()}\n```"
    if isinstance(block, ImageBlock):
        return f"[画像: {block.alt or 'image'}] ({block.src})"
    return block.text


def flatten_blocks(blocks: list[Any]) -> str:
    """Render *blocks* as plain text, one blank line between blocks.

    Code keeps its own whitespace; everything else gets the structured-text
    whitespace rules.  Escaped literal asterisks (``\\*``) in inline text are
    written back as plain ``*``.
    """
    parts: list[str] = []
    for block in blocks:
        text = _flatten_block(block)
        if isinstance(block, (ParagraphBlock, QuoteBlock, ListBlock)):
            text = unescape_emphasis(text)
        if not isinstance(block, CodeBlock):
            text = clean_structured_text(text)
        if text:
            parts.append(text)
    return "\n\n".join(parts)


# ---------------------------------------------------------------------------
# Canonical page record
# ---------------------------------------------------------------------------

class ExtractedContent(BaseModel):
    """One page visit's worth of extracted content.

    Immutable once built.  ``content`` is always filled; when ``structure``
    is present it is the primary representation and ``content`` is its
    flattened text.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str = ""
    title: str = UNTITLED
    content: str = ""
    structure: list[ContentBlock] | None = None
    author: str = UNKNOWN_AUTHOR
    date: str = Field(default_factory=utc_now_iso)
    images: list[ImageRef] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    code_blocks: list[CodeSnippet] = Field(default_factory=list, alias="codeBlocks")
    type: str = "article"
    extraction_method: str = Field(default="generic", alias="extractionMethod")
    warnings: list[str] = Field(default_factory=list)
    extracted_at: str = Field(default_factory=utc_now_iso, alias="extractedAt")

    @field_validator("title", mode="before")
    @classmethod
    def default_title(cls, v: Any) -> Any:
        return normalize(v) or UNTITLED

    @field_validator("author", mode="before")
    @classmethod
    def default_author(cls, v: Any) -> Any:
        return normalize(v) or UNKNOWN_AUTHOR

    @field_validator("content", mode="before")
    @classmethod
    def content_str(cls, v: Any) -> Any:
        return v or ""

    def to_message(self) -> dict[str, Any]:
        """JSON-safe dict using the wire field names (``codeBlocks`` …)."""
        return self.model_dump(mode="json", by_alias=True)
