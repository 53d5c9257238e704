"""Text normalisation shared by every extractor."""

from __future__ import annotations

import re
from typing import Any

# C0 controls except tab, LF and CR, plus DEL
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_WHITESPACE_RE = re.compile(r"\s+")
_HORIZONTAL_WS_RE = re.compile(r"[^\S\n]+")
_SPACE_AROUND_NEWLINE_RE = re.compile(r" ?\n ?")
_EXCESSIVE_NEWLINES_RE = re.compile(r"\n{3,}")


def normalize(text: str | None) -> str:
    """Collapse whitespace runs to one space, trim, and drop control characters.

    Idempotent, and never raises: ``None`` and ``""`` both give ``""``.
    Control characters are removed before collapsing so that a control
    character sitting between two spaces cannot leave a double space behind.
    """
    if not text:
        return ""
    text = _CONTROL_CHARS_RE.sub("", str(text))
    return _WHITESPACE_RE.sub(" ", text).strip()


def clean_structured_text(text: str | None) -> str:
    """Whitespace rules for multi-line block text.

    Same as :func:`normalize` except that newlines survive: runs of
    horizontal whitespace become one space, three or more consecutive
    newlines become exactly two, and leading/trailing blank lines are trimmed.
    """
    if not text:
        return ""
    text = _CONTROL_CHARS_RE.sub("", str(text)).replace("\r\n", "\n").replace("\r", "\n")
    text = _HORIZONTAL_WS_RE.sub(" ", text)
    text = _SPACE_AROUND_NEWLINE_RE.sub("\n", text)
    text = _EXCESSIVE_NEWLINES_RE.sub("\n\n", text)
    return text.strip()


def safe_str(val: Any, default: str = "") -> str:
    """Safely convert a BeautifulSoup attribute value (str | list | None) to str."""
    if val is None:
        return default
    if isinstance(val, list):
        return " ".join(str(v) for v in val)
    return str(val)


def escape_emphasis(text: str) -> str:
    """Escape literal ``*`` so it cannot be read as an emphasis marker."""
    return text.replace("*", "\\*")


def unescape_emphasis(text: str) -> str:
    return text.replace("\\*", "*")
