"""YAML-based extraction profiles.

A profile file has an optional ``default:`` section and a ``domains:`` mapping;
the longest domain key matching the page host is merged over the defaults::

    default:
      min_content_chars: 100
    domains:
      news.yahoo.co.jp:
        max_content_chars: 10000
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, ConfigDict, Field

from webclip import settings


class ExtractionOptions(BaseModel):
    """Tunables for one extraction run."""

    model_config = ConfigDict(extra="ignore")

    max_content_chars: int | None = Field(default=settings.MAX_CONTENT_CHARS, gt=0)
    min_content_chars: int = Field(default=settings.MIN_CONTENT_CHARS, ge=0)
    message_timeout: float = Field(default=settings.MESSAGE_TIMEOUT, gt=0)
    fetch_timeout: int = Field(default=settings.FETCH_TIMEOUT, gt=0)


def load_profile(path: str | Path, url: str) -> dict[str, Any]:
    """Load YAML profile and return merged settings for the given URL."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    default = data.get("default", {}) if isinstance(data, dict) else {}
    domains = data.get("domains", {}) if isinstance(data, dict) else {}

    host = (urlparse(url).hostname or "").lower()
    best_key = ""
    best_cfg: dict[str, Any] = {}
    if isinstance(domains, dict):
        for key, cfg in domains.items():
            if not isinstance(key, str) or not isinstance(cfg, dict):
                continue
            key_lower = key.lower()
            if (host == key_lower or host.endswith("." + key_lower)) and (
                len(key_lower) > len(best_key)
            ):
                best_key = key_lower
                best_cfg = cfg

    merged: dict[str, Any] = {}
    if isinstance(default, dict):
        merged.update(default)
    merged.update(best_cfg)
    return merged


def options_for(url: str, path: str | Path | None = None) -> ExtractionOptions:
    """ExtractionOptions for *url*, from the profile at *path* when given."""
    if path is None:
        return ExtractionOptions()
    return ExtractionOptions.model_validate(load_profile(path, url))
