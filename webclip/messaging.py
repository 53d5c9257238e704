"""Request/response messaging between the caller and a page context.

A channel answers ``{"action": "extractContent"}`` with
``{"success": True, "content": {...}}`` or ``{"success": False, "error": "..."}``.
:func:`handle_message` is the page-side responder; the channels decide where
the page comes from.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from bs4 import BeautifulSoup

from webclip import settings
from webclip.extractor import ContentExtractor

logger = logging.getLogger(__name__)

EXTRACT_ACTION = "extractContent"
_EXTRACT_ACTIONS = frozenset({EXTRACT_ACTION, "EXTRACT_CONTENT"})


@runtime_checkable
class MessagingChannel(Protocol):
    """Single round-trip message transport to a page context."""

    def send(self, tab_id: str, message: dict[str, Any]) -> dict[str, Any]:
        """Deliver *message* to *tab_id* and return its reply."""
        ...


def handle_message(
    message: dict[str, Any],
    url: str,
    document: BeautifulSoup | str,
    extractor: ContentExtractor | None = None,
) -> dict[str, Any]:
    """Answer one extraction request for the page at *url*.

    Never raises; failures are reported in the reply.
    """
    action = message.get("action") if isinstance(message, dict) else None
    if action not in _EXTRACT_ACTIONS:
        return {"success": False, "error": f"Unknown action: {action!r}"}
    try:
        content = (extractor or ContentExtractor()).extract(url, document)
    except Exception as exc:
        logger.warning("Extraction request for %s failed: %s", url, exc)
        return {"success": False, "error": str(exc)}
    return {"success": True, "content": content.to_message()}


class LocalChannel:
    """In-process channel: tab ids map to already loaded documents."""

    def __init__(self, extractor: ContentExtractor | None = None) -> None:
        self._extractor = extractor
        self._tabs: dict[str, tuple[str, BeautifulSoup | str]] = {}

    def register(self, tab_id: str, url: str, document: BeautifulSoup | str) -> None:
        self._tabs[tab_id] = (url, document)

    def unregister(self, tab_id: str) -> None:
        self._tabs.pop(tab_id, None)

    def send(self, tab_id: str, message: dict[str, Any]) -> dict[str, Any]:
        if tab_id not in self._tabs:
            return {"success": False, "error": f"No tab registered as {tab_id!r}"}
        url, document = self._tabs[tab_id]
        return handle_message(message, url, document, self._extractor)


class PlaywrightChannel:
    """Channel that renders the tab's URL in headless Chromium before extracting.

    The tab id is the page URL.  Hosts listed in *scroll_hosts* are scrolled
    to the bottom first so lazily loaded bodies are present.
    """

    def __init__(
        self,
        extractor: ContentExtractor | None = None,
        timeout: int = settings.FETCH_TIMEOUT,
        scroll_hosts: tuple[str, ...] = ("note.com",),
    ) -> None:
        self._extractor = extractor
        self._timeout = timeout
        self._scroll_hosts = scroll_hosts

    def send(self, tab_id: str, message: dict[str, Any]) -> dict[str, Any]:
        from webclip.fetch import FetchError, fetch_rendered

        scroll = any(host in tab_id for host in self._scroll_hosts)
        try:
            html = fetch_rendered(tab_id, timeout=self._timeout, scroll=scroll)
        except FetchError as exc:
            return {"success": False, "error": str(exc)}
        return handle_message(message, tab_id, html, self._extractor)
