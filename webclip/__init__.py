"""webclip - extract readable article content from web pages.

Quick usage::

    from webclip import extract

    content = extract("https://example.com/post", html)
    print(content.title, content.author)
    print(content.content)

With fallbacks (direct DOM → page-context message → title/body)::

    from webclip import RobustExtractor

    content = RobustExtractor().extract_with_fallback(url, html)

Render as Google Docs requests::

    from webclip import build_requests

    requests = build_requests(content)
"""

from webclip.exceptions import (
    ExtractionFailedError,
    ExtractorError,
    MalformedURLError,
    WebclipError,
)
from webclip.extractor import ContentExtractor, extract
from webclip.fetch import FetchError, fetch_html
from webclip.formatter import build_requests, chunk_requests, document_name
from webclip.items import ExtractedContent, flatten_blocks
from webclip.profiles import ExtractionOptions
from webclip.robust import RobustExtractor

__version__ = "0.1.0"
__all__ = [
    "ContentExtractor",
    "ExtractedContent",
    "ExtractionFailedError",
    "ExtractionOptions",
    "ExtractorError",
    "FetchError",
    "MalformedURLError",
    "RobustExtractor",
    "WebclipError",
    "build_requests",
    "chunk_requests",
    "document_name",
    "extract",
    "fetch_html",
    "flatten_blocks",
]
