"""Spreadsheet-driven batch pipeline.

Each data row names a URL; the runner fetches it, extracts content with the
robust facade, renders document requests and hands them to a sink, which
returns the link written back against the row.  Rows are processed one at a
time and a failing row never stops the batch.

Row numbers are 1-based sheet rows: row 1 holds the sheet title, row 2 the
column headers, data starts at row 3.
"""

from __future__ import annotations

import csv
import json
import logging
import threading
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, Literal, Protocol

from pydantic import BaseModel

from webclip import settings
from webclip.formatter import build_requests, document_name
from webclip.robust import RobustExtractor

logger = logging.getLogger(__name__)

URL_HEADERS: tuple[str, ...] = ("必要なURL", "URL", "必要なurl", "url", "リンク", "Link")
DOC_HEADERS: tuple[str, ...] = (
    "ドキュメント化", "ドキュメント", "Document", "Docs", "GoogleDocs", "結果",
)
NAME_HEADERS: tuple[str, ...] = ("名前", "Name", "氏名", "お名前")
SUBJECT_HEADERS: tuple[str, ...] = ("件名", "Subject", "タイトル", "Title", "題名")


class SheetRow(BaseModel):
    row: int
    url: str = ""
    existing_doc_url: str = ""
    name: str = ""
    subject: str = ""


class RowResult(BaseModel):
    row: int
    url: str = ""
    status: Literal["success", "failed", "skipped"]
    doc_url: str = ""
    error: str = ""


class DocumentSink(Protocol):
    def create(self, name: str, requests: list[dict[str, Any]]) -> str:
        """Create a document from *requests* and return its link."""
        ...


# ---------------------------------------------------------------------------
# Reading rows
# ---------------------------------------------------------------------------

def _find_column(headers: list[str], names: tuple[str, ...]) -> int | None:
    stripped = [h.strip() for h in headers]
    for name in names:
        if name in stripped:
            return stripped.index(name)
    return None


def detect_columns(headers: list[str]) -> dict[str, int | None]:
    """Map url/doc/name/subject to column indexes; url defaults to column 0."""
    url_col = _find_column(headers, URL_HEADERS)
    if url_col is None:
        logger.warning("URL column not found in headers, using the first column")
        url_col = 0
    return {
        "url": url_col,
        "doc": _find_column(headers, DOC_HEADERS),
        "name": _find_column(headers, NAME_HEADERS),
        "subject": _find_column(headers, SUBJECT_HEADERS),
    }


def _cell(values: list[str], col: int | None) -> str:
    if col is None or col >= len(values):
        return ""
    return values[col].strip()


def read_rows_csv(path: str | Path, start_row: int = settings.BATCH_START_ROW) -> list[SheetRow]:
    """Read data rows from a CSV export of the sheet.

    The header row is the one directly above *start_row*.
    """
    with Path(path).open(encoding="utf-8-sig", newline="") as fh:
        table = list(csv.reader(fh))

    header_idx = start_row - 2
    headers = table[header_idx] if 0 <= header_idx < len(table) else []
    cols = detect_columns(headers)

    rows: list[SheetRow] = []
    for offset, values in enumerate(table[start_row - 1:]):
        rows.append(SheetRow(
            row=start_row + offset,
            url=_cell(values, cols["url"]),
            existing_doc_url=_cell(values, cols["doc"]),
            name=_cell(values, cols["name"]),
            subject=_cell(values, cols["subject"]),
        ))
    return rows


# ---------------------------------------------------------------------------
# Sinks and result output
# ---------------------------------------------------------------------------

class JsonRequestsSink:
    """Writes each document's request list to ``<out_dir>/<name>.json``."""

    def __init__(self, out_dir: str | Path) -> None:
        self.out_dir = Path(out_dir)

    def create(self, name: str, requests: list[dict[str, Any]]) -> str:
        self.out_dir.mkdir(parents=True, exist_ok=True)
        path = self.out_dir / f"{name}.json"
        path.write_text(
            json.dumps({"title": name, "requests": requests}, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        return path.resolve().as_uri()


def write_results_csv(results: Iterable[RowResult], path: str | Path) -> None:
    with Path(path).open("w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh)
        writer.writerow(["row", "url", "status", "docUrl", "error"])
        for r in results:
            writer.writerow([r.row, r.url, r.status, r.doc_url, r.error])


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

class BatchRunner:
    """Process sheet rows serially.

    Args:
        fetcher:   ``url -> html`` callable.
        robust:    Extraction facade.
        sink:      Document sink; its return value becomes the row's doc link.
        overwrite: Re-process rows that already have a document link.
        delay:     Seconds to wait between rows.
    """

    def __init__(
        self,
        fetcher: Callable[[str], str],
        robust: RobustExtractor,
        sink: DocumentSink,
        overwrite: bool = False,
        delay: float = settings.BATCH_ROW_DELAY,
        start_row: int = settings.BATCH_START_ROW,
    ) -> None:
        self.fetcher = fetcher
        self.robust = robust
        self.sink = sink
        self.overwrite = overwrite
        self.delay = delay
        self.start_row = start_row
        self._stop = threading.Event()

    def stop(self) -> None:
        """Request cancellation; takes effect before the next row starts."""
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def process_row(self, row: SheetRow) -> RowResult:
        url = row.url.strip()
        if not url:
            return RowResult(row=row.row, status="skipped", error="empty URL")
        if not url.startswith(("http://", "https://")):
            logger.warning("Row %d: invalid URL format: %s", row.row, url)
            return RowResult(row=row.row, url=url, status="failed", error=f"無効なURL形式: {url}")
        if row.existing_doc_url and not self.overwrite:
            return RowResult(
                row=row.row, url=url, status="skipped", doc_url=row.existing_doc_url,
                error="document already exists",
            )

        try:
            html = self.fetcher(url)
            content = self.robust.extract_with_fallback(url, html)
            name = document_name(
                row.row - self.start_row + 1, row.name, row.subject or content.title,
            )
            doc_url = self.sink.create(name, build_requests(content))
        except Exception as exc:
            logger.error("Row %d failed: %s", row.row, exc)
            return RowResult(row=row.row, url=url, status="failed", error=str(exc) or type(exc).__name__)

        logger.info("Row %d completed: %s", row.row, doc_url)
        return RowResult(row=row.row, url=url, status="success", doc_url=doc_url)

    def run(
        self, rows: Iterable[SheetRow], results: list[RowResult] | None = None,
    ) -> list[RowResult]:
        """Process *rows* in order.

        Results are appended to *results* as each row finishes, so a caller
        that passes its own list keeps the finished rows even if the run is
        interrupted.
        """
        if results is None:
            results = []
        for i, row in enumerate(rows):
            if self.stopped:
                logger.info("Processing stopped by request before row %d", row.row)
                break
            if i and self.delay > 0:
                time.sleep(self.delay)
            results.append(self.process_row(row))

        ok = sum(r.status == "success" for r in results)
        failed = sum(r.status == "failed" for r in results)
        logger.info("Batch complete: %d processed, %d succeeded, %d failed", len(results), ok, failed)
        return results
