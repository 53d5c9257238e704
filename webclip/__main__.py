"""CLI entry point: python -m webclip --url URL [options]"""

from __future__ import annotations

import argparse
import functools
import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path

from webclip import settings
from webclip.batch import BatchRunner, JsonRequestsSink, RowResult, read_rows_csv, write_results_csv
from webclip.exceptions import WebclipError
from webclip.extractor import ContentExtractor
from webclip.fetch import FetchError, fetch_html, fetch_rendered
from webclip.formatter import build_requests
from webclip.messaging import PlaywrightChannel
from webclip.profiles import ExtractionOptions, options_for
from webclip.robust import RobustExtractor

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webclip",
        description=(
            "Extract readable article content from web pages and render it as\n"
            "Google Docs batchUpdate requests. Single page or sheet-driven batch."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", metavar="URL",
                        help="Page to extract (fetched unless --html is given)")
    source.add_argument("--csv", metavar="FILE",
                        help="CSV export of the URL sheet; runs the batch pipeline")
    parser.add_argument("--html", metavar="FILE", default=None,
                        help="Read the page for --url from a local HTML file instead of fetching")
    parser.add_argument("--docs-requests", action="store_true", default=False,
                        help="Print the document requests instead of the extracted content")
    parser.add_argument("--out", default="./out", metavar="DIR",
                        help="Batch output directory (default: ./out)")
    parser.add_argument("--start-row", type=int, default=settings.BATCH_START_ROW, metavar="N",
                        help=f"First data row of the sheet (default: {settings.BATCH_START_ROW})")
    parser.add_argument("--delay", type=float, default=settings.BATCH_ROW_DELAY, metavar="SECONDS",
                        help=f"Pause between batch rows (default: {settings.BATCH_ROW_DELAY})")
    parser.add_argument("--profile", default=None, metavar="FILE",
                        help="YAML extraction profile with default: and domains: sections")
    parser.add_argument("--render-js", action="store_true", default=False,
                        help="Render pages in headless Chromium (requires the 'js' extra)")
    parser.add_argument("--overwrite", action="store_true", default=False,
                        help="Re-process rows that already have a document link")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help=f"Logging level (default: {settings.LOG_LEVEL})")
    return parser


def _build_robust(options: ExtractionOptions, render_js: bool) -> RobustExtractor:
    extractor = ContentExtractor(
        fetcher=functools.partial(fetch_html, timeout=options.fetch_timeout),
        options=options,
    )
    channel = PlaywrightChannel(extractor, timeout=options.fetch_timeout) if render_js else None
    return RobustExtractor(extractor, channel, message_timeout=options.message_timeout)


def _page_fetcher(options: ExtractionOptions, render_js: bool) -> Callable[[str], str]:
    if render_js:
        return functools.partial(fetch_rendered, timeout=options.fetch_timeout)
    return functools.partial(fetch_html, timeout=options.fetch_timeout)


def _run_single(args: argparse.Namespace) -> int:
    options = options_for(args.url, args.profile)
    try:
        if args.html:
            html = Path(args.html).read_text(encoding="utf-8", errors="replace")
        else:
            html = _page_fetcher(options, args.render_js)(args.url)
        content = _build_robust(options, args.render_js).extract_with_fallback(args.url, html)
    except (FetchError, WebclipError, OSError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    payload = build_requests(content) if args.docs_requests else content.to_message()
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


def _run_batch(args: argparse.Namespace) -> int:
    # per-domain profile sections do not apply to a mixed batch; defaults only
    options = options_for("", args.profile)
    out_dir = Path(args.out).resolve()
    try:
        rows = read_rows_csv(args.csv, start_row=args.start_row)
    except OSError as exc:
        print(f"ERROR: Could not read {args.csv}: {exc}", file=sys.stderr)
        return 1

    runner = BatchRunner(
        fetcher=_page_fetcher(options, args.render_js),
        robust=_build_robust(options, args.render_js),
        sink=JsonRequestsSink(out_dir),
        overwrite=args.overwrite,
        delay=args.delay,
        start_row=args.start_row,
    )
    results: list[RowResult] = []
    try:
        runner.run(rows, results)
    except KeyboardInterrupt:
        runner.stop()
        print("Interrupted.", file=sys.stderr)
        out_dir.mkdir(parents=True, exist_ok=True)
        write_results_csv(results, out_dir / "results.csv")
        return 130

    out_dir.mkdir(parents=True, exist_ok=True)
    write_results_csv(results, out_dir / "results.csv")
    _print_summary(results, out_dir)
    return 0 if all(r.status != "failed" for r in results) else 1


def _print_summary(results: list[RowResult], out_dir: Path) -> None:
    try:
        from rich import box
        from rich.console import Console
        from rich.rule import Rule
        from rich.table import Table

        console = Console()
        counts = {s: sum(r.status == s for r in results) for s in ("success", "failed", "skipped")}

        console.print()
        console.print(Rule("[bold cyan]Batch Summary[/bold cyan]"))
        console.print(f"  [bold]Succeeded :[/bold] [green]{counts['success']}[/green]")
        console.print(f"  [bold]Failed    :[/bold] [red]{counts['failed']}[/red]")
        console.print(f"  [bold]Skipped   :[/bold] [yellow]{counts['skipped']}[/yellow]")
        console.print(f"  [bold]Results   :[/bold] [green]{out_dir / 'results.csv'}[/green]")
        console.print()

        if results:
            tbl = Table(box=box.SIMPLE_HEAVY, show_lines=False)
            tbl.add_column("Row",    style="dim",  justify="right", width=5, no_wrap=True)
            tbl.add_column("Status", width=8,                        no_wrap=True)
            tbl.add_column("URL",    style="blue", max_width=50,     no_wrap=True)
            tbl.add_column("Result", max_width=60,                   no_wrap=True)
            colour = {"success": "green", "failed": "red", "skipped": "yellow"}
            for r in results:
                tbl.add_row(
                    str(r.row),
                    f"[{colour[r.status]}]{r.status}[/{colour[r.status]}]",
                    r.url[:50] or "-",
                    (r.doc_url or r.error or "-")[:60],
                )
            console.print(tbl)
    except Exception as exc:
        logger.debug("Rich summary display failed: %s", exc)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.html and not args.url:
        parser.error("--html requires --url")

    logging.basicConfig(level=args.log_level, format=settings.LOG_FORMAT)

    if args.csv:
        return _run_batch(args)
    return _run_single(args)


if __name__ == "__main__":
    sys.exit(main())
