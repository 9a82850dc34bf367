"""
Command line for working with a PDF locally.

Usage:
    scan-reader classify path/to/book.pdf
    scan-reader extract path/to/book.pdf --pages 1-20 --output pages.json
    scan-reader search path/to/book.pdf "کتاب" --extract
    scan-reader serve
"""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table

console = Console()


def app() -> None:
    import argparse

    parser = argparse.ArgumentParser(
        prog="scan-reader",
        description="OCR and search for scanned PDFs",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_classify = sub.add_parser("classify", help="Report whether a PDF is scanned")
    p_classify.add_argument("pdf", type=Path, help="Path to the PDF")

    p_extract = sub.add_parser("extract", help="OCR every page that has no stored text yet")
    p_extract.add_argument("pdf", type=Path, help="Path to the PDF")
    p_extract.add_argument("--pages", help="Page range, e.g. '1-10,15' (default: all)")
    p_extract.add_argument("--output", type=Path, help="Write extracted page text as JSON to this file")

    p_search = sub.add_parser("search", help="Search extracted text")
    p_search.add_argument("pdf", type=Path, help="Path to the PDF")
    p_search.add_argument("query", help="Text to search for")
    p_search.add_argument("--extract", action="store_true", help="Extract missing pages before searching")

    sub.add_parser("serve", help="Run the HTTP API with uvicorn")

    args = parser.parse_args()

    if args.command == "serve":
        _cmd_serve()
        return

    if not args.pdf.exists():
        console.print(f"[red]File not found: {args.pdf}[/red]")
        sys.exit(1)

    if args.command == "classify":
        asyncio.run(_cmd_classify(args))
    elif args.command == "extract":
        asyncio.run(_cmd_extract(args))
    elif args.command == "search":
        asyncio.run(_cmd_search(args))


def _cmd_serve() -> None:
    import uvicorn

    from scan_reader.config import settings

    uvicorn.run(
        "scan_reader.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )


def _open_store():
    from scan_reader.config import settings
    from scan_reader.storage import create_store

    backend = settings.storage_backend
    if backend == "memory":
        # Each CLI run is a new process; memory would forget every page OCR'd.
        console.print(
            f"[yellow]STORAGE_BACKEND=memory does not persist between runs; "
            f"using the file store in {settings.data_dir}[/yellow]"
        )
        backend = "file"
    return create_store(backend)


@asynccontextmanager
async def _session(pdf: Path, on_progress=None) -> AsyncIterator:
    from scan_reader.config import settings
    from scan_reader.logging import configure_logging
    from scan_reader.pipeline.session import DocumentSession
    from scan_reader.utils.ocr_client import get_recognizer
    from scan_reader.utils.pdf_utils import document_id_for
    from scan_reader.utils.renderer import DocumentOpenError, PdfRenderer

    configure_logging()
    settings.ensure_dirs()

    try:
        renderer = PdfRenderer(pdf)
    except DocumentOpenError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)

    store = _open_store()
    try:
        session = await DocumentSession.open(
            document_id_for(pdf),
            renderer,
            get_recognizer(),
            page_store=store,
            job_store=store,
            filename=pdf.name,
            on_progress=on_progress,
        )
        try:
            yield session
        finally:
            session.close()
    finally:
        await store.close()


async def _cmd_classify(args) -> None:
    async with _session(args.pdf) as session:
        result = session.classification
        kind = "[yellow]scanned[/yellow]" if result.is_scanned else "[green]text-based[/green]"
        console.print(f"[bold]{args.pdf.name}[/bold]: {kind}")
        console.print(
            f"Pages: {session.total_pages}  Sampled: {result.sampled_pages}  "
            f"Avg chars/page: {result.average_chars:.1f}  Indexed: {session.indexed_pages}"
        )


async def _run_extraction(session, pages: list[int] | None, progress: Progress) -> None:
    task_id = progress.add_task("OCR", total=len(pages) if pages is not None else session.total_pages)
    session.job.on_progress = lambda state: progress.update(task_id, completed=state.processed_count)
    state = await session.run_bulk_extraction(pages)

    color = {"completed": "green", "cancelled": "yellow", "failed": "red"}.get(state.phase.value, "white")
    console.print(
        f"[{color}]{state.phase.value.upper()}[/{color}]: "
        f"{state.succeeded_count}/{state.total_pages} pages have text "
        f"({state.processed_count} processed)"
    )


def _progress() -> Progress:
    return Progress(
        TextColumn("[bold]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
    )


async def _cmd_extract(args) -> None:
    from scan_reader.utils.pdf_utils import parse_page_range

    async with _session(args.pdf) as session:
        pages = None
        if args.pages:
            try:
                pages = parse_page_range(args.pages, session.total_pages)
            except ValueError as exc:
                console.print(f"[red]Invalid --pages: {exc}[/red]")
                sys.exit(1)

        with _progress() as progress:
            await _run_extraction(session, pages, progress)

        if args.output:
            records = [r.model_dump(mode="json") for r in session.cache.pages_with_text()]
            args.output.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")
            console.print(f"[green]JSON written to {args.output}[/green]")


async def _cmd_search(args) -> None:
    from scan_reader.schemas.pages import SearchStatus

    async with _session(args.pdf) as session:
        if args.extract and session.indexed_pages < session.total_pages:
            with _progress() as progress:
                await _run_extraction(session, None, progress)

        results = session.search(args.query)
        if results.status == SearchStatus.EMPTY_QUERY:
            console.print("[yellow]Empty query.[/yellow]")
            return
        if results.status == SearchStatus.NOT_INDEXED:
            console.print("[yellow]No page text extracted yet. Re-run with --extract.[/yellow]")
            return

        table = Table(title=f"{results.total} matches for '{args.query}' ({results.indexed_pages} pages indexed)")
        table.add_column("#", style="dim")
        table.add_column("Page", justify="right")
        table.add_column("Context")
        for i, match in enumerate(results.matches, 1):
            table.add_row(str(i), str(match.page_number), match.context_text.replace("\n", " "))
        console.print(table)
