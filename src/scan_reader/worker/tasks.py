"""Celery tasks for bulk OCR."""

from __future__ import annotations

import asyncio
from pathlib import Path

from scan_reader.logging import configure_logging, log
from scan_reader.pipeline.session import DocumentSession
from scan_reader.schemas.jobs import BulkJobState
from scan_reader.storage import create_store
from scan_reader.utils.ocr_client import get_recognizer
from scan_reader.utils.renderer import PdfRenderer
from scan_reader.worker.celery_app import celery_app

configure_logging()


async def run_document_extraction(document_id: str, pdf_path: Path) -> BulkJobState:
    """Open *pdf_path*, hydrate from the store and OCR every missing page."""
    # Own store per task: each task runs in a fresh event loop.
    store = create_store()
    try:
        session = await DocumentSession.open(
            document_id,
            PdfRenderer(pdf_path),
            get_recognizer(),
            page_store=store,
            job_store=store,
            filename=pdf_path.name,
        )
        try:
            return await session.run_bulk_extraction()
        finally:
            session.close()
    finally:
        await store.close()


@celery_app.task(bind=True, name="extract_document", max_retries=2)
def extract_document(self, document_id: str, pdf_path: str) -> dict:  # type: ignore[override]
    """
    Run bulk extraction for one document.

    Args:
        document_id: Persistence key (SHA-256 of the PDF).
        pdf_path:    Absolute path to the PDF.

    Returns:
        dict: Serialised BulkJobState (JSON-compatible).
    """
    log.info("task.extract_document.start", document_id=document_id[:12], pdf=pdf_path)
    try:
        state = asyncio.run(run_document_extraction(document_id, Path(pdf_path)))
        log.info(
            "task.extract_document.done",
            document_id=document_id[:12],
            phase=state.phase,
            succeeded=state.succeeded_count,
        )
        return {"document_id": document_id, "state": state.model_dump(mode="json")}
    except Exception as exc:  # noqa: BLE001
        log.error("task.extract_document.error", document_id=document_id[:12], error=str(exc))
        raise self.retry(exc=exc, countdown=30) from exc
