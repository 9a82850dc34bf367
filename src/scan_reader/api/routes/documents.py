"""
/documents endpoints

POST   /documents/upload
  Upload a PDF and open a reading session for it. The document id is the
  SHA-256 of the file, so re-uploading the same PDF reuses stored page text.

GET    /documents/{document_id}
  Classification, page counts and live bulk-job state.

DELETE /documents/{document_id}
  Close the session and remove the uploaded file.

GET    /documents/{document_id}/pages/{page_number}
POST   /documents/{document_id}/pages/{page_number}/extract
  Read cached page text / OCR one page on demand.

POST   /documents/{document_id}/extract-all
POST   /documents/{document_id}/extract-all/cancel
GET    /documents/{document_id}/job
  Start, cancel and follow the bulk extraction job.
"""

from __future__ import annotations

import shutil
import uuid
from pathlib import Path

from fastapi import APIRouter, BackgroundTasks, File, HTTPException, UploadFile, status
from pydantic import BaseModel

from scan_reader.config import settings
from scan_reader.logging import log
from scan_reader.pipeline.extractor import ExtractionBusyError
from scan_reader.pipeline.session import DocumentSession
from scan_reader.schemas.jobs import BulkJobState, JobProgress
from scan_reader.schemas.pages import ClassificationResult, PageTextRecord
from scan_reader.storage import StorageError, get_store
from scan_reader.utils.ocr_client import get_recognizer
from scan_reader.utils.pdf_utils import document_id_for, safe_filename
from scan_reader.utils.renderer import DocumentOpenError, PageOutOfRangeError, PageRenderer, PdfRenderer

router = APIRouter()


class DocumentSummary(BaseModel):
    document_id: str
    filename: str | None
    total_pages: int
    classification: ClassificationResult
    indexed_pages: int
    needs_extraction: bool
    job: BulkJobState | None = None


class JobView(BaseModel):
    state: BulkJobState | None = None
    persisted: JobProgress | None = None


# Open sessions, one per document (replace with a shared cache for multi-worker deployments)
_sessions: dict[str, DocumentSession] = {}


def _open_renderer(pdf_path: Path) -> PageRenderer:
    return PdfRenderer(pdf_path)


def _summary(session: DocumentSession) -> DocumentSummary:
    return DocumentSummary(
        document_id=session.document_id,
        filename=session.filename,
        total_pages=session.total_pages,
        classification=session.classification,
        indexed_pages=session.indexed_pages,
        needs_extraction=session.needs_extraction,
        job=session.job_state(),
    )


def get_session(document_id: str) -> DocumentSession:
    session = _sessions.get(document_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Document '{document_id}' not found.")
    return session


@router.post("/upload", response_model=DocumentSummary, status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(..., description="PDF document (scanned or text-based)"),
) -> DocumentSummary:
    if not file.filename or not file.filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF files are accepted.")

    safe_name = safe_filename(file.filename)
    tmp = settings.upload_dir / f"{uuid.uuid4()}.part"
    with tmp.open("wb") as out:
        shutil.copyfileobj(file.file, out)

    document_id = document_id_for(tmp)
    if document_id in _sessions:
        tmp.unlink(missing_ok=True)
        log.info("documents.reopened", document_id=document_id[:12], filename=safe_name)
        return _summary(_sessions[document_id])

    dest = settings.upload_dir / f"{document_id}.pdf"
    tmp.replace(dest)

    try:
        renderer = _open_renderer(dest)
    except DocumentOpenError as exc:
        dest.unlink(missing_ok=True)
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    store = get_store()
    session = await DocumentSession.open(
        document_id,
        renderer,
        get_recognizer(),
        page_store=store,
        job_store=store,
        filename=safe_name,
    )
    _sessions[document_id] = session
    log.info("documents.uploaded", document_id=document_id[:12], filename=safe_name, size=dest.stat().st_size)
    return _summary(session)


@router.get("/{document_id}", response_model=DocumentSummary)
async def get_document(document_id: str) -> DocumentSummary:
    return _summary(get_session(document_id))


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(document_id: str) -> None:
    session = get_session(document_id)
    session.close()
    del _sessions[document_id]
    (settings.upload_dir / f"{document_id}.pdf").unlink(missing_ok=True)


@router.get("/{document_id}/pages/{page_number}", response_model=PageTextRecord)
async def get_page(document_id: str, page_number: int) -> PageTextRecord:
    session = get_session(document_id)
    record = session.get_page(page_number)
    if record is None or not record.has_text:
        raise HTTPException(status_code=404, detail=f"Page {page_number} has not been extracted yet.")
    return record


@router.post("/{document_id}/pages/{page_number}/extract", response_model=PageTextRecord)
async def extract_page(document_id: str, page_number: int) -> PageTextRecord:
    session = get_session(document_id)
    try:
        record = await session.extract_page(page_number)
    except PageOutOfRangeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ExtractionBusyError as exc:
        raise HTTPException(status_code=409, detail="Extraction in progress. Try again shortly.") from exc

    if record is None:
        raise HTTPException(
            status_code=422,
            detail=f"Could not read page {page_number}. The page can be retried.",
        )
    return record


@router.post("/{document_id}/extract-all", response_model=BulkJobState, status_code=status.HTTP_202_ACCEPTED)
async def extract_all(document_id: str, background_tasks: BackgroundTasks) -> BulkJobState:
    session = get_session(document_id)
    live = session.job_state()
    if live is not None:
        return live

    # Registered before responding so a cancel sent right away is not lost.
    state = session.prepare_bulk_extraction()
    background_tasks.add_task(_run_bulk, session)
    return state


@router.post("/{document_id}/extract-all/cancel", response_model=JobView)
async def cancel_extract_all(document_id: str) -> JobView:
    session = get_session(document_id)
    session.cancel_bulk_extraction()
    return JobView(state=session.job_state())


@router.get("/{document_id}/job", response_model=JobView)
async def get_job(document_id: str) -> JobView:
    session = get_session(document_id)
    try:
        persisted = await session.job_store.get_job_progress(document_id)
    except StorageError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return JobView(state=session.job_state(), persisted=persisted)


# ---------------------------------------------------------------------------
# Background task
# ---------------------------------------------------------------------------

async def _run_bulk(session: DocumentSession) -> None:
    try:
        state = await session.run_bulk_extraction()
        log.info(
            "documents.bulk_done",
            document_id=session.document_id[:12],
            phase=state.phase,
            succeeded=state.succeeded_count,
        )
    except Exception as exc:  # noqa: BLE001
        log.error("documents.bulk_failed", document_id=session.document_id[:12], error=str(exc))
