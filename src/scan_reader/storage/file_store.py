"""
File-backed store: the default for local use, so text OCR'd by one CLI run
is found by the next.

Layout (``root`` defaults to ``settings.data_dir``):
  {root}/{document_id}/pages/{page:05d}.json   {"page_number", "raw_text", "normalized_text"}
  {root}/{document_id}/job.json                serialised JobProgress

One file per page makes the upsert a plain overwrite. Every write goes to a
temporary file that is then renamed over the target, so a crash mid-write
leaves the previous row intact.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from pathlib import Path

from pydantic import ValidationError

from scan_reader.logging import log
from scan_reader.schemas.jobs import JobProgress, JobStatus
from scan_reader.schemas.pages import PageTextRecord, TextOrigin
from scan_reader.storage.base import StorageError


def _atomic_write(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f"{path.name}.{uuid.uuid4().hex}.tmp")
    try:
        tmp.write_text(payload, encoding="utf-8")
        tmp.replace(path)
    finally:
        tmp.unlink(missing_ok=True)


class FileStore:
    """Implements both ``PageTextStore`` and ``JobStatusStore``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _pages_dir(self, document_id: str) -> Path:
        return self.root / document_id / "pages"

    def _job_path(self, document_id: str) -> Path:
        return self.root / document_id / "job.json"

    async def upsert_page_text(
        self,
        document_id: str,
        page_number: int,
        raw_text: str,
        normalized_text: str,
    ) -> None:
        payload = json.dumps(
            {"page_number": page_number, "raw_text": raw_text, "normalized_text": normalized_text},
            ensure_ascii=False,
        )
        path = self._pages_dir(document_id) / f"{page_number:05d}.json"
        try:
            await asyncio.to_thread(_atomic_write, path, payload)
        except OSError as exc:
            raise StorageError(f"Cannot save page {page_number} of {document_id}: {exc}") from exc

    async def list_page_text(self, document_id: str) -> list[PageTextRecord]:
        try:
            return await asyncio.to_thread(self._read_pages, document_id)
        except OSError as exc:
            raise StorageError(f"Cannot load pages of {document_id}: {exc}") from exc

    def _read_pages(self, document_id: str) -> list[PageTextRecord]:
        pages_dir = self._pages_dir(document_id)
        if not pages_dir.is_dir():
            return []

        records: list[PageTextRecord] = []
        for path in pages_dir.glob("*.json"):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                records.append(PageTextRecord(
                    page_number=int(data["page_number"]),
                    raw_text=data.get("raw_text", ""),
                    normalized_text=data.get("normalized_text", ""),
                    origin=TextOrigin.FROM_STORE,
                ))
            except (ValueError, TypeError, KeyError) as exc:
                log.warning("file_store.bad_page_row", document_id=document_id[:12], file=path.name, error=str(exc))
        records.sort(key=lambda r: r.page_number)
        return records

    async def update_job_progress(
        self,
        document_id: str,
        processed_count: int,
        status: JobStatus,
    ) -> None:
        progress = JobProgress(document_id=document_id, processed_count=processed_count, status=status)
        try:
            await asyncio.to_thread(_atomic_write, self._job_path(document_id), progress.model_dump_json())
        except OSError as exc:
            raise StorageError(f"Cannot checkpoint job for {document_id}: {exc}") from exc

    async def get_job_progress(self, document_id: str) -> JobProgress | None:
        path = self._job_path(document_id)
        try:
            raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Cannot read job for {document_id}: {exc}") from exc
        try:
            return JobProgress.model_validate_json(raw)
        except ValidationError as exc:
            raise StorageError(f"Corrupt job record for {document_id}: {exc}") from exc

    async def close(self) -> None:
        """Nothing to release; files are closed after every call."""
