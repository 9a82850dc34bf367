"""Persistence collaborators for page text and bulk-job progress."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from scan_reader.schemas.jobs import JobProgress, JobStatus
from scan_reader.schemas.pages import PageTextRecord


class StorageError(RuntimeError):
    """Raised when the persistence backend cannot be read or written."""


@runtime_checkable
class PageTextStore(Protocol):
    async def upsert_page_text(
        self,
        document_id: str,
        page_number: int,
        raw_text: str,
        normalized_text: str,
    ) -> None:
        """Insert or replace the row keyed by ``(document_id, page_number)``."""
        ...

    async def list_page_text(self, document_id: str) -> list[PageTextRecord]:
        """All stored pages for *document_id*, ascending by page number."""
        ...


@runtime_checkable
class JobStatusStore(Protocol):
    async def update_job_progress(
        self,
        document_id: str,
        processed_count: int,
        status: JobStatus,
    ) -> None:
        ...

    async def get_job_progress(self, document_id: str) -> JobProgress | None:
        ...
