"""Process-local store (development, CLI one-offs and tests)."""

from __future__ import annotations

from scan_reader.schemas.jobs import JobProgress, JobStatus
from scan_reader.schemas.pages import PageTextRecord, TextOrigin


class InMemoryStore:
    """Implements both ``PageTextStore`` and ``JobStatusStore``."""

    def __init__(self) -> None:
        self._pages: dict[str, dict[int, tuple[str, str]]] = {}
        self._jobs: dict[str, JobProgress] = {}

    async def upsert_page_text(
        self,
        document_id: str,
        page_number: int,
        raw_text: str,
        normalized_text: str,
    ) -> None:
        self._pages.setdefault(document_id, {})[page_number] = (raw_text, normalized_text)

    async def list_page_text(self, document_id: str) -> list[PageTextRecord]:
        rows = self._pages.get(document_id, {})
        return [
            PageTextRecord(
                page_number=page,
                raw_text=raw,
                normalized_text=normalized,
                origin=TextOrigin.FROM_STORE,
            )
            for page, (raw, normalized) in sorted(rows.items())
        ]

    async def update_job_progress(
        self,
        document_id: str,
        processed_count: int,
        status: JobStatus,
    ) -> None:
        self._jobs[document_id] = JobProgress(
            document_id=document_id,
            processed_count=processed_count,
            status=status,
        )

    async def get_job_progress(self, document_id: str) -> JobProgress | None:
        return self._jobs.get(document_id)

    async def close(self) -> None:
        """Nothing to release; kept for parity with ``RedisStore``."""
