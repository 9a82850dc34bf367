"""
Bulk OCR over a whole document.

  - Pages run one at a time in ascending order; the OCR backend is rate and
    cost bound, so never in parallel.
  - Pages already cached with text count as succeeded without an OCR call, so
    a rerun after a restart continues from the first gap.
  - A failed page still advances the job.
  - Progress is checkpointed to the job-status store every
    ``checkpoint_interval`` pages and at the end. A failed checkpoint stops
    the run as ``failed``: silently losing progress would break resuming.
  - ``cancel()`` takes effect between pages, or before the first page when
    the run is only prepared; work done so far stays cached.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable

from scan_reader.config import settings
from scan_reader.logging import log
from scan_reader.pipeline.extractor import PageExtractor
from scan_reader.schemas.jobs import BulkJobState, JobPhase, JobStatus
from scan_reader.storage.base import JobStatusStore, StorageError

ProgressCallback = Callable[[BulkJobState], None]


class BulkExtractionJob:
    def __init__(
        self,
        extractor: PageExtractor,
        job_store: JobStatusStore,
        checkpoint_interval: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.extractor = extractor
        self.job_store = job_store
        self.checkpoint_interval = checkpoint_interval or settings.checkpoint_interval
        self.on_progress = on_progress
        self._state: BulkJobState | None = None
        self._pages: list[int] = []
        self._started = False
        self._cancel_requested = False

    @property
    def document_id(self) -> str:
        return self.extractor.document_id

    @property
    def running(self) -> bool:
        """True from ``prepare()`` until the run ends."""
        return self._state is not None

    def get_state(self) -> BulkJobState | None:
        """Snapshot of the active run, or ``None`` when idle."""
        return self._state.model_copy() if self._state is not None else None

    def cancel(self) -> bool:
        """Request cancellation. Returns False when no run is active."""
        if self._state is None:
            return False
        self._cancel_requested = True
        log.info("bulk_job.cancel_requested", processed=self._state.processed_count)
        return True

    def prepare(self, page_numbers: Iterable[int]) -> BulkJobState:
        """Register a run without starting it.

        State and ``cancel()`` see the run from here on, so a cancel that
        arrives before ``run_all()`` gets going still stops it before the
        first page.
        """
        if self._state is not None:
            return self._state.model_copy()
        self._pages = sorted(set(page_numbers))
        self._state = BulkJobState(total_pages=len(self._pages), phase=JobPhase.RUNNING)
        self._cancel_requested = False
        self._started = False
        return self._state.model_copy()

    async def run_all(self, page_numbers: Iterable[int] | None = None) -> BulkJobState:
        """Run the prepared pages, or *page_numbers* when nothing is prepared."""
        if self._state is None:
            if page_numbers is None:
                raise ValueError("No pages prepared for bulk extraction")
            self.prepare(page_numbers)
        elif self._started:
            # Already running: report progress instead of starting a second run.
            return self._state.model_copy()

        self._started = True
        state = self._state
        pages = self._pages
        log.info("bulk_job.start", total_pages=state.total_pages)

        try:
            async with self.extractor.gate.hold("bulk"):
                await self._run(pages, state)
        except Exception as exc:
            state.phase = JobPhase.FAILED
            log.error("bulk_job.crashed", error=str(exc), processed=state.processed_count)
            await self._write_failed(state)
            raise
        finally:
            self._state = None
            self._pages = []
            self._started = False
            self._cancel_requested = False

        log.info(
            "bulk_job.finished",
            phase=state.phase,
            processed=state.processed_count,
            succeeded=state.succeeded_count,
            total=state.total_pages,
        )
        return state.model_copy()

    async def _run(self, pages: list[int], state: BulkJobState) -> None:
        cache = self.extractor.cache

        for page_number in pages:
            if self._cancel_requested:
                state.cancelled = True
                state.phase = JobPhase.CANCELLED
                # Progress stays "processing" so the run can be resumed.
                await self._checkpoint(state, JobStatus.PROCESSING)
                return

            if cache.has_text(page_number):
                state.succeeded_count += 1
            else:
                record = await self.extractor.extract_page_unguarded(page_number)
                if record is not None:
                    state.succeeded_count += 1
            state.processed_count += 1

            last = state.processed_count == state.total_pages
            if not last and state.processed_count % self.checkpoint_interval == 0:
                if not await self._checkpoint(state, JobStatus.PROCESSING):
                    return

            self._notify(state)
            # Let page navigation and search run between pages.
            await asyncio.sleep(0)

        if await self._checkpoint(state, JobStatus.COMPLETED):
            state.phase = JobPhase.COMPLETED

    async def _checkpoint(self, state: BulkJobState, status: JobStatus) -> bool:
        try:
            await self.job_store.update_job_progress(self.document_id, state.processed_count, status)
        except StorageError as exc:
            log.error("bulk_job.checkpoint_failed", error=str(exc), processed=state.processed_count)
            state.phase = JobPhase.FAILED
            await self._write_failed(state)
            self._notify(state)
            return False
        log.debug("bulk_job.checkpoint", status=status, processed=state.processed_count)
        return True

    async def _write_failed(self, state: BulkJobState) -> None:
        try:
            await self.job_store.update_job_progress(
                self.document_id, state.processed_count, JobStatus.FAILED
            )
        except StorageError as exc:
            log.error("bulk_job.failed_status_not_written", error=str(exc))

    def _notify(self, state: BulkJobState) -> None:
        if self.on_progress is not None:
            self.on_progress(state.model_copy())
