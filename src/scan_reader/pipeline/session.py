"""
Per-document session.

Owns everything with per-document state: the page text cache, the extraction
gate, the extractor, the bulk job and the search engine. Created when a
document is opened and discarded when it is closed; nothing here is global.
"""

from __future__ import annotations

from dataclasses import dataclass

from scan_reader.logging import document_context, log
from scan_reader.pipeline.bulk_job import BulkExtractionJob, ProgressCallback
from scan_reader.pipeline.cache import PageTextCache
from scan_reader.pipeline.classifier import classify
from scan_reader.pipeline.extractor import ExtractionGate, PageExtractor
from scan_reader.pipeline.search import SearchEngine
from scan_reader.schemas.jobs import BulkJobState
from scan_reader.schemas.pages import ClassificationResult, PageTextRecord, SearchResults
from scan_reader.storage.base import JobStatusStore, PageTextStore, StorageError
from scan_reader.utils.ocr_client import Recognizer
from scan_reader.utils.renderer import PageOutOfRangeError, PageRenderer


@dataclass
class DocumentSession:
    document_id: str
    renderer: PageRenderer
    classification: ClassificationResult
    cache: PageTextCache
    extractor: PageExtractor
    job: BulkExtractionJob
    search_engine: SearchEngine
    job_store: JobStatusStore
    filename: str | None = None

    @classmethod
    async def open(
        cls,
        document_id: str,
        renderer: PageRenderer,
        recognizer: Recognizer,
        page_store: PageTextStore,
        job_store: JobStatusStore,
        filename: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> "DocumentSession":
        with document_context(document_id):
            cache = PageTextCache()
            try:
                loaded = cache.load_all(await page_store.list_page_text(document_id))
            except StorageError as exc:
                log.warning("session.hydrate_failed", error=str(exc))
                loaded = 0

            classification = await classify(renderer)

            extractor = PageExtractor(
                document_id=document_id,
                cache=cache,
                renderer=renderer,
                recognizer=recognizer,
                store=page_store,
                gate=ExtractionGate(),
            )
            session = cls(
                document_id=document_id,
                renderer=renderer,
                classification=classification,
                cache=cache,
                extractor=extractor,
                job=BulkExtractionJob(extractor, job_store, on_progress=on_progress),
                search_engine=SearchEngine(cache),
                job_store=job_store,
                filename=filename,
            )
            log.info(
                "session.opened",
                pages=session.total_pages,
                cached_pages=loaded,
                is_scanned=classification.is_scanned,
            )
            return session

    @property
    def total_pages(self) -> int:
        return self.renderer.page_count

    @property
    def indexed_pages(self) -> int:
        return self.cache.size_with_text()

    @property
    def needs_extraction(self) -> bool:
        """Scanned and not fully indexed: prompt for (or start) a bulk run."""
        return self.classification.is_scanned and self.indexed_pages < self.total_pages

    def validate_page(self, page_number: int) -> None:
        if not 1 <= page_number <= self.total_pages:
            raise PageOutOfRangeError(f"Page {page_number} is outside 1..{self.total_pages}")

    def get_page(self, page_number: int) -> PageTextRecord | None:
        return self.cache.get(page_number)

    async def extract_page(self, page_number: int) -> PageTextRecord | None:
        self.validate_page(page_number)
        with document_context(self.document_id):
            return await self.extractor.extract_page(page_number)

    def prepare_bulk_extraction(self, page_numbers: list[int] | None = None) -> BulkJobState:
        """Register a bulk run (every page by default) so it can be seen and cancelled at once."""
        pages = page_numbers if page_numbers is not None else range(1, self.total_pages + 1)
        for page_number in pages:
            self.validate_page(page_number)
        return self.job.prepare(pages)

    async def run_bulk_extraction(self, page_numbers: list[int] | None = None) -> BulkJobState:
        """Run the prepared bulk job, preparing one for *page_numbers* if none is pending."""
        if not self.job.running:
            self.prepare_bulk_extraction(page_numbers)
        with document_context(self.document_id):
            return await self.job.run_all()

    def cancel_bulk_extraction(self) -> bool:
        return self.job.cancel()

    def job_state(self) -> BulkJobState | None:
        return self.job.get_state()

    def search(self, query: str) -> SearchResults:
        return self.search_engine.search(query)

    def close(self) -> None:
        self.job.cancel()
        self.renderer.close()
        log.info("session.closed", document_id=self.document_id[:12])
