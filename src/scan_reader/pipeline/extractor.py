"""
Per-page OCR extraction.

Flow for one page:
  cached with text? → return it (never OCR a page twice)
  rasterize at ``raster_scale`` → recognize → normalise → cache → persist

Failures (raster error, OCR error, empty text) return ``None`` and leave
nothing in the cache, so the page stays eligible for a later retry.

All extraction for a document goes through one ``ExtractionGate``: a
single-page request made while a bulk run (or another request) holds the
gate is rejected with ``ExtractionBusyError`` instead of racing it.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from scan_reader.config import settings
from scan_reader.logging import log
from scan_reader.pipeline.cache import PageTextCache
from scan_reader.schemas.pages import PageTextRecord
from scan_reader.storage.base import PageTextStore, StorageError
from scan_reader.utils.ocr_client import Recognizer
from scan_reader.utils.renderer import PageRenderer


class ExtractionBusyError(RuntimeError):
    """Raised when another extraction already holds the document's gate."""

    def __init__(self, owner: str | None) -> None:
        super().__init__(f"Extraction already in progress ({owner or 'unknown'})")
        self.owner = owner


class ExtractionGate:
    """Single-flight guard: at most one extraction per document at a time."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._owner: str | None = None

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def owner(self) -> str | None:
        return self._owner

    @asynccontextmanager
    async def hold(self, owner: str) -> AsyncIterator[None]:
        async with self._lock:
            self._owner = owner
            try:
                yield
            finally:
                self._owner = None


class PageExtractor:
    def __init__(
        self,
        document_id: str,
        cache: PageTextCache,
        renderer: PageRenderer,
        recognizer: Recognizer,
        store: PageTextStore,
        gate: ExtractionGate | None = None,
        scale: float | None = None,
    ) -> None:
        self.document_id = document_id
        self.cache = cache
        self.renderer = renderer
        self.recognizer = recognizer
        self.store = store
        self.gate = gate or ExtractionGate()
        self.scale = scale or settings.raster_scale

    async def extract_page(self, page_number: int) -> PageTextRecord | None:
        """On-demand extraction of one page.

        Raises:
            ExtractionBusyError: if a bulk run or another request holds the gate.
        """
        cached = self.cache.get(page_number)
        if cached is not None and cached.has_text:
            return cached

        if self.gate.busy:
            raise ExtractionBusyError(self.gate.owner)

        async with self.gate.hold(f"page:{page_number}"):
            return await self.extract_page_unguarded(page_number)

    async def extract_page_unguarded(self, page_number: int) -> PageTextRecord | None:
        """Extract *page_number*; the caller must already hold ``self.gate``."""
        cached = self.cache.get(page_number)
        if cached is not None and cached.has_text:
            return cached

        try:
            image = await self.renderer.rasterize_page(page_number, self.scale)
        except Exception as exc:  # noqa: BLE001
            log.warning("extractor.raster_error", page=page_number, error=str(exc))
            return None

        try:
            result = await self.recognizer.recognize(image, page_number)
        except Exception as exc:  # noqa: BLE001
            log.warning("extractor.ocr_error", page=page_number, error=str(exc))
            return None

        if not result.success:
            log.warning("extractor.ocr_failed", page=page_number, error=result.error)
            return None
        if not result.text.strip():
            # Blank and transiently failed pages look the same; leave it uncached.
            log.info("extractor.ocr_empty", page=page_number)
            return None

        record = self.cache.put(page_number, result.text)

        try:
            await self.store.upsert_page_text(
                self.document_id,
                page_number,
                record.raw_text,
                record.normalized_text,
            )
        except StorageError as exc:
            # Still searchable this session; re-extracted next session.
            log.error("extractor.persist_failed", page=page_number, error=str(exc))

        log.info(
            "extractor.page_done",
            page=page_number,
            chars=len(record.raw_text),
            width=image.width,
            height=image.height,
        )
        return record
