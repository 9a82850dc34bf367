"""
Page rendering collaborator.

``PdfRenderer`` wraps a PyMuPDF document. PyMuPDF calls block and are not
thread-safe on a shared document, so every call is pushed to a worker thread
with ``asyncio.to_thread`` and serialised with a lock.
"""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import Protocol, runtime_checkable

import fitz  # PyMuPDF

from scan_reader.logging import log
from scan_reader.schemas.pages import RasterImage


class DocumentOpenError(RuntimeError):
    """Raised when a PDF cannot be opened for reading."""


class PageOutOfRangeError(ValueError):
    """Raised for page numbers outside ``1..page_count``."""


@runtime_checkable
class PageRenderer(Protocol):
    @property
    def page_count(self) -> int: ...

    async def get_page_embedded_text(self, page_number: int) -> str: ...

    async def rasterize_page(self, page_number: int, scale: float) -> RasterImage: ...

    def close(self) -> None: ...


class PdfRenderer:
    def __init__(self, pdf_path: Path) -> None:
        try:
            self._doc = fitz.open(str(pdf_path))
        except (RuntimeError, OSError) as exc:  # fitz.FileDataError is a RuntimeError
            raise DocumentOpenError(f"Cannot open PDF: {pdf_path}") from exc

        if self._doc.is_encrypted:
            self._doc.close()
            raise DocumentOpenError(f"PDF is encrypted and cannot be read: {pdf_path}")

        self._path = pdf_path
        self._lock = threading.Lock()
        log.debug("renderer.opened", path=str(pdf_path), pages=len(self._doc))

    @property
    def page_count(self) -> int:
        return len(self._doc)

    def _page(self, page_number: int) -> fitz.Page:
        if not 1 <= page_number <= len(self._doc):
            raise PageOutOfRangeError(f"Page {page_number} is outside 1..{len(self._doc)}")
        return self._doc[page_number - 1]

    def _embedded_text(self, page_number: int) -> str:
        with self._lock:
            return self._page(page_number).get_text("text")

    def _rasterize(self, page_number: int, scale: float) -> RasterImage:
        with self._lock:
            page = self._page(page_number)
            pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), colorspace=fitz.csRGB)
            return RasterImage(data=pix.tobytes("png"), width=pix.width, height=pix.height)

    async def get_page_embedded_text(self, page_number: int) -> str:
        return await asyncio.to_thread(self._embedded_text, page_number)

    async def rasterize_page(self, page_number: int, scale: float) -> RasterImage:
        return await asyncio.to_thread(self._rasterize, page_number, scale)

    def close(self) -> None:
        with self._lock:
            self._doc.close()
