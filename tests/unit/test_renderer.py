"""Unit tests for the PyMuPDF renderer, using small PDFs built in tmp_path."""

import asyncio

import fitz
import pytest

from scan_reader.utils.renderer import DocumentOpenError, PageOutOfRangeError, PageRenderer, PdfRenderer


@pytest.fixture()
def text_pdf(tmp_path):
    path = tmp_path / "text.pdf"
    doc = fitz.open()
    for n in (1, 2):
        page = doc.new_page(width=300, height=200)
        page.insert_text((40, 80), f"Page number {n}", fontsize=14)
    doc.save(str(path))
    doc.close()
    return path


class TestPdfRenderer:
    def test_satisfies_protocol(self, text_pdf):
        renderer = PdfRenderer(text_pdf)
        assert isinstance(renderer, PageRenderer)
        renderer.close()

    def test_page_count_and_embedded_text(self, text_pdf):
        renderer = PdfRenderer(text_pdf)
        try:
            assert renderer.page_count == 2
            text = asyncio.run(renderer.get_page_embedded_text(2))
            assert "Page number 2" in text
        finally:
            renderer.close()

    def test_rasterize_scales_page(self, text_pdf):
        renderer = PdfRenderer(text_pdf)
        try:
            image = asyncio.run(renderer.rasterize_page(1, 2.0))
        finally:
            renderer.close()
        assert image.data.startswith(b"\x89PNG")
        assert (image.width, image.height) == (600, 400)
        assert image.mime_type == "image/png"

    @pytest.mark.parametrize("page", [0, 3])
    def test_out_of_range(self, text_pdf, page):
        renderer = PdfRenderer(text_pdf)
        try:
            with pytest.raises(PageOutOfRangeError):
                asyncio.run(renderer.get_page_embedded_text(page))
        finally:
            renderer.close()

    def test_garbage_file(self, tmp_path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"this is not a pdf")
        with pytest.raises(DocumentOpenError):
            PdfRenderer(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentOpenError):
            PdfRenderer(tmp_path / "missing.pdf")

    def test_encrypted_file(self, tmp_path):
        path = tmp_path / "locked.pdf"
        doc = fitz.open()
        doc.new_page()
        doc.save(str(path), encryption=fitz.PDF_ENCRYPT_AES_256, owner_pw="owner", user_pw="user")
        doc.close()
        with pytest.raises(DocumentOpenError, match="encrypted"):
            PdfRenderer(path)
