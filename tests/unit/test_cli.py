"""Unit tests for the command line: each ``app()`` call stands in for a separate run."""

import io
from unittest.mock import patch

import pytest
from rich.console import Console

from scan_reader import cli
from scan_reader.config import settings
from tests.fakes import FakeRecognizer, FakeRenderer


@pytest.fixture()
def pdf(tmp_path):
    path = tmp_path / "book.pdf"
    path.write_bytes(b"%PDF-1.4 fake scanned book")
    return path


@pytest.fixture()
def env(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "upload_dir", tmp_path / "uploads")
    monkeypatch.setattr(settings, "data_dir", tmp_path / "data")
    monkeypatch.setattr(settings, "storage_backend", "file")

    recognizers: list[FakeRecognizer] = []

    def new_recognizer():
        recognizers.append(FakeRecognizer())
        return recognizers[-1]

    with patch("scan_reader.utils.renderer.PdfRenderer", side_effect=lambda path: FakeRenderer(page_count=3)), \
         patch("scan_reader.utils.ocr_client.get_recognizer", side_effect=new_recognizer), \
         patch("scan_reader.logging.configure_logging") as configure_logging:
        yield recognizers, configure_logging


def _run(monkeypatch, *argv) -> str:
    out = io.StringIO()
    monkeypatch.setattr(cli, "console", Console(file=out, width=200))
    monkeypatch.setattr("sys.argv", ["scan-reader", *argv])
    cli.app()
    return out.getvalue()


def test_search_finds_text_extracted_by_an_earlier_run(env, pdf, monkeypatch):
    recognizers, _ = env

    extracted = _run(monkeypatch, "extract", str(pdf))
    assert "COMPLETED" in extracted
    assert "3/3 pages have text" in extracted

    found = _run(monkeypatch, "search", str(pdf), "text")
    assert "3 matches" in found
    assert "No page text extracted yet" not in found
    assert recognizers[0].calls == [1, 2, 3]
    assert recognizers[1].calls == []


def test_memory_backend_falls_back_to_file(env, pdf, monkeypatch, tmp_path):
    recognizers, _ = env
    monkeypatch.setattr(settings, "storage_backend", "memory")

    first = _run(monkeypatch, "extract", str(pdf))
    assert "does not persist between runs" in first
    assert any((tmp_path / "data").rglob("*.json"))

    assert "3 matches" in _run(monkeypatch, "search", str(pdf), "text")
    assert recognizers[1].calls == []


def test_classify_reports_indexed_pages(env, pdf, monkeypatch):
    _run(monkeypatch, "extract", str(pdf), "--pages", "1-2")
    output = _run(monkeypatch, "classify", str(pdf))
    assert "scanned" in output
    assert "Indexed: 2" in output


def test_logging_left_on_default_format(env, pdf, monkeypatch):
    _, configure_logging = env
    _run(monkeypatch, "classify", str(pdf))
    configure_logging.assert_called_once_with()


def test_missing_file_exits(env, tmp_path, monkeypatch):
    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, "classify", str(tmp_path / "nope.pdf"))
    assert exc.value.code == 1
