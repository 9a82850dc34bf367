"""
Integration tests for the FastAPI endpoints.

The PDF renderer and the OCR backend are patched with in-process fakes, so
no real PDF parsing or OCR happens. Background tasks run to completion
before ``TestClient`` returns, which makes bulk extraction deterministic.
"""

from __future__ import annotations

import io
import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

import scan_reader.storage
from scan_reader.api.main import app
from scan_reader.api.routes import documents
from scan_reader.config import settings
from tests.fakes import FakeRecognizer, FakeRenderer

pytestmark = pytest.mark.integration


@pytest.fixture()
def fake_renderer() -> FakeRenderer:
    return FakeRenderer(page_count=6)


@pytest.fixture()
def fake_recognizer() -> FakeRecognizer:
    return FakeRecognizer(texts={2: "باب الصلاة", 5: "کتاب الصلاہ والزکاۃ"})


@pytest.fixture()
def client(tmp_path, monkeypatch, fake_renderer, fake_recognizer):
    monkeypatch.setattr(settings, "upload_dir", tmp_path)
    monkeypatch.setattr(settings, "storage_backend", "memory")
    monkeypatch.setattr(scan_reader.storage, "_store", None)
    documents._sessions.clear()

    with patch.object(documents, "_open_renderer", return_value=fake_renderer), \
         patch.object(documents, "get_recognizer", return_value=fake_recognizer), \
         TestClient(app) as c:
        yield c
    documents._sessions.clear()


def _upload(client, content: bytes = b"%PDF-1.4 fake scanned book", name: str = "book.pdf"):
    return client.post(
        "/documents/upload",
        files={"file": (name, io.BytesIO(content), "application/pdf")},
    )


@pytest.fixture()
def document_id(client) -> str:
    resp = _upload(client)
    assert resp.status_code == 201
    return resp.json()["document_id"]


class TestHealthEndpoint:
    def test_health_ok(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["storage_backend"] == "memory"


class TestUpload:
    def test_upload_opens_session(self, client, tmp_path):
        resp = _upload(client)
        assert resp.status_code == 201
        data = resp.json()
        assert data["filename"] == "book.pdf"
        assert data["total_pages"] == 6
        assert data["classification"]["is_scanned"] is True
        assert data["needs_extraction"] is True
        assert (tmp_path / f"{data['document_id']}.pdf").exists()

    def test_same_file_reuses_session(self, client):
        first = _upload(client).json()["document_id"]
        second = _upload(client, name="other name.pdf").json()["document_id"]
        assert first == second
        assert client.get("/health").json()["open_documents"] == 1

    def test_upload_non_pdf_rejected(self, client):
        resp = client.post(
            "/documents/upload",
            files={"file": ("document.docx", b"fake", "application/octet-stream")},
        )
        assert resp.status_code == 400

    def test_unreadable_pdf_rejected(self, client):
        from scan_reader.utils.renderer import DocumentOpenError

        with patch.object(documents, "_open_renderer", side_effect=DocumentOpenError("broken")):
            resp = _upload(client, content=b"not really a pdf")
        assert resp.status_code == 422

    def test_get_unknown_document_404(self, client):
        assert client.get("/documents/does-not-exist").status_code == 404


class TestPages:
    def test_page_not_extracted_yet(self, client, document_id):
        assert client.get(f"/documents/{document_id}/pages/2").status_code == 404

    def test_extract_then_read(self, client, document_id, fake_recognizer):
        resp = client.post(f"/documents/{document_id}/pages/2/extract")
        assert resp.status_code == 200
        assert resp.json()["raw_text"] == "باب الصلاة"

        again = client.get(f"/documents/{document_id}/pages/2")
        assert again.status_code == 200
        assert again.json()["normalized_text"] == "باب الصلاہ"
        # a second extract request is served from the cache
        client.post(f"/documents/{document_id}/pages/2/extract")
        assert fake_recognizer.calls == [2]

    def test_out_of_range_page(self, client, document_id):
        assert client.post(f"/documents/{document_id}/pages/99/extract").status_code == 400

    def test_failed_page_reported(self, client, document_id, fake_recognizer):
        fake_recognizer.failures.add(3)
        resp = client.post(f"/documents/{document_id}/pages/3/extract")
        assert resp.status_code == 422

    def test_busy_extraction_rejected(self, client, document_id):
        from scan_reader.pipeline.extractor import ExtractionBusyError

        session = documents._sessions[document_id]
        with patch.object(session, "extract_page", side_effect=ExtractionBusyError("bulk")):
            resp = client.post(f"/documents/{document_id}/pages/1/extract")
        assert resp.status_code == 409


class TestBulkExtraction:
    def test_extract_all_runs_to_completion(self, client, document_id, fake_recognizer):
        resp = client.post(f"/documents/{document_id}/extract-all")
        assert resp.status_code == 202
        assert resp.json()["phase"] == "running"

        assert fake_recognizer.calls == [1, 2, 3, 4, 5, 6]
        job = client.get(f"/documents/{document_id}/job").json()
        assert job["state"] is None
        assert job["persisted"]["status"] == "completed"
        assert job["persisted"]["processed_count"] == 6

        summary = client.get(f"/documents/{document_id}").json()
        assert summary["indexed_pages"] == 6
        assert summary["needs_extraction"] is False

    def test_cancel_without_job(self, client, document_id):
        resp = client.post(f"/documents/{document_id}/extract-all/cancel")
        assert resp.status_code == 200
        assert resp.json()["state"] is None

    def test_cancel_right_after_extract_all(self, client, document_id, fake_recognizer):
        with patch.object(documents, "_run_bulk", AsyncMock()):
            resp = client.post(f"/documents/{document_id}/extract-all")
        assert resp.status_code == 202
        assert client.get(f"/documents/{document_id}/job").json()["state"]["phase"] == "running"

        cancel = client.post(f"/documents/{document_id}/extract-all/cancel").json()
        assert cancel["state"] is not None

        state = asyncio.run(documents._sessions[document_id].run_bulk_extraction())
        assert state.phase.value == "cancelled"
        assert fake_recognizer.calls == []

    def test_text_survives_reupload(self, client, document_id, fake_recognizer):
        client.post(f"/documents/{document_id}/extract-all")
        assert client.delete(f"/documents/{document_id}").status_code == 204

        fake_recognizer.calls.clear()
        summary = _upload(client).json()
        assert summary["indexed_pages"] == 6
        assert summary["needs_extraction"] is False
        assert fake_recognizer.calls == []


class TestSearch:
    def test_search_before_extraction(self, client, document_id):
        resp = client.get(f"/documents/{document_id}/search", params={"q": "الصلاة"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "not_indexed"

    def test_search_across_variants(self, client, document_id):
        client.post(f"/documents/{document_id}/extract-all")
        data = client.get(f"/documents/{document_id}/search", params={"q": "الصلاة"}).json()
        assert data["status"] == "ok"
        assert [(m["page_number"], m["match_ordinal"]) for m in data["matches"]] == [(2, 0), (5, 0)]
        assert data["matches"][0]["context_text"] == "باب الصلاة"

    def test_empty_query(self, client, document_id):
        data = client.get(f"/documents/{document_id}/search", params={"q": "   "}).json()
        assert data["status"] == "empty_query"
        assert data["matches"] == []

    def test_search_unknown_document(self, client):
        assert client.get("/documents/nope/search", params={"q": "x"}).status_code == 404


class TestDelete:
    def test_delete_closes_session(self, client, document_id, fake_renderer, tmp_path):
        assert client.delete(f"/documents/{document_id}").status_code == 204
        assert fake_renderer.closed
        assert not (tmp_path / f"{document_id}.pdf").exists()
        assert client.get(f"/documents/{document_id}").status_code == 404
