"""
Integration test configuration.

═══════════════════════════════════════════════════════════════════════════════
EXTERNAL REQUIREMENTS
═══════════════════════════════════════════════════════════════════════════════

API tests run entirely against fakes and need nothing installed beyond the
package. Tests that OCR a real PDF are **skipped automatically** when their
backend is missing:

  tesseract binary (with the ``eng`` language pack)
    • Install: apt install tesseract-ocr   /   brew install tesseract
    • All tests tagged @pytest.mark.tesseract require it.

Running all integration tests:
    pytest tests/integration -m integration

Skipping slow tests (real rendering and OCR):
    pytest tests/integration -m "integration and not slow"
═══════════════════════════════════════════════════════════════════════════════
"""

from __future__ import annotations

import shutil

import pytest

from scan_reader.config import settings


# ---------------------------------------------------------------------------
# Skip helpers, evaluated once per session
# ---------------------------------------------------------------------------

def _has_tesseract() -> bool:
    return shutil.which(settings.tesseract_cmd or "tesseract") is not None


# ---------------------------------------------------------------------------
# Auto-skip markers applied at collection time
# ---------------------------------------------------------------------------

def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Auto-skip marked tests if their OCR backend is unavailable."""
    no_tesseract = not _has_tesseract()

    for item in items:
        if no_tesseract and item.get_closest_marker("tesseract"):
            item.add_marker(pytest.mark.skip(reason="tesseract binary not found"), append=False)
