"""
Root test configuration.

Fixtures wire the fakes from ``tests.fakes`` into a ready ``PageExtractor``
for page 1..10 of a fake document.
"""

from __future__ import annotations

import pytest

from scan_reader.pipeline.cache import PageTextCache
from scan_reader.pipeline.extractor import ExtractionGate, PageExtractor
from tests.fakes import DOC_ID, FakeRecognizer, FakeRenderer, FlakyStore


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def renderer() -> FakeRenderer:
    return FakeRenderer(page_count=10)


@pytest.fixture()
def recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture()
def store() -> FlakyStore:
    return FlakyStore()


@pytest.fixture()
def cache() -> PageTextCache:
    return PageTextCache()


@pytest.fixture()
def extractor(cache, renderer, recognizer, store) -> PageExtractor:
    return PageExtractor(
        document_id=DOC_ID,
        cache=cache,
        renderer=renderer,
        recognizer=recognizer,
        store=store,
        gate=ExtractionGate(),
        scale=2.5,
    )
