"""
Per-document page text cache.

Synchronous and I/O free: persistence writes belong to the caller
(see ``PageExtractor``). One instance per ``DocumentSession``.
"""

from __future__ import annotations

from collections.abc import Iterable

from scan_reader.pipeline.normalizer import normalize
from scan_reader.schemas.pages import PageTextRecord, TextOrigin


class PageTextCache:
    def __init__(self) -> None:
        self._records: dict[int, PageTextRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, page_number: object) -> bool:
        return page_number in self._records

    def get(self, page_number: int) -> PageTextRecord | None:
        return self._records.get(page_number)

    def has_text(self, page_number: int) -> bool:
        record = self._records.get(page_number)
        return record is not None and record.has_text

    def put(
        self,
        page_number: int,
        raw_text: str,
        origin: TextOrigin = TextOrigin.FRESH,
    ) -> PageTextRecord:
        """Store *raw_text* for *page_number*, replacing any previous record.

        Callers check ``has_text`` first; an existing non-empty record must
        not be overwritten by a fresh extraction.
        """
        record = PageTextRecord(
            page_number=page_number,
            raw_text=raw_text,
            normalized_text=normalize(raw_text),
            origin=origin,
        )
        self._records[page_number] = record
        return record

    def load_all(self, records: Iterable[PageTextRecord]) -> int:
        """Hydrate from persisted records. Returns the number loaded.

        Normalised text is re-derived from the raw text so search offsets
        always agree with the current normaliser.
        """
        loaded = 0
        for record in records:
            self.put(record.page_number, record.raw_text, origin=TextOrigin.FROM_STORE)
            loaded += 1
        return loaded

    def size_with_text(self) -> int:
        return sum(1 for r in self._records.values() if r.has_text)

    def pages_with_text(self) -> list[PageTextRecord]:
        """Records with non-empty text, in ascending page order."""
        return [self._records[p] for p in sorted(self._records) if self._records[p].has_text]
