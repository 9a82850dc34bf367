"""
Substring search over extracted page text.

The query and each page are compared in normalised form. Every hit is mapped
back to the raw text through the normaliser's offset map, so the context
window shows the page as recognised (with its diacritics and spacing).

Results are ordered by page, then by position within the page; next/previous
result navigation depends on that ordering.
"""

from __future__ import annotations

from scan_reader.config import settings
from scan_reader.logging import log
from scan_reader.pipeline.cache import PageTextCache
from scan_reader.pipeline.normalizer import normalize, normalize_with_offsets
from scan_reader.schemas.pages import PageTextRecord, SearchMatch, SearchResults, SearchStatus


def find_occurrences(haystack: str, needle: str) -> list[int]:
    """Start index of every occurrence, stepping one past each hit's start."""
    positions: list[int] = []
    if not needle:
        return positions
    idx = haystack.find(needle)
    while idx != -1:
        positions.append(idx)
        idx = haystack.find(needle, idx + 1)
    return positions


class SearchEngine:
    def __init__(self, cache: PageTextCache, context_radius: int | None = None) -> None:
        self.cache = cache
        self.context_radius = settings.search_context_radius if context_radius is None else context_radius

    def search(self, query: str) -> SearchResults:
        normalized_query = normalize(query)
        if not normalized_query:
            return SearchResults(query=query, status=SearchStatus.EMPTY_QUERY)

        pages = self.cache.pages_with_text()
        if not pages:
            return SearchResults(
                query=query,
                normalized_query=normalized_query,
                status=SearchStatus.NOT_INDEXED,
            )

        matches: list[SearchMatch] = []
        for record in pages:
            matches.extend(self._search_page(record, normalized_query))

        log.debug(
            "search.done",
            query_chars=len(normalized_query),
            pages=len(pages),
            matches=len(matches),
        )
        return SearchResults(
            query=query,
            normalized_query=normalized_query,
            indexed_pages=len(pages),
            matches=matches,
        )

    def _search_page(self, record: PageTextRecord, needle: str) -> list[SearchMatch]:
        positions = find_occurrences(record.normalized_text, needle)
        if not positions:
            return []

        normalized, offsets = normalize_with_offsets(record.raw_text)
        if normalized != record.normalized_text:
            # Record built elsewhere with a different normaliser; realign.
            positions = find_occurrences(normalized, needle)

        raw = record.raw_text
        radius = self.context_radius
        matches: list[SearchMatch] = []
        for ordinal, pos in enumerate(positions):
            start = offsets[pos]
            end = offsets[pos + len(needle) - 1] + 1
            matches.append(SearchMatch(
                page_number=record.page_number,
                match_ordinal=ordinal,
                context_text=raw[max(0, start - radius):end + radius],
                start=start,
                end=end,
            ))
        return matches
