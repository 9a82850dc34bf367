"""Schemas for page text, classification, recognition and search output."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class TextOrigin(StrEnum):
    FROM_STORE = "from_store"   # hydrated from persistence at document open
    FRESH = "fresh"             # recognised during this session


class PageTextRecord(BaseModel):
    """Extracted text for one page. Replaced wholesale, never mutated."""

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(ge=1)
    raw_text: str = ""
    normalized_text: str = ""
    origin: TextOrigin = TextOrigin.FRESH

    @property
    def has_text(self) -> bool:
        return bool(self.raw_text.strip())


class ClassificationResult(BaseModel):
    is_scanned: bool
    sampled_pages: int = 0
    char_counts: list[int] = Field(default_factory=list)
    average_chars: float = 0.0


class RasterImage(BaseModel):
    data: bytes
    width: int
    height: int
    mime_type: str = "image/png"


class RecognitionResult(BaseModel):
    """Outcome of one OCR call. ``success=False`` is distinct from empty text."""

    success: bool
    text: str = ""
    normalized_text: str | None = None
    error: str | None = None


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

class SearchStatus(StrEnum):
    OK = "ok"
    EMPTY_QUERY = "empty_query"
    NOT_INDEXED = "not_indexed"     # no page has text yet; prompt extraction


class SearchMatch(BaseModel):
    page_number: int
    match_ordinal: int = Field(ge=0, description="0-based index of the match within its page")
    context_text: str = Field(description="Window of raw page text around the match")
    start: int = Field(ge=0, description="Raw-text offset of the match start")
    end: int = Field(ge=0, description="Raw-text offset just past the match")


class SearchResults(BaseModel):
    query: str
    normalized_query: str = ""
    status: SearchStatus = SearchStatus.OK
    indexed_pages: int = 0
    matches: list[SearchMatch] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.matches)

    def next_index(self, current: int | None) -> int | None:
        """Index of the result after *current*, wrapping to the first."""
        if not self.matches:
            return None
        if current is None:
            return 0
        return (current + 1) % len(self.matches)

    def previous_index(self, current: int | None) -> int | None:
        """Index of the result before *current*, wrapping to the last."""
        if not self.matches:
            return None
        if current is None:
            return len(self.matches) - 1
        return (current - 1) % len(self.matches)
