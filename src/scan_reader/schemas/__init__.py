from scan_reader.schemas.jobs import BulkJobState, JobPhase, JobProgress, JobStatus
from scan_reader.schemas.pages import (
    ClassificationResult,
    PageTextRecord,
    RasterImage,
    RecognitionResult,
    SearchMatch,
    SearchResults,
    SearchStatus,
    TextOrigin,
)

__all__ = [
    "BulkJobState",
    "JobPhase",
    "JobProgress",
    "JobStatus",
    "ClassificationResult",
    "PageTextRecord",
    "RasterImage",
    "RecognitionResult",
    "SearchMatch",
    "SearchResults",
    "SearchStatus",
    "TextOrigin",
]
