from scan_reader.pipeline.normalizer import normalize, normalize_with_offsets
from scan_reader.pipeline.cache import PageTextCache
from scan_reader.pipeline.classifier import classify
from scan_reader.pipeline.extractor import ExtractionBusyError, ExtractionGate, PageExtractor
from scan_reader.pipeline.bulk_job import BulkExtractionJob
from scan_reader.pipeline.search import SearchEngine
from scan_reader.pipeline.session import DocumentSession

__all__ = [
    "normalize",
    "normalize_with_offsets",
    "PageTextCache",
    "classify",
    "ExtractionBusyError",
    "ExtractionGate",
    "PageExtractor",
    "BulkExtractionJob",
    "SearchEngine",
    "DocumentSession",
]
