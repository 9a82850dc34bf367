"""
Scanned-document detection.

Decision logic:
  - Read the embedded text layer of the first few pages (default 3).
  - Average the trimmed character counts.
  - If avg chars/page < scan_text_threshold  → scanned (needs OCR)
  - Otherwise                                → text-based
  - A page the renderer cannot read counts as 0 chars; classification never
    fails because of one bad page.
"""

from __future__ import annotations

from scan_reader.config import settings
from scan_reader.logging import log
from scan_reader.schemas.pages import ClassificationResult
from scan_reader.utils.renderer import PageRenderer


async def classify(
    renderer: PageRenderer,
    total_pages: int | None = None,
    sample_size: int | None = None,
    threshold: int | None = None,
) -> ClassificationResult:
    """Decide whether the document behind *renderer* is scanned."""
    if total_pages is None:
        total_pages = renderer.page_count
    sample_size = sample_size or settings.scan_sample_pages
    threshold = settings.scan_text_threshold if threshold is None else threshold

    sampled = min(sample_size, total_pages)
    if sampled <= 0:
        log.info("classifier.empty_document")
        return ClassificationResult(is_scanned=False)

    char_counts: list[int] = []
    for page_number in range(1, sampled + 1):
        try:
            text = await renderer.get_page_embedded_text(page_number)
        except Exception as exc:  # noqa: BLE001
            log.warning("classifier.sample_failed", page=page_number, error=str(exc))
            text = ""
        char_counts.append(len((text or "").strip()))

    average = sum(char_counts) / sampled
    result = ClassificationResult(
        is_scanned=average < threshold,
        sampled_pages=sampled,
        char_counts=char_counts,
        average_chars=average,
    )
    log.info(
        "classifier.result",
        is_scanned=result.is_scanned,
        sampled_pages=sampled,
        average_chars=round(average, 1),
        threshold=threshold,
    )
    return result
