"""Small helpers for PDF handling."""

from __future__ import annotations

import hashlib
from pathlib import Path


def document_id_for(pdf_path: Path) -> str:
    """Hex SHA-256 of the file.

    Used as the persistence key, so the same PDF reopened later (or uploaded
    under another name) finds the text already extracted for it.
    """
    h = hashlib.sha256()
    with pdf_path.open("rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def safe_filename(name: str) -> str:
    """Strip dangerous characters from an upload filename."""
    return "".join(c for c in name if c.isalnum() or c in "._- ").strip()


def parse_page_range(spec: str, page_count: int) -> list[int]:
    """Expand ``"1-3,7"`` into ``[1, 2, 3, 7]``, clipped to ``1..page_count``."""
    pages: set[int] = set()
    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            lo, _, hi = part.partition("-")
            start = int(lo) if lo.strip() else 1
            end = int(hi) if hi.strip() else page_count
        else:
            start = end = int(part)
        if start > end:
            raise ValueError(f"Invalid page range: {part!r}")
        pages.update(range(max(start, 1), min(end, page_count) + 1))
    return sorted(pages)
