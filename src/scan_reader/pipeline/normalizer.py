"""
Text normalisation for search.

Urdu/Arabic OCR output varies in letter shapes and vowel marks from one source
to the next, so both page text and queries are folded to a canonical key
before matching:

  1. Fold orthographic variants to one representative letter
     (hamza-bearing alefs → ا, alef maqsura / hamza-ya → ی, Arabic kaf → ک,
     ta marbuta → ہ).
  2. Drop harakat, tanwin and the superscript alef.
  3. Collapse whitespace runs to one space and trim.
  4. Lowercase (matters for Latin text mixed into the page).

``normalize_with_offsets`` also returns, for every output character, the index
of the raw character it came from, so search hits can be mapped back onto the
original text.
"""

from __future__ import annotations

_LETTER_FOLDS: dict[str, str] = {
    "أ": "ا",  # alef with hamza above
    "إ": "ا",  # alef with hamza below
    "آ": "ا",  # alef with madda
    "ٱ": "ا",  # alef wasla
    "ى": "ی",  # alef maqsura -> farsi yeh
    "ئ": "ی",  # yeh with hamza
    "ك": "ک",  # arabic kaf -> keheh
    "ة": "ہ",  # ta marbuta -> heh goal
}


def _is_diacritic(ch: str) -> bool:
    return "\u064b" <= ch <= "\u065f" or ch == "\u0670"


def normalize_with_offsets(text: str) -> tuple[str, list[int]]:
    """Return ``(normalized, offsets)`` where ``offsets[i]`` indexes *text*."""
    out: list[str] = []
    offsets: list[int] = []
    pending_space: int | None = None

    for i, ch in enumerate(text):
        ch = _LETTER_FOLDS.get(ch, ch)
        if _is_diacritic(ch):
            continue
        if ch.isspace():
            # Leading whitespace is dropped; inner runs keep their first index.
            if out and pending_space is None:
                pending_space = i
            continue
        if pending_space is not None:
            out.append(" ")
            offsets.append(pending_space)
            pending_space = None
        # lower() may expand one char into several (e.g. "İ"); all map to i
        for lowered in ch.lower():
            out.append(lowered)
            offsets.append(i)

    return "".join(out), offsets


def normalize(text: str) -> str:
    """Canonical search key for *text*. Pure and idempotent."""
    if not text:
        return ""
    return normalize_with_offsets(text)[0]
