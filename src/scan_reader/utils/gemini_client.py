"""Google Gemini client factory.

Used by ``GeminiRecognizer`` for vision OCR of scanned pages.

Requires GOOGLE_API_KEY (or GEMINI_API_KEY) in environment / .env file.
"""

from __future__ import annotations

import google.generativeai as genai

from scan_reader.config import settings
from scan_reader.logging import log

_configured = False


def get_gemini_model(model: str | None = None) -> genai.GenerativeModel:
    """Return a configured Gemini model with deterministic decoding."""
    global _configured  # noqa: PLW0603

    if not settings.google_api_key:
        raise RuntimeError(
            "GOOGLE_API_KEY is not set. "
            "Add it to .env or set OCR_BACKEND=tesseract."
        )

    if not _configured:
        genai.configure(api_key=settings.google_api_key)
        _configured = True
        log.info("gemini_client.configured", model=model or settings.gemini_model)

    # Transcription, not generation: no sampling.
    return genai.GenerativeModel(
        model or settings.gemini_model,
        generation_config={"temperature": 0.0},
    )
