"""
Text recognition (OCR) collaborators.

Both backends take a rendered page image and return a ``RecognitionResult``.
A failed call comes back as ``success=False`` so callers can tell it apart
from a page that was read but holds no text.

  - ``TesseractRecognizer``: local pytesseract, run in a worker thread.
  - ``GeminiRecognizer``:    Gemini vision model, retried with backoff.
"""

from __future__ import annotations

import asyncio
import io
from typing import Protocol, runtime_checkable

import google.generativeai as genai
import pytesseract
from PIL import Image
from tenacity import retry, retry_if_not_exception_type, stop_after_attempt, wait_exponential

from scan_reader.config import settings
from scan_reader.logging import log
from scan_reader.prompts.ocr import OCR_INSTRUCTION
from scan_reader.schemas.pages import RasterImage, RecognitionResult
from scan_reader.utils.gemini_client import get_gemini_model


@runtime_checkable
class Recognizer(Protocol):
    async def recognize(self, image: RasterImage, page_number: int) -> RecognitionResult: ...


class TesseractRecognizer:
    def __init__(self, lang: str | None = None, tesseract_cmd: str | None = None) -> None:
        self.lang = lang or settings.tesseract_lang
        cmd = tesseract_cmd if tesseract_cmd is not None else settings.tesseract_cmd
        if cmd:
            pytesseract.pytesseract.tesseract_cmd = cmd

    def _run(self, image: RasterImage) -> str:
        with Image.open(io.BytesIO(image.data)) as img:
            return pytesseract.image_to_string(img, lang=self.lang)

    async def recognize(self, image: RasterImage, page_number: int) -> RecognitionResult:
        try:
            text = await asyncio.to_thread(self._run, image)
        except Exception as exc:  # noqa: BLE001
            log.warning("ocr_client.tesseract_error", page=page_number, error=str(exc))
            return RecognitionResult(success=False, error=str(exc))
        return RecognitionResult(success=True, text=text.strip())


class GeminiRecognizer:
    def __init__(self, model: genai.GenerativeModel | None = None) -> None:
        self._model = model

    @property
    def model(self) -> genai.GenerativeModel:
        if self._model is None:
            self._model = get_gemini_model()
        return self._model

    # ValueError means the response carried no text part (blocked or refused);
    # retrying the same image will not change that.
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(ValueError),
        reraise=True,
    )
    async def _generate(self, image: RasterImage) -> str:
        response = await self.model.generate_content_async(
            [OCR_INSTRUCTION, {"mime_type": image.mime_type, "data": image.data}],
        )
        return response.text

    async def recognize(self, image: RasterImage, page_number: int) -> RecognitionResult:
        try:
            text = await self._generate(image)
        except Exception as exc:  # noqa: BLE001
            log.warning("ocr_client.gemini_error", page=page_number, error=str(exc))
            return RecognitionResult(success=False, error=str(exc))
        return RecognitionResult(success=True, text=text.strip())


def get_recognizer() -> Recognizer:
    """Return the recognizer selected by ``settings.ocr_backend``."""
    if settings.ocr_backend == "gemini":
        return GeminiRecognizer()
    return TesseractRecognizer()
