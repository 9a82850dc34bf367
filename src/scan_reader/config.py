"""Centralised settings loaded from environment / .env file."""

import os
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # silently ignore env vars not declared as fields
    )

    # OCR
    ocr_backend: Literal["tesseract", "gemini"] = "tesseract"
    tesseract_cmd: str = ""
    # Urdu, Arabic, Persian, English
    tesseract_lang: str = "urd+ara+fas+eng"
    # Accepts GOOGLE_API_KEY or GEMINI_API_KEY; either env var is sufficient
    google_api_key: str | None = Field(None, description="Google/Gemini API key (vision OCR backend)")
    gemini_model: str = "gemini-2.0-flash"

    @model_validator(mode="after")
    def _coerce_gemini_key(self) -> "Settings":
        """Fall back to GEMINI_API_KEY if GOOGLE_API_KEY is not set."""
        if not self.google_api_key:
            self.google_api_key = os.environ.get("GEMINI_API_KEY") or None
        return self

    # Scan detection
    scan_sample_pages: int = Field(3, ge=1)
    scan_text_threshold: int = 50  # avg chars/page below which a document counts as scanned

    # Extraction
    raster_scale: float = Field(2.5, gt=0)
    checkpoint_interval: int = Field(5, ge=1)

    # Search
    search_context_radius: int = Field(40, ge=0)

    # Storage ("memory" does not survive the process; tests and throwaway runs)
    storage_backend: Literal["file", "memory", "redis"] = "file"
    data_dir: Path = Path.home() / ".scan-reader" / "data"
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "scan_reader"

    # Celery
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/0"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = False

    upload_dir: Path = Path("/tmp/scan-reader/uploads")

    # Logging
    log_level: str = "INFO"

    def ensure_dirs(self) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        if self.storage_backend == "file":
            self.data_dir.mkdir(parents=True, exist_ok=True)


settings = Settings()
