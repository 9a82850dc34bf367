"""Schemas for bulk extraction jobs and their persisted progress."""

from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator


class JobPhase(StrEnum):
    """In-memory lifecycle of a bulk run."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class JobStatus(StrEnum):
    """Status written to the job-status store."""
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class BulkJobState(BaseModel):
    total_pages: int = Field(0, ge=0)
    processed_count: int = Field(0, ge=0)
    succeeded_count: int = Field(0, ge=0)
    cancelled: bool = False
    phase: JobPhase = JobPhase.IDLE

    @model_validator(mode="after")
    def _check_counts(self) -> "BulkJobState":
        if self.processed_count > self.total_pages:
            raise ValueError("processed_count cannot exceed total_pages")
        if self.succeeded_count > self.processed_count:
            raise ValueError("succeeded_count cannot exceed processed_count")
        return self


class JobProgress(BaseModel):
    """Last checkpoint persisted for a document."""
    document_id: str
    processed_count: int = 0
    status: JobStatus
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
