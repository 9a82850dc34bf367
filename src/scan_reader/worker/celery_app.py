"""
Celery application for bulk OCR runs.

The API runs bulk extraction in-process, which ties the job to one server
process. For hundreds of pages, or several documents at once, submit
``extract_document`` to a worker instead; progress goes to the shared job
store either way.
"""

from celery import Celery

from scan_reader.config import settings

celery_app = Celery(
    "scan_reader",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["scan_reader.worker.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,               # redeliver if the worker dies mid-run; finished pages are skipped
    worker_prefetch_multiplier=1,      # one document per worker; OCR stays sequential
    worker_max_tasks_per_child=20,     # PyMuPDF and tesseract buffers are not returned to the OS
    result_expires=24 * 3600,
)
