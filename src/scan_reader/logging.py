"""Structured logging setup (structlog). Log lines go to stderr, leaving stdout to CLI output."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog


def _build_processors(json_output: bool | None = None) -> list:
    if json_output is None:
        json_output = not sys.stderr.isatty()
    renderer = structlog.processors.JSONRenderer(ensure_ascii=False) if json_output else structlog.dev.ConsoleRenderer()
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        renderer,
    ]


def configure_logging(json_output: bool | None = None) -> None:
    from scan_reader.config import settings

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    structlog.configure(
        processors=_build_processors(json_output),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


@contextmanager
def document_context(document_id: str) -> Iterator[None]:
    """Attach *document_id* to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(document_id=document_id[:12]):
        yield


# Apply a safe default config immediately so module-level `log` works
# before the FastAPI lifespan or the CLI calls configure_logging().
structlog.configure(
    processors=_build_processors(),
    wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
    logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    cache_logger_on_first_use=False,  # re-evaluate after configure_logging()
)

log = structlog.get_logger()
