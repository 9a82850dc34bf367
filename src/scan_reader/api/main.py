"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scan_reader import __version__
from scan_reader.api.routes import documents, health, search
from scan_reader.config import settings
from scan_reader.logging import configure_logging, log
from scan_reader.storage import close_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    settings.ensure_dirs()
    yield
    for session in list(documents._sessions.values()):
        session.close()
    documents._sessions.clear()
    await close_store()
    log.info("api.shutdown")


app = FastAPI(
    title="scan-reader",
    description="Searchable reading for scanned documents via incremental OCR",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["health"])
app.include_router(documents.router, prefix="/documents", tags=["documents"])
app.include_router(search.router, prefix="/documents", tags=["search"])
