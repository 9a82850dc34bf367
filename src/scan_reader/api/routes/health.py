from fastapi import APIRouter
from pydantic import BaseModel

from scan_reader import __version__
from scan_reader.config import settings

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    ocr_backend: str
    storage_backend: str
    open_documents: int


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    from scan_reader.api.routes.documents import _sessions
    return HealthResponse(
        status="ok",
        version=__version__,
        ocr_backend=settings.ocr_backend,
        storage_backend=settings.storage_backend,
        open_documents=len(_sessions),
    )
