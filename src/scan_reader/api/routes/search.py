"""
/documents/{document_id}/search

  Substring search over every page extracted so far. ``status`` in the
  response separates "no matches" from "nothing indexed yet"; for the latter
  the client should offer extraction instead of reporting "not found".
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from scan_reader.api.routes.documents import get_session
from scan_reader.logging import log
from scan_reader.schemas.pages import SearchResults

router = APIRouter()


@router.get("/{document_id}/search", response_model=SearchResults)
async def search_document(
    document_id: str,
    q: str = Query("", description="Search text; normalised before matching"),
) -> SearchResults:
    session = get_session(document_id)
    results = session.search(q)
    log.info(
        "search.request",
        document_id=document_id[:12],
        status=results.status,
        matches=results.total,
    )
    return results
