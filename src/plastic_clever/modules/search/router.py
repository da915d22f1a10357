"""
Search Router

Endpoints (public):
- GET /search/global - Search schools, evidence and case studies at once
- GET /search/{content_type} - Search one content type
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.database import get_db
from plastic_clever.modules.search import service
from plastic_clever.modules.search.schemas import ContentSearchResponse, GlobalSearchResponse

router = APIRouter()


@router.get("/global", response_model=GlobalSearchResponse, summary="Global search")
async def search_global(
    q: str | None = Query(None),
    content_types: str | None = Query(None, alias="contentTypes"),
    limit: int = Query(service.DEFAULT_GLOBAL_LIMIT, ge=1),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> GlobalSearchResponse:
    """
    ``contentTypes`` is a comma-separated subset of schools, evidence and
    caseStudies. ``limit`` is capped at 100 and shared between the types.
    """
    return await service.search_global(
        db, q, content_types=content_types, limit=limit, offset=offset
    )


@router.get(
    "/{content_type}",
    response_model=ContentSearchResponse,
    summary="Search one content type",
)
async def search_content(
    content_type: str,
    q: str | None = Query(None),
    limit: int = Query(service.DEFAULT_CONTENT_LIMIT, ge=1),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> ContentSearchResponse:
    return await service.search_content(db, content_type, q, limit=limit, offset=offset)
