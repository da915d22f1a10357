"""
Inspiration Router

- GET /inspiration-content - Mixed feed of case studies and approved evidence
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, get_optional_user
from plastic_clever.core.database import get_db
from plastic_clever.modules.inspiration import service
from plastic_clever.modules.inspiration.schemas import InspirationItem
from plastic_clever.modules.schools.models import ProgramStage

router = APIRouter()


@router.get(
    "/inspiration-content",
    response_model=list[InspirationItem],
    summary="Inspiration feed",
)
async def get_inspiration_content(
    stage: ProgramStage | None = Query(None),
    country: str | None = Query(None, max_length=100),
    search: str | None = Query(None, max_length=100),
    content_type: Literal["all", "case-study", "evidence"] = Query("all"),
    limit: int = Query(12, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
) -> list[InspirationItem]:
    """
    Case studies and approved public evidence, featured case studies first.
    Drafts are included only for admins.
    """
    return await service.get_inspiration_content(
        db,
        stage=stage.value if stage else None,
        country=country,
        search=search,
        content_type=content_type,
        limit=limit,
        offset=offset,
        is_admin=user is not None and user.is_admin,
    )
