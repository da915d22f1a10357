"""
Case Studies Router

Public gallery endpoints.

- GET /case-studies - Gallery list with filters
- GET /case-studies/{id} - View a case study
- GET /case-studies/{id}/related - Related case studies
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, get_optional_user
from plastic_clever.core.database import get_db
from plastic_clever.modules.case_studies import service
from plastic_clever.modules.case_studies.models import CaseStudyStatus
from plastic_clever.modules.case_studies.schemas import CaseStudyDetail, CaseStudyResponse
from plastic_clever.modules.schools.models import ProgramStage

router = APIRouter()


def split_csv(value: str | None) -> list[str] | None:
    """Parse a comma-separated query value, dropping blanks."""
    if not value:
        return None
    items = [item.strip() for item in value.split(",") if item.strip()]
    return items or None


@router.get("", response_model=list[CaseStudyResponse], summary="List case studies")
async def list_case_studies(
    stage: ProgramStage | None = Query(None),
    country: str | None = Query(None, max_length=100),
    search: str | None = Query(None, max_length=100),
    categories: str | None = Query(None, description="Comma-separated categories"),
    tags: str | None = Query(None, description="Comma-separated tags"),
    case_study_status: CaseStudyStatus | None = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
) -> list[CaseStudyResponse]:
    case_studies = await service.list_case_studies(
        db,
        user,
        stage=stage.value if stage else None,
        country=country,
        search=search,
        categories=split_csv(categories),
        tags=split_csv(tags),
        status=case_study_status,
        limit=limit,
        offset=offset,
    )
    return [service.to_response(case_study) for case_study in case_studies]


@router.get("/{case_study_id}", response_model=CaseStudyDetail, summary="Get case study")
async def get_case_study(
    case_study_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
) -> CaseStudyDetail:
    return service.to_detail(await service.get_case_study(db, user, case_study_id))


@router.get(
    "/{case_study_id}/related",
    response_model=list[CaseStudyResponse],
    summary="Related case studies",
)
async def get_related(
    case_study_id: str,
    limit: int = Query(4, ge=1, le=20),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
) -> list[CaseStudyResponse]:
    related = await service.get_related(db, user, case_study_id, limit)
    return [service.to_response(case_study) for case_study in related]
