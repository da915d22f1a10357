"""
Case Studies Admin Router

Content management for admins and partners.

Endpoints:
- GET /admin/case-studies - All case studies, drafts included
- POST /admin/case-studies - Create
- POST /admin/case-studies/from-evidence - Create a draft from approved evidence
- GET /admin/case-studies/{id} - Get for editing
- PUT /admin/case-studies/{id} - Update
- DELETE /admin/case-studies/{id} - Delete
- PUT /admin/case-studies/{id}/featured - Toggle featured flag
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, require_admin_or_partner
from plastic_clever.core.database import get_db
from plastic_clever.modules.case_studies import service
from plastic_clever.modules.case_studies.models import CaseStudyStatus
from plastic_clever.modules.case_studies.router import split_csv
from plastic_clever.modules.case_studies.schemas import (
    CaseStudyCreate,
    CaseStudyDetail,
    CaseStudyFromEvidence,
    CaseStudyResponse,
    CaseStudyUpdate,
    FeaturedRequest,
)
from plastic_clever.modules.schools.models import ProgramStage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[CaseStudyResponse], summary="List case studies")
async def list_case_studies(
    stage: ProgramStage | None = Query(None),
    country: str | None = Query(None, max_length=100),
    search: str | None = Query(None, max_length=100),
    categories: str | None = Query(None),
    tags: str | None = Query(None),
    case_study_status: CaseStudyStatus | None = Query(None, alias="status"),
    featured: bool | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    editor: CurrentUser = Depends(require_admin_or_partner),
) -> list[CaseStudyResponse]:
    case_studies = await service.list_case_studies(
        db,
        editor,
        stage=stage.value if stage else None,
        country=country,
        search=search,
        categories=split_csv(categories),
        tags=split_csv(tags),
        status=case_study_status,
        featured=featured,
        limit=limit,
        offset=offset,
    )
    return [service.to_response(case_study) for case_study in case_studies]


@router.post(
    "",
    response_model=CaseStudyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create case study",
)
async def create_case_study(
    data: CaseStudyCreate,
    db: AsyncSession = Depends(get_db),
    editor: CurrentUser = Depends(require_admin_or_partner),
) -> CaseStudyResponse:
    return service.to_response(await service.create_case_study(db, editor, data))


@router.post(
    "/from-evidence",
    response_model=CaseStudyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create case study from evidence",
)
async def create_from_evidence(
    data: CaseStudyFromEvidence,
    db: AsyncSession = Depends(get_db),
    editor: CurrentUser = Depends(require_admin_or_partner),
) -> CaseStudyResponse:
    return service.to_response(await service.create_from_evidence(db, editor, data))


@router.get("/{case_study_id}", response_model=CaseStudyDetail, summary="Get case study")
async def get_case_study(
    case_study_id: str,
    db: AsyncSession = Depends(get_db),
    editor: CurrentUser = Depends(require_admin_or_partner),
) -> CaseStudyDetail:
    return service.to_detail(await service.get_case_study_or_404(db, case_study_id))


@router.put("/{case_study_id}", response_model=CaseStudyResponse, summary="Update case study")
async def update_case_study(
    case_study_id: str,
    data: CaseStudyUpdate,
    db: AsyncSession = Depends(get_db),
    editor: CurrentUser = Depends(require_admin_or_partner),
) -> CaseStudyResponse:
    case_study = await service.update_case_study(db, case_study_id, data)
    logger.info(f"{editor.role} {editor.id} updated case study {case_study_id}")
    return service.to_response(case_study)


@router.delete("/{case_study_id}", summary="Delete case study")
async def delete_case_study(
    case_study_id: str,
    db: AsyncSession = Depends(get_db),
    editor: CurrentUser = Depends(require_admin_or_partner),
) -> dict[str, str]:
    await service.delete_case_study(db, case_study_id)
    return {"message": "Case study deleted successfully"}


@router.put(
    "/{case_study_id}/featured",
    response_model=CaseStudyResponse,
    summary="Feature case study",
)
async def set_featured(
    case_study_id: str,
    data: FeaturedRequest,
    db: AsyncSession = Depends(get_db),
    editor: CurrentUser = Depends(require_admin_or_partner),
) -> CaseStudyResponse:
    return service.to_response(await service.set_featured(db, case_study_id, data.featured))
