"""
Evidence Admin Router

Review queue for admins and partners.

Endpoints:
- GET /admin/evidence - Review queue filtered by status
- PUT /admin/evidence/{id}/review - Approve or reject
- POST /admin/evidence/bulk-review - Approve or reject many
- DELETE /admin/evidence/bulk-delete - Delete many (admin only)
- PUT /admin/evidence/{id}/featured - Toggle featured flag
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, require_admin, require_admin_or_partner
from plastic_clever.core.database import get_db
from plastic_clever.modules.evidence import service
from plastic_clever.modules.evidence.models import EvidenceStatus
from plastic_clever.modules.evidence.schemas import (
    BulkDeleteRequest,
    BulkDeleteResult,
    BulkReviewRequest,
    BulkReviewResult,
    EvidenceResponse,
    EvidenceReviewQueue,
    EvidenceReviewRequest,
    FeaturedRequest,
)
from plastic_clever.modules.schools.models import ProgramStage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=EvidenceReviewQueue, summary="Evidence review queue")
async def list_evidence(
    evidence_status: EvidenceStatus | None = Query(None, alias="status"),
    stage: ProgramStage | None = Query(None),
    school_id: str | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_admin_or_partner),
) -> EvidenceReviewQueue:
    result = await service.list_for_review(
        db,
        status=evidence_status,
        stage=stage.value if stage else None,
        school_id=school_id,
        skip=skip,
        limit=limit,
    )
    return EvidenceReviewQueue(**result)


@router.post("/bulk-review", response_model=BulkReviewResult, summary="Bulk review evidence")
async def bulk_review(
    data: BulkReviewRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_admin_or_partner),
) -> BulkReviewResult:
    return await service.bulk_review(
        db,
        reviewer,
        data.evidence_ids,
        data.status,
        data.review_notes,
    )


@router.delete("/bulk-delete", response_model=BulkDeleteResult, summary="Bulk delete evidence")
async def bulk_delete(
    data: BulkDeleteRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> BulkDeleteResult:
    deleted = await service.bulk_delete(db, data.evidence_ids)
    logger.info(f"Admin {admin.id} bulk deleted {deleted} evidence item(s)")
    return BulkDeleteResult(deleted=deleted)


@router.put("/{evidence_id}/review", response_model=EvidenceResponse, summary="Review evidence")
async def review_evidence(
    evidence_id: str,
    data: EvidenceReviewRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_admin_or_partner),
) -> EvidenceResponse:
    """
    Approve or reject evidence. Approval rechecks the school's progression.
    The submitter is emailed; a failed email does not fail the review.
    """
    evidence = await service.review_evidence(
        db,
        reviewer,
        evidence_id,
        data.status,
        data.review_notes,
        request,
    )
    return EvidenceResponse.model_validate(evidence)


@router.put("/{evidence_id}/featured", response_model=EvidenceResponse, summary="Feature evidence")
async def set_featured(
    evidence_id: str,
    data: FeaturedRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_admin_or_partner),
) -> EvidenceResponse:
    evidence = await service.set_featured(db, evidence_id, data.featured)
    return EvidenceResponse.model_validate(evidence)
