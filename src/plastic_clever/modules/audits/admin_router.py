"""
Audits Admin Router

Endpoints:
- GET /admin/audits - Audits filtered by status
- PUT /admin/audits/{id}/review - Approve or reject an audit
- GET /admin/reduction-promises/metrics - Promise totals by plastic item type
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, require_admin, require_admin_or_partner
from plastic_clever.core.database import get_db
from plastic_clever.modules.audits import service
from plastic_clever.modules.audits.models import AuditStatus
from plastic_clever.modules.audits.schemas import (
    AuditResponseSchema,
    AuditReviewRequest,
    PromiseMetrics,
)

router = APIRouter()


@router.get("/audits", response_model=list[AuditResponseSchema], summary="List audits")
async def list_audits(
    audit_status: AuditStatus | None = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_admin_or_partner),
) -> list[AuditResponseSchema]:
    audits = await service.list_audits(db, status=audit_status, skip=skip, limit=limit)
    return [AuditResponseSchema.model_validate(audit) for audit in audits]


@router.put("/audits/{audit_id}/review", response_model=AuditResponseSchema, summary="Review audit")
async def review_audit(
    audit_id: str,
    data: AuditReviewRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_admin_or_partner),
) -> AuditResponseSchema:
    audit = await service.review_audit(
        db,
        reviewer,
        audit_id,
        data.approved,
        data.review_notes,
        request,
    )
    return AuditResponseSchema.model_validate(audit)


@router.get(
    "/reduction-promises/metrics",
    response_model=PromiseMetrics,
    summary="Reduction promise metrics",
)
async def get_promise_metrics(
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> PromiseMetrics:
    return PromiseMetrics(**await service.get_promise_metrics(db))
