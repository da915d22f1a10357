"""
Analytics Admin Router

Dashboard figures for admins and partners; CSV exports for full admins.

Endpoints:
- GET /admin/analytics/overview - Headline totals
- GET /admin/analytics/school-progress - Stage, progress and country breakdowns
- GET /admin/analytics/evidence - Submission trends and review turnaround
- GET /admin/export/{type} - CSV of schools, evidence or users (admins only)
"""

import logging
from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, require_admin_or_partner, require_export_access
from plastic_clever.core.database import get_db
from plastic_clever.modules.analytics import exports, service
from plastic_clever.modules.analytics.schemas import (
    AnalyticsOverview,
    EvidenceAnalytics,
    SchoolProgressAnalytics,
)
from plastic_clever.modules.evidence.models import EvidenceStatus
from plastic_clever.modules.schools.models import ProgramStage
from plastic_clever.modules.users.models import UserRole

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/analytics/overview",
    response_model=AnalyticsOverview,
    summary="Analytics overview",
)
async def get_overview(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
    viewer: CurrentUser = Depends(require_admin_or_partner),
) -> AnalyticsOverview:
    return await service.get_overview(db, start_date, end_date)


@router.get(
    "/analytics/school-progress",
    response_model=SchoolProgressAnalytics,
    summary="School progress analytics",
)
async def get_school_progress(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
    viewer: CurrentUser = Depends(require_admin_or_partner),
) -> SchoolProgressAnalytics:
    return await service.get_school_progress(db, start_date, end_date)


@router.get(
    "/analytics/evidence",
    response_model=EvidenceAnalytics,
    summary="Evidence analytics",
)
async def get_evidence_analytics(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    db: AsyncSession = Depends(get_db),
    viewer: CurrentUser = Depends(require_admin_or_partner),
) -> EvidenceAnalytics:
    return await service.get_evidence_analytics(db, start_date, end_date)


@router.get("/export/{export_type}", summary="Download CSV export")
async def export_data(
    export_type: Literal["schools", "evidence", "users"],
    country: str | None = Query(None, max_length=100),
    stage: ProgramStage | None = Query(None),
    search: str | None = Query(None, max_length=100),
    evidence_status: EvidenceStatus | None = Query(None, alias="status"),
    role: UserRole | None = Query(None),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_export_access),
) -> StreamingResponse:
    """Partners are refused: exports contain personal data."""
    content = await exports.export_data(
        db,
        export_type,
        country=country,
        stage=stage.value if stage else None,
        search=search,
        status=evidence_status,
        role=role,
    )
    filename = exports.export_filename(export_type)
    logger.info(f"Admin {admin.id} downloaded {filename}")
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
