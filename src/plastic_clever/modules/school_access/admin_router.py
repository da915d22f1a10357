"""
School Access Admin Router

Endpoints:
- GET /admin/verification-requests - Pending access requests across all schools
- PUT /admin/verification-requests/{id}/{action} - Approve or reject a request
"""

import logging
from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, require_admin
from plastic_clever.core.database import get_db
from plastic_clever.modules.school_access import service
from plastic_clever.modules.school_access.schemas import (
    AccessReview,
    AccessReviewResult,
    VerificationRequestDetails,
    VerificationRequestResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/verification-requests",
    response_model=list[VerificationRequestDetails],
    summary="Pending access requests",
)
async def list_pending_requests(
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> list[VerificationRequestDetails]:
    requests = await service.list_pending_requests(db)
    logger.info(f"Admin {admin.id} listed {len(requests)} pending access requests")
    return requests


@router.put(
    "/verification-requests/{request_id}/{action}",
    response_model=AccessReviewResult,
    summary="Approve or reject an access request",
)
async def review_request(
    request_id: str,
    action: Literal["approve", "reject"],
    data: AccessReview,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> AccessReviewResult:
    approve = action == "approve"
    request = await service.review_request(
        db, admin, request_id, approve=approve, review_notes=data.review_notes
    )
    return AccessReviewResult(
        message=f"Verification request {'approved' if approve else 'rejected'}",
        verification_request=VerificationRequestResponse.model_validate(request),
    )
