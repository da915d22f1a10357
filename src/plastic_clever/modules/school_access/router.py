"""
School Access Router

Joining an existing school.

Authenticated:
- POST /schools/{id}/request-access - Ask to join a school
- GET /schools/{id}/verification-requests - Requests for a school (head teacher)
- PUT /verification-requests/{id}/approve - Approve a request (head teacher or admin)
- PUT /verification-requests/{id}/reject - Reject a request (head teacher or admin)
- POST /schools/{id}/invite-teacher - Invite a teacher by email (head teacher)
- GET /schools/{id}/invitations - Invitations for a school (head teacher)
- POST /invitations/{token}/accept - Accept an invitation

Public:
- GET /invitations/{token} - Invitation details
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, get_current_user
from plastic_clever.core.database import get_db
from plastic_clever.modules.school_access import service
from plastic_clever.modules.school_access.schemas import (
    AccessRequestCreate,
    AccessRequestCreated,
    AccessReview,
    AccessReviewResult,
    InvitationAccepted,
    InvitationCreated,
    InvitationDetails,
    InvitationResponse,
    InviteTeacherRequest,
    VerificationRequestResponse,
)
from plastic_clever.modules.schools.schemas import SchoolResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/schools/{school_id}/request-access",
    response_model=AccessRequestCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Request access to a school",
)
async def request_access(
    school_id: str,
    data: AccessRequestCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> AccessRequestCreated:
    request = await service.request_access(db, user, school_id, data.evidence)
    return AccessRequestCreated(
        message="Access request submitted successfully",
        verification_request=VerificationRequestResponse.model_validate(request),
    )


@router.get(
    "/schools/{school_id}/verification-requests",
    response_model=list[VerificationRequestResponse],
    summary="Access requests for a school",
)
async def list_school_requests(
    school_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[VerificationRequestResponse]:
    requests = await service.list_school_requests(db, user, school_id)
    return [VerificationRequestResponse.model_validate(request) for request in requests]


@router.put(
    "/verification-requests/{request_id}/approve",
    response_model=AccessReviewResult,
    summary="Approve an access request",
)
async def approve_request(
    request_id: str,
    data: AccessReview,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> AccessReviewResult:
    request = await service.review_request(
        db, user, request_id, approve=True, review_notes=data.review_notes
    )
    return AccessReviewResult(
        message="Verification request approved successfully",
        verification_request=VerificationRequestResponse.model_validate(request),
    )


@router.put(
    "/verification-requests/{request_id}/reject",
    response_model=AccessReviewResult,
    summary="Reject an access request",
)
async def reject_request(
    request_id: str,
    data: AccessReview,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> AccessReviewResult:
    request = await service.review_request(
        db, user, request_id, approve=False, review_notes=data.review_notes
    )
    return AccessReviewResult(
        message="Verification request rejected",
        verification_request=VerificationRequestResponse.model_validate(request),
    )


@router.post(
    "/schools/{school_id}/invite-teacher",
    response_model=InvitationCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Invite a teacher",
)
async def invite_teacher(
    school_id: str,
    data: InviteTeacherRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> InvitationCreated:
    """
    Email an invitation to join the school. The link carries a single-use
    token and expires after seven days.
    """
    invitation = await service.invite_teacher(db, user, school_id, str(data.email))
    return InvitationCreated(
        message="Invitation sent successfully",
        invitation=InvitationResponse.model_validate(invitation),
    )


@router.get(
    "/schools/{school_id}/invitations",
    response_model=list[InvitationResponse],
    summary="Invitations for a school",
)
async def list_invitations(
    school_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[InvitationResponse]:
    invitations = await service.list_invitations(db, user, school_id)
    return [InvitationResponse.model_validate(invitation) for invitation in invitations]


@router.get(
    "/invitations/{token}",
    response_model=InvitationDetails,
    summary="Invitation details",
)
async def get_invitation(token: str, db: AsyncSession = Depends(get_db)) -> InvitationDetails:
    return await service.get_invitation_details(db, token)


@router.post(
    "/invitations/{token}/accept",
    response_model=InvitationAccepted,
    summary="Accept an invitation",
)
async def accept_invitation(
    token: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> InvitationAccepted:
    school = await service.accept_invitation(db, user, token)
    logger.info(f"User {user.id} accepted an invitation to school {school.id}")
    return InvitationAccepted(
        message="Invitation accepted successfully",
        school=SchoolResponse.model_validate(school),
    )
