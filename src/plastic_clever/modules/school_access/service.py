"""
School Access Service

Joining an existing school, either by asking (verification requests) or by
being invited (teacher invitations).

Verification requests:
- Any signed-in user who is not already a verified member may ask once at a
  time; the school's head teachers are emailed
- A head teacher of the school, or an admin, approves or rejects a pending
  request; approval adds the requester as a verified teacher
- The requester is emailed the decision

Invitations:
- A head teacher (or admin) invites an email address; the invitation holds a
  random single-use token and expires after INVITATION_EXPIRY_DAYS
- Anyone may look an invitation up by token; only the invited address may
  accept it

Emails are best-effort: a failed send never fails the operation.
"""

import logging
import secrets
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser
from plastic_clever.core.email import (
    send_access_decision_email,
    send_access_request_email,
    send_safely,
    send_teacher_invitation_email,
)
from plastic_clever.modules.school_access import repository
from plastic_clever.modules.school_access.models import (
    InvitationStatus,
    TeacherInvitation,
    VerificationRequest,
    VerificationStatus,
)
from plastic_clever.modules.school_access.schemas import (
    InvitationDetails,
    VerificationRequestDetails,
    VerificationRequestResponse,
)
from plastic_clever.modules.schools.models import School, SchoolRole
from plastic_clever.modules.schools.repository import SchoolRepository
from plastic_clever.modules.schools.service import (
    HeadTeacherRequiredError,
    ensure_school_member,
    get_school_or_404,
)
from plastic_clever.modules.shared import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ServiceError,
)
from plastic_clever.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

INVITATION_EXPIRY_DAYS = 7
TOKEN_BYTES = 32


class AlreadyMemberError(ConflictError):
    def __init__(self):
        super().__init__(
            "You are already a member of this school",
            error_code="ALREADY_MEMBER",
            status_code=400,
        )


class RequestAlreadyPendingError(ConflictError):
    def __init__(self):
        super().__init__(
            "You already have a pending request for this school",
            error_code="REQUEST_PENDING",
            status_code=400,
        )


class RequestAlreadyReviewedError(ConflictError):
    def __init__(self, status: VerificationStatus):
        super().__init__(
            f"This request has already been {status.value}",
            error_code="REQUEST_ALREADY_REVIEWED",
        )


class InvitationGoneError(ServiceError):
    """Raised for invitations that expired or were already accepted (HTTP 410)."""

    def __init__(self, message: str, error_code: str):
        super().__init__(message=message, error_code=error_code, status_code=410)


class InvitationEmailMismatchError(ForbiddenError):
    def __init__(self):
        super().__init__(
            message="This invitation is for a different email address",
            error_code="INVITATION_EMAIL_MISMATCH",
        )


def _full_name(user) -> str:
    if user is None:
        return ""
    return f"{user.first_name or ''} {user.last_name or ''}".strip()


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


# ============================================
# Verification requests
# ============================================


async def request_access(
    db: AsyncSession,
    user: CurrentUser,
    school_id: str,
    evidence: str,
) -> VerificationRequest:
    """
    Ask to join a school.

    Raises:
        NotFoundError: If the school does not exist
        AlreadyMemberError: If the caller is already a verified member
        RequestAlreadyPendingError: If the caller already has a pending request
    """
    school = await get_school_or_404(db, school_id)

    membership = await SchoolRepository.get_membership(db, school.id, user.id)
    if membership is not None and membership.is_verified:
        raise AlreadyMemberError()
    if await repository.get_pending_request(db, school.id, user.id) is not None:
        raise RequestAlreadyPendingError()

    request = await repository.create_request(
        db,
        school_id=school.id,
        user_id=user.id,
        evidence=evidence,
        status=VerificationStatus.PENDING,
    )
    logger.info(f"User {user.id} requested access to school {school.id} ({request.id})")

    await _notify_head_teachers(db, school, user, evidence)
    return request


async def _notify_head_teachers(
    db: AsyncSession,
    school: School,
    requester: CurrentUser,
    evidence: str,
) -> None:
    members = await SchoolRepository.get_members(db, school.id)
    recipients = {
        member.user.email
        for member in members
        if member.role == SchoolRole.HEAD_TEACHER and member.is_verified and member.user
    }
    for email in sorted(recipients):
        await send_safely(
            send_access_request_email(
                email,
                school.name,
                requester.name or requester.email,
                requester.email,
                evidence,
            ),
            f"access request email to {email}",
        )


async def list_school_requests(
    db: AsyncSession,
    user: CurrentUser,
    school_id: str,
) -> list[VerificationRequest]:
    """Every request for a school; head teachers and admins only."""
    await get_school_or_404(db, school_id)
    await ensure_school_member(db, user, school_id, head_teacher_only=True)
    return await repository.list_requests(db, school_id=school_id)


async def list_pending_requests(db: AsyncSession) -> list[VerificationRequestDetails]:
    """Pending requests across all schools, with school and requester details."""
    requests = await repository.list_requests(db, status=VerificationStatus.PENDING)
    return [
        VerificationRequestDetails(
            **VerificationRequestResponse.model_validate(request).model_dump(),
            school_name=request.school.name if request.school else None,
            user_name=_full_name(request.user) or None,
            user_email=request.user.email if request.user else None,
        )
        for request in requests
    ]


async def review_request(
    db: AsyncSession,
    user: CurrentUser,
    request_id: str,
    approve: bool,
    review_notes: str | None = None,
) -> VerificationRequest:
    """
    Approve or reject a pending request.

    Approval adds the requester as a verified teacher, or verifies an
    existing unverified membership.

    Raises:
        NotFoundError: If the request does not exist
        HeadTeacherRequiredError: If the caller is neither an admin nor a
            head teacher of the school
        RequestAlreadyReviewedError: If the request is no longer pending
    """
    request = await repository.get_request(db, request_id)
    if request is None:
        raise NotFoundError("Verification request", request_id)

    if not user.is_admin:
        membership = await SchoolRepository.get_membership(db, request.school_id, user.id)
        if (
            membership is None
            or not membership.is_verified
            or membership.role != SchoolRole.HEAD_TEACHER
        ):
            logger.warning(f"User {user.id} may not review access request {request_id}")
            raise HeadTeacherRequiredError()

    if request.status != VerificationStatus.PENDING:
        raise RequestAlreadyReviewedError(request.status)

    request.status = VerificationStatus.APPROVED if approve else VerificationStatus.REJECTED
    request.reviewed_by = user.id
    request.reviewed_at = datetime.now(UTC)
    request.review_notes = review_notes

    if approve:
        existing = await SchoolRepository.get_membership(db, request.school_id, request.user_id)
        if existing is None:
            await SchoolRepository.add_member(
                db,
                school_id=request.school_id,
                user_id=request.user_id,
                role=SchoolRole.TEACHER,
                is_verified=True,
            )
        else:
            existing.is_verified = True

    request = await repository.save(db, request)
    logger.info(f"User {user.id} {request.status.value} access request {request.id}")

    requester = request.user
    if requester is not None and request.school is not None:
        await send_safely(
            send_access_decision_email(
                requester.email, request.school.name, approve, review_notes
            ),
            f"access decision email for request {request.id}",
        )
    return request


# ============================================
# Invitations
# ============================================


async def invite_teacher(
    db: AsyncSession,
    user: CurrentUser,
    school_id: str,
    email: str,
) -> TeacherInvitation:
    """
    Invite an email address to join a school as a teacher.

    Raises:
        NotFoundError: If the school does not exist
        NotSchoolMemberError / HeadTeacherRequiredError: If the caller is not
            the school's head teacher (admins are allowed)
        ConflictError: If the address already belongs to a member or already
            holds a pending invitation
    """
    school = await get_school_or_404(db, school_id)
    await ensure_school_member(db, user, school_id, head_teacher_only=True)

    invitee = await UserRepository.get_by_email(db, email)
    if invitee is not None and await SchoolRepository.get_membership(db, school.id, invitee.id):
        raise ConflictError(
            "This teacher is already a member of the school",
            error_code="ALREADY_MEMBER",
            status_code=400,
        )
    if await repository.get_pending_invitation(db, school.id, email) is not None:
        raise ConflictError(
            "An invitation for this email address is already pending",
            error_code="INVITATION_PENDING",
        )

    invitation = await repository.create_invitation(
        db,
        school_id=school.id,
        invited_by=user.id,
        email=email,
        token=secrets.token_hex(TOKEN_BYTES),
        status=InvitationStatus.PENDING,
        expires_at=datetime.now(UTC) + timedelta(days=INVITATION_EXPIRY_DAYS),
    )
    logger.info(f"User {user.id} invited {email} to school {school.id} ({invitation.id})")

    await send_safely(
        send_teacher_invitation_email(
            email,
            school.name,
            school.country,
            user.name or "A colleague",
            invitation.token,
        ),
        f"invitation email for {invitation.id}",
    )
    return invitation


async def list_invitations(
    db: AsyncSession,
    user: CurrentUser,
    school_id: str,
) -> list[TeacherInvitation]:
    await get_school_or_404(db, school_id)
    await ensure_school_member(db, user, school_id, head_teacher_only=True)
    return await repository.list_invitations(db, school_id)


async def _get_open_invitation(db: AsyncSession, token: str) -> TeacherInvitation:
    """
    Load an invitation that can still be accepted.

    Invitations found past their expiry are marked expired.

    Raises:
        NotFoundError: If no invitation has this token
        InvitationGoneError: If it has expired or was already accepted
    """
    invitation = await repository.get_invitation_by_token(db, token)
    if invitation is None:
        raise NotFoundError("Invitation")

    if invitation.status == InvitationStatus.ACCEPTED:
        raise InvitationGoneError(
            "This invitation has already been accepted", "INVITATION_ALREADY_ACCEPTED"
        )

    if (
        invitation.status == InvitationStatus.EXPIRED
        or _as_aware(invitation.expires_at) <= datetime.now(UTC)
    ):
        if invitation.status != InvitationStatus.EXPIRED:
            invitation.status = InvitationStatus.EXPIRED
            await repository.save(db, invitation)
        raise InvitationGoneError("This invitation has expired", "INVITATION_EXPIRED")

    return invitation


async def get_invitation_details(db: AsyncSession, token: str) -> InvitationDetails:
    invitation = await _get_open_invitation(db, token)
    school = invitation.school
    return InvitationDetails(
        email=invitation.email,
        school_name=school.name if school else "Unknown School",
        school_country=school.country if school else None,
        inviter_name=_full_name(invitation.inviter) or "A colleague",
        expires_at=invitation.expires_at,
        status=invitation.status,
    )


async def accept_invitation(db: AsyncSession, user: CurrentUser, token: str) -> School:
    """
    Accept an invitation as the invited address.

    Raises:
        NotFoundError: If no invitation has this token
        InvitationGoneError: If it has expired or was already accepted
        InvitationEmailMismatchError: If the caller's email differs
    """
    invitation = await _get_open_invitation(db, token)
    if invitation.email.strip().lower() != (user.email or "").strip().lower():
        logger.warning(f"User {user.id} may not accept invitation {invitation.id}")
        raise InvitationEmailMismatchError()

    existing = await SchoolRepository.get_membership(db, invitation.school_id, user.id)
    if existing is None:
        await SchoolRepository.add_member(
            db,
            school_id=invitation.school_id,
            user_id=user.id,
            role=SchoolRole.TEACHER,
            is_verified=True,
        )
    else:
        existing.is_verified = True

    invitation.status = InvitationStatus.ACCEPTED
    invitation.accepted_at = datetime.now(UTC)
    await repository.save(db, invitation)
    logger.info(f"User {user.id} joined school {invitation.school_id} by invitation")

    return await get_school_or_404(db, invitation.school_id)
