"""
School Access Repository

Database operations for verification requests and teacher invitations.
"""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.modules.school_access.models import (
    InvitationStatus,
    TeacherInvitation,
    VerificationRequest,
    VerificationStatus,
)


async def save(db: AsyncSession, instance: Any) -> Any:
    """Commit pending attribute changes on ``instance`` and refresh it."""
    await db.commit()
    await db.refresh(instance)
    return instance


# ============================================
# Verification requests
# ============================================


async def create_request(db: AsyncSession, **fields: Any) -> VerificationRequest:
    request = VerificationRequest(**fields)
    db.add(request)
    await db.commit()
    await db.refresh(request)
    return request


async def get_request(db: AsyncSession, request_id: str) -> VerificationRequest | None:
    result = await db.execute(
        select(VerificationRequest).where(VerificationRequest.id == str(request_id))
    )
    return result.scalar_one_or_none()


async def get_pending_request(
    db: AsyncSession,
    school_id: str,
    user_id: str,
) -> VerificationRequest | None:
    result = await db.execute(
        select(VerificationRequest).where(
            VerificationRequest.school_id == str(school_id),
            VerificationRequest.user_id == str(user_id),
            VerificationRequest.status == VerificationStatus.PENDING,
        )
    )
    return result.scalars().first()


async def list_requests(
    db: AsyncSession,
    *,
    school_id: str | None = None,
    status: VerificationStatus | None = None,
) -> list[VerificationRequest]:
    """Requests matching the filters, newest first."""
    query = select(VerificationRequest)
    if school_id:
        query = query.where(VerificationRequest.school_id == str(school_id))
    if status is not None:
        query = query.where(VerificationRequest.status == status)
    result = await db.execute(query.order_by(VerificationRequest.created_at.desc()))
    return list(result.scalars().all())


# ============================================
# Invitations
# ============================================


async def create_invitation(db: AsyncSession, **fields: Any) -> TeacherInvitation:
    invitation = TeacherInvitation(**fields)
    db.add(invitation)
    await db.commit()
    await db.refresh(invitation)
    return invitation


async def get_invitation_by_token(db: AsyncSession, token: str) -> TeacherInvitation | None:
    result = await db.execute(select(TeacherInvitation).where(TeacherInvitation.token == token))
    return result.scalar_one_or_none()


async def get_pending_invitation(
    db: AsyncSession,
    school_id: str,
    email: str,
) -> TeacherInvitation | None:
    result = await db.execute(
        select(TeacherInvitation).where(
            TeacherInvitation.school_id == str(school_id),
            func.lower(TeacherInvitation.email) == email.lower(),
            TeacherInvitation.status == InvitationStatus.PENDING,
        )
    )
    return result.scalars().first()


async def list_invitations(db: AsyncSession, school_id: str) -> list[TeacherInvitation]:
    result = await db.execute(
        select(TeacherInvitation)
        .where(TeacherInvitation.school_id == str(school_id))
        .order_by(TeacherInvitation.created_at.desc())
    )
    return list(result.scalars().all())
