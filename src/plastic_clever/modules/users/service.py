"""
Users Service Layer

Admin user management, platform counters and the activity log.

Role changes are restricted to admins; partners may edit other profile
fields but get a 403 when they try to change a role.
"""

import logging
from typing import Any

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.activity_log import ActivityType, log_user_activity
from plastic_clever.core.auth import CurrentUser, can_assign_roles
from plastic_clever.modules.audits import repository as audit_repository
from plastic_clever.modules.audits.models import AuditStatus
from plastic_clever.modules.evidence import repository as evidence_repository
from plastic_clever.modules.evidence.models import EvidenceStatus
from plastic_clever.modules.schools.repository import SchoolRepository
from plastic_clever.modules.shared import ForbiddenError, NotFoundError, ValidationFailedError
from plastic_clever.modules.users.models import User, UserRole
from plastic_clever.modules.users.repository import ActivityLogRepository, UserRepository
from plastic_clever.modules.users.schemas import AdminStats, UserUpdateRequest

logger = logging.getLogger(__name__)


class RoleAssignmentForbiddenError(ForbiddenError):
    def __init__(self):
        super().__init__(
            message="Only admins can change user roles",
            error_code="ROLE_ASSIGNMENT_FORBIDDEN",
        )


async def get_user_or_404(db: AsyncSession, user_id: str) -> User:
    user = await UserRepository.get_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


async def list_users(
    db: AsyncSession,
    *,
    role: UserRole | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 50,
) -> dict[str, Any]:
    users, total = await UserRepository.list_users(
        db,
        role=role,
        search=search,
        skip=skip,
        limit=limit,
    )
    return {"users": users, "total": total, "skip": skip, "limit": limit}


async def update_user(
    db: AsyncSession,
    actor: CurrentUser,
    user_id: str,
    data: UserUpdateRequest,
    request: Request | None = None,
) -> User:
    """
    Update a user's profile fields.

    Raises:
        NotFoundError: If the user does not exist
        RoleAssignmentForbiddenError: If a non-admin tries to change the role
    """
    user = await get_user_or_404(db, user_id)
    updates = data.model_dump(exclude_unset=True, exclude_none=True)

    new_role = updates.get("role")
    role_changed = new_role is not None and new_role != user.role
    if role_changed and not can_assign_roles(actor):
        logger.warning(f"{actor.role} {actor.id} attempted to change role of {user_id}")
        raise RoleAssignmentForbiddenError()

    previous_role = user.role
    for name, value in updates.items():
        setattr(user, name, value)
    await db.commit()
    await db.refresh(user)

    if role_changed:
        logger.info(f"User {user_id} role {previous_role.value} -> {user.role.value} by {actor.id}")
        await log_user_activity(
            db,
            user_id=actor.id,
            user_email=actor.email,
            action_type=ActivityType.ROLE_CHANGE,
            details={"from": previous_role.value, "to": user.role.value},
            target_id=user.id,
            target_type="user",
            request=request,
        )
    return user


async def delete_user(db: AsyncSession, actor: CurrentUser, user_id: str) -> None:
    if user_id == actor.id:
        raise ValidationFailedError("You cannot delete your own account", "CANNOT_DELETE_SELF")
    if not await UserRepository.delete(db, user_id):
        raise NotFoundError("User", user_id)
    logger.info(f"User {user_id} deleted by {actor.id}")


async def get_teacher_emails(db: AsyncSession) -> list[str]:
    teachers = await UserRepository.get_all_teachers(db)
    return sorted({teacher.email for teacher in teachers})


async def get_admin_stats(db: AsyncSession) -> AdminStats:
    school_stats = await SchoolRepository.get_platform_stats(db)
    return AdminStats(
        total_schools=school_stats["total_schools"],
        total_users=await UserRepository.count(db),
        pending_evidence=await evidence_repository.count_by_status(db, EvidenceStatus.PENDING),
        pending_audits=await audit_repository.count_by_status(db, AuditStatus.SUBMITTED),
    )


async def list_activity_logs(
    db: AsyncSession,
    *,
    user_id: str | None = None,
    action_type: str | None = None,
    days: int | None = None,
    skip: int = 0,
    limit: int = 50,
) -> dict[str, Any]:
    logs, total = await ActivityLogRepository.list_logs(
        db,
        user_id=user_id,
        action_type=action_type,
        days=days,
        skip=skip,
        limit=limit,
    )
    return {"logs": logs, "total": total, "skip": skip, "limit": limit}
