"""
Schools Service Layer

Business logic for school registration, membership and team management,
round restarts, the teacher dashboard, public statistics and admin CRUD.

Authorization:
- Admins may act on any school
- Everyone else must hold a verified membership of the school
- Team management additionally requires the head_teacher school role
"""

import logging
from typing import Any

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.activity_log import ActivityType, log_user_activity
from plastic_clever.core.auth import CurrentUser
from plastic_clever.core.cache import build_cache_key, cached
from plastic_clever.core.email import send_safely, send_school_welcome_email
from plastic_clever.modules.case_studies import repository as case_study_repository
from plastic_clever.modules.evidence import repository as evidence_repository
from plastic_clever.modules.evidence.models import EvidenceStatus
from plastic_clever.modules.schools import progression
from plastic_clever.modules.schools.constants import COUNTRIES
from plastic_clever.modules.schools.models import School, SchoolRole, SchoolType, SchoolUser
from plastic_clever.modules.schools.repository import SchoolRepository
from plastic_clever.modules.schools.schemas import (
    BulkOperationResult,
    DashboardResponse,
    GlobalMovement,
    PlatformStats,
    ProgressionOverrideRequest,
    SchoolMapItem,
    SchoolRegisterRequest,
    SchoolResponse,
    SchoolUpdateRequest,
    TeamMember,
)
from plastic_clever.modules.shared import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationFailedError,
)
from plastic_clever.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


class NotSchoolMemberError(ForbiddenError):
    def __init__(self):
        super().__init__(
            message="You must be a member of this school to perform this action",
            error_code="NOT_SCHOOL_MEMBER",
        )


class HeadTeacherRequiredError(ForbiddenError):
    def __init__(self):
        super().__init__(
            message="Only the head teacher can manage this school's team",
            error_code="HEAD_TEACHER_REQUIRED",
        )


# ============================================
# Membership checks
# ============================================


async def ensure_school_member(
    db: AsyncSession,
    user: CurrentUser,
    school_id: str,
    head_teacher_only: bool = False,
) -> SchoolUser | None:
    """
    Check the caller may act on ``school_id``.

    Returns:
        The caller's membership, or None for admins acting without one

    Raises:
        NotSchoolMemberError: If the caller holds no verified membership
        HeadTeacherRequiredError: If ``head_teacher_only`` and the caller
            is not the school's head teacher
    """
    if user.is_admin:
        return await SchoolRepository.get_membership(db, school_id, user.id)

    membership = await SchoolRepository.get_membership(db, school_id, user.id)
    if membership is None or not membership.is_verified:
        logger.warning(f"User {user.id} is not a verified member of school {school_id}")
        raise NotSchoolMemberError()

    if head_teacher_only and membership.role != SchoolRole.HEAD_TEACHER:
        raise HeadTeacherRequiredError()

    return membership


async def get_school_or_404(db: AsyncSession, school_id: str) -> School:
    school = await SchoolRepository.get_by_id(db, school_id)
    if school is None:
        raise NotFoundError("School", school_id)
    return school


async def get_primary_school_id(db: AsyncSession, user_id: str) -> str | None:
    """The user's first (oldest) school membership, if any."""
    memberships = await SchoolRepository.get_user_memberships(db, user_id)
    return memberships[0].school_id if memberships else None


# ============================================
# Teacher-facing operations
# ============================================


async def register_school(
    db: AsyncSession,
    user: CurrentUser,
    data: SchoolRegisterRequest,
    request: Request | None = None,
) -> School:
    """Create a school and make the caller its verified head teacher."""
    school = await SchoolRepository.create(
        db,
        **data.model_dump(),
        primary_contact_id=user.id,
    )
    await SchoolRepository.add_member(
        db,
        school_id=school.id,
        user_id=user.id,
        role=SchoolRole.HEAD_TEACHER,
        is_verified=True,
    )
    await db.commit()
    await db.refresh(school)

    await log_user_activity(
        db,
        user_id=user.id,
        user_email=user.email,
        action_type=ActivityType.SCHOOL_REGISTER,
        details={"school_name": school.name, "country": school.country},
        target_id=school.id,
        target_type="school",
        request=request,
    )

    await send_safely(
        send_school_welcome_email(user.email, user.name or user.email, school.name),
        f"welcome email for school {school.id}",
    )
    return school


async def get_school(db: AsyncSession, user: CurrentUser, school_id: str) -> School:
    school = await get_school_or_404(db, school_id)
    await ensure_school_member(db, user, school_id)
    return school


async def get_team(db: AsyncSession, user: CurrentUser, school_id: str) -> list[TeamMember]:
    await get_school_or_404(db, school_id)
    await ensure_school_member(db, user, school_id)

    members = await SchoolRepository.get_members(db, school_id)
    return [
        TeamMember(
            user_id=member.user_id,
            email=member.user.email,
            first_name=member.user.first_name,
            last_name=member.user.last_name,
            role=member.role,
            is_verified=member.is_verified,
            joined_at=member.created_at,
        )
        for member in members
    ]


async def update_teacher_role(
    db: AsyncSession,
    user: CurrentUser,
    school_id: str,
    teacher_id: str,
    role: SchoolRole,
) -> SchoolUser:
    await ensure_school_member(db, user, school_id, head_teacher_only=True)

    membership = await SchoolRepository.get_membership(db, school_id, teacher_id)
    if membership is None:
        raise NotFoundError("Teacher", teacher_id)

    membership.role = role
    await db.commit()
    await db.refresh(membership)
    logger.info(f"User {user.id} set {teacher_id} to {role.value} in school {school_id}")
    return membership


async def remove_teacher(
    db: AsyncSession,
    user: CurrentUser,
    school_id: str,
    teacher_id: str,
) -> None:
    await ensure_school_member(db, user, school_id, head_teacher_only=True)

    if teacher_id == user.id and not user.is_admin:
        raise ValidationFailedError("You cannot remove yourself from the school")

    if not await SchoolRepository.remove_member(db, school_id, teacher_id):
        raise NotFoundError("Teacher", teacher_id)
    logger.info(f"User {user.id} removed {teacher_id} from school {school_id}")


async def start_round(
    db: AsyncSession,
    user: CurrentUser,
    school_id: str,
    request: Request | None = None,
) -> School:
    """Start the school's next round once its award is complete."""
    await get_school_or_404(db, school_id)
    await ensure_school_member(db, user, school_id)

    school = await progression.start_new_round(db, school_id)

    await log_user_activity(
        db,
        user_id=user.id,
        user_email=user.email,
        action_type=ActivityType.ROUND_START,
        details={"round": school.current_round},
        target_id=school.id,
        target_type="school",
        request=request,
    )
    return school


async def get_dashboard(db: AsyncSession, user: CurrentUser) -> DashboardResponse:
    """The caller's primary school with recent evidence and per-stage counts."""
    memberships = await SchoolRepository.get_user_memberships(db, user.id)
    if not memberships:
        return DashboardResponse(
            school=None,
            school_role=None,
            recent_evidence=[],
            evidence_counts={},
        )

    membership = memberships[0]
    school = await get_school_or_404(db, membership.school_id)
    recent = await evidence_repository.list_evidence(db, school_id=school.id, limit=5)
    counts = await evidence_repository.count_by_stage_and_status(db, school.id)

    return DashboardResponse(
        school=SchoolResponse.model_validate(school),
        school_role=membership.role,
        recent_evidence=[
            {
                "id": evidence.id,
                "title": evidence.title,
                "stage": evidence.stage.value,
                "status": evidence.status.value,
                "submitted_at": evidence.submitted_at,
            }
            for evidence in recent
        ],
        evidence_counts=counts,
    )


# ============================================
# Public (cached) operations
# ============================================


async def get_platform_stats(db: AsyncSession) -> dict[str, Any]:
    async def load() -> PlatformStats:
        stats = await SchoolRepository.get_platform_stats(db)
        approved = await evidence_repository.count_by_status(db, EvidenceStatus.APPROVED)
        return PlatformStats(**stats, approved_evidence=approved)

    return await cached(build_cache_key("/api/stats"), load)


async def get_countries() -> list[str]:
    async def load() -> list[str]:
        return list(COUNTRIES)

    return await cached(build_cache_key("/api/countries"), load)


async def get_map_schools(db: AsyncSession, country: str | None = None) -> list[dict[str, Any]]:
    async def load() -> list[SchoolMapItem]:
        schools = await SchoolRepository.get_map_schools(db, country=country)
        return [SchoolMapItem.model_validate(school) for school in schools]

    return await cached(build_cache_key("/api/schools/map", {"country": country}), load)


async def get_global_movement(db: AsyncSession) -> dict[str, Any]:
    async def load() -> GlobalMovement:
        stats = await SchoolRepository.get_platform_stats(db)
        return GlobalMovement(
            featured_case_studies=await case_study_repository.count_published(
                db, featured_only=True
            ),
            published_case_studies=await case_study_repository.count_published(db),
            total_schools=stats["total_schools"],
            countries=stats["countries"],
        )

    return await cached(build_cache_key("/api/landing/global-movement"), load)


async def list_schools(
    db: AsyncSession,
    *,
    country: str | None = None,
    school_type: SchoolType | None = None,
    stage: str | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 50,
) -> dict[str, Any]:
    schools, total = await SchoolRepository.list_schools(
        db,
        country=country,
        school_type=school_type,
        stage=stage,
        search=search,
        skip=skip,
        limit=limit,
    )
    return {"schools": schools, "total": total, "skip": skip, "limit": limit}


# ============================================
# Admin operations
# ============================================


async def admin_update_school(
    db: AsyncSession,
    school_id: str,
    data: SchoolUpdateRequest,
) -> School:
    school = await get_school_or_404(db, school_id)
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        return school
    return await SchoolRepository.update(db, school, **updates)


async def admin_delete_school(db: AsyncSession, school_id: str) -> None:
    if not await SchoolRepository.delete(db, school_id):
        raise NotFoundError("School", school_id)
    logger.info(f"Deleted school {school_id}")


async def admin_bulk_update(
    db: AsyncSession,
    school_ids: list[str],
    data: SchoolUpdateRequest,
) -> BulkOperationResult:
    success: list[str] = []
    failed: list[dict[str, str]] = []
    updates = data.model_dump(exclude_unset=True)

    for school_id in school_ids:
        school = await SchoolRepository.get_by_id(db, school_id)
        if school is None:
            failed.append({"id": school_id, "reason": "School not found"})
            continue
        await SchoolRepository.update(db, school, **updates)
        success.append(school_id)

    return BulkOperationResult(success=success, failed=failed)


async def admin_bulk_delete(db: AsyncSession, school_ids: list[str]) -> BulkOperationResult:
    success: list[str] = []
    failed: list[dict[str, str]] = []
    for school_id in school_ids:
        if await SchoolRepository.delete(db, school_id):
            success.append(school_id)
        else:
            failed.append({"id": school_id, "reason": "School not found"})
    return BulkOperationResult(success=success, failed=failed)


async def admin_override_progression(
    db: AsyncSession,
    school_id: str,
    data: ProgressionOverrideRequest,
) -> School:
    """Set progression fields directly, bypassing the approval thresholds."""
    school = await get_school_or_404(db, school_id)
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        raise ValidationFailedError("No progression fields supplied")

    logger.info(f"Manual progression override for school {school_id}: {sorted(updates)}")
    return await SchoolRepository.update(db, school, **updates)


async def admin_recalculate_progress(db: AsyncSession, school_id: str) -> School:
    school = await progression.check_and_update_school_progression(db, school_id)
    if school is None:
        raise NotFoundError("School", school_id)
    return school


async def admin_assign_teacher(
    db: AsyncSession,
    school_id: str,
    email: str,
    role: SchoolRole,
) -> SchoolUser:
    """Add an existing user to a school (or change their school role)."""
    await get_school_or_404(db, school_id)

    target = await UserRepository.get_by_email(db, email)
    if target is None:
        raise NotFoundError("User")

    existing = await SchoolRepository.get_membership(db, school_id, target.id)
    if existing is not None:
        if existing.role == role and existing.is_verified:
            raise ConflictError(
                "User is already a member of this school with that role",
                error_code="ALREADY_MEMBER",
            )
        existing.role = role
        existing.is_verified = True
        await db.commit()
        return existing

    membership = await SchoolRepository.add_member(
        db,
        school_id=school_id,
        user_id=target.id,
        role=role,
        is_verified=True,
    )
    await db.commit()
    return membership
