"""
Evidence Service Layer

Submission, review and housekeeping for stage evidence.

Submission rules:
- Callers who cannot bypass the stage lock must be verified members of the
  school and may only submit to unlocked stages
- Evidence is tagged with the school's current round
- Admin submissions are approved immediately and trigger a progression check

Notification emails never fail the request that triggered them.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.activity_log import ActivityType, log_user_activity
from plastic_clever.core.auth import CurrentUser, can_bypass_stage_lock, can_review_evidence
from plastic_clever.core.config import settings
from plastic_clever.core.email import (
    send_admin_new_evidence_email,
    send_evidence_approval_email,
    send_evidence_rejection_email,
    send_evidence_submission_email,
    send_safely,
)
from plastic_clever.modules.evidence import repository
from plastic_clever.modules.evidence.models import Evidence, EvidenceStatus, EvidenceVisibility
from plastic_clever.modules.evidence.schemas import (
    BulkReviewResult,
    EvidenceCreate,
    EvidenceWithSchool,
)
from plastic_clever.modules.evidence_requirements import repository as requirement_repository
from plastic_clever.modules.schools.progression import (
    can_submit_to_stage,
    check_and_update_school_progression,
)
from plastic_clever.modules.schools.repository import SchoolRepository
from plastic_clever.modules.schools.service import ensure_school_member, get_primary_school_id
from plastic_clever.modules.shared import (
    ForbiddenError,
    NotFoundError,
    StageLockedError,
    ValidationFailedError,
)
from plastic_clever.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_NOTES = "Please review and resubmit"


class EvidenceNotDeletableError(ForbiddenError):
    def __init__(self):
        super().__init__(
            message="Only pending evidence can be deleted",
            error_code="EVIDENCE_NOT_DELETABLE",
        )


async def get_evidence_or_404(db: AsyncSession, evidence_id: str) -> Evidence:
    evidence = await repository.get_by_id(db, evidence_id)
    if evidence is None:
        raise NotFoundError("Evidence", evidence_id)
    return evidence


# ============================================
# Submission
# ============================================


async def _check_requirement(db: AsyncSession, data: EvidenceCreate) -> None:
    """The linked requirement must exist and belong to the submitted stage."""
    requirement = await requirement_repository.get_by_id(db, data.evidence_requirement_id)
    if requirement is None:
        raise NotFoundError("Evidence requirement", data.evidence_requirement_id)
    if requirement.stage != data.stage:
        raise ValidationFailedError(
            f"Evidence requirement is for the {requirement.stage.value} stage",
            error_code="REQUIREMENT_STAGE_MISMATCH",
        )


async def submit_evidence(
    db: AsyncSession,
    user: CurrentUser,
    data: EvidenceCreate,
    request: Request | None = None,
) -> Evidence:
    """
    Submit evidence for a school stage.

    Raises:
        NotFoundError: If the school does not exist
        NotSchoolMemberError: If a non-bypassing caller is not a member
        StageLockedError: If the stage is locked for the caller
        NotFoundError: If the linked evidence requirement does not exist
        ValidationFailedError: If the linked requirement is for another stage
    """
    school = await SchoolRepository.get_by_id(db, data.school_id)
    if school is None:
        raise NotFoundError("School", data.school_id)

    if not can_bypass_stage_lock(user):
        await ensure_school_member(db, user, school.id)

    if not can_submit_to_stage(user, data.stage, school):
        logger.info(
            f"User {user.id} blocked from submitting to locked stage "
            f"{data.stage.value} for school {school.id}"
        )
        raise StageLockedError()

    if data.evidence_requirement_id:
        await _check_requirement(db, data)

    auto_approve = user.is_admin
    evidence = await repository.create(
        db,
        school_id=school.id,
        submitted_by=user.id,
        title=data.title,
        description=data.description,
        stage=data.stage,
        visibility=data.visibility,
        files=[file.model_dump() for file in data.files],
        video_links=str(data.video_links) if data.video_links else None,
        evidence_requirement_id=data.evidence_requirement_id,
        round_number=school.current_round or 1,
        status=EvidenceStatus.APPROVED if auto_approve else EvidenceStatus.PENDING,
        reviewed_by=user.id if auto_approve else None,
        reviewed_at=datetime.now(UTC) if auto_approve else None,
    )
    logger.info(
        f"Evidence {evidence.id} submitted to {data.stage.value} for school {school.id} "
        f"(round {evidence.round_number}, status {evidence.status.value})"
    )

    if auto_approve:
        await check_and_update_school_progression(db, school.id)
    else:
        await _notify_submission(db, user, school.name, evidence)

    await log_user_activity(
        db,
        user_id=user.id,
        user_email=user.email,
        action_type=ActivityType.EVIDENCE_SUBMIT,
        details={"title": evidence.title, "stage": evidence.stage.value, "school_id": school.id},
        target_id=evidence.id,
        target_type="evidence",
        request=request,
    )
    return evidence


async def _notify_submission(
    db: AsyncSession,
    user: CurrentUser,
    school_name: str,
    evidence: Evidence,
) -> None:
    """Confirm to the submitter, then tell each admin one at a time."""
    stage = evidence.stage.value
    await send_safely(
        send_evidence_submission_email(user.email, school_name, evidence.title, stage),
        f"submission confirmation for evidence {evidence.id}",
    )

    if not settings.admin_notification_emails_enabled:
        return

    try:
        admins = await UserRepository.get_admins(db)
    except Exception as e:
        logger.error(f"Could not load admins for evidence {evidence.id} notification: {e}")
        return

    for admin in admins:
        await send_safely(
            send_admin_new_evidence_email(
                admin.email,
                school_name,
                evidence.title,
                stage,
                user.name or user.email,
            ),
            f"admin notification to {admin.email}",
        )


# ============================================
# Teacher-facing reads and deletes
# ============================================


async def list_evidence(
    db: AsyncSession,
    user: CurrentUser,
    *,
    school_id: str | None = None,
    status: EvidenceStatus | None = None,
    visibility: EvidenceVisibility | None = None,
    stage: str | None = None,
) -> list[Evidence]:
    """
    Evidence for one school. Defaults to the caller's primary school; callers
    without a school get an empty list.
    """
    if school_id is None:
        school_id = await get_primary_school_id(db, user.id)
        if school_id is None:
            return []
    elif not can_review_evidence(user):
        await ensure_school_member(db, user, school_id)

    return await repository.list_evidence(
        db,
        school_id=school_id,
        status=status,
        visibility=visibility,
        stage=stage,
    )


async def get_evidence(
    db: AsyncSession,
    user: CurrentUser | None,
    evidence_id: str,
) -> Evidence:
    """
    Approved evidence is readable by anyone. Pending and rejected evidence is
    visible only to reviewers; everyone else gets a 404.
    """
    evidence = await get_evidence_or_404(db, evidence_id)
    if evidence.status != EvidenceStatus.APPROVED and not can_review_evidence(user):
        raise NotFoundError("Evidence", evidence_id)
    return evidence


async def delete_evidence(
    db: AsyncSession,
    user: CurrentUser,
    evidence_id: str,
    request: Request | None = None,
) -> None:
    evidence = await get_evidence_or_404(db, evidence_id)
    if evidence.status != EvidenceStatus.PENDING:
        raise EvidenceNotDeletableError()

    await ensure_school_member(db, user, evidence.school_id)
    await repository.delete(db, evidence)

    await log_user_activity(
        db,
        user_id=user.id,
        user_email=user.email,
        action_type=ActivityType.EVIDENCE_DELETE,
        details={"title": evidence.title},
        target_id=evidence_id,
        target_type="evidence",
        request=request,
    )


# ============================================
# Review
# ============================================


async def _notify_review(evidence: Evidence) -> bool:
    """Email the submitter about a review outcome. Returns True if sent."""
    submitter = evidence.submitter
    if submitter is None or not submitter.email:
        logger.info(f"Evidence {evidence.id} has no submitter email; skipping review email")
        return False

    school_name = evidence.school.name if evidence.school else "your school"
    if evidence.status == EvidenceStatus.APPROVED:
        send = send_evidence_approval_email(submitter.email, school_name, evidence.title)
    else:
        send = send_evidence_rejection_email(
            submitter.email,
            school_name,
            evidence.title,
            evidence.review_notes or DEFAULT_REJECTION_NOTES,
        )
    return await send_safely(send, f"review email for evidence {evidence.id}")


async def review_evidence(
    db: AsyncSession,
    reviewer: CurrentUser,
    evidence_id: str,
    status: str,
    review_notes: str | None = None,
    request: Request | None = None,
) -> Evidence:
    """
    Approve or reject evidence.

    Approval reruns the school's progression check. The submitter is emailed
    either way; an email failure does not fail the review.
    """
    evidence = await get_evidence_or_404(db, evidence_id)
    new_status = EvidenceStatus(status)

    evidence = await repository.update_status(
        db,
        evidence,
        status=new_status,
        reviewed_by=reviewer.id,
        review_notes=review_notes,
    )
    logger.info(f"Evidence {evidence_id} {new_status.value} by {reviewer.id}")

    if new_status == EvidenceStatus.APPROVED:
        await check_and_update_school_progression(db, evidence.school_id)

    await _notify_review(evidence)

    await log_user_activity(
        db,
        user_id=reviewer.id,
        user_email=reviewer.email,
        action_type=ActivityType.EVIDENCE_REVIEW,
        details={"status": new_status.value, "school_id": evidence.school_id},
        target_id=evidence.id,
        target_type="evidence",
        request=request,
    )
    return evidence


async def bulk_review(
    db: AsyncSession,
    reviewer: CurrentUser,
    evidence_ids: list[str],
    status: str,
    review_notes: str | None = None,
) -> BulkReviewResult:
    """
    Review many items. Progression is rechecked once per school with at
    least one approval, after all items are processed.
    """
    new_status = EvidenceStatus(status)
    success: list[str] = []
    failed: list[dict[str, str]] = []
    affected_schools: set[str] = set()
    emails_processed = 0

    for evidence_id in evidence_ids:
        evidence = await repository.get_by_id(db, evidence_id)
        if evidence is None:
            failed.append({"id": evidence_id, "reason": "Evidence not found"})
            continue

        try:
            evidence = await repository.update_status(
                db,
                evidence,
                status=new_status,
                reviewed_by=reviewer.id,
                review_notes=review_notes,
            )
        except Exception as e:
            logger.error(f"Bulk review failed for evidence {evidence_id}: {e}")
            await db.rollback()
            failed.append({"id": evidence_id, "reason": "Update failed"})
            continue

        success.append(evidence_id)
        if new_status == EvidenceStatus.APPROVED:
            affected_schools.add(evidence.school_id)
        if await _notify_review(evidence):
            emails_processed += 1

    for school_id in sorted(affected_schools):
        await check_and_update_school_progression(db, school_id)

    logger.info(
        f"Bulk review by {reviewer.id}: {len(success)} {new_status.value}, "
        f"{len(failed)} failed, {len(affected_schools)} school(s) rechecked"
    )
    return BulkReviewResult(success=success, failed=failed, emails_processed=emails_processed)


async def bulk_delete(db: AsyncSession, evidence_ids: list[str]) -> int:
    deleted = await repository.delete_many(db, evidence_ids)
    logger.info(f"Bulk deleted {deleted} evidence item(s)")
    return deleted


async def set_featured(db: AsyncSession, evidence_id: str, featured: bool) -> Evidence:
    evidence = await get_evidence_or_404(db, evidence_id)
    return await repository.set_featured(db, evidence, featured)


async def list_for_review(
    db: AsyncSession,
    *,
    status: EvidenceStatus | None = None,
    stage: str | None = None,
    school_id: str | None = None,
    skip: int = 0,
    limit: int = 50,
) -> dict[str, Any]:
    """Admin review queue with school names attached."""
    items = await repository.list_evidence(
        db,
        school_id=school_id,
        status=status,
        stage=stage,
        skip=skip,
        limit=limit,
    )
    total = await repository.count_evidence(db, school_id=school_id, status=status, stage=stage)
    return {
        "evidence": [to_evidence_with_school(evidence) for evidence in items],
        "total": total,
        "skip": skip,
        "limit": limit,
    }


def to_evidence_with_school(evidence: Evidence) -> EvidenceWithSchool:
    item = EvidenceWithSchool.model_validate(evidence)
    if evidence.school is not None:
        item.school_name = evidence.school.name
        item.school_country = evidence.school.country
    return item
