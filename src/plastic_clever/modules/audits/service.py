"""
Audits Service Layer

Waste audits and reduction promises, the two Investigate stage activities.

An audit moves draft -> submitted -> approved | rejected. A rejected audit
can be edited again, which returns it to draft. Approving an audit or
creating a promise reruns the school's progression check, since together
they complete the Investigate stage.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.activity_log import ActivityType, log_user_activity
from plastic_clever.core.auth import CurrentUser
from plastic_clever.core.email import (
    send_audit_approval_email,
    send_audit_rejection_email,
    send_audit_submission_email,
    send_safely,
)
from plastic_clever.modules.audits import repository
from plastic_clever.modules.audits.models import AuditResponse, AuditStatus, ReductionPromise
from plastic_clever.modules.audits.schemas import AuditSaveRequest, PromiseCreate, PromiseUpdate
from plastic_clever.modules.schools.progression import check_and_update_school_progression
from plastic_clever.modules.schools.service import ensure_school_member, get_school_or_404
from plastic_clever.modules.shared import NotFoundError, ValidationFailedError
from plastic_clever.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

AUDIT_SECTIONS = ("part1_data", "part2_data", "part3_data", "part4_data")

DEFAULT_AUDIT_REJECTION_NOTES = "Please review your audit answers and resubmit"


class AuditAlreadySubmittedError(ValidationFailedError):
    def __init__(self):
        super().__init__(
            message="Audit has already been submitted",
            error_code="AUDIT_ALREADY_SUBMITTED",
        )


# ============================================
# Results
# ============================================


def sum_numeric(value: Any) -> int:
    """
    Sum every numeric leaf in a nested dict/list structure.

    Booleans and non-numeric strings are ignored; numeric strings count.
    Negative values are treated as zero.
    """
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int | float):
        return max(0, int(value))
    if isinstance(value, str):
        try:
            return max(0, int(float(value)))
        except ValueError:
            return 0
    if isinstance(value, dict):
        return sum(sum_numeric(item) for item in value.values())
    if isinstance(value, list | tuple):
        return sum(sum_numeric(item) for item in value)
    return 0


def compute_audit_results(audit: AuditResponse | Any) -> dict[str, int]:
    """Per-section totals plus the grand total for an audit's answers."""
    results = {
        section.removesuffix("_data"): sum_numeric(getattr(audit, section, None))
        for section in AUDIT_SECTIONS
    }
    results["total"] = sum(results.values())
    return results


# ============================================
# Audits
# ============================================


async def get_audit_or_404(db: AsyncSession, audit_id: str) -> AuditResponse:
    audit = await repository.get_audit(db, audit_id)
    if audit is None:
        raise NotFoundError("Audit", audit_id)
    return audit


async def save_draft(db: AsyncSession, user: CurrentUser, data: AuditSaveRequest) -> AuditResponse:
    """Create or update the school's audit for its current round."""
    school = await get_school_or_404(db, data.school_id)
    await ensure_school_member(db, user, school.id)

    round_number = school.current_round or 1
    sections = data.model_dump(include=set(AUDIT_SECTIONS), exclude_none=True)

    audit = await repository.get_audit_for_round(db, school.id, round_number)
    if audit is None:
        audit = await repository.create_audit(
            db,
            school_id=school.id,
            submitted_by=user.id,
            round_number=round_number,
            status=AuditStatus.DRAFT,
            **sections,
        )
        logger.info(f"Created draft audit {audit.id} for school {school.id} round {round_number}")
        return audit

    if audit.status in (AuditStatus.SUBMITTED, AuditStatus.APPROVED):
        raise AuditAlreadySubmittedError()

    for name, value in sections.items():
        setattr(audit, name, value)
    audit.status = AuditStatus.DRAFT
    audit.submitted_by = user.id
    return await repository.save(db, audit)


async def get_school_audits(
    db: AsyncSession,
    user: CurrentUser,
    school_id: str,
) -> list[AuditResponse]:
    await get_school_or_404(db, school_id)
    await ensure_school_member(db, user, school_id)
    return await repository.get_audits_for_school(db, school_id)


async def get_audit(db: AsyncSession, user: CurrentUser, audit_id: str) -> AuditResponse:
    audit = await get_audit_or_404(db, audit_id)
    await ensure_school_member(db, user, audit.school_id)
    return audit


async def submit_audit(
    db: AsyncSession,
    user: CurrentUser,
    audit_id: str,
    request: Request | None = None,
) -> AuditResponse:
    """Submit a draft audit for review, computing its totals."""
    audit = await get_audit_or_404(db, audit_id)
    await ensure_school_member(db, user, audit.school_id)

    if audit.status != AuditStatus.DRAFT:
        raise AuditAlreadySubmittedError()

    results = compute_audit_results(audit)
    audit.results_data = results
    audit.total_plastic_items = results["total"]
    audit.status = AuditStatus.SUBMITTED
    audit.submitted_at = datetime.now(UTC)
    audit.submitted_by = user.id
    audit = await repository.save(db, audit)
    logger.info(f"Audit {audit.id} submitted: {audit.total_plastic_items} plastic items")

    school_name = audit.school.name if audit.school else "your school"
    await send_safely(
        send_audit_submission_email(user.email, school_name),
        f"audit submission email for {audit.id}",
    )

    await log_user_activity(
        db,
        user_id=user.id,
        user_email=user.email,
        action_type=ActivityType.AUDIT_SUBMIT,
        details={"school_id": audit.school_id, "total_plastic_items": audit.total_plastic_items},
        target_id=audit.id,
        target_type="audit",
        request=request,
    )
    return audit


async def list_audits(
    db: AsyncSession,
    *,
    status: AuditStatus | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[AuditResponse]:
    return await repository.list_audits(db, status=status, skip=skip, limit=limit)


async def review_audit(
    db: AsyncSession,
    reviewer: CurrentUser,
    audit_id: str,
    approved: bool,
    review_notes: str | None = None,
    request: Request | None = None,
) -> AuditResponse:
    """Approve or reject a submitted audit."""
    audit = await get_audit_or_404(db, audit_id)
    if audit.status == AuditStatus.DRAFT:
        raise ValidationFailedError("Only submitted audits can be reviewed", "AUDIT_NOT_SUBMITTED")

    audit.status = AuditStatus.APPROVED if approved else AuditStatus.REJECTED
    audit.reviewed_by = reviewer.id
    audit.reviewed_at = datetime.now(UTC)
    audit.review_notes = review_notes
    audit = await repository.save(db, audit)
    logger.info(f"Audit {audit_id} {audit.status.value} by {reviewer.id}")

    if approved:
        await check_and_update_school_progression(db, audit.school_id)

    submitter = None
    if audit.submitted_by:
        submitter = await UserRepository.get_by_id(db, audit.submitted_by)
    if submitter is not None:
        school_name = audit.school.name if audit.school else "your school"
        if approved:
            send = send_audit_approval_email(submitter.email, school_name)
        else:
            send = send_audit_rejection_email(
                submitter.email,
                school_name,
                review_notes or DEFAULT_AUDIT_REJECTION_NOTES,
            )
        await send_safely(send, f"audit review email for {audit.id}")

    await log_user_activity(
        db,
        user_id=reviewer.id,
        user_email=reviewer.email,
        action_type=ActivityType.AUDIT_REVIEW,
        details={"status": audit.status.value, "school_id": audit.school_id},
        target_id=audit.id,
        target_type="audit",
        request=request,
    )
    return audit


# ============================================
# Reduction promises
# ============================================


async def get_promise_or_404(db: AsyncSession, promise_id: str) -> ReductionPromise:
    promise = await repository.get_promise(db, promise_id)
    if promise is None:
        raise NotFoundError("Reduction promise", promise_id)
    return promise


def _check_quantities(baseline: int, target: int) -> None:
    if target < 0 or target >= baseline:
        raise ValidationFailedError(
            "Target quantity must be at least 0 and less than baseline quantity",
            errors=[{"field": "target_quantity", "message": "Must be less than baseline quantity"}],
        )


async def create_promise(
    db: AsyncSession,
    user: CurrentUser,
    data: PromiseCreate,
    request: Request | None = None,
) -> ReductionPromise:
    school = await get_school_or_404(db, data.school_id)
    await ensure_school_member(db, user, school.id)
    _check_quantities(data.baseline_quantity, data.target_quantity)

    if data.audit_id is not None:
        audit = await get_audit_or_404(db, data.audit_id)
        if audit.school_id != school.id:
            raise ValidationFailedError(
                "Audit belongs to a different school",
                error_code="AUDIT_SCHOOL_MISMATCH",
            )

    promise = await repository.create_promise(
        db,
        **data.model_dump(),
        round_number=school.current_round or 1,
        reduction_amount=data.baseline_quantity - data.target_quantity,
        created_by=user.id,
    )
    logger.info(
        f"School {school.id} promised to cut {promise.plastic_item_type} "
        f"by {promise.reduction_amount}"
    )

    await check_and_update_school_progression(db, school.id)

    await log_user_activity(
        db,
        user_id=user.id,
        user_email=user.email,
        action_type=ActivityType.PROMISE_CREATE,
        details={"plastic_item_type": promise.plastic_item_type, "school_id": school.id},
        target_id=promise.id,
        target_type="reduction_promise",
        request=request,
    )
    return promise


async def get_school_promises(
    db: AsyncSession,
    user: CurrentUser,
    school_id: str,
) -> list[ReductionPromise]:
    await get_school_or_404(db, school_id)
    await ensure_school_member(db, user, school_id)
    return await repository.get_promises_for_school(db, school_id)


async def get_audit_promises(
    db: AsyncSession,
    user: CurrentUser,
    audit_id: str,
) -> list[ReductionPromise]:
    audit = await get_audit_or_404(db, audit_id)
    await ensure_school_member(db, user, audit.school_id)
    return await repository.get_promises_for_audit(db, audit_id)


async def update_promise(
    db: AsyncSession,
    user: CurrentUser,
    promise_id: str,
    data: PromiseUpdate,
) -> ReductionPromise:
    """Apply a partial update, recomputing the reduction when quantities change."""
    promise = await get_promise_or_404(db, promise_id)
    await ensure_school_member(db, user, promise.school_id)

    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    baseline = updates.get("baseline_quantity", promise.baseline_quantity)
    target = updates.get("target_quantity", promise.target_quantity)
    _check_quantities(baseline, target)

    for name, value in updates.items():
        setattr(promise, name, value)
    promise.reduction_amount = baseline - target
    return await repository.save(db, promise)


async def delete_promise(db: AsyncSession, user: CurrentUser, promise_id: str) -> None:
    promise = await get_promise_or_404(db, promise_id)
    await ensure_school_member(db, user, promise.school_id)
    await repository.delete_promise(db, promise)
    logger.info(f"Reduction promise {promise_id} deleted by {user.id}")


async def get_promise_metrics(db: AsyncSession) -> dict[str, Any]:
    return await repository.get_promise_metrics(db)
