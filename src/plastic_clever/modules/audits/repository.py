"""
Audit Repository

Database operations for waste audits and reduction promises.
"""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.modules.audits.models import AuditResponse, AuditStatus, ReductionPromise


# ============================================
# Audits
# ============================================


async def create_audit(db: AsyncSession, **fields: Any) -> AuditResponse:
    audit = AuditResponse(**fields)
    db.add(audit)
    await db.commit()
    await db.refresh(audit)
    return audit


async def get_audit(db: AsyncSession, audit_id: str) -> AuditResponse | None:
    result = await db.execute(select(AuditResponse).where(AuditResponse.id == str(audit_id)))
    return result.scalar_one_or_none()


async def get_audit_for_round(
    db: AsyncSession,
    school_id: str,
    round_number: int,
) -> AuditResponse | None:
    """The school's most recent audit for a round (draft or otherwise)."""
    result = await db.execute(
        select(AuditResponse)
        .where(
            AuditResponse.school_id == str(school_id),
            AuditResponse.round_number == round_number,
        )
        .order_by(AuditResponse.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_audits_for_school(db: AsyncSession, school_id: str) -> list[AuditResponse]:
    result = await db.execute(
        select(AuditResponse)
        .where(AuditResponse.school_id == str(school_id))
        .order_by(AuditResponse.created_at.desc())
    )
    return list(result.scalars().all())


async def list_audits(
    db: AsyncSession,
    *,
    status: AuditStatus | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[AuditResponse]:
    query = select(AuditResponse)
    if status is not None:
        query = query.where(AuditResponse.status == status)
    result = await db.execute(
        query.order_by(AuditResponse.submitted_at.desc().nulls_last()).offset(skip).limit(limit)
    )
    return list(result.scalars().all())


async def count_by_status(db: AsyncSession, status: AuditStatus) -> int:
    result = await db.execute(
        select(func.count()).select_from(AuditResponse).where(AuditResponse.status == status)
    )
    return result.scalar() or 0


async def has_approved_audit(db: AsyncSession, school_id: str, round_number: int) -> bool:
    result = await db.execute(
        select(func.count())
        .select_from(AuditResponse)
        .where(
            AuditResponse.school_id == str(school_id),
            AuditResponse.round_number == round_number,
            AuditResponse.status == AuditStatus.APPROVED,
        )
    )
    return (result.scalar() or 0) > 0


async def save(db: AsyncSession, instance: AuditResponse | ReductionPromise):
    """Commit pending attribute changes on ``instance`` and refresh it."""
    await db.commit()
    await db.refresh(instance)
    return instance


# ============================================
# Reduction promises
# ============================================


async def create_promise(db: AsyncSession, **fields: Any) -> ReductionPromise:
    promise = ReductionPromise(**fields)
    db.add(promise)
    await db.commit()
    await db.refresh(promise)
    return promise


async def get_promise(db: AsyncSession, promise_id: str) -> ReductionPromise | None:
    result = await db.execute(
        select(ReductionPromise).where(ReductionPromise.id == str(promise_id))
    )
    return result.scalar_one_or_none()


async def get_promises_for_school(db: AsyncSession, school_id: str) -> list[ReductionPromise]:
    result = await db.execute(
        select(ReductionPromise)
        .where(ReductionPromise.school_id == str(school_id))
        .order_by(ReductionPromise.created_at.desc())
    )
    return list(result.scalars().all())


async def get_promises_for_audit(db: AsyncSession, audit_id: str) -> list[ReductionPromise]:
    result = await db.execute(
        select(ReductionPromise)
        .where(ReductionPromise.audit_id == str(audit_id))
        .order_by(ReductionPromise.created_at.asc())
    )
    return list(result.scalars().all())


async def count_promises_for_round(db: AsyncSession, school_id: str, round_number: int) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(ReductionPromise)
        .where(
            ReductionPromise.school_id == str(school_id),
            ReductionPromise.round_number == round_number,
        )
    )
    return result.scalar() or 0


async def delete_promise(db: AsyncSession, promise: ReductionPromise) -> None:
    await db.delete(promise)
    await db.commit()


async def get_promise_metrics(db: AsyncSession) -> dict[str, Any]:
    """Platform-wide totals, plus a per plastic item type breakdown."""
    result = await db.execute(
        select(
            ReductionPromise.plastic_item_type,
            func.count(ReductionPromise.id),
            func.coalesce(func.sum(ReductionPromise.reduction_amount), 0),
        ).group_by(ReductionPromise.plastic_item_type)
    )
    breakdown = [
        {"plastic_item_type": item_type, "count": count, "total_reduction": int(total)}
        for item_type, count, total in result.all()
    ]
    breakdown.sort(key=lambda row: row["total_reduction"], reverse=True)
    return {
        "total_promises": sum(row["count"] for row in breakdown),
        "total_reduction_amount": sum(row["total_reduction"] for row in breakdown),
        "item_type_breakdown": breakdown,
    }
