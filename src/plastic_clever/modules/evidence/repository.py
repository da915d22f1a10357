"""
Evidence Repository

Database operations for evidence submissions. Module-level async functions;
no business rules live here.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.modules.evidence.models import Evidence, EvidenceStatus, EvidenceVisibility
from plastic_clever.modules.schools.models import School


async def create(db: AsyncSession, **fields: Any) -> Evidence:
    evidence = Evidence(**fields)
    db.add(evidence)
    await db.commit()
    await db.refresh(evidence)
    return evidence


async def get_by_id(db: AsyncSession, evidence_id: str) -> Evidence | None:
    result = await db.execute(select(Evidence).where(Evidence.id == str(evidence_id)))
    return result.scalar_one_or_none()


async def get_many(db: AsyncSession, evidence_ids: list[str]) -> list[Evidence]:
    if not evidence_ids:
        return []
    result = await db.execute(select(Evidence).where(Evidence.id.in_(evidence_ids)))
    return list(result.scalars().all())


async def list_evidence(
    db: AsyncSession,
    *,
    school_id: str | None = None,
    status: EvidenceStatus | None = None,
    visibility: EvidenceVisibility | None = None,
    stage: str | None = None,
    round_number: int | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[Evidence]:
    """Evidence matching the filters, most recently submitted first."""
    query = select(Evidence)
    if school_id:
        query = query.where(Evidence.school_id == str(school_id))
    if status is not None:
        query = query.where(Evidence.status == status)
    if visibility is not None:
        query = query.where(Evidence.visibility == visibility)
    if stage:
        query = query.where(Evidence.stage == stage)
    if round_number is not None:
        query = query.where(Evidence.round_number == round_number)

    result = await db.execute(
        query.order_by(Evidence.submitted_at.desc()).offset(skip).limit(limit)
    )
    return list(result.scalars().all())


async def count_evidence(
    db: AsyncSession,
    *,
    school_id: str | None = None,
    status: EvidenceStatus | None = None,
    stage: str | None = None,
) -> int:
    query = select(func.count()).select_from(Evidence)
    if school_id:
        query = query.where(Evidence.school_id == str(school_id))
    if status is not None:
        query = query.where(Evidence.status == status)
    if stage:
        query = query.where(Evidence.stage == stage)
    result = await db.execute(query)
    return result.scalar() or 0


async def update_status(
    db: AsyncSession,
    evidence: Evidence,
    *,
    status: EvidenceStatus,
    reviewed_by: str,
    review_notes: str | None = None,
) -> Evidence:
    evidence.status = status
    evidence.reviewed_by = str(reviewed_by)
    evidence.reviewed_at = datetime.now(UTC)
    evidence.review_notes = review_notes
    await db.commit()
    await db.refresh(evidence)
    return evidence


async def set_featured(db: AsyncSession, evidence: Evidence, featured: bool) -> Evidence:
    evidence.is_featured = featured
    await db.commit()
    await db.refresh(evidence)
    return evidence


async def delete(db: AsyncSession, evidence: Evidence) -> None:
    await db.delete(evidence)
    await db.commit()


async def delete_many(db: AsyncSession, evidence_ids: list[str]) -> int:
    if not evidence_ids:
        return 0
    result = await db.execute(sa_delete(Evidence).where(Evidence.id.in_(evidence_ids)))
    await db.commit()
    return result.rowcount or 0


async def count_approved_by_stage(
    db: AsyncSession,
    school_id: str,
    round_number: int,
) -> dict[str, int]:
    """Approved evidence counts per stage for one school and round."""
    result = await db.execute(
        select(Evidence.stage, func.count(Evidence.id))
        .where(
            Evidence.school_id == str(school_id),
            Evidence.round_number == round_number,
            Evidence.status == EvidenceStatus.APPROVED,
        )
        .group_by(Evidence.stage)
    )
    return {_stage_value(stage): count for stage, count in result.all()}


async def count_by_stage_and_status(db: AsyncSession, school_id: str) -> dict[str, dict[str, int]]:
    """``{stage: {status: count}}`` for a school's dashboard."""
    result = await db.execute(
        select(Evidence.stage, Evidence.status, func.count(Evidence.id))
        .where(Evidence.school_id == str(school_id))
        .group_by(Evidence.stage, Evidence.status)
    )
    counts: dict[str, dict[str, int]] = {}
    for stage, status, count in result.all():
        counts.setdefault(_stage_value(stage), {})[_stage_value(status)] = count
    return counts


async def count_by_status(db: AsyncSession, status: EvidenceStatus) -> int:
    result = await db.execute(
        select(func.count()).select_from(Evidence).where(Evidence.status == status)
    )
    return result.scalar() or 0


async def get_submitted_since(db: AsyncSession, since: datetime, limit: int = 20) -> list[Evidence]:
    result = await db.execute(
        select(Evidence)
        .where(Evidence.submitted_at >= since)
        .order_by(Evidence.submitted_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def count_submitted_since(db: AsyncSession, since: datetime) -> int:
    result = await db.execute(
        select(func.count()).select_from(Evidence).where(Evidence.submitted_at >= since)
    )
    return result.scalar() or 0


async def get_approved_for_inspiration(
    db: AsyncSession,
    *,
    stage: str | None = None,
    country: str | None = None,
    search: str | None = None,
    limit: int = 12,
    offset: int = 0,
) -> list[Evidence]:
    """Approved, public evidence for the inspiration feed, newest first."""
    query = (
        select(Evidence)
        .join(School, School.id == Evidence.school_id)
        .where(
            Evidence.status == EvidenceStatus.APPROVED,
            Evidence.visibility == EvidenceVisibility.PUBLIC,
        )
    )
    if stage:
        query = query.where(Evidence.stage == stage)
    if country:
        query = query.where(School.country == country)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                Evidence.title.ilike(pattern),
                Evidence.description.ilike(pattern),
                School.name.ilike(pattern),
            )
        )

    result = await db.execute(
        query.order_by(Evidence.submitted_at.desc()).offset(offset).limit(limit)
    )
    return list(result.scalars().all())


def _stage_value(value: Any) -> str:
    return value.value if hasattr(value, "value") else str(value)
