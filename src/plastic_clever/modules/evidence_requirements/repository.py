"""
Evidence Requirement Repository

Database operations for evidence requirements.
"""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.modules.evidence.models import Evidence
from plastic_clever.modules.evidence_requirements.models import EvidenceRequirement


async def create(db: AsyncSession, **fields: Any) -> EvidenceRequirement:
    requirement = EvidenceRequirement(**fields)
    db.add(requirement)
    await db.commit()
    await db.refresh(requirement)
    return requirement


async def get_by_id(db: AsyncSession, requirement_id: str) -> EvidenceRequirement | None:
    result = await db.execute(
        select(EvidenceRequirement).where(EvidenceRequirement.id == str(requirement_id))
    )
    return result.scalar_one_or_none()


async def list_requirements(
    db: AsyncSession,
    stage: str | None = None,
) -> list[EvidenceRequirement]:
    """Requirements in checklist order: by stage, then ``order_index``."""
    query = select(EvidenceRequirement)
    if stage:
        query = query.where(EvidenceRequirement.stage == stage)
    result = await db.execute(
        query.order_by(
            EvidenceRequirement.stage,
            EvidenceRequirement.order_index,
            EvidenceRequirement.created_at,
        )
    )
    return list(result.scalars().all())


async def count_linked_evidence(db: AsyncSession, requirement_id: str) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Evidence)
        .where(Evidence.evidence_requirement_id == str(requirement_id))
    )
    return result.scalar() or 0


async def update(
    db: AsyncSession,
    requirement: EvidenceRequirement,
    **fields: Any,
) -> EvidenceRequirement:
    for name, value in fields.items():
        setattr(requirement, name, value)
    await db.commit()
    await db.refresh(requirement)
    return requirement


async def delete(db: AsyncSession, requirement: EvidenceRequirement) -> None:
    await db.delete(requirement)
    await db.commit()
