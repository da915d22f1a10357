"""
Case Study Repository

Database operations for case studies.
"""

from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.modules.case_studies.models import CaseStudy, CaseStudyStatus
from plastic_clever.modules.schools.models import School


async def create(db: AsyncSession, **fields: Any) -> CaseStudy:
    case_study = CaseStudy(**fields)
    db.add(case_study)
    await db.commit()
    await db.refresh(case_study)
    return case_study


async def get_by_id(db: AsyncSession, case_study_id: str) -> CaseStudy | None:
    result = await db.execute(select(CaseStudy).where(CaseStudy.id == str(case_study_id)))
    return result.scalar_one_or_none()


async def get_case_studies(
    db: AsyncSession,
    *,
    stage: str | None = None,
    country: str | None = None,
    search: str | None = None,
    categories: list[str] | None = None,
    tags: list[str] | None = None,
    status: CaseStudyStatus | None = None,
    featured: bool | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[CaseStudy]:
    """
    Case studies matching the filters.

    Category and tag filters match when the case study has any of the
    requested values. Featured first, then by priority, then newest.
    """
    query = select(CaseStudy).join(School, School.id == CaseStudy.school_id)
    if stage:
        query = query.where(CaseStudy.stage == stage)
    if country:
        query = query.where(School.country == country)
    if status is not None:
        query = query.where(CaseStudy.status == status)
    if featured is not None:
        query = query.where(CaseStudy.featured.is_(featured))
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                CaseStudy.title.ilike(pattern),
                CaseStudy.description.ilike(pattern),
                School.name.ilike(pattern),
            )
        )
    if categories:
        query = query.where(or_(*(CaseStudy.categories.contains([c]) for c in categories)))
    if tags:
        query = query.where(or_(*(CaseStudy.tags.contains([t]) for t in tags)))

    result = await db.execute(
        query.order_by(
            CaseStudy.featured.desc(),
            CaseStudy.priority.desc(),
            CaseStudy.created_at.desc(),
        )
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all())


async def count_published(db: AsyncSession, featured_only: bool = False) -> int:
    query = select(func.count()).select_from(CaseStudy).where(
        CaseStudy.status == CaseStudyStatus.PUBLISHED
    )
    if featured_only:
        query = query.where(CaseStudy.featured.is_(True))
    result = await db.execute(query)
    return result.scalar() or 0


async def update(db: AsyncSession, case_study: CaseStudy, **fields: Any) -> CaseStudy:
    for name, value in fields.items():
        setattr(case_study, name, value)
    await db.commit()
    await db.refresh(case_study)
    return case_study


async def delete(db: AsyncSession, case_study: CaseStudy) -> None:
    await db.delete(case_study)
    await db.commit()


async def get_published_excluding(
    db: AsyncSession,
    case_study_id: str,
    limit: int = 200,
) -> list[CaseStudy]:
    """Published case studies other than ``case_study_id``, for related scoring."""
    result = await db.execute(
        select(CaseStudy)
        .where(
            CaseStudy.status == CaseStudyStatus.PUBLISHED,
            CaseStudy.id != str(case_study_id),
        )
        .order_by(CaseStudy.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
