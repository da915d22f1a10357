"""
Analytics Repository

Aggregate queries over schools, users and evidence for the admin
analytics dashboard. Every query takes an optional ``[since, until)``
window applied to the row's creation (or submission) time.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.modules.evidence.models import Evidence, EvidenceStatus
from plastic_clever.modules.schools.models import School
from plastic_clever.modules.users.models import User

TOP_SUBMITTER_LIMIT = 10


def _window(query: Select, column: Any, since: datetime | None, until: datetime | None) -> Select:
    if since is not None:
        query = query.where(column >= since)
    if until is not None:
        query = query.where(column < until)
    return query


async def school_totals(
    db: AsyncSession,
    since: datetime | None = None,
    until: datetime | None = None,
) -> dict[str, Any]:
    query = select(
        func.count(School.id),
        func.count(School.id).filter(School.award_completed.is_(True)),
        func.coalesce(func.avg(School.progress_percentage), 0),
        func.coalesce(func.sum(School.student_count), 0),
        func.count(func.distinct(School.country)),
    )
    result = await db.execute(_window(query, School.created_at, since, until))
    total, awards, average_progress, students, countries = result.one()
    return {
        "total_schools": total or 0,
        "completed_awards": awards or 0,
        "average_progress": float(average_progress or 0),
        "students_impacted": int(students or 0),
        "countries_reached": countries or 0,
    }


async def count_users(
    db: AsyncSession,
    since: datetime | None = None,
    until: datetime | None = None,
) -> int:
    query = select(func.count()).select_from(User)
    result = await db.execute(_window(query, User.created_at, since, until))
    return result.scalar() or 0


async def evidence_totals(
    db: AsyncSession,
    since: datetime | None = None,
    until: datetime | None = None,
) -> dict[str, int]:
    query = select(
        func.count(Evidence.id),
        func.count(Evidence.id).filter(Evidence.status == EvidenceStatus.PENDING),
    )
    result = await db.execute(_window(query, Evidence.submitted_at, since, until))
    total, pending = result.one()
    return {"total_evidence": total or 0, "pending_evidence": pending or 0}


async def schools_by_stage(
    db: AsyncSession,
    since: datetime | None = None,
    until: datetime | None = None,
) -> list[tuple[Any, int]]:
    query = select(School.current_stage, func.count(School.id)).group_by(School.current_stage)
    result = await db.execute(_window(query, School.created_at, since, until))
    return [(stage, count) for stage, count in result.all()]


async def progress_values(
    db: AsyncSession,
    since: datetime | None = None,
    until: datetime | None = None,
) -> list[int]:
    query = select(School.progress_percentage)
    result = await db.execute(_window(query, School.created_at, since, until))
    return [value or 0 for value in result.scalars().all()]


async def completion_counts(
    db: AsyncSession,
    since: datetime | None = None,
    until: datetime | None = None,
) -> dict[str, int]:
    query = select(
        func.count(School.id),
        func.count(School.id).filter(School.inspire_completed.is_(True)),
        func.count(School.id).filter(School.investigate_completed.is_(True)),
        func.count(School.id).filter(School.act_completed.is_(True)),
        func.count(School.id).filter(School.award_completed.is_(True)),
    )
    result = await db.execute(_window(query, School.created_at, since, until))
    total, inspire, investigate, act, award = result.one()
    return {
        "total": total or 0,
        "inspire": inspire or 0,
        "investigate": investigate or 0,
        "act": act or 0,
        "award": award or 0,
    }


async def schools_by_country(
    db: AsyncSession,
    since: datetime | None = None,
    until: datetime | None = None,
) -> list[tuple[str, int, int]]:
    """(country, schools, students) rows, most schools first."""
    count = func.count(School.id)
    query = select(
        School.country,
        count,
        func.coalesce(func.sum(School.student_count), 0),
    ).group_by(School.country)
    query = _window(query, School.created_at, since, until)
    result = await db.execute(query.order_by(count.desc(), School.country))
    return [(country, schools, int(students or 0)) for country, schools, students in result.all()]


async def monthly_registrations(
    db: AsyncSession,
    since: datetime | None = None,
    until: datetime | None = None,
) -> list[tuple[datetime, int]]:
    month = func.date_trunc("month", School.created_at)
    query = select(month, func.count(School.id)).group_by(month)
    query = _window(query, School.created_at, since, until)
    result = await db.execute(query.order_by(month))
    return [(bucket, count) for bucket, count in result.all()]


async def evidence_by_stage_and_status(
    db: AsyncSession,
    since: datetime | None = None,
    until: datetime | None = None,
) -> list[tuple[Any, Any, int]]:
    query = select(Evidence.stage, Evidence.status, func.count(Evidence.id)).group_by(
        Evidence.stage, Evidence.status
    )
    result = await db.execute(_window(query, Evidence.submitted_at, since, until))
    return [(stage, status, count) for stage, status, count in result.all()]


async def review_durations(
    db: AsyncSession,
    since: datetime | None = None,
    until: datetime | None = None,
) -> list[tuple[datetime, datetime]]:
    """(submitted_at, reviewed_at) for every reviewed submission."""
    query = select(Evidence.submitted_at, Evidence.reviewed_at).where(
        Evidence.reviewed_at.is_not(None)
    )
    result = await db.execute(_window(query, Evidence.submitted_at, since, until))
    return [(submitted, reviewed) for submitted, reviewed in result.all()]


async def top_submitters(
    db: AsyncSession,
    since: datetime | None = None,
    until: datetime | None = None,
    limit: int = TOP_SUBMITTER_LIMIT,
) -> list[tuple[str, int, int]]:
    """(school name, submissions, approved) for the busiest schools."""
    submissions = func.count(Evidence.id)
    query = (
        select(
            School.name,
            submissions,
            func.count(Evidence.id).filter(Evidence.status == EvidenceStatus.APPROVED),
        )
        .join(School, School.id == Evidence.school_id)
        .group_by(School.id, School.name)
    )
    query = _window(query, Evidence.submitted_at, since, until)
    result = await db.execute(query.order_by(submissions.desc(), School.name).limit(limit))
    return [(name, total, approved) for name, total, approved in result.all()]


async def monthly_submissions(
    db: AsyncSession,
    since: datetime | None = None,
    until: datetime | None = None,
) -> list[tuple[datetime, int, int, int]]:
    """(month, submissions, approvals, rejections) per calendar month."""
    month = func.date_trunc("month", Evidence.submitted_at)
    query = select(
        month,
        func.count(Evidence.id),
        func.count(Evidence.id).filter(Evidence.status == EvidenceStatus.APPROVED),
        func.count(Evidence.id).filter(Evidence.status == EvidenceStatus.REJECTED),
    ).group_by(month)
    query = _window(query, Evidence.submitted_at, since, until)
    result = await db.execute(query.order_by(month))
    return [tuple(row) for row in result.all()]
