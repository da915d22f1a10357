"""
Analytics Service

Dashboard figures for admins and partners. An optional date window
(``start_date`` to ``end_date``, both inclusive, UTC) limits every figure
to schools and users created, or evidence submitted, inside it.

Bucketing:
- Progress: 0-25, 26-50, 51-75, 76-100 percent
- Review turnaround: under a day, 1-3 days, 3-7 days, over a week
"""

import logging
from datetime import UTC, date, datetime, time, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.modules.analytics import repository
from plastic_clever.modules.analytics.schemas import (
    AnalyticsOverview,
    CompletionRate,
    CountryCount,
    EvidenceAnalytics,
    MonthCount,
    RangeCount,
    SchoolProgressAnalytics,
    StageBreakdown,
    StageCount,
    SubmissionTrend,
    TopSubmitter,
)
from plastic_clever.modules.schools.models import ProgramStage
from plastic_clever.modules.shared import ValidationFailedError

logger = logging.getLogger(__name__)

PROGRESS_RANGES = (("0-25%", 0, 25), ("26-50%", 26, 50), ("51-75%", 51, 75), ("76-100%", 76, 100))

TURNAROUND_RANGES = (
    ("< 1 day", timedelta(days=1)),
    ("1-3 days", timedelta(days=3)),
    ("3-7 days", timedelta(days=7)),
)
TURNAROUND_OVERFLOW = "> 7 days"

COMPLETION_METRICS = ("inspire", "investigate", "act", "award")


def _value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


def _month(value: datetime | None) -> str:
    return value.strftime("%Y-%m") if value is not None else "unknown"


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def date_window(
    start_date: date | None,
    end_date: date | None,
) -> tuple[datetime | None, datetime | None]:
    """
    Half-open ``[since, until)`` datetimes covering both dates in full.

    Raises:
        ValidationFailedError: If the start date is after the end date
    """
    if start_date and end_date and start_date > end_date:
        raise ValidationFailedError(
            "start_date must not be after end_date", error_code="INVALID_DATE_RANGE"
        )
    since = datetime.combine(start_date, time.min, tzinfo=UTC) if start_date else None
    until = (
        datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=UTC)
        if end_date
        else None
    )
    return since, until


def bucket_progress(values: list[int]) -> list[RangeCount]:
    counts = dict.fromkeys((label for label, _, _ in PROGRESS_RANGES), 0)
    for value in values:
        clamped = min(max(value, 0), 100)
        for label, low, high in PROGRESS_RANGES:
            if low <= clamped <= high:
                counts[label] += 1
                break
    return [RangeCount(range=label, count=count) for label, count in counts.items()]


def bucket_turnaround(durations: list[tuple[datetime, datetime]]) -> list[RangeCount]:
    labels = [label for label, _ in TURNAROUND_RANGES] + [TURNAROUND_OVERFLOW]
    counts = dict.fromkeys(labels, 0)
    for submitted_at, reviewed_at in durations:
        elapsed = _as_aware(reviewed_at) - _as_aware(submitted_at)
        for label, limit in TURNAROUND_RANGES:
            if elapsed < limit:
                counts[label] += 1
                break
        else:
            counts[TURNAROUND_OVERFLOW] += 1
    return [RangeCount(range=label, count=count) for label, count in counts.items()]


def _rate(part: int, whole: int) -> float:
    return round(part * 100 / whole, 1) if whole else 0.0


async def get_overview(
    db: AsyncSession,
    start_date: date | None = None,
    end_date: date | None = None,
) -> AnalyticsOverview:
    since, until = date_window(start_date, end_date)
    schools = await repository.school_totals(db, since, until)
    evidence = await repository.evidence_totals(db, since, until)
    return AnalyticsOverview(
        total_schools=schools["total_schools"],
        total_users=await repository.count_users(db, since, until),
        total_evidence=evidence["total_evidence"],
        completed_awards=schools["completed_awards"],
        pending_evidence=evidence["pending_evidence"],
        average_progress=round(schools["average_progress"]),
        students_impacted=schools["students_impacted"],
        countries_reached=schools["countries_reached"],
    )


async def get_school_progress(
    db: AsyncSession,
    start_date: date | None = None,
    end_date: date | None = None,
) -> SchoolProgressAnalytics:
    since, until = date_window(start_date, end_date)

    by_stage = {
        _value(stage): count for stage, count in await repository.schools_by_stage(db, since, until)
    }
    completions = await repository.completion_counts(db, since, until)

    return SchoolProgressAnalytics(
        stage_distribution=[
            StageCount(stage=stage.value, count=by_stage.get(stage.value, 0))
            for stage in ProgramStage
        ],
        progress_ranges=bucket_progress(await repository.progress_values(db, since, until)),
        completion_rates=[
            CompletionRate(metric=metric, rate=_rate(completions[metric], completions["total"]))
            for metric in COMPLETION_METRICS
        ],
        monthly_registrations=[
            MonthCount(month=_month(month), count=count)
            for month, count in await repository.monthly_registrations(db, since, until)
        ],
        schools_by_country=[
            CountryCount(country=country, count=count, students=students)
            for country, count, students in await repository.schools_by_country(
                db, since, until
            )
        ],
    )


async def get_evidence_analytics(
    db: AsyncSession,
    start_date: date | None = None,
    end_date: date | None = None,
) -> EvidenceAnalytics:
    since, until = date_window(start_date, end_date)

    breakdown = {
        stage.value: {"total": 0, "approved": 0, "pending": 0, "rejected": 0}
        for stage in ProgramStage
    }
    for stage, status, count in await repository.evidence_by_stage_and_status(db, since, until):
        row = breakdown.setdefault(
            _value(stage), {"total": 0, "approved": 0, "pending": 0, "rejected": 0}
        )
        row["total"] += count
        row[_value(status)] = row.get(_value(status), 0) + count

    return EvidenceAnalytics(
        submission_trends=[
            SubmissionTrend(
                month=_month(month),
                submissions=submissions,
                approvals=approvals,
                rejections=rejections,
            )
            for month, submissions, approvals, rejections in await repository.monthly_submissions(
                db, since, until
            )
        ],
        stage_breakdown=[StageBreakdown(stage=stage, **row) for stage, row in breakdown.items()],
        review_turnaround=bucket_turnaround(await repository.review_durations(db, since, until)),
        top_submitters=[
            TopSubmitter(
                school_name=name,
                submissions=submissions,
                approval_rate=_rate(approved, submissions),
            )
            for name, submissions, approved in await repository.top_submitters(db, since, until)
        ],
    )
