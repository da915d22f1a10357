"""
Inspiration Feed Service

Merges published case studies and approved public evidence into one feed.

Ranking:
    score = (20 for a case study, 10 for evidence) + (10 if featured)

Ties (including featured evidence against a regular case study, both 20)
go to the most recently created item. Items without a timestamp sort as
the oldest.

For a mixed feed both sources are over-fetched from offset 0 so that the
requested page is correct after cross-source sorting; a single-source feed
is paged by the database directly.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.modules.case_studies import repository as case_study_repository
from plastic_clever.modules.case_studies.models import CaseStudy, CaseStudyStatus
from plastic_clever.modules.evidence import repository as evidence_repository
from plastic_clever.modules.evidence.models import Evidence
from plastic_clever.modules.inspiration.schemas import InspirationItem

logger = logging.getLogger(__name__)

CONTENT_ALL = "all"
CONTENT_CASE_STUDY = "case-study"
CONTENT_EVIDENCE = "evidence"

CASE_STUDY_SCORE = 20
EVIDENCE_SCORE = 10
FEATURED_BONUS = 10

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def _value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


def evidence_to_feed_item(evidence: Evidence) -> InspirationItem:
    """Project evidence into the case study shape used by the feed."""
    images = [
        {"url": file.get("url"), "caption": file.get("caption") or file.get("name")}
        for file in (evidence.files or [])
        if isinstance(file, dict)
    ]
    school = evidence.school
    return InspirationItem(
        id=evidence.id,
        content_type=CONTENT_EVIDENCE,
        school_id=evidence.school_id,
        school_name=school.name if school is not None else None,
        school_country=school.country if school is not None else None,
        title=evidence.title,
        description=evidence.description,
        stage=_value(evidence.stage),
        image_url=images[0]["url"] if images else None,
        featured=bool(evidence.is_featured),
        images=images,
        videos=[{"url": evidence.video_links}] if evidence.video_links else [],
        created_at=evidence.submitted_at or evidence.created_at,
    )


def case_study_to_feed_item(case_study: CaseStudy) -> InspirationItem:
    school = case_study.school
    return InspirationItem(
        id=case_study.id,
        content_type=CONTENT_CASE_STUDY,
        school_id=case_study.school_id,
        school_name=school.name if school is not None else None,
        school_country=school.country if school is not None else None,
        title=case_study.title,
        description=case_study.description,
        stage=_value(case_study.stage),
        impact=case_study.impact,
        image_url=case_study.image_url,
        featured=bool(case_study.featured),
        priority=case_study.priority or 0,
        images=case_study.images or [],
        videos=case_study.videos or [],
        student_quotes=case_study.student_quotes or [],
        impact_metrics=case_study.impact_metrics or [],
        categories=case_study.categories or [],
        tags=case_study.tags or [],
        created_at=case_study.created_at,
    )


def score_item(item: InspirationItem) -> int:
    base = CASE_STUDY_SCORE if item.content_type == CONTENT_CASE_STUDY else EVIDENCE_SCORE
    return base + (FEATURED_BONUS if item.featured else 0)


def _timestamp(item: InspirationItem) -> float:
    created_at = item.created_at
    if created_at is None:
        return _EPOCH.timestamp()
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    return created_at.timestamp()


def rank_feed(items: list[InspirationItem]) -> list[InspirationItem]:
    """Score descending, then newest first."""
    return sorted(items, key=lambda item: (score_item(item), _timestamp(item)), reverse=True)


async def get_inspiration_content(
    db: AsyncSession,
    *,
    stage: str | None = None,
    country: str | None = None,
    search: str | None = None,
    content_type: str | None = None,
    limit: int = 12,
    offset: int = 0,
    is_admin: bool = False,
) -> list[InspirationItem]:
    """
    Build one page of the inspiration feed.

    Data-access errors propagate to the caller.
    """
    content_type = content_type or CONTENT_ALL
    mixed = content_type == CONTENT_ALL

    if mixed:
        fetch_limit = (offset + limit) * 2
        fetch_offset = 0
    else:
        fetch_limit = limit
        fetch_offset = offset

    items: list[InspirationItem] = []

    if content_type in (CONTENT_ALL, CONTENT_CASE_STUDY):
        case_studies = await case_study_repository.get_case_studies(
            db,
            stage=stage,
            country=country,
            search=search,
            status=None if is_admin else CaseStudyStatus.PUBLISHED,
            limit=fetch_limit,
            offset=fetch_offset,
        )
        items.extend(case_study_to_feed_item(case_study) for case_study in case_studies)

    if content_type in (CONTENT_ALL, CONTENT_EVIDENCE):
        evidence = await evidence_repository.get_approved_for_inspiration(
            db,
            stage=stage,
            country=country,
            search=search,
            limit=fetch_limit,
            offset=fetch_offset,
        )
        items.extend(evidence_to_feed_item(item) for item in evidence)

    ranked = rank_feed(items)
    logger.debug(
        f"Inspiration feed: type={content_type} fetched={len(items)} "
        f"offset={offset} limit={limit}"
    )
    if mixed:
        return ranked[offset : offset + limit]
    return ranked
