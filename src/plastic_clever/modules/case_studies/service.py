"""
Case Studies Service Layer

Public gallery reads plus admin/partner content management.

Drafts are visible only to callers who can manage content; everyone else
sees published case studies and gets a 404 for drafts.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, can_manage_content
from plastic_clever.modules.case_studies import repository
from plastic_clever.modules.case_studies.models import CaseStudy, CaseStudyStatus
from plastic_clever.modules.case_studies.schemas import (
    CaseStudyCreate,
    CaseStudyDetail,
    CaseStudyFromEvidence,
    CaseStudyResponse,
    CaseStudyUpdate,
)
from plastic_clever.modules.evidence import repository as evidence_repository
from plastic_clever.modules.evidence.models import EvidenceStatus
from plastic_clever.modules.schools.repository import SchoolRepository
from plastic_clever.modules.shared import NotFoundError, ValidationFailedError

logger = logging.getLogger(__name__)

RELATED_CANDIDATE_LIMIT = 50
SAME_STAGE_SCORE = 3
SAME_COUNTRY_SCORE = 2
SHARED_LABEL_SCORE = 1


def _country(case_study: CaseStudy) -> str | None:
    return case_study.school.country if case_study.school is not None else None


def to_response(case_study: CaseStudy) -> CaseStudyResponse:
    response = CaseStudyResponse.model_validate(case_study)
    if case_study.school is not None:
        response.school_name = case_study.school.name
        response.school_country = case_study.school.country
    return response


def to_detail(case_study: CaseStudy) -> CaseStudyDetail:
    detail = CaseStudyDetail(**to_response(case_study).model_dump())
    evidence = case_study.evidence
    if evidence is not None:
        detail.evidence_link = evidence.video_links or None
        detail.evidence_files = evidence.files if isinstance(evidence.files, list) else None
    return detail


def related_score(base: CaseStudy, candidate: CaseStudy) -> int:
    """Similarity of ``candidate`` to ``base``: stage, country, then shared labels."""
    score = 0
    if candidate.stage == base.stage:
        score += SAME_STAGE_SCORE
    base_country = _country(base)
    if base_country is not None and _country(candidate) == base_country:
        score += SAME_COUNTRY_SCORE

    shared_categories = set(base.categories or []) & set(candidate.categories or [])
    shared_tags = set(base.tags or []) & set(candidate.tags or [])
    score += SHARED_LABEL_SCORE * (len(shared_categories) + len(shared_tags))
    return score


def rank_related(base: CaseStudy, candidates: list[CaseStudy], limit: int) -> list[CaseStudy]:
    """Highest score first; featured case studies win ties."""
    ranked = sorted(
        candidates,
        key=lambda candidate: (related_score(base, candidate), bool(candidate.featured)),
        reverse=True,
    )
    return ranked[:limit]


async def get_case_study_or_404(db: AsyncSession, case_study_id: str) -> CaseStudy:
    case_study = await repository.get_by_id(db, case_study_id)
    if case_study is None:
        raise NotFoundError("Case study", case_study_id)
    return case_study


# ============================================
# Public
# ============================================


async def list_case_studies(
    db: AsyncSession,
    user: CurrentUser | None,
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
    """Gallery listing. Only content managers may filter to drafts."""
    if not can_manage_content(user):
        status = CaseStudyStatus.PUBLISHED

    return await repository.get_case_studies(
        db,
        stage=stage,
        country=country,
        search=search,
        categories=categories,
        tags=tags,
        status=status,
        featured=featured,
        limit=limit,
        offset=offset,
    )


async def get_case_study(
    db: AsyncSession,
    user: CurrentUser | None,
    case_study_id: str,
) -> CaseStudy:
    case_study = await get_case_study_or_404(db, case_study_id)
    if case_study.status != CaseStudyStatus.PUBLISHED and not can_manage_content(user):
        raise NotFoundError("Case study", case_study_id)
    return case_study


async def get_related(
    db: AsyncSession,
    user: CurrentUser | None,
    case_study_id: str,
    limit: int = 4,
) -> list[CaseStudy]:
    base = await get_case_study(db, user, case_study_id)
    candidates = await repository.get_published_excluding(
        db, base.id, limit=RELATED_CANDIDATE_LIMIT
    )
    return rank_related(base, candidates, limit)


# ============================================
# Admin / partner
# ============================================


async def create_case_study(
    db: AsyncSession,
    user: CurrentUser,
    data: CaseStudyCreate,
) -> CaseStudy:
    if await SchoolRepository.get_by_id(db, data.school_id) is None:
        raise NotFoundError("School", data.school_id)

    case_study = await repository.create(db, **data.model_dump(), created_by=user.id)
    logger.info(f"Case study {case_study.id} created by {user.id}")
    return case_study


async def update_case_study(
    db: AsyncSession,
    case_study_id: str,
    data: CaseStudyUpdate,
) -> CaseStudy:
    case_study = await get_case_study_or_404(db, case_study_id)
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        return case_study
    return await repository.update(db, case_study, **updates)


async def delete_case_study(db: AsyncSession, case_study_id: str) -> None:
    case_study = await get_case_study_or_404(db, case_study_id)
    await repository.delete(db, case_study)
    logger.info(f"Case study {case_study_id} deleted")


async def set_featured(db: AsyncSession, case_study_id: str, featured: bool) -> CaseStudy:
    case_study = await get_case_study_or_404(db, case_study_id)
    return await repository.update(db, case_study, featured=featured)


def _media_from_evidence(files: list[dict[str, Any]]) -> tuple[list[dict], list[dict]]:
    images: list[dict[str, Any]] = []
    videos: list[dict[str, Any]] = []
    for file in files or []:
        kind = (file.get("type") or "").lower()
        entry = {"url": file.get("url"), "caption": file.get("caption")}
        if kind.startswith("image"):
            images.append(entry)
        elif kind.startswith("video"):
            videos.append(entry)
    return images, videos


async def create_from_evidence(
    db: AsyncSession,
    user: CurrentUser,
    data: CaseStudyFromEvidence,
) -> CaseStudy:
    """Create a draft case study from approved evidence, copying its content and media."""
    evidence = await evidence_repository.get_by_id(db, data.evidence_id)
    if evidence is None:
        raise NotFoundError("Evidence", data.evidence_id)
    if evidence.status != EvidenceStatus.APPROVED:
        raise ValidationFailedError(
            "Only approved evidence can become a case study",
            error_code="EVIDENCE_NOT_APPROVED",
        )

    images, videos = _media_from_evidence(evidence.files)
    if evidence.video_links:
        videos.append({"url": evidence.video_links, "caption": None})

    case_study = await repository.create(
        db,
        evidence_id=evidence.id,
        school_id=evidence.school_id,
        title=data.title or evidence.title,
        description=data.description or evidence.description,
        stage=evidence.stage,
        impact=data.impact,
        image_url=data.image_url or (images[0]["url"] if images else None),
        featured=data.featured,
        priority=data.priority,
        images=images,
        videos=videos,
        status=CaseStudyStatus.DRAFT,
        created_by=user.id,
    )
    logger.info(f"Case study {case_study.id} created from evidence {evidence.id}")
    return case_study
