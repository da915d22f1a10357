"""
Search Service

Free-text search over public content: schools, approved public evidence
and published case studies. Matching is a case-insensitive substring match
done by each content type's repository.

Global search splits ``limit`` evenly between the requested types; each
type is paged independently with the same ``offset``.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.modules.case_studies import repository as case_study_repository
from plastic_clever.modules.case_studies.models import CaseStudy, CaseStudyStatus
from plastic_clever.modules.evidence import repository as evidence_repository
from plastic_clever.modules.evidence.models import Evidence
from plastic_clever.modules.schools.models import School
from plastic_clever.modules.schools.repository import SchoolRepository
from plastic_clever.modules.search.schemas import (
    ContentSearchResponse,
    GlobalSearchResponse,
    SearchHit,
)
from plastic_clever.modules.shared import ValidationFailedError

logger = logging.getLogger(__name__)

CONTENT_SCHOOLS = "schools"
CONTENT_EVIDENCE = "evidence"
CONTENT_CASE_STUDIES = "caseStudies"
CONTENT_TYPES = (CONTENT_SCHOOLS, CONTENT_EVIDENCE, CONTENT_CASE_STUDIES)

MAX_QUERY_LENGTH = 100
DEFAULT_GLOBAL_LIMIT = 50
MAX_GLOBAL_LIMIT = 100
DEFAULT_CONTENT_LIMIT = 20
MAX_CONTENT_LIMIT = 50


class SearchQueryRequiredError(ValidationFailedError):
    def __init__(self):
        super().__init__("Search query 'q' is required", error_code="SEARCH_QUERY_REQUIRED")


class InvalidContentTypeError(ValidationFailedError):
    def __init__(self):
        super().__init__(
            f"Invalid content type. Must be one of: {', '.join(CONTENT_TYPES)}",
            error_code="INVALID_CONTENT_TYPE",
        )


def _value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


def normalize_query(q: str | None) -> str:
    """Trimmed query, capped at MAX_QUERY_LENGTH; blank queries are rejected."""
    query = (q or "").strip()
    if not query:
        raise SearchQueryRequiredError()
    return query[:MAX_QUERY_LENGTH]


def parse_content_types(raw: str | None) -> list[str]:
    """
    Requested content types from a comma-separated list.

    Unknown names are ignored. No list at all means every type.
    """
    if raw is None:
        return list(CONTENT_TYPES)
    requested = [part.strip() for part in raw.split(",")]
    return [content_type for content_type in CONTENT_TYPES if content_type in requested]


def school_to_hit(school: School) -> SearchHit:
    return SearchHit(
        id=school.id,
        content_type=CONTENT_SCHOOLS,
        title=school.name,
        description=school.address,
        school_id=school.id,
        school_name=school.name,
        country=school.country,
        stage=_value(school.current_stage),
        created_at=school.created_at,
    )


def evidence_to_hit(evidence: Evidence) -> SearchHit:
    school = evidence.school
    return SearchHit(
        id=evidence.id,
        content_type=CONTENT_EVIDENCE,
        title=evidence.title,
        description=evidence.description,
        school_id=evidence.school_id,
        school_name=school.name if school is not None else None,
        country=school.country if school is not None else None,
        stage=_value(evidence.stage),
        created_at=evidence.submitted_at or evidence.created_at,
    )


def case_study_to_hit(case_study: CaseStudy) -> SearchHit:
    school = case_study.school
    return SearchHit(
        id=case_study.id,
        content_type=CONTENT_CASE_STUDIES,
        title=case_study.title,
        description=case_study.description,
        school_id=case_study.school_id,
        school_name=school.name if school is not None else None,
        country=school.country if school is not None else None,
        stage=_value(case_study.stage),
        created_at=case_study.created_at,
    )


async def _search_type(
    db: AsyncSession,
    content_type: str,
    query: str,
    limit: int,
    offset: int,
) -> list[SearchHit]:
    if content_type == CONTENT_SCHOOLS:
        schools, _ = await SchoolRepository.list_schools(
            db, search=query, skip=offset, limit=limit
        )
        return [school_to_hit(school) for school in schools]
    if content_type == CONTENT_EVIDENCE:
        evidence = await evidence_repository.get_approved_for_inspiration(
            db, search=query, limit=limit, offset=offset
        )
        return [evidence_to_hit(item) for item in evidence]
    case_studies = await case_study_repository.get_case_studies(
        db,
        search=query,
        status=CaseStudyStatus.PUBLISHED,
        limit=limit,
        offset=offset,
    )
    return [case_study_to_hit(case_study) for case_study in case_studies]


async def search_global(
    db: AsyncSession,
    q: str | None,
    content_types: str | None = None,
    limit: int = DEFAULT_GLOBAL_LIMIT,
    offset: int = 0,
) -> GlobalSearchResponse:
    """
    Search every requested content type.

    Raises:
        SearchQueryRequiredError: If ``q`` is missing or blank
    """
    query = normalize_query(q)
    types = parse_content_types(content_types)
    response = GlobalSearchResponse(query=query)
    if not types:
        return response

    limit = min(limit, MAX_GLOBAL_LIMIT)
    per_type = max(1, limit // len(types))

    if CONTENT_SCHOOLS in types:
        response.schools = await _search_type(db, CONTENT_SCHOOLS, query, per_type, offset)
    if CONTENT_EVIDENCE in types:
        response.evidence = await _search_type(db, CONTENT_EVIDENCE, query, per_type, offset)
    if CONTENT_CASE_STUDIES in types:
        response.case_studies = await _search_type(
            db, CONTENT_CASE_STUDIES, query, per_type, offset
        )

    response.total_results = (
        len(response.schools) + len(response.evidence) + len(response.case_studies)
    )
    logger.debug(f"Global search for '{query}' over {types}: {response.total_results} results")
    return response


async def search_content(
    db: AsyncSession,
    content_type: str,
    q: str | None,
    limit: int = DEFAULT_CONTENT_LIMIT,
    offset: int = 0,
) -> ContentSearchResponse:
    """
    Search a single content type.

    Raises:
        SearchQueryRequiredError: If ``q`` is missing or blank
        InvalidContentTypeError: If ``content_type`` is not searchable
    """
    query = normalize_query(q)
    if content_type not in CONTENT_TYPES:
        raise InvalidContentTypeError()

    results = await _search_type(
        db, content_type, query, min(limit, MAX_CONTENT_LIMIT), offset
    )
    return ContentSearchResponse(query=query, content_type=content_type, results=results)
