"""Search response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class SearchHit(BaseModel):
    """One match, in a shape shared by every content type."""

    id: str
    content_type: str
    title: str
    description: str | None = None
    school_id: str | None = None
    school_name: str | None = None
    country: str | None = None
    stage: str | None = None
    created_at: datetime | None = None


class GlobalSearchResponse(BaseModel):
    query: str
    schools: list[SearchHit] = Field(default_factory=list)
    evidence: list[SearchHit] = Field(default_factory=list)
    case_studies: list[SearchHit] = Field(default_factory=list)
    total_results: int = 0


class ContentSearchResponse(BaseModel):
    query: str
    content_type: str
    results: list[SearchHit]
