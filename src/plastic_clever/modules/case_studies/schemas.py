"""Case study request/response schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from plastic_clever.modules.case_studies.models import CaseStudyStatus
from plastic_clever.modules.schools.models import ProgramStage


class CaseStudyBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10000)
    stage: ProgramStage
    impact: str | None = Field(None, max_length=5000)
    image_url: str | None = Field(None, max_length=2000)
    featured: bool = False
    priority: int = Field(0, ge=0, le=1000)
    images: list[dict[str, Any]] = Field(default_factory=list)
    videos: list[dict[str, Any]] = Field(default_factory=list)
    student_quotes: list[dict[str, Any]] = Field(default_factory=list)
    impact_metrics: list[dict[str, Any]] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    status: CaseStudyStatus = CaseStudyStatus.DRAFT


class CaseStudyCreate(CaseStudyBase):
    school_id: str
    evidence_id: str | None = None


class CaseStudyUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10000)
    stage: ProgramStage | None = None
    impact: str | None = Field(None, max_length=5000)
    image_url: str | None = Field(None, max_length=2000)
    featured: bool | None = None
    priority: int | None = Field(None, ge=0, le=1000)
    images: list[dict[str, Any]] | None = None
    videos: list[dict[str, Any]] | None = None
    student_quotes: list[dict[str, Any]] | None = None
    impact_metrics: list[dict[str, Any]] | None = None
    categories: list[str] | None = None
    tags: list[str] | None = None
    status: CaseStudyStatus | None = None


class CaseStudyFromEvidence(BaseModel):
    evidence_id: str
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10000)
    impact: str | None = Field(None, max_length=5000)
    image_url: str | None = Field(None, max_length=2000)
    featured: bool = False
    priority: int = Field(0, ge=0, le=1000)


class CaseStudyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    evidence_id: str | None
    title: str
    description: str | None
    stage: ProgramStage
    impact: str | None
    image_url: str | None
    featured: bool
    priority: int
    images: list[dict[str, Any]]
    videos: list[dict[str, Any]]
    student_quotes: list[dict[str, Any]]
    impact_metrics: list[dict[str, Any]]
    categories: list[str]
    tags: list[str]
    status: CaseStudyStatus
    created_by: str | None
    created_at: datetime
    updated_at: datetime
    school_name: str | None = None
    school_country: str | None = None


class CaseStudyDetail(CaseStudyResponse):
    """A case study plus the evidence it was built from, when linked."""

    evidence_link: str | None = None
    evidence_files: list[dict[str, Any]] | None = None


class FeaturedRequest(BaseModel):
    featured: bool
