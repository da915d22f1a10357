"""Evidence request/response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from plastic_clever.modules.evidence.models import EvidenceStatus, EvidenceVisibility
from plastic_clever.modules.schools.models import ProgramStage


class EvidenceFile(BaseModel):
    """An already-uploaded file attached to evidence."""

    name: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, max_length=2000)
    type: str | None = Field(None, max_length=100)
    size: int | None = Field(None, ge=0)
    caption: str | None = Field(None, max_length=500)


class EvidenceCreate(BaseModel):
    school_id: str
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    stage: ProgramStage
    visibility: EvidenceVisibility = EvidenceVisibility.PRIVATE
    files: list[EvidenceFile] = Field(default_factory=list, max_length=20)
    video_links: HttpUrl | None = None
    evidence_requirement_id: str | None = None


class EvidenceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    submitted_by: str | None
    title: str
    description: str | None
    stage: ProgramStage
    status: EvidenceStatus
    visibility: EvidenceVisibility
    files: list[dict]
    video_links: str | None
    evidence_requirement_id: str | None = None
    round_number: int
    is_featured: bool
    reviewed_by: str | None
    reviewed_at: datetime | None
    review_notes: str | None
    submitted_at: datetime


class EvidenceWithSchool(EvidenceResponse):
    """Evidence plus the school name and country, for admin review queues."""

    school_name: str | None = None
    school_country: str | None = None


class EvidenceReviewRequest(BaseModel):
    status: Literal["approved", "rejected"]
    review_notes: str | None = Field(None, max_length=2000)


class BulkReviewRequest(BaseModel):
    evidence_ids: list[str] = Field(..., min_length=1, max_length=200)
    status: Literal["approved", "rejected"]
    review_notes: str | None = Field(None, max_length=2000)


class BulkFailure(BaseModel):
    id: str
    reason: str


class BulkReviewResult(BaseModel):
    success: list[str]
    failed: list[BulkFailure]
    emails_processed: int


class BulkDeleteRequest(BaseModel):
    evidence_ids: list[str] = Field(..., min_length=1, max_length=200)


class BulkDeleteResult(BaseModel):
    deleted: int


class FeaturedRequest(BaseModel):
    featured: bool


class EvidenceReviewQueue(BaseModel):
    evidence: list[EvidenceWithSchool]
    total: int
    skip: int
    limit: int
