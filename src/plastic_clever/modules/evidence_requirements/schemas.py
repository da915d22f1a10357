"""Evidence requirement request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from plastic_clever.modules.schools.models import ProgramStage


class EvidenceRequirementCreate(BaseModel):
    stage: ProgramStage
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    order_index: int = Field(0, ge=0)


class EvidenceRequirementUpdate(BaseModel):
    stage: ProgramStage | None = None
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1, max_length=5000)
    order_index: int | None = Field(None, ge=0)


class EvidenceRequirementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    stage: ProgramStage
    title: str
    description: str
    order_index: int
    created_at: datetime
    updated_at: datetime
