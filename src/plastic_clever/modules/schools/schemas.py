"""School request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from plastic_clever.modules.schools.models import ProgramStage, SchoolRole, SchoolType


class SchoolRegisterRequest(BaseModel):
    """Register a new school; the caller becomes its head teacher."""

    name: str = Field(..., min_length=2, max_length=200)
    school_type: SchoolType = SchoolType.PRIMARY
    country: str = Field(..., min_length=2, max_length=100)
    address: str | None = Field(None, max_length=500)
    student_count: int | None = Field(None, ge=0, le=100000)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    show_on_map: bool = True
    primary_language: str = Field("en", min_length=2, max_length=10)


class SchoolResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    school_type: SchoolType
    country: str
    address: str | None = None
    student_count: int | None = None
    latitude: float | None = None
    longitude: float | None = None
    show_on_map: bool
    featured_school: bool
    primary_language: str
    current_stage: ProgramStage
    inspire_completed: bool
    investigate_completed: bool
    act_completed: bool
    award_completed: bool
    audit_quiz_completed: bool
    progress_percentage: int
    current_round: int
    rounds_completed: int
    created_at: datetime


class SchoolListResponse(BaseModel):
    schools: list[SchoolResponse]
    total: int
    skip: int
    limit: int


class SchoolMapItem(BaseModel):
    """Public projection of a school for the world map."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    country: str
    latitude: float | None
    longitude: float | None
    current_stage: ProgramStage
    award_completed: bool
    featured_school: bool


class PlatformStats(BaseModel):
    total_schools: int
    completed_awards: int
    countries: int
    total_students: int
    approved_evidence: int


class GlobalMovement(BaseModel):
    featured_case_studies: int
    published_case_studies: int
    total_schools: int
    countries: int


class TeamMember(BaseModel):
    user_id: str
    email: str
    first_name: str
    last_name: str
    role: SchoolRole
    is_verified: bool
    joined_at: datetime


class UpdateTeacherRoleRequest(BaseModel):
    role: SchoolRole


class StartRoundResponse(BaseModel):
    message: str
    school: SchoolResponse


class DashboardResponse(BaseModel):
    school: SchoolResponse | None
    school_role: SchoolRole | None
    recent_evidence: list[dict]
    evidence_counts: dict[str, dict[str, int]]


# ============================================
# Admin
# ============================================


class SchoolUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=200)
    school_type: SchoolType | None = None
    country: str | None = Field(None, min_length=2, max_length=100)
    address: str | None = None
    student_count: int | None = Field(None, ge=0)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    show_on_map: bool | None = None
    featured_school: bool | None = None
    primary_language: str | None = None


class ProgressionOverrideRequest(BaseModel):
    """Manual override of progression fields by an admin."""

    current_stage: ProgramStage | None = None
    inspire_completed: bool | None = None
    investigate_completed: bool | None = None
    act_completed: bool | None = None
    award_completed: bool | None = None
    progress_percentage: int | None = Field(None, ge=0, le=100)
    current_round: int | None = Field(None, ge=1)


class AssignTeacherRequest(BaseModel):
    email: EmailStr
    role: SchoolRole = SchoolRole.TEACHER


class BulkSchoolUpdateRequest(BaseModel):
    school_ids: list[str] = Field(..., min_length=1, max_length=500)
    updates: SchoolUpdateRequest


class BulkSchoolDeleteRequest(BaseModel):
    school_ids: list[str] = Field(..., min_length=1, max_length=500)


class BulkOperationResult(BaseModel):
    success: list[str]
    failed: list[dict[str, str]]
