"""School access request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from plastic_clever.modules.school_access.models import InvitationStatus, VerificationStatus
from plastic_clever.modules.schools.schemas import SchoolResponse


class AccessRequestCreate(BaseModel):
    """Ask to join a school, explaining the connection to it."""

    evidence: str = Field(..., min_length=1, max_length=2000)


class AccessReview(BaseModel):
    review_notes: str | None = Field(None, max_length=2000)


class VerificationRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    user_id: str
    evidence: str
    status: VerificationStatus
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    review_notes: str | None = None
    created_at: datetime


class VerificationRequestDetails(VerificationRequestResponse):
    """A request plus the school and requester, for review queues."""

    school_name: str | None = None
    user_name: str | None = None
    user_email: str | None = None


class AccessRequestCreated(BaseModel):
    message: str
    verification_request: VerificationRequestResponse


class AccessReviewResult(BaseModel):
    message: str
    verification_request: VerificationRequestResponse


class InviteTeacherRequest(BaseModel):
    email: EmailStr


class InvitationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    email: str
    status: InvitationStatus
    expires_at: datetime
    accepted_at: datetime | None = None
    created_at: datetime


class InvitationCreated(BaseModel):
    message: str
    invitation: InvitationResponse


class InvitationDetails(BaseModel):
    """Public view of an invitation, looked up by its token."""

    email: str
    school_name: str
    school_country: str | None = None
    inviter_name: str
    expires_at: datetime
    status: InvitationStatus


class InvitationAccepted(BaseModel):
    message: str
    school: SchoolResponse
