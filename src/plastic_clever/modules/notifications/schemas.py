"""Bulk email request/response schemas."""

from typing import Literal

from pydantic import BaseModel, EmailStr, Field, model_validator

from plastic_clever.modules.schools.models import ProgramStage

RecipientType = Literal["custom", "schools", "all_teachers"]


class EmailContentRequest(BaseModel):
    subject: str = Field(..., min_length=1, max_length=200)
    title: str = Field(..., min_length=1, max_length=200)
    message_content: str = Field(..., min_length=1)
    preheader: str | None = Field(None, max_length=200)


class SchoolFilters(BaseModel):
    """Narrows the ``schools`` recipient type; an explicit id list wins."""

    country: str | None = None
    stage: ProgramStage | None = None
    school_ids: list[str] | None = None


class BulkEmailRequest(EmailContentRequest):
    recipient_type: RecipientType
    custom_emails: list[EmailStr] | None = None
    filters: SchoolFilters | None = None

    @model_validator(mode="after")
    def custom_emails_required(self) -> "BulkEmailRequest":
        if self.recipient_type == "custom" and not self.custom_emails:
            raise ValueError("custom_emails is required when recipient_type is 'custom'")
        return self


class EmailTestRequest(EmailContentRequest):
    test_email: EmailStr
    language: str = Field("en", min_length=2, max_length=10)


class EmailPreview(BaseModel):
    subject: str
    preheader: str | None = None
    html: str


class EmailTestResult(BaseModel):
    success: bool
    message: str


class BulkEmailResult(BaseModel):
    total_recipients: int
    sent: int
    failed: int
    languages: dict[str, int]
