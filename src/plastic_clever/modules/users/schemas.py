"""User administration schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from plastic_clever.modules.users.models import UserRole


class AdminUserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: str
    last_name: str
    role: UserRole
    preferred_language: str
    is_active: bool
    last_login_at: datetime | None
    created_at: datetime


class UserListResponse(BaseModel):
    users: list[AdminUserResponse]
    total: int
    skip: int
    limit: int


class UserUpdateRequest(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    role: UserRole | None = None
    is_active: bool | None = None
    preferred_language: str | None = Field(None, min_length=2, max_length=10)


class TeacherEmails(BaseModel):
    emails: list[str]
    count: int


class AdminStats(BaseModel):
    total_schools: int
    total_users: int
    pending_evidence: int
    pending_audits: int


class ActivityLogEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str | None
    user_email: str | None
    action_type: str
    action_details: dict[str, Any] | None
    target_id: str | None
    target_type: str | None
    ip_address: str | None
    user_agent: str | None
    created_at: datetime


class ActivityLogList(BaseModel):
    logs: list[ActivityLogEntry]
    total: int
    skip: int
    limit: int
