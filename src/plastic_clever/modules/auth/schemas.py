"""Authentication schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from plastic_clever.modules.schools.models import SchoolRole
from plastic_clever.modules.users.models import UserRole


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    preferred_language: str = Field("en", min_length=2, max_length=10)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
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


class LoginResponse(TokenResponse):
    user: UserResponse


class SchoolMembership(BaseModel):
    school_id: str
    school_name: str
    role: SchoolRole
    is_verified: bool


class MeResponse(BaseModel):
    user: UserResponse
    schools: list[SchoolMembership]
