"""Testimonial request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TestimonialCreate(BaseModel):
    quote: str = Field(..., min_length=1, max_length=2000)
    author_name: str = Field(..., min_length=1, max_length=200)
    author_role: str = Field(..., min_length=1, max_length=200)
    school_name: str = Field(..., min_length=1, max_length=200)
    rating: int | None = Field(None, ge=1, le=5)
    is_active: bool = True
    display_order: int = 0


class TestimonialUpdate(BaseModel):
    quote: str | None = Field(None, min_length=1, max_length=2000)
    author_name: str | None = Field(None, min_length=1, max_length=200)
    author_role: str | None = Field(None, min_length=1, max_length=200)
    school_name: str | None = Field(None, min_length=1, max_length=200)
    rating: int | None = Field(None, ge=1, le=5)
    is_active: bool | None = None
    display_order: int | None = None


class TestimonialResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    quote: str
    author_name: str
    author_role: str
    school_name: str
    rating: int | None
    is_active: bool
    display_order: int
    created_at: datetime
