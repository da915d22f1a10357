"""Inspiration feed item schema."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

ContentType = Literal["case-study", "evidence"]


class InspirationItem(BaseModel):
    """A case study or approved evidence item, in one shared shape."""

    id: str
    content_type: ContentType
    school_id: str
    school_name: str | None = None
    school_country: str | None = None
    title: str
    description: str | None = None
    stage: str
    impact: str | None = None
    image_url: str | None = None
    featured: bool = False
    priority: int = 0
    images: list[dict[str, Any]] = Field(default_factory=list)
    videos: list[dict[str, Any]] = Field(default_factory=list)
    student_quotes: list[dict[str, Any]] = Field(default_factory=list)
    impact_metrics: list[dict[str, Any]] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
