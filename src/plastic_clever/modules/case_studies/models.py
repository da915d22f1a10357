"""
Case Study Models

Curated, editorially produced stories shown in the public inspiration feed.
"""

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from plastic_clever.modules.schools.models import ProgramStage
from plastic_clever.modules.shared import BaseModel, pg_enum

if TYPE_CHECKING:
    from plastic_clever.modules.evidence.models import Evidence
    from plastic_clever.modules.schools.models import School


class CaseStudyStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class CaseStudy(BaseModel):
    """A published (or draft) case study, optionally derived from evidence."""

    __tablename__ = "case_studies"

    evidence_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("evidence.id", ondelete="SET NULL"),
        nullable=True,
    )
    school_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    stage: Mapped[ProgramStage] = mapped_column(
        pg_enum(ProgramStage, "program_stage"),
        nullable=False,
        index=True,
    )
    impact: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # JSON lists
    images: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    videos: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    student_quotes: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    impact_metrics: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    categories: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    tags: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    status: Mapped[CaseStudyStatus] = mapped_column(
        pg_enum(CaseStudyStatus, "case_study_status"),
        nullable=False,
        default=CaseStudyStatus.DRAFT,
        index=True,
    )
    created_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    school: Mapped["School"] = relationship("School", lazy="selectin")
    evidence: Mapped["Evidence | None"] = relationship("Evidence", lazy="selectin")

    def __repr__(self) -> str:
        return f"<CaseStudy(id={self.id}, title={self.title}, status={self.status.value})>"
