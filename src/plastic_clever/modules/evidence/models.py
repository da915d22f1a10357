"""
Evidence Models

Evidence is a school's proof of activity for one programme stage. It is
created pending and reviewed to approved or rejected by an admin or partner.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from plastic_clever.modules.schools.models import ProgramStage
from plastic_clever.modules.shared import BaseModel, pg_enum

if TYPE_CHECKING:
    from plastic_clever.modules.schools.models import School
    from plastic_clever.modules.users.models import User


class EvidenceStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EvidenceVisibility(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"


class Evidence(BaseModel):
    """Evidence submitted by a school for a stage in a given round."""

    __tablename__ = "evidence"

    school_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    submitted_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    stage: Mapped[ProgramStage] = mapped_column(
        pg_enum(ProgramStage, "program_stage"),
        nullable=False,
        index=True,
    )
    status: Mapped[EvidenceStatus] = mapped_column(
        pg_enum(EvidenceStatus, "evidence_status"),
        nullable=False,
        default=EvidenceStatus.PENDING,
        index=True,
    )
    visibility: Mapped[EvidenceVisibility] = mapped_column(
        pg_enum(EvidenceVisibility, "evidence_visibility"),
        nullable=False,
        default=EvidenceVisibility.PRIVATE,
    )

    # JSON array of {name, url, type, caption?} for already-uploaded files
    files: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    video_links: Mapped[str | None] = mapped_column(Text, nullable=True)
    evidence_requirement_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("evidence_requirements.id"),
        nullable=True,
        index=True,
    )

    round_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Review
    reviewed_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    school: Mapped["School"] = relationship("School", lazy="selectin")
    submitter: Mapped["User | None"] = relationship(
        "User",
        foreign_keys=[submitted_by],
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Evidence(id={self.id}, stage={self.stage.value}, status={self.status.value})>"
