"""
School Access Models

Two ways for a teacher to join an existing school:

- VerificationRequest: the teacher asks to join and describes how they are
  connected to the school; a head teacher (or an admin) approves or rejects.
- TeacherInvitation: a head teacher invites an email address; whoever signs
  in with that address can accept the single-use token within 7 days.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from plastic_clever.modules.shared import BaseModel, pg_enum

if TYPE_CHECKING:
    from plastic_clever.modules.schools.models import School
    from plastic_clever.modules.users.models import User


class VerificationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"


class VerificationRequest(BaseModel):
    """A teacher's request to join a school."""

    __tablename__ = "verification_requests"

    school_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Free text: how the requester is connected to the school
    evidence: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[VerificationStatus] = mapped_column(
        pg_enum(VerificationStatus, "verification_status"),
        nullable=False,
        default=VerificationStatus.PENDING,
        index=True,
    )
    reviewed_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    school: Mapped["School"] = relationship("School", lazy="selectin")
    user: Mapped["User"] = relationship("User", foreign_keys=[user_id], lazy="selectin")

    def __repr__(self) -> str:
        return (
            f"<VerificationRequest(id={self.id}, school_id={self.school_id}, "
            f"status={self.status.value})>"
        )


class TeacherInvitation(BaseModel):
    """An emailed invitation to join a school as a teacher."""

    __tablename__ = "teacher_invitations"

    school_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    invited_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    token: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    status: Mapped[InvitationStatus] = mapped_column(
        pg_enum(InvitationStatus, "invitation_status"),
        nullable=False,
        default=InvitationStatus.PENDING,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    school: Mapped["School"] = relationship("School", lazy="selectin")
    inviter: Mapped["User | None"] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return f"<TeacherInvitation(id={self.id}, email={self.email}, status={self.status.value})>"
