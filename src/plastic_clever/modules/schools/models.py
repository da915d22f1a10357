"""
School Models

Schools taking part in the programme, their position in the
inspire -> investigate -> act progression, and teacher memberships.
"""

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from plastic_clever.modules.shared import BaseModel, pg_enum

if TYPE_CHECKING:
    from plastic_clever.modules.users.models import User


class ProgramStage(str, Enum):
    """The three programme stages, in order."""

    INSPIRE = "inspire"
    INVESTIGATE = "investigate"
    ACT = "act"


class SchoolType(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    HIGH_SCHOOL = "high_school"
    INTERNATIONAL = "international"
    OTHER = "other"


class SchoolRole(str, Enum):
    """A teacher's role within one school."""

    HEAD_TEACHER = "head_teacher"
    TEACHER = "teacher"


class School(BaseModel):
    """
    A school working through the programme.

    Progression state: ``current_stage`` is the first stage the school has
    not completed in its current round. ``*_completed`` flags only become
    true once the stage's required items are approved; see
    ``schools.progression``.
    """

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        index=True,
    )
    school_type: Mapped[SchoolType] = mapped_column(
        pg_enum(SchoolType, "school_type"),
        nullable=False,
        default=SchoolType.PRIMARY,
    )
    country: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    student_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    primary_language: Mapped[str] = mapped_column(String(10), nullable=False, default="en")

    # Map
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    show_on_map: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    featured_school: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Progression
    current_stage: Mapped[ProgramStage] = mapped_column(
        pg_enum(ProgramStage, "program_stage"),
        nullable=False,
        default=ProgramStage.INSPIRE,
    )
    inspire_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    investigate_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    act_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    award_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    audit_quiz_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    progress_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_round: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    rounds_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # ON DELETE SET NULL: the school outlives its original registrant
    primary_contact_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    members: Mapped[list["SchoolUser"]] = relationship(
        "SchoolUser",
        back_populates="school",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<School(id={self.id}, name={self.name}, stage={self.current_stage.value})>"


class SchoolUser(BaseModel):
    """Membership of a user in a school."""

    __tablename__ = "school_users"
    __table_args__ = (UniqueConstraint("school_id", "user_id", name="uq_school_users_school_user"),)

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
    role: Mapped[SchoolRole] = mapped_column(
        pg_enum(SchoolRole, "school_role"),
        nullable=False,
        default=SchoolRole.TEACHER,
    )
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    school: Mapped["School"] = relationship("School", back_populates="members", lazy="selectin")
    user: Mapped["User"] = relationship("User", back_populates="memberships", lazy="selectin")

    def __repr__(self) -> str:
        return (
            f"<SchoolUser(school_id={self.school_id}, user_id={self.user_id}, "
            f"role={self.role.value})>"
        )
