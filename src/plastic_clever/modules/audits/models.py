"""
Audit Models

Waste audits (the Investigate stage survey) and the reduction promises a
school makes after auditing its plastic use.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from plastic_clever.modules.shared import BaseModel, pg_enum

if TYPE_CHECKING:
    from plastic_clever.modules.schools.models import School


class AuditStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class PromiseStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TimeframeUnit(str, Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class AuditResponse(BaseModel):
    """
    A school's plastic waste audit for one round.

    The four ``part*`` sections hold the raw survey answers; ``results_data``
    holds the totals computed on submission.
    """

    __tablename__ = "audit_responses"

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
    status: Mapped[AuditStatus] = mapped_column(
        pg_enum(AuditStatus, "audit_status"),
        nullable=False,
        default=AuditStatus.DRAFT,
        index=True,
    )
    round_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    part1_data: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    part2_data: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    part3_data: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    part4_data: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    results_data: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    total_plastic_items: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    school: Mapped["School"] = relationship("School", lazy="selectin")

    def __repr__(self) -> str:
        return (
            f"<AuditResponse(id={self.id}, school_id={self.school_id}, "
            f"status={self.status.value})>"
        )


class ReductionPromise(BaseModel):
    """A pledge to cut use of one plastic item from a baseline to a target."""

    __tablename__ = "reduction_promises"

    school_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    audit_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("audit_responses.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    round_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    plastic_item_type: Mapped[str] = mapped_column(String(100), nullable=False)
    plastic_item_label: Mapped[str] = mapped_column(String(200), nullable=False)
    baseline_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    target_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reduction_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    timeframe_unit: Mapped[TimeframeUnit] = mapped_column(
        pg_enum(TimeframeUnit, "timeframe_unit"),
        nullable=False,
        default=TimeframeUnit.MONTH,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[PromiseStatus] = mapped_column(
        pg_enum(PromiseStatus, "promise_status"),
        nullable=False,
        default=PromiseStatus.ACTIVE,
    )
    created_by: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<ReductionPromise(id={self.id}, item={self.plastic_item_type}, "
            f"reduction={self.reduction_amount})>"
        )
