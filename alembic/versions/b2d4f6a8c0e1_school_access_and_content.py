"""school access, evidence requirements and testimonials

Revision ID: b2d4f6a8c0e1
Revises: a1c3e5f7b9d0
Create Date: 2026-10-19 09:00:00.000000

This migration:
1. Creates verification requests and teacher invitations
2. Creates the evidence requirement checklist and links evidence to it
3. Creates landing-page testimonials
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "b2d4f6a8c0e1"
down_revision: str | Sequence[str] | None = "a1c3e5f7b9d0"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ENUMS: dict[str, tuple[str, ...]] = {
    "verification_status": ("pending", "approved", "rejected"),
    "invitation_status": ("pending", "accepted", "expired"),
}


def _enum(name: str, values: tuple[str, ...] | None = None) -> postgresql.ENUM:
    return postgresql.ENUM(*(values or ENUMS[name]), name=name, create_type=False)


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _fk(column: str, target: str, *, nullable: bool, ondelete: str | None) -> sa.Column:
    return sa.Column(
        column,
        postgresql.UUID(as_uuid=False),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
    )


def upgrade() -> None:
    """Create the new enum types and tables, and link evidence to requirements."""
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    # School access
    op.create_table(
        "verification_requests",
        *_base_columns(),
        _fk("school_id", "schools.id", nullable=False, ondelete="CASCADE"),
        _fk("user_id", "users.id", nullable=False, ondelete="CASCADE"),
        sa.Column("evidence", sa.Text(), nullable=False),
        sa.Column(
            "status",
            _enum("verification_status"),
            server_default="pending",
            nullable=False,
        ),
        _fk("reviewed_by", "users.id", nullable=True, ondelete="SET NULL"),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_verification_requests_school_id", "verification_requests", ["school_id"]
    )
    op.create_index("ix_verification_requests_user_id", "verification_requests", ["user_id"])
    op.create_index("ix_verification_requests_status", "verification_requests", ["status"])

    op.create_table(
        "teacher_invitations",
        *_base_columns(),
        _fk("school_id", "schools.id", nullable=False, ondelete="CASCADE"),
        _fk("invited_by", "users.id", nullable=True, ondelete="SET NULL"),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("token", sa.String(length=128), nullable=False),
        sa.Column(
            "status",
            _enum("invitation_status"),
            server_default="pending",
            nullable=False,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token"),
    )
    op.create_index("ix_teacher_invitations_school_id", "teacher_invitations", ["school_id"])
    op.create_index("ix_teacher_invitations_email", "teacher_invitations", ["email"])

    # Evidence requirements
    op.create_table(
        "evidence_requirements",
        *_base_columns(),
        sa.Column(
            "stage",
            _enum("program_stage", ("inspire", "investigate", "act")),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("order_index", sa.Integer(), server_default="0", nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_evidence_requirements_stage", "evidence_requirements", ["stage"])

    op.add_column(
        "evidence",
        _fk("evidence_requirement_id", "evidence_requirements.id", nullable=True, ondelete=None),
    )
    op.create_index(
        "ix_evidence_evidence_requirement_id", "evidence", ["evidence_requirement_id"]
    )

    # Testimonials
    op.create_table(
        "testimonials",
        *_base_columns(),
        sa.Column("quote", sa.Text(), nullable=False),
        sa.Column("author_name", sa.String(length=200), nullable=False),
        sa.Column("author_role", sa.String(length=200), nullable=False),
        sa.Column("school_name", sa.String(length=200), nullable=False),
        sa.Column("rating", sa.Integer(), server_default="5", nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("display_order", sa.Integer(), server_default="0", nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_testimonials_is_active", "testimonials", ["is_active"])


def downgrade() -> None:
    """Drop the tables and enum types added here."""
    op.drop_table("testimonials")
    op.drop_index("ix_evidence_evidence_requirement_id", table_name="evidence")
    op.drop_column("evidence", "evidence_requirement_id")
    for table in ("evidence_requirements", "teacher_invitations", "verification_requests"):
        op.drop_table(table)

    bind = op.get_bind()
    for name in reversed(ENUMS):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
