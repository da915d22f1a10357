"""initial schema

Revision ID: a1c3e5f7b9d0
Revises:
Create Date: 2026-10-01 09:00:00.000000

This migration:
1. Creates every enum type (checkfirst, so it is safe on a partial database)
2. Creates users, schools and memberships
3. Creates evidence, audits and reduction promises
4. Creates case studies, events, registrations and announcements
5. Creates the user activity log
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1c3e5f7b9d0"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ENUMS: dict[str, tuple[str, ...]] = {
    "user_role": ("admin", "partner", "teacher"),
    "school_type": ("primary", "secondary", "high_school", "international", "other"),
    "school_role": ("head_teacher", "teacher"),
    "program_stage": ("inspire", "investigate", "act"),
    "evidence_status": ("pending", "approved", "rejected"),
    "evidence_visibility": ("private", "public"),
    "audit_status": ("draft", "submitted", "approved", "rejected"),
    "promise_status": ("active", "completed", "cancelled"),
    "timeframe_unit": ("week", "month", "year"),
    "case_study_status": ("draft", "published"),
    "event_type": ("workshop", "webinar", "community_event", "training", "celebration", "other"),
    "event_status": ("draft", "published", "cancelled", "completed"),
    "registration_status": ("registered", "waitlisted", "attended", "cancelled"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


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


def _user_fk(column: str, *, nullable: bool = True, ondelete: str = "SET NULL") -> sa.Column:
    return sa.Column(
        column,
        postgresql.UUID(as_uuid=False),
        sa.ForeignKey("users.id", ondelete=ondelete),
        nullable=nullable,
    )


def _jsonb_list(column: str) -> sa.Column:
    return sa.Column(
        column,
        postgresql.JSONB(astext_type=sa.Text()),
        server_default=sa.text("'[]'::jsonb"),
        nullable=False,
    )


def upgrade() -> None:
    """Create all enum types and tables."""
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    # Users
    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("role", _enum("user_role"), server_default="teacher", nullable=False),
        sa.Column("preferred_language", sa.String(length=10), server_default="en", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Schools
    op.create_table(
        "schools",
        *_base_columns(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("school_type", _enum("school_type"), server_default="primary", nullable=False),
        sa.Column("country", sa.String(length=100), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("student_count", sa.Integer(), nullable=True),
        sa.Column("primary_language", sa.String(length=10), server_default="en", nullable=False),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("show_on_map", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("featured_school", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column(
            "current_stage", _enum("program_stage"), server_default="inspire", nullable=False
        ),
        sa.Column("inspire_completed", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column(
            "investigate_completed", sa.Boolean(), server_default=sa.false(), nullable=False
        ),
        sa.Column("act_completed", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("award_completed", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column(
            "audit_quiz_completed", sa.Boolean(), server_default=sa.false(), nullable=False
        ),
        sa.Column("progress_percentage", sa.Integer(), server_default="0", nullable=False),
        sa.Column("current_round", sa.Integer(), server_default="1", nullable=False),
        sa.Column("rounds_completed", sa.Integer(), server_default="0", nullable=False),
        _user_fk("primary_contact_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_schools_name", "schools", ["name"])
    op.create_index("ix_schools_country", "schools", ["country"])

    op.create_table(
        "school_users",
        *_base_columns(),
        sa.Column(
            "school_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("user_id", nullable=False, ondelete="CASCADE"),
        sa.Column("role", _enum("school_role"), server_default="teacher", nullable=False),
        sa.Column("is_verified", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("school_id", "user_id", name="uq_school_users_school_user"),
    )
    op.create_index("ix_school_users_school_id", "school_users", ["school_id"])
    op.create_index("ix_school_users_user_id", "school_users", ["user_id"])

    # Evidence
    op.create_table(
        "evidence",
        *_base_columns(),
        sa.Column(
            "school_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("submitted_by"),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("stage", _enum("program_stage"), nullable=False),
        sa.Column("status", _enum("evidence_status"), server_default="pending", nullable=False),
        sa.Column(
            "visibility", _enum("evidence_visibility"), server_default="private", nullable=False
        ),
        _jsonb_list("files"),
        sa.Column("video_links", sa.Text(), nullable=True),
        sa.Column("round_number", sa.Integer(), server_default="1", nullable=False),
        sa.Column("is_featured", sa.Boolean(), server_default=sa.false(), nullable=False),
        _user_fk("reviewed_by"),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column(
            "submitted_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_evidence_school_id", "evidence", ["school_id"])
    op.create_index("ix_evidence_stage", "evidence", ["stage"])
    op.create_index("ix_evidence_status", "evidence", ["status"])

    # Audits and reduction promises
    op.create_table(
        "audit_responses",
        *_base_columns(),
        sa.Column(
            "school_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("submitted_by"),
        sa.Column("status", _enum("audit_status"), server_default="draft", nullable=False),
        sa.Column("round_number", sa.Integer(), server_default="1", nullable=False),
        sa.Column("part1_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("part2_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("part3_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("part4_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("results_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("total_plastic_items", sa.Integer(), server_default="0", nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        _user_fk("reviewed_by"),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_responses_school_id", "audit_responses", ["school_id"])
    op.create_index("ix_audit_responses_status", "audit_responses", ["status"])

    op.create_table(
        "reduction_promises",
        *_base_columns(),
        sa.Column(
            "school_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "audit_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("audit_responses.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("round_number", sa.Integer(), server_default="1", nullable=False),
        sa.Column("plastic_item_type", sa.String(length=100), nullable=False),
        sa.Column("plastic_item_label", sa.String(length=200), nullable=False),
        sa.Column("baseline_quantity", sa.Integer(), nullable=False),
        sa.Column("target_quantity", sa.Integer(), nullable=False),
        sa.Column("reduction_amount", sa.Integer(), nullable=False),
        sa.Column(
            "timeframe_unit", _enum("timeframe_unit"), server_default="month", nullable=False
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", _enum("promise_status"), server_default="active", nullable=False),
        _user_fk("created_by"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reduction_promises_school_id", "reduction_promises", ["school_id"])
    op.create_index("ix_reduction_promises_audit_id", "reduction_promises", ["audit_id"])

    # Case studies
    op.create_table(
        "case_studies",
        *_base_columns(),
        sa.Column(
            "evidence_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("evidence.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "school_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("stage", _enum("program_stage"), nullable=False),
        sa.Column("impact", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("featured", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("priority", sa.Integer(), server_default="0", nullable=False),
        _jsonb_list("images"),
        _jsonb_list("videos"),
        _jsonb_list("student_quotes"),
        _jsonb_list("impact_metrics"),
        _jsonb_list("categories"),
        _jsonb_list("tags"),
        sa.Column("status", _enum("case_study_status"), server_default="draft", nullable=False),
        _user_fk("created_by"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_case_studies_school_id", "case_studies", ["school_id"])
    op.create_index("ix_case_studies_stage", "case_studies", ["stage"])
    op.create_index("ix_case_studies_status", "case_studies", ["status"])

    # Events
    op.create_table(
        "events",
        *_base_columns(),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_type", _enum("event_type"), server_default="workshop", nullable=False),
        sa.Column("status", _enum("event_status"), server_default="draft", nullable=False),
        sa.Column("start_date_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("timezone", sa.String(length=64), server_default="UTC", nullable=False),
        sa.Column("location", sa.String(length=300), nullable=True),
        sa.Column("is_virtual", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("meeting_link", sa.Text(), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("waitlist_enabled", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("registration_deadline", sa.DateTime(timezone=True), nullable=True),
        _user_fk("created_by"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_events_status", "events", ["status"])
    op.create_index("ix_events_start_date_time", "events", ["start_date_time"])

    op.create_table(
        "event_registrations",
        *_base_columns(),
        sa.Column(
            "event_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("user_id", nullable=False, ondelete="CASCADE"),
        sa.Column(
            "school_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("schools.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "status", _enum("registration_status"), server_default="registered", nullable=False
        ),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("attended_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_registrations_event_user"),
    )
    op.create_index("ix_event_registrations_event_id", "event_registrations", ["event_id"])
    op.create_index("ix_event_registrations_user_id", "event_registrations", ["user_id"])

    op.create_table(
        "event_announcements",
        *_base_columns(),
        sa.Column(
            "event_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("recipient_type", sa.String(length=30), nullable=False),
        sa.Column("recipient_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("sent_count", sa.Integer(), server_default="0", nullable=False),
        _user_fk("sent_by"),
        sa.Column("status", sa.String(length=20), server_default="sent", nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_event_announcements_event_id", "event_announcements", ["event_id"])

    # Activity log
    op.create_table(
        "user_activity_logs",
        *_base_columns(),
        _user_fk("user_id"),
        sa.Column("user_email", sa.String(length=255), nullable=True),
        sa.Column("action_type", sa.String(length=50), nullable=False),
        sa.Column("action_details", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("target_id", sa.String(length=64), nullable=True),
        sa.Column("target_type", sa.String(length=50), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_activity_logs_user_id", "user_activity_logs", ["user_id"])
    op.create_index("ix_user_activity_logs_action_type", "user_activity_logs", ["action_type"])


def downgrade() -> None:
    """Drop all tables and enum types."""
    for table in (
        "user_activity_logs",
        "event_announcements",
        "event_registrations",
        "events",
        "case_studies",
        "reduction_promises",
        "audit_responses",
        "evidence",
        "school_users",
        "schools",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in reversed(ENUMS):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
