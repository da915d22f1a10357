"""
Shared Model Base

Every table gets a UUID primary key (stored and exposed as a string) and
timezone-aware created_at / updated_at timestamps.
"""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, func
from sqlalchemy.dialects.postgresql import ENUM, UUID
from sqlalchemy.orm import Mapped, mapped_column

from plastic_clever.core.database import Base


class BaseModel(Base):
    """Abstract base with id and audit timestamps."""

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


def pg_enum(enum_cls: type[Enum], name: str) -> ENUM:
    """PostgreSQL ENUM column type that stores the members' lowercase values."""
    return ENUM(
        enum_cls,
        name=name,
        create_type=True,
        values_callable=lambda members: [member.value for member in members],
    )
