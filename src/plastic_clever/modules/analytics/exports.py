"""
Data Exports

CSV downloads of schools, evidence and users for full admins. Each export
has a fixed column list; user exports never include credentials.
"""

import csv
import io
import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.modules.evidence import repository as evidence_repository
from plastic_clever.modules.evidence.models import EvidenceStatus
from plastic_clever.modules.schools.repository import SchoolRepository
from plastic_clever.modules.users.models import UserRole
from plastic_clever.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

EXPORT_ROW_LIMIT = 10000

EXPORT_TYPES = ("schools", "evidence", "users")

SCHOOL_COLUMNS = [
    "id",
    "name",
    "school_type",
    "country",
    "address",
    "student_count",
    "current_stage",
    "current_round",
    "progress_percentage",
    "award_completed",
    "created_at",
]
EVIDENCE_COLUMNS = [
    "id",
    "school_id",
    "title",
    "stage",
    "status",
    "visibility",
    "round_number",
    "is_featured",
    "submitted_at",
    "reviewed_at",
]
USER_COLUMNS = [
    "id",
    "email",
    "first_name",
    "last_name",
    "role",
    "preferred_language",
    "is_active",
    "last_login_at",
    "created_at",
]


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if hasattr(value, "value"):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def to_csv(rows: list[Any], columns: list[str]) -> bytes:
    """Serialize ORM rows to UTF-8 CSV with a header line."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=columns)
    writer.writeheader()
    for row in rows:
        writer.writerow({column: _cell(getattr(row, column, None)) for column in columns})
    return buffer.getvalue().encode("utf-8")


def export_filename(export_type: str) -> str:
    return f"{export_type}_{datetime.now(UTC).date().isoformat()}.csv"


async def export_data(
    db: AsyncSession,
    export_type: str,
    *,
    country: str | None = None,
    stage: str | None = None,
    search: str | None = None,
    status: EvidenceStatus | None = None,
    role: UserRole | None = None,
) -> bytes:
    """
    Build the CSV for one export type.

    Schools filter on country, stage and search; evidence on status and
    stage; users on role. Filters that do not apply are ignored.
    """
    if export_type == "schools":
        rows, _ = await SchoolRepository.list_schools(
            db, country=country, stage=stage, search=search, limit=EXPORT_ROW_LIMIT
        )
        columns = SCHOOL_COLUMNS
    elif export_type == "evidence":
        rows = await evidence_repository.list_evidence(
            db, status=status, stage=stage, limit=EXPORT_ROW_LIMIT
        )
        columns = EVIDENCE_COLUMNS
    else:
        rows, _ = await UserRepository.list_users(db, role=role, limit=EXPORT_ROW_LIMIT)
        columns = USER_COLUMNS

    logger.info(f"Exporting {len(rows)} {export_type} rows")
    return to_csv(rows, columns)
