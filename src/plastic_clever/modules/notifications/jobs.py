"""
Notification background jobs.

- notifications_weekly_admin_digest: Mondays 09:00 UK time, emails every
  admin a summary of the past week.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.database import async_session_maker
from plastic_clever.core.email import send_safely, send_weekly_digest_email
from plastic_clever.core.scheduler import register_job
from plastic_clever.modules.evidence import repository as evidence_repository
from plastic_clever.modules.schools.repository import SchoolRepository
from plastic_clever.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

WEEKLY_DIGEST_JOB_ID = "notifications_weekly_admin_digest"
DIGEST_EVIDENCE_LIMIT = 20


async def build_weekly_digest(db: AsyncSession, now: datetime | None = None) -> dict[str, Any]:
    since = (now or datetime.now(UTC)) - timedelta(days=7)

    evidence = await evidence_repository.get_submitted_since(db, since, DIGEST_EVIDENCE_LIMIT)
    new_users = await UserRepository.get_created_since(db, since)

    return {
        "since": since.isoformat(),
        "evidence_count": await evidence_repository.count_submitted_since(db, since),
        "evidence": [
            {
                "school_name": item.school.name if item.school else "Unknown school",
                "title": item.title,
                "stage": item.stage.value,
                "status": item.status.value,
            }
            for item in evidence
        ],
        "new_user_count": len(new_users),
        "stats": await SchoolRepository.get_platform_stats(db),
    }


async def send_weekly_admin_digest() -> dict[str, Any]:
    """Build the digest and email it to every active admin."""
    async with async_session_maker() as db:
        digest = await build_weekly_digest(db)
        admins = await UserRepository.get_admins(db)

    sent = 0
    for admin in admins:
        if await send_safely(send_weekly_digest_email(admin.email, digest), "weekly digest"):
            sent += 1

    logger.info(f"Weekly digest sent to {sent}/{len(admins)} admin(s)")
    return {"admins": len(admins), "sent": sent, "evidence_count": digest["evidence_count"]}


def register_notification_jobs() -> None:
    register_job(
        job_id=WEEKLY_DIGEST_JOB_ID,
        func=send_weekly_admin_digest,
        trigger=CronTrigger(day_of_week="mon", hour=9, minute=0, timezone="Europe/London"),
    )
