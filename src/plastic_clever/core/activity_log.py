"""
User Activity Log

Records notable user actions (logins, evidence submissions, reviews, ...)
in the user_activity_logs table. Logging is fire-and-forget: a failure is
logged and never interrupts the request that triggered it.
"""

import logging
from typing import Any

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.rate_limit import client_ip
from plastic_clever.modules.users.models import UserActivityLog

logger = logging.getLogger(__name__)


class ActivityType:
    LOGIN = "login"
    REGISTER = "register"
    SCHOOL_REGISTER = "school_register"
    EVIDENCE_SUBMIT = "evidence_submit"
    EVIDENCE_REVIEW = "evidence_review"
    EVIDENCE_DELETE = "evidence_delete"
    AUDIT_SUBMIT = "audit_submit"
    AUDIT_REVIEW = "audit_review"
    PROMISE_CREATE = "promise_create"
    ROUND_START = "round_start"
    EVENT_REGISTER = "event_register"
    ROLE_CHANGE = "role_change"
    BULK_EMAIL = "bulk_email"


async def log_user_activity(
    db: AsyncSession,
    *,
    user_id: str | None,
    user_email: str | None,
    action_type: str,
    details: dict[str, Any] | None = None,
    target_id: str | None = None,
    target_type: str | None = None,
    request: Request | None = None,
) -> None:
    """
    Insert an activity row and commit it.

    Args:
        db: Database session
        user_id: Acting user's ID
        user_email: Acting user's email (kept if the account is later deleted)
        action_type: One of ActivityType
        details: Free-form JSON context
        target_id: ID of the affected entity
        target_type: Kind of the affected entity (evidence, school, ...)
        request: Incoming request, used for IP address and user agent
    """
    try:
        entry = UserActivityLog(
            user_id=user_id,
            user_email=user_email,
            action_type=action_type,
            action_details=details,
            target_id=target_id,
            target_type=target_type,
            ip_address=client_ip(request) if request is not None else None,
            user_agent=request.headers.get("user-agent") if request is not None else None,
        )
        db.add(entry)
        await db.commit()
    except Exception as e:
        logger.error(f"Failed to log activity {action_type} for user {user_id}: {e}")
        try:
            await db.rollback()
        except Exception as rollback_error:
            logger.error(f"Rollback after activity log failure also failed: {rollback_error}")
