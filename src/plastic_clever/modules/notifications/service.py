"""
Notifications Service Layer

Admin bulk email: preview, single test sends and campaign sends.

A campaign is translated once per recipient language, never once per
recipient. Individual send failures are counted, not raised.
"""

import logging
from collections import defaultdict
from typing import Any

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.activity_log import ActivityType, log_user_activity
from plastic_clever.core.auth import CurrentUser
from plastic_clever.core.email import render_bulk_email, send_bulk_email, send_safely
from plastic_clever.core.translation import EmailContent, translate_email_content
from plastic_clever.modules.notifications.schemas import (
    BulkEmailRequest,
    BulkEmailResult,
    EmailContentRequest,
    EmailPreview,
    EmailTestRequest,
    EmailTestResult,
    SchoolFilters,
)
from plastic_clever.modules.schools.repository import SchoolRepository
from plastic_clever.modules.shared import ValidationFailedError
from plastic_clever.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"
TEST_SUBJECT_PREFIX = "[TEST] "
MAX_FILTERED_SCHOOLS = 10000


class NoRecipientsError(ValidationFailedError):
    def __init__(self):
        super().__init__("No recipients matched the selection", "NO_RECIPIENTS")


def to_email_content(data: EmailContentRequest) -> EmailContent:
    return EmailContent(
        subject=data.subject,
        title=data.title,
        message_content=data.message_content,
        preheader=data.preheader,
    )


def group_by_language(recipients: list[tuple[str, str | None]]) -> dict[str, list[str]]:
    """
    Group ``(email, preferred_language)`` pairs by language.

    Emails are de-duplicated case-insensitively (first occurrence wins) and a
    missing language falls back to English.
    """
    groups: dict[str, list[str]] = defaultdict(list)
    seen: set[str] = set()
    for email, language in recipients:
        key = email.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        groups[language or DEFAULT_LANGUAGE].append(email.strip())
    return dict(groups)


def preview_email(data: EmailContentRequest) -> EmailPreview:
    return EmailPreview(
        subject=data.subject,
        preheader=data.preheader,
        html=render_bulk_email(data.title, data.message_content),
    )


async def send_test_email(data: EmailTestRequest) -> EmailTestResult:
    """Send the campaign to a single address, translated if requested."""
    content = await translate_email_content(to_email_content(data), data.language)
    sent = await send_safely(
        send_bulk_email(
            to_email=data.test_email,
            subject=f"{TEST_SUBJECT_PREFIX}{content.subject}",
            title=content.title,
            message_html=content.message_content,
        ),
        f"test email to {data.test_email}",
    )
    if not sent:
        return EmailTestResult(
            success=False, message=f"Failed to send test email to {data.test_email}"
        )
    return EmailTestResult(success=True, message=f"Test email sent to {data.test_email}")


async def _school_recipients(
    db: AsyncSession, filters: SchoolFilters | None
) -> list[tuple[str, str | None]]:
    filters = filters or SchoolFilters()
    if filters.school_ids:
        schools = await SchoolRepository.get_many(db, filters.school_ids)
    else:
        schools, _ = await SchoolRepository.list_schools(
            db,
            country=filters.country,
            stage=filters.stage.value if filters.stage else None,
            limit=MAX_FILTERED_SCHOOLS,
        )

    user_ids = await SchoolRepository.get_member_user_ids(db, [school.id for school in schools])
    users = await UserRepository.get_many(db, user_ids)
    return [(user.email, user.preferred_language) for user in users if user.is_active]


async def resolve_recipients(
    db: AsyncSession, data: BulkEmailRequest
) -> list[tuple[str, str | None]]:
    """Recipients as ``(email, preferred_language)`` pairs."""
    if data.recipient_type == "all_teachers":
        teachers = await UserRepository.get_all_teachers(db)
        return [(teacher.email, teacher.preferred_language) for teacher in teachers]

    if data.recipient_type == "schools":
        return await _school_recipients(db, data.filters)

    # Custom addresses use the account's language when one exists
    emails = [str(email) for email in data.custom_emails or []]
    known = {
        user.email.lower(): user.preferred_language
        for user in await UserRepository.get_many_by_emails(db, emails)
    }
    return [(email, known.get(email.lower())) for email in emails]


async def send_bulk(
    db: AsyncSession,
    admin: CurrentUser,
    data: BulkEmailRequest,
    request: Request | None = None,
) -> BulkEmailResult:
    """
    Send a campaign to every resolved recipient.

    Raises:
        NoRecipientsError: If the selection matched nobody
    """
    groups = group_by_language(await resolve_recipients(db, data))
    total = sum(len(emails) for emails in groups.values())
    if total == 0:
        raise NoRecipientsError()

    logger.info(
        f"Bulk email '{data.subject}' by {admin.id}: {total} recipient(s), "
        f"languages {sorted(groups)}"
    )

    original = to_email_content(data)
    sent = 0
    failed = 0
    for language, emails in groups.items():
        content = await translate_email_content(original, language)
        for email in emails:
            ok = await send_safely(
                send_bulk_email(
                    to_email=email,
                    subject=content.subject,
                    title=content.title,
                    message_html=content.message_content,
                ),
                f"bulk email to {email}",
            )
            if ok:
                sent += 1
            else:
                failed += 1

    languages = {language: len(emails) for language, emails in groups.items()}
    details: dict[str, Any] = {
        "subject": data.subject,
        "recipient_type": data.recipient_type,
        "total_recipients": total,
        "sent": sent,
        "failed": failed,
        "languages": languages,
    }
    await log_user_activity(
        db,
        user_id=admin.id,
        user_email=admin.email,
        action_type=ActivityType.BULK_EMAIL,
        details=details,
        request=request,
    )

    logger.info(f"Bulk email finished: {sent} sent, {failed} failed")
    return BulkEmailResult(total_recipients=total, sent=sent, failed=failed, languages=languages)
