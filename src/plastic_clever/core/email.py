"""
Email Service using Resend

Transactional and bulk emails for schools, teachers and admins.

Every helper returns True/False and never raises: a failed send is logged
and the calling operation carries on. User-supplied values are HTML-escaped
before being placed in templates.
"""

import asyncio
import logging
from collections.abc import Awaitable
from datetime import datetime
from html import escape
from typing import Any

import resend

from plastic_clever.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key

EMAIL_FROM = settings.email_from
FRONTEND_URL = settings.frontend_url

STAGE_LABELS = {
    "inspire": "Inspire",
    "investigate": "Investigate",
    "act": "Act",
}

_BASE_STYLES = """
    body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }
    .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
    .header { color: #02BBB4; margin-bottom: 24px; }
    .button { display: inline-block; background-color: #019ADE; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }
    .info-box { background-color: #f3f4f6; padding: 16px; border-radius: 8px; margin: 16px 0; }
    .warning { background-color: #fef3c7; border: 1px solid #f59e0b; padding: 16px; border-radius: 8px; margin: 16px 0; }
    .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
"""


def _layout(heading: str, body: str) -> str:
    """Wrap ``body`` (already escaped HTML) in the standard email shell."""
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>{_BASE_STYLES}</style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">{heading}</h1>
            {body}
            <div class="footer">
                <p>Plastic Clever Schools - helping schools reduce single-use plastic</p>
            </div>
        </div>
    </body>
    </html>
    """


def _stage_label(stage: str) -> str:
    return STAGE_LABELS.get(stage, stage.title())


def _format_datetime(value: datetime) -> str:
    return value.strftime("%A %d %B %Y, %H:%M %Z").strip()


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    When no API key is configured the email is logged instead of sent and
    treated as delivered.

    Returns:
        True if the email was sent (or logged), False on failure
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": EMAIL_FROM,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }
        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_safely(send: Awaitable[bool], description: str) -> bool:
    """
    Await an email helper, treating any exception as a failed send.

    Request handlers use this so a misbehaving email collaborator can never
    fail the operation that triggered the notification.
    """
    try:
        return await send
    except Exception as e:
        logger.error(f"Failed to send {description}: {e}")
        return False


# ============================================
# Evidence
# ============================================


async def send_evidence_submission_email(
    to_email: str,
    school_name: str,
    evidence_title: str,
    stage: str,
) -> bool:
    """Confirm to the submitter that their evidence is awaiting review."""
    safe_school = escape(school_name)
    safe_title = escape(evidence_title)
    body = f"""
        <p>Thank you for submitting evidence for <strong>{safe_school}</strong>.</p>
        <div class="info-box">
            <p><strong>Evidence:</strong> {safe_title}</p>
            <p><strong>Stage:</strong> {_stage_label(stage)}</p>
        </div>
        <p>Our team will review your submission and let you know the outcome by email.</p>
        <a href="{FRONTEND_URL}/schools/progress" class="button">View Progress</a>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Evidence submitted: {safe_title}",
        html_content=_layout("Evidence Received", body),
    )


async def send_admin_new_evidence_email(
    to_email: str,
    school_name: str,
    evidence_title: str,
    stage: str,
    submitter_name: str,
) -> bool:
    """Tell an admin that new evidence is waiting for review."""
    safe_school = escape(school_name)
    safe_title = escape(evidence_title)
    body = f"""
        <p><strong>{escape(submitter_name)}</strong> from <strong>{safe_school}</strong> has submitted new evidence.</p>
        <div class="info-box">
            <p><strong>Evidence:</strong> {safe_title}</p>
            <p><strong>Stage:</strong> {_stage_label(stage)}</p>
        </div>
        <a href="{FRONTEND_URL}/admin/evidence" class="button">Review Evidence</a>
    """
    return await send_email(
        to_email=to_email,
        subject=f"New evidence from {safe_school}",
        html_content=_layout("New Evidence Submitted", body),
    )


async def send_evidence_approval_email(
    to_email: str,
    school_name: str,
    evidence_title: str,
) -> bool:
    body = f"""
        <p>Great news! Evidence submitted by <strong>{escape(school_name)}</strong> has been approved.</p>
        <div class="info-box"><p><strong>Evidence:</strong> {escape(evidence_title)}</p></div>
        <a href="{FRONTEND_URL}/schools/progress" class="button">See Your Progress</a>
    """
    return await send_email(
        to_email=to_email,
        subject="Your evidence has been approved",
        html_content=_layout("Evidence Approved", body),
    )


async def send_evidence_rejection_email(
    to_email: str,
    school_name: str,
    evidence_title: str,
    notes: str,
) -> bool:
    body = f"""
        <p>Evidence submitted by <strong>{escape(school_name)}</strong> needs some changes before it can be approved.</p>
        <div class="info-box"><p><strong>Evidence:</strong> {escape(evidence_title)}</p></div>
        <div class="warning"><p><strong>Reviewer feedback:</strong> {escape(notes)}</p></div>
        <a href="{FRONTEND_URL}/schools/evidence" class="button">Resubmit Evidence</a>
    """
    return await send_email(
        to_email=to_email,
        subject="Your evidence needs attention",
        html_content=_layout("Evidence Requires Changes", body),
    )


# ============================================
# Audits
# ============================================


async def send_audit_submission_email(to_email: str, school_name: str) -> bool:
    body = f"""
        <p>Your plastic waste audit for <strong>{escape(school_name)}</strong> has been submitted for review.</p>
        <p>Once it is approved, add your reduction promises to complete the Investigate stage.</p>
    """
    return await send_email(
        to_email=to_email,
        subject="Plastic waste audit submitted",
        html_content=_layout("Audit Submitted", body),
    )


async def send_audit_approval_email(to_email: str, school_name: str) -> bool:
    body = f"""
        <p>The plastic waste audit for <strong>{escape(school_name)}</strong> has been approved.</p>
        <a href="{FRONTEND_URL}/schools/progress" class="button">Continue</a>
    """
    return await send_email(
        to_email=to_email,
        subject="Plastic waste audit approved",
        html_content=_layout("Audit Approved", body),
    )


async def send_audit_rejection_email(to_email: str, school_name: str, notes: str) -> bool:
    body = f"""
        <p>The plastic waste audit for <strong>{escape(school_name)}</strong> needs some changes.</p>
        <div class="warning"><p><strong>Reviewer feedback:</strong> {escape(notes)}</p></div>
    """
    return await send_email(
        to_email=to_email,
        subject="Plastic waste audit needs attention",
        html_content=_layout("Audit Requires Changes", body),
    )


# ============================================
# Schools
# ============================================


async def send_school_welcome_email(to_email: str, user_name: str, school_name: str) -> bool:
    body = f"""
        <p>Hello {escape(user_name)},</p>
        <p>Welcome to Plastic Clever Schools! <strong>{escape(school_name)}</strong> is now registered.</p>
        <p>Start with the <strong>Inspire</strong> stage: share three activities that get your school talking about plastic.</p>
        <a href="{FRONTEND_URL}/schools/dashboard" class="button">Go to Dashboard</a>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Welcome to Plastic Clever Schools, {escape(school_name)}",
        html_content=_layout("Welcome!", body),
    )


async def send_access_request_email(
    to_email: str,
    school_name: str,
    requester_name: str,
    requester_email: str,
    evidence: str,
) -> bool:
    """Tell a head teacher that someone has asked to join their school."""
    body = f"""
        <p><strong>{escape(requester_name)}</strong> has asked to join <strong>{escape(school_name)}</strong>.</p>
        <div class="info-box">
            <p><strong>Email:</strong> {escape(requester_email)}</p>
            <p><strong>Connection to the school:</strong> {escape(evidence)}</p>
        </div>
        <a href="{FRONTEND_URL}/schools/team" class="button">Review Request</a>
    """
    return await send_email(
        to_email=to_email,
        subject=f"New access request for {escape(school_name)}",
        html_content=_layout("New Access Request", body),
    )


async def send_access_decision_email(
    to_email: str,
    school_name: str,
    approved: bool,
    notes: str | None = None,
) -> bool:
    """Tell a requester whether their request to join a school was approved."""
    notes_html = (
        f'<div class="info-box"><p><strong>Notes from reviewer:</strong> {escape(notes)}</p></div>'
        if notes
        else ""
    )
    if approved:
        body = f"""
            <p>Your request to join <strong>{escape(school_name)}</strong> has been approved.</p>
            {notes_html}
            <a href="{FRONTEND_URL}/schools/dashboard" class="button">Go to Dashboard</a>
        """
        subject = f"Access approved for {escape(school_name)}"
        heading = "Access Approved!"
    else:
        body = f"""
            <p>Your request to join <strong>{escape(school_name)}</strong> has been reviewed and was not approved.</p>
            {notes_html}
            <p>Contact the school directly or send a new request with more detail.</p>
        """
        subject = f"Access request update for {escape(school_name)}"
        heading = "Access Request Update"

    return await send_email(
        to_email=to_email,
        subject=subject,
        html_content=_layout(heading, body),
    )


async def send_teacher_invitation_email(
    to_email: str,
    school_name: str,
    school_country: str,
    inviter_name: str,
    token: str,
) -> bool:
    body = f"""
        <p>{escape(inviter_name)} has invited you to join their school team on Plastic Clever Schools.</p>
        <div class="info-box">
            <p><strong>School:</strong> {escape(school_name)}</p>
            <p><strong>Country:</strong> {escape(school_country)}</p>
        </div>
        <a href="{FRONTEND_URL}/invitations/{token}" class="button">Accept Invitation</a>
        <p>This invitation expires in 7 days.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"You're invited to join {escape(school_name)} on Plastic Clever Schools",
        html_content=_layout(f"You've been invited to join {escape(school_name)}!", body),
    )


# ============================================
# Events
# ============================================


async def send_event_registration_email(
    to_email: str,
    user_name: str,
    event_title: str,
    start_date_time: datetime,
    waitlisted: bool = False,
    meeting_link: str | None = None,
) -> bool:
    safe_title = escape(event_title)
    if waitlisted:
        status_html = '<div class="warning"><p>The event is full, so you have been added to the waitlist.</p></div>'
    else:
        status_html = "<p>Your place is confirmed.</p>"
    link_html = (
        f'<p><strong>Join link:</strong> <a href="{escape(meeting_link)}">{escape(meeting_link)}</a></p>'
        if meeting_link and not waitlisted
        else ""
    )
    body = f"""
        <p>Hello {escape(user_name)},</p>
        {status_html}
        <div class="info-box">
            <p><strong>Event:</strong> {safe_title}</p>
            <p><strong>When:</strong> {_format_datetime(start_date_time)}</p>
            {link_html}
        </div>
    """
    subject = f"Waitlisted: {safe_title}" if waitlisted else f"Registered: {safe_title}"
    return await send_email(
        to_email=to_email,
        subject=subject,
        html_content=_layout("Event Registration", body),
    )


async def send_event_cancellation_email(to_email: str, user_name: str, event_title: str) -> bool:
    body = f"""
        <p>Hello {escape(user_name)},</p>
        <p>Your registration for <strong>{escape(event_title)}</strong> has been cancelled.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Registration cancelled: {escape(event_title)}",
        html_content=_layout("Registration Cancelled", body),
    )


async def send_event_announcement_email(
    to_email: str,
    event_id: str,
    event_title: str,
    event_description: str | None,
    start_date_time: datetime,
    location: str | None,
) -> bool:
    body = f"""
        <p>A new Plastic Clever Schools event is open for registration.</p>
        <div class="info-box">
            <p><strong>{escape(event_title)}</strong></p>
            <p>{escape(event_description or "")}</p>
            <p><strong>When:</strong> {_format_datetime(start_date_time)}</p>
            <p><strong>Where:</strong> {escape(location or "Online")}</p>
        </div>
        <a href="{FRONTEND_URL}/events/{escape(event_id)}" class="button">Register Now</a>
    """
    return await send_email(
        to_email=to_email,
        subject=f"New event: {escape(event_title)}",
        html_content=_layout("You're Invited", body),
    )


# ============================================
# Bulk / digest
# ============================================


def render_bulk_email(title: str, message_html: str) -> str:
    """``message_html`` is written by an admin and inserted as-is."""
    return _layout(escape(title), message_html)


async def send_bulk_email(to_email: str, subject: str, title: str, message_html: str) -> bool:
    """Send one admin-authored campaign email."""
    return await send_email(
        to_email=to_email,
        subject=subject,
        html_content=render_bulk_email(title, message_html),
    )


async def send_weekly_digest_email(to_email: str, digest: dict[str, Any]) -> bool:
    """Weekly admin summary of new evidence, new users and platform totals."""
    evidence_rows = "".join(
        f"<li>{escape(item['school_name'])}: {escape(item['title'])} "
        f"({_stage_label(item['stage'])}, {escape(item['status'])})</li>"
        for item in digest.get("evidence", [])
    )
    stats = digest.get("stats", {})
    body = f"""
        <p>Here is what happened on Plastic Clever Schools this week.</p>
        <div class="info-box">
            <p><strong>New evidence:</strong> {digest.get("evidence_count", 0)}</p>
            <p><strong>New users:</strong> {digest.get("new_user_count", 0)}</p>
            <p><strong>Total schools:</strong> {stats.get("total_schools", 0)}</p>
            <p><strong>Awards completed:</strong> {stats.get("completed_awards", 0)}</p>
        </div>
        <ul>{evidence_rows or "<li>No new evidence this week.</li>"}</ul>
        <a href="{FRONTEND_URL}/admin" class="button">Open Admin Dashboard</a>
    """
    return await send_email(
        to_email=to_email,
        subject="Plastic Clever Schools weekly digest",
        html_content=_layout("Weekly Digest", body),
    )
