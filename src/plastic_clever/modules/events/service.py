"""
Events Service Layer

Public event listings, teacher registration and admin event management.

Event status transitions:
    draft -> published | cancelled
    published -> cancelled | completed
    cancelled, completed -> (terminal)

Registration rules:
- Only published events that have not started accept registrations
- Registrations close at the registration deadline when one is set
- A full event waitlists new registrations when its waitlist is enabled,
  otherwise registration is refused
- Cancelling a confirmed place promotes the oldest waitlisted registration
"""

import logging
from datetime import UTC, datetime

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.activity_log import ActivityType, log_user_activity
from plastic_clever.core.auth import CurrentUser
from plastic_clever.core.email import (
    send_event_announcement_email,
    send_event_cancellation_email,
    send_event_registration_email,
    send_safely,
)
from plastic_clever.modules.events import repository
from plastic_clever.modules.events.models import (
    Event,
    EventRegistration,
    EventStatus,
    EventType,
    RegistrationStatus,
)
from plastic_clever.modules.events.schemas import (
    AnnounceRequest,
    AnnounceResult,
    EventAnalytics,
    EventCreate,
    EventDetail,
    EventResponse,
    EventUpdate,
    RegistrationWithUser,
)
from plastic_clever.modules.schools.service import get_primary_school_id
from plastic_clever.modules.shared import ForbiddenError, NotFoundError, ValidationFailedError
from plastic_clever.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

VALID_STATUS_TRANSITIONS: dict[EventStatus, set[EventStatus]] = {
    EventStatus.DRAFT: {EventStatus.PUBLISHED, EventStatus.CANCELLED},
    EventStatus.PUBLISHED: {EventStatus.CANCELLED, EventStatus.COMPLETED},
    EventStatus.CANCELLED: set(),
    EventStatus.COMPLETED: set(),
}


class InvalidEventTransitionError(ValidationFailedError):
    def __init__(self, current: EventStatus, target: EventStatus):
        super().__init__(
            message=f"Cannot change event status from {current.value} to {target.value}",
            error_code="INVALID_STATUS_TRANSITION",
        )


class RegistrationClosedError(ValidationFailedError):
    def __init__(self, message: str, error_code: str = "REGISTRATION_CLOSED"):
        super().__init__(message=message, error_code=error_code)


def _now() -> datetime:
    return datetime.now(UTC)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def is_valid_transition(current: EventStatus, target: EventStatus) -> bool:
    """Same-status updates are allowed; everything else follows the transition map."""
    return current == target or target in VALID_STATUS_TRANSITIONS.get(current, set())


def has_started(event: Event, now: datetime | None = None) -> bool:
    return (now or _now()) >= _aware(event.start_date_time)


async def get_event_or_404(db: AsyncSession, event_id: str) -> Event:
    event = await repository.get_event(db, event_id)
    if event is None:
        raise NotFoundError("Event", event_id)
    return event


async def _to_detail(db: AsyncSession, event: Event) -> EventDetail:
    registered = await repository.count_active_registrations(db, event.id)
    spots = max(0, event.capacity - registered) if event.capacity else None
    return EventDetail(
        **EventResponse.model_validate(event).model_dump(),
        registered_count=registered,
        spots_remaining=spots,
    )


# ============================================
# Public
# ============================================


async def get_upcoming_events(db: AsyncSession, limit: int = 5) -> list[Event]:
    return await repository.list_events(
        db,
        status=EventStatus.PUBLISHED,
        upcoming=True,
        limit=limit,
    )


async def list_public_events(
    db: AsyncSession,
    *,
    event_type: EventType | None = None,
    upcoming: bool = False,
    skip: int = 0,
    limit: int = 50,
) -> list[Event]:
    return await repository.list_events(
        db,
        status=EventStatus.PUBLISHED,
        event_type=event_type,
        upcoming=upcoming,
        skip=skip,
        limit=limit,
    )


async def get_event(db: AsyncSession, user: CurrentUser | None, event_id: str) -> EventDetail:
    """Published events are public; other statuses are visible to admins only."""
    event = await get_event_or_404(db, event_id)
    if event.status != EventStatus.PUBLISHED and not (user is not None and user.is_admin):
        raise NotFoundError("Event", event_id)
    return await _to_detail(db, event)


# ============================================
# Registration
# ============================================


async def register_for_event(
    db: AsyncSession,
    user: CurrentUser,
    event_id: str,
    request: Request | None = None,
) -> EventRegistration:
    """
    Register the caller for an event.

    Raises:
        NotFoundError: If the event does not exist
        RegistrationClosedError: If the event is not open, has started, is
            past its deadline, is full without a waitlist, or the caller is
            already registered
    """
    event = await get_event_or_404(db, event_id)
    now = _now()

    if event.status != EventStatus.PUBLISHED:
        raise RegistrationClosedError("Event is not open for registration", "EVENT_NOT_PUBLISHED")
    if has_started(event, now):
        raise RegistrationClosedError("Event has already started", "EVENT_STARTED")
    if event.registration_deadline and now > _aware(event.registration_deadline):
        raise RegistrationClosedError("Registration deadline has passed")

    existing = await repository.get_user_registration(db, event.id, user.id)
    if existing is not None and existing.status != RegistrationStatus.CANCELLED:
        raise RegistrationClosedError(
            "You are already registered for this event",
            "ALREADY_REGISTERED",
        )

    status = RegistrationStatus.REGISTERED
    if event.capacity:
        registered = await repository.count_active_registrations(db, event.id)
        if registered >= event.capacity:
            if not event.waitlist_enabled:
                raise RegistrationClosedError("Event is full", "EVENT_FULL")
            status = RegistrationStatus.WAITLISTED

    school_id = await get_primary_school_id(db, user.id)

    if existing is not None:
        existing.status = status
        existing.school_id = school_id
        existing.registered_at = now
        existing.cancelled_at = None
        existing.attended_at = None
        registration = await repository.save(db, existing)
    else:
        registration = await repository.create_registration(
            db,
            event_id=event.id,
            user_id=user.id,
            school_id=school_id,
            status=status,
            registered_at=now,
        )
    logger.info(f"User {user.id} {status.value} for event {event.id}")

    await send_safely(
        send_event_registration_email(
            user.email,
            user.name or user.email,
            event.title,
            event.start_date_time,
            waitlisted=status == RegistrationStatus.WAITLISTED,
            meeting_link=event.meeting_link,
        ),
        f"registration email for event {event.id}",
    )

    await log_user_activity(
        db,
        user_id=user.id,
        user_email=user.email,
        action_type=ActivityType.EVENT_REGISTER,
        details={"event_title": event.title, "status": status.value},
        target_id=event.id,
        target_type="event",
        request=request,
    )
    return registration


async def get_my_events(db: AsyncSession, user: CurrentUser) -> list[EventRegistration]:
    return await repository.get_user_registrations(db, user.id)


async def _promote_from_waitlist(db: AsyncSession, event: Event) -> EventRegistration | None:
    waitlisted = await repository.get_event_registrations(
        db, event.id, status=RegistrationStatus.WAITLISTED
    )
    if not waitlisted:
        return None

    promoted = waitlisted[0]
    promoted.status = RegistrationStatus.REGISTERED
    promoted = await repository.save(db, promoted)
    logger.info(f"Promoted registration {promoted.id} from waitlist for event {event.id}")

    if promoted.user is not None:
        await send_safely(
            send_event_registration_email(
                promoted.user.email,
                promoted.user.full_name,
                event.title,
                event.start_date_time,
                meeting_link=event.meeting_link,
            ),
            f"waitlist promotion email for event {event.id}",
        )
    return promoted


async def cancel_registration(
    db: AsyncSession,
    user: CurrentUser,
    registration_id: str,
) -> EventRegistration:
    registration = await repository.get_registration(db, registration_id)
    if registration is None:
        raise NotFoundError("Registration", registration_id)
    if registration.user_id != user.id and not user.is_admin:
        raise ForbiddenError("You can only cancel your own registrations")
    if registration.status == RegistrationStatus.CANCELLED:
        raise RegistrationClosedError("Registration is already cancelled", "ALREADY_CANCELLED")

    event = registration.event or await get_event_or_404(db, registration.event_id)
    if has_started(event):
        raise RegistrationClosedError("Cannot cancel after the event has started", "EVENT_STARTED")

    held_place = registration.status == RegistrationStatus.REGISTERED
    registration.status = RegistrationStatus.CANCELLED
    registration.cancelled_at = _now()
    registration = await repository.save(db, registration)
    logger.info(f"Registration {registration_id} cancelled by {user.id}")

    await send_safely(
        send_event_cancellation_email(user.email, user.name or user.email, event.title),
        f"cancellation email for registration {registration_id}",
    )

    if held_place and event.capacity:
        await _promote_from_waitlist(db, event)
    return registration


# ============================================
# Admin
# ============================================


async def list_all_events(
    db: AsyncSession,
    *,
    status: EventStatus | None = None,
    event_type: EventType | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[Event]:
    return await repository.list_events(
        db,
        status=status,
        event_type=event_type,
        skip=skip,
        limit=limit,
    )


async def create_event(db: AsyncSession, admin: CurrentUser, data: EventCreate) -> Event:
    if data.status not in (EventStatus.DRAFT, EventStatus.PUBLISHED):
        raise ValidationFailedError("New events must be draft or published")
    event = await repository.create_event(db, **data.model_dump(), created_by=admin.id)
    logger.info(f"Event {event.id} created by {admin.id} ({event.status.value})")
    return event


async def update_event(db: AsyncSession, event_id: str, data: EventUpdate) -> Event:
    event = await get_event_or_404(db, event_id)
    updates = data.model_dump(exclude_unset=True)

    target = updates.get("status")
    if target is not None and not is_valid_transition(event.status, target):
        raise InvalidEventTransitionError(event.status, target)

    start = updates.get("start_date_time") or event.start_date_time
    end = updates.get("end_date_time") or event.end_date_time
    if _aware(end) <= _aware(start):
        raise ValidationFailedError("End date must be after start date")

    return await repository.update_event(db, event, **updates)


async def delete_event(db: AsyncSession, event_id: str) -> None:
    event = await get_event_or_404(db, event_id)
    await repository.delete_event(db, event)
    logger.info(f"Event {event_id} deleted")


async def get_event_registrations(
    db: AsyncSession,
    event_id: str,
    status: RegistrationStatus | None = None,
) -> list[RegistrationWithUser]:
    await get_event_or_404(db, event_id)
    registrations = await repository.get_event_registrations(db, event_id, status=status)
    result = []
    for registration in registrations:
        item = RegistrationWithUser.model_validate(registration)
        if registration.user is not None:
            item.user_email = registration.user.email
            item.user_name = registration.user.full_name
        result.append(item)
    return result


async def update_registration_status(
    db: AsyncSession,
    registration_id: str,
    status: RegistrationStatus,
) -> EventRegistration:
    registration = await repository.get_registration(db, registration_id)
    if registration is None:
        raise NotFoundError("Registration", registration_id)

    registration.status = status
    if status == RegistrationStatus.ATTENDED:
        registration.attended_at = _now()
    elif status == RegistrationStatus.CANCELLED:
        registration.cancelled_at = _now()
    return await repository.save(db, registration)


async def get_analytics(db: AsyncSession) -> EventAnalytics:
    by_status = await repository.count_events_by(db, Event.status)
    by_type = await repository.count_events_by(db, Event.event_type)
    registrations = await repository.count_registrations_by_status(db)
    return EventAnalytics(
        total_events=sum(by_status.values()),
        events_by_status=by_status,
        events_by_type=by_type,
        total_registrations=sum(registrations.values()),
        registrations_by_status=registrations,
    )


async def announce_event(
    db: AsyncSession,
    admin: CurrentUser,
    event_id: str,
    data: AnnounceRequest,
) -> AnnounceResult:
    """Email an announcement for a published event and record it."""
    event = await get_event_or_404(db, event_id)
    if event.status != EventStatus.PUBLISHED:
        raise ValidationFailedError("Only published events can be announced", "EVENT_NOT_PUBLISHED")

    if data.recipient_type == "custom":
        recipients = sorted({email.lower() for email in data.custom_emails})
    else:
        teachers = await UserRepository.get_all_teachers(db)
        recipients = sorted({teacher.email.lower() for teacher in teachers})

    if not recipients:
        raise ValidationFailedError("No recipients found", "NO_RECIPIENTS")

    sent = 0
    for email in recipients:
        if await send_safely(
            send_event_announcement_email(
                email,
                event.id,
                event.title,
                event.description,
                event.start_date_time,
                event.location,
            ),
            f"announcement for event {event.id} to {email}",
        ):
            sent += 1

    await repository.create_announcement(
        db,
        event_id=event.id,
        recipient_type=data.recipient_type,
        recipient_count=len(recipients),
        sent_count=sent,
        sent_by=admin.id,
        status="sent" if sent == len(recipients) else "partial",
    )
    logger.info(f"Event {event.id} announced to {sent}/{len(recipients)} recipient(s)")
    return AnnounceResult(
        recipient_count=len(recipients),
        sent_count=sent,
        failed_count=len(recipients) - sent,
    )
