"""
Events Repository

Database operations for events, registrations and announcements.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.modules.events.models import (
    Event,
    EventAnnouncement,
    EventRegistration,
    EventStatus,
    EventType,
    RegistrationStatus,
)

# Registrations that hold a place at the event
ACTIVE_REGISTRATION_STATUSES = (RegistrationStatus.REGISTERED, RegistrationStatus.ATTENDED)


async def save(db: AsyncSession, instance: Any) -> Any:
    """Commit pending attribute changes on ``instance`` and refresh it."""
    await db.commit()
    await db.refresh(instance)
    return instance


# ============================================
# Events
# ============================================


async def create_event(db: AsyncSession, **fields: Any) -> Event:
    event = Event(**fields)
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


async def get_event(db: AsyncSession, event_id: str) -> Event | None:
    result = await db.execute(select(Event).where(Event.id == str(event_id)))
    return result.scalar_one_or_none()


async def list_events(
    db: AsyncSession,
    *,
    status: EventStatus | None = None,
    event_type: EventType | None = None,
    upcoming: bool = False,
    skip: int = 0,
    limit: int = 50,
) -> list[Event]:
    """Events ordered by start time; ``upcoming`` keeps only future events."""
    query = select(Event)
    if status is not None:
        query = query.where(Event.status == status)
    if event_type is not None:
        query = query.where(Event.event_type == event_type)
    if upcoming:
        query = query.where(Event.start_date_time >= datetime.now(UTC))

    result = await db.execute(
        query.order_by(Event.start_date_time.asc()).offset(skip).limit(limit)
    )
    return list(result.scalars().all())


async def update_event(db: AsyncSession, event: Event, **fields: Any) -> Event:
    for name, value in fields.items():
        setattr(event, name, value)
    return await save(db, event)


async def delete_event(db: AsyncSession, event: Event) -> None:
    await db.delete(event)
    await db.commit()


async def count_events_by(db: AsyncSession, column: Any) -> dict[str, int]:
    result = await db.execute(select(column, func.count(Event.id)).group_by(column))
    return {
        (key.value if hasattr(key, "value") else str(key)): count for key, count in result.all()
    }


# ============================================
# Registrations
# ============================================


async def count_active_registrations(db: AsyncSession, event_id: str) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(EventRegistration)
        .where(
            EventRegistration.event_id == str(event_id),
            EventRegistration.status.in_(ACTIVE_REGISTRATION_STATUSES),
        )
    )
    return result.scalar() or 0


async def create_registration(db: AsyncSession, **fields: Any) -> EventRegistration:
    registration = EventRegistration(**fields)
    db.add(registration)
    await db.commit()
    await db.refresh(registration)
    return registration


async def get_registration(db: AsyncSession, registration_id: str) -> EventRegistration | None:
    result = await db.execute(
        select(EventRegistration).where(EventRegistration.id == str(registration_id))
    )
    return result.scalar_one_or_none()


async def get_user_registration(
    db: AsyncSession,
    event_id: str,
    user_id: str,
) -> EventRegistration | None:
    result = await db.execute(
        select(EventRegistration).where(
            EventRegistration.event_id == str(event_id),
            EventRegistration.user_id == str(user_id),
        )
    )
    return result.scalar_one_or_none()


async def get_event_registrations(
    db: AsyncSession,
    event_id: str,
    status: RegistrationStatus | None = None,
) -> list[EventRegistration]:
    query = select(EventRegistration).where(EventRegistration.event_id == str(event_id))
    if status is not None:
        query = query.where(EventRegistration.status == status)
    result = await db.execute(query.order_by(EventRegistration.registered_at.asc()))
    return list(result.scalars().all())


async def get_user_registrations(db: AsyncSession, user_id: str) -> list[EventRegistration]:
    result = await db.execute(
        select(EventRegistration)
        .where(EventRegistration.user_id == str(user_id))
        .order_by(EventRegistration.registered_at.desc())
    )
    return list(result.scalars().all())


async def count_registrations_by_status(db: AsyncSession) -> dict[str, int]:
    result = await db.execute(
        select(EventRegistration.status, func.count(EventRegistration.id)).group_by(
            EventRegistration.status
        )
    )
    return {status.value: count for status, count in result.all()}


# ============================================
# Announcements
# ============================================


async def create_announcement(db: AsyncSession, **fields: Any) -> EventAnnouncement:
    announcement = EventAnnouncement(**fields)
    db.add(announcement)
    await db.commit()
    await db.refresh(announcement)
    return announcement
