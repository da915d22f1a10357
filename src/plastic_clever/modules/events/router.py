"""
Events Router

Public:
- GET /events/upcoming - Next published events
- GET /events - Published events
- GET /events/{id} - Event details

Authenticated:
- POST /events/{id}/register - Register (or join the waitlist)
- GET /my-events - Caller's registrations
- DELETE /events/registrations/{id} - Cancel a registration
"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, get_current_user, get_optional_user
from plastic_clever.core.database import get_db
from plastic_clever.modules.events import service
from plastic_clever.modules.events.models import EventType
from plastic_clever.modules.events.schemas import (
    EventDetail,
    EventResponse,
    MyEvent,
    RegistrationResponse,
)

router = APIRouter()


@router.get("/events/upcoming", response_model=list[EventResponse], summary="Upcoming events")
async def get_upcoming_events(
    limit: int = Query(5, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
) -> list[EventResponse]:
    events = await service.get_upcoming_events(db, limit)
    return [EventResponse.model_validate(event) for event in events]


@router.get("/events", response_model=list[EventResponse], summary="List events")
async def list_events(
    event_type: EventType | None = Query(None),
    upcoming: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> list[EventResponse]:
    events = await service.list_public_events(
        db,
        event_type=event_type,
        upcoming=upcoming,
        skip=skip,
        limit=limit,
    )
    return [EventResponse.model_validate(event) for event in events]


@router.get("/my-events", response_model=list[MyEvent], summary="My events")
async def get_my_events(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[MyEvent]:
    registrations = await service.get_my_events(db, user)
    return [
        MyEvent(
            registration=RegistrationResponse.model_validate(registration),
            event=EventResponse.model_validate(registration.event),
        )
        for registration in registrations
        if registration.event is not None
    ]


@router.delete(
    "/events/registrations/{registration_id}",
    response_model=RegistrationResponse,
    summary="Cancel registration",
)
async def cancel_registration(
    registration_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> RegistrationResponse:
    registration = await service.cancel_registration(db, user, registration_id)
    return RegistrationResponse.model_validate(registration)


@router.get("/events/{event_id}", response_model=EventDetail, summary="Get event")
async def get_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
) -> EventDetail:
    return await service.get_event(db, user, event_id)


@router.post(
    "/events/{event_id}/register",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register for event",
)
async def register_for_event(
    event_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> RegistrationResponse:
    """
    Register for a published event. When the event is full and has a
    waitlist the registration is created with status ``waitlisted``.
    """
    registration = await service.register_for_event(db, user, event_id, request)
    return RegistrationResponse.model_validate(registration)
