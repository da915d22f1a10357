"""
Events Admin Router

Endpoints:
- GET /admin/events - All events
- POST /admin/events - Create event
- GET /admin/events/analytics - Event and registration counts
- PUT /admin/events/{id} - Update event (status changes follow the transition map)
- DELETE /admin/events/{id} - Delete event
- GET /admin/events/{id}/registrations - Registrations for an event
- PUT /admin/events/registrations/{id} - Update a registration's status
- POST /admin/events/{id}/announce - Email an announcement
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.auth import CurrentUser, require_admin
from plastic_clever.core.database import get_db
from plastic_clever.modules.events import service
from plastic_clever.modules.events.models import EventStatus, EventType, RegistrationStatus
from plastic_clever.modules.events.schemas import (
    AnnounceRequest,
    AnnounceResult,
    EventAnalytics,
    EventCreate,
    EventResponse,
    EventUpdate,
    RegistrationResponse,
    RegistrationStatusUpdate,
    RegistrationWithUser,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[EventResponse], summary="List events")
async def list_events(
    event_status: EventStatus | None = Query(None, alias="status"),
    event_type: EventType | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> list[EventResponse]:
    events = await service.list_all_events(
        db,
        status=event_status,
        event_type=event_type,
        skip=skip,
        limit=limit,
    )
    return [EventResponse.model_validate(event) for event in events]


@router.post(
    "",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create event",
)
async def create_event(
    data: EventCreate,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> EventResponse:
    return EventResponse.model_validate(await service.create_event(db, admin, data))


@router.get("/analytics", response_model=EventAnalytics, summary="Event analytics")
async def get_analytics(
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> EventAnalytics:
    return await service.get_analytics(db)


@router.put(
    "/registrations/{registration_id}",
    response_model=RegistrationResponse,
    summary="Update registration status",
)
async def update_registration(
    registration_id: str,
    data: RegistrationStatusUpdate,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> RegistrationResponse:
    registration = await service.update_registration_status(db, registration_id, data.status)
    return RegistrationResponse.model_validate(registration)


@router.put("/{event_id}", response_model=EventResponse, summary="Update event")
async def update_event(
    event_id: str,
    data: EventUpdate,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> EventResponse:
    event = await service.update_event(db, event_id, data)
    logger.info(f"Admin {admin.id} updated event {event_id}")
    return EventResponse.model_validate(event)


@router.delete("/{event_id}", summary="Delete event")
async def delete_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> dict[str, str]:
    await service.delete_event(db, event_id)
    return {"message": "Event deleted successfully"}


@router.get(
    "/{event_id}/registrations",
    response_model=list[RegistrationWithUser],
    summary="Event registrations",
)
async def get_registrations(
    event_id: str,
    registration_status: RegistrationStatus | None = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> list[RegistrationWithUser]:
    return await service.get_event_registrations(db, event_id, registration_status)


@router.post("/{event_id}/announce", response_model=AnnounceResult, summary="Announce event")
async def announce_event(
    event_id: str,
    data: AnnounceRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> AnnounceResult:
    return await service.announce_event(db, admin, event_id, data)
