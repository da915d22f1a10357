"""Event request/response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from plastic_clever.modules.events.models import EventStatus, EventType, RegistrationStatus


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10000)
    event_type: EventType = EventType.WORKSHOP
    status: EventStatus = EventStatus.DRAFT
    start_date_time: datetime
    end_date_time: datetime
    timezone: str = Field("UTC", max_length=64)
    location: str | None = Field(None, max_length=300)
    is_virtual: bool = False
    meeting_link: str | None = Field(None, max_length=2000)
    capacity: int | None = Field(None, gt=0)
    waitlist_enabled: bool = False
    registration_deadline: datetime | None = None

    @model_validator(mode="after")
    def check_dates(self) -> "EventCreate":
        if self.end_date_time <= self.start_date_time:
            raise ValueError("End date must be after start date")
        return self


class EventUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=10000)
    event_type: EventType | None = None
    status: EventStatus | None = None
    start_date_time: datetime | None = None
    end_date_time: datetime | None = None
    timezone: str | None = Field(None, max_length=64)
    location: str | None = Field(None, max_length=300)
    is_virtual: bool | None = None
    meeting_link: str | None = Field(None, max_length=2000)
    capacity: int | None = Field(None, gt=0)
    waitlist_enabled: bool | None = None
    registration_deadline: datetime | None = None


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str | None
    event_type: EventType
    status: EventStatus
    start_date_time: datetime
    end_date_time: datetime
    timezone: str
    location: str | None
    is_virtual: bool
    meeting_link: str | None
    capacity: int | None
    waitlist_enabled: bool
    registration_deadline: datetime | None
    created_at: datetime


class EventDetail(EventResponse):
    registered_count: int = 0
    spots_remaining: int | None = None


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    event_id: str
    user_id: str
    school_id: str | None
    status: RegistrationStatus
    registered_at: datetime
    cancelled_at: datetime | None
    attended_at: datetime | None


class RegistrationWithUser(RegistrationResponse):
    user_email: str | None = None
    user_name: str | None = None


class MyEvent(BaseModel):
    registration: RegistrationResponse
    event: EventResponse


class RegistrationStatusUpdate(BaseModel):
    status: RegistrationStatus


class EventAnalytics(BaseModel):
    total_events: int
    events_by_status: dict[str, int]
    events_by_type: dict[str, int]
    total_registrations: int
    registrations_by_status: dict[str, int]


class AnnounceRequest(BaseModel):
    recipient_type: Literal["all_teachers", "custom"] = "all_teachers"
    custom_emails: list[EmailStr] = Field(default_factory=list, max_length=1000)


class AnnounceResult(BaseModel):
    recipient_count: int
    sent_count: int
    failed_count: int
