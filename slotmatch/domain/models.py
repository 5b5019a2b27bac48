"""Domain models for the availability matching service."""

from __future__ import annotations

import datetime as dt
import uuid
from enum import StrEnum

from pydantic import BaseModel, EmailStr, Field, field_serializer, model_validator


class RequestStatus(StrEnum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    BOOKED = "booked"
    EXPIRED = "expired"


class ReservationStatus(StrEnum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# Indexed by ISO weekday, 1 = Monday .. 7 = Sunday.
DAY_NAMES = (
    "",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Owner(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    email: EmailStr


class Team(BaseModel):
    id: str = Field(default_factory=_new_id)
    owner_id: str
    name: str
    description: str | None = None


class WeeklyWindow(BaseModel):
    """A recurring interval on one weekday, not tied to a calendar date."""

    day_of_week: int = Field(ge=1, le=7)
    start_time: dt.time
    end_time: dt.time

    @model_validator(mode="after")
    def _end_after_start(self) -> WeeklyWindow:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    @field_serializer("start_time", "end_time")
    def _hh_mm(self, value: dt.time) -> str:
        return value.strftime("%H:%M")


class OwnerWindow(WeeklyWindow):
    owner_id: str


class GuestWindow(WeeklyWindow):
    request_id: str


class AvailabilityRequest(BaseModel):
    id: str = Field(default_factory=_new_id)
    team_id: str
    guest_name: str
    guest_email: EmailStr
    guest_notes: str = ""
    token: str
    status: RequestStatus = RequestStatus.PENDING
    created_at: dt.datetime = Field(default_factory=_utcnow)
    expires_at: dt.datetime | None = None
    booked_date: dt.date | None = None
    booked_time: dt.time | None = None
    reservation_id: str | None = None

    def is_past_deadline(self, now: dt.datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now


class OverlapSlot(BaseModel):
    """A dated, hour-long candidate meeting time. Derived, never stored."""

    day_of_week: int
    day_name: str
    date: dt.date
    time: dt.time
    time_display: str
    duration_minutes: int = 60

    @field_serializer("time")
    def _hh_mm(self, value: dt.time) -> str:
        return value.strftime("%H:%M")

    def matches(self, on: dt.date, at: dt.time) -> bool:
        return self.date == on and self.time == at


class Reservation(BaseModel):
    id: str = Field(default_factory=_new_id)
    team_id: str
    request_id: str
    guest_name: str
    guest_email: EmailStr
    guest_notes: str = ""
    status: ReservationStatus = ReservationStatus.CONFIRMED
    booking_date: dt.date
    booking_time: dt.time
    slot_start: dt.datetime
    slot_end: dt.datetime
    created_at: dt.datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _end_after_start(self) -> Reservation:
        if self.slot_end <= self.slot_start:
            raise ValueError("slot_end must be after slot_start")
        return self

    @field_serializer("booking_time")
    def _hh_mm(self, value: dt.time) -> str:
        return value.strftime("%H:%M")


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class GuestIdentity(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    notes: str = ""


class CreateRequestPayload(BaseModel):
    team_id: str
    guest: GuestIdentity


class CreateRequestResponse(BaseModel):
    request: AvailabilityRequest
    capability_url: str


class RequestSummary(BaseModel):
    id: str
    team_name: str
    team_description: str | None = None
    owner_name: str
    guest_name: str
    status: RequestStatus
    created_at: dt.datetime
    expires_at: dt.datetime | None = None


class RequestDetail(BaseModel):
    request: RequestSummary
    owner_availability: list[WeeklyWindow]


class SubmitAvailabilityPayload(BaseModel):
    windows: list[WeeklyWindow] = Field(default_factory=list)


class SetOwnerAvailabilityPayload(BaseModel):
    windows: list[WeeklyWindow] = Field(default_factory=list)


class OverlapResponse(BaseModel):
    overlap: list[OverlapSlot]
    count: int


class FinalizeBookingPayload(BaseModel):
    date: dt.date
    time: dt.time


class DashboardEntry(BaseModel):
    request: AvailabilityRequest
    team_name: str
