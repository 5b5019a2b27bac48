"""Domain events emitted during the request lifecycle."""

from __future__ import annotations

from pydantic import BaseModel


class RequestCreated(BaseModel):
    """Fired after an owner issues a new availability request."""

    request_id: str
    capability_url: str


class AvailabilitySubmitted(BaseModel):
    """Fired after a guest's windows are stored and the request is submitted."""

    request_id: str
    overlap_count: int


class BookingFinalized(BaseModel):
    """Fired after the reservation and the booked transition have committed."""

    request_id: str
    reservation_id: str
