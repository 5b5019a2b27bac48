"""Domain event handlers — wired up at application startup."""

from __future__ import annotations

import logging
from typing import Any

from slotmatch.domain.bus import EventBus
from slotmatch.domain.errors import DownstreamUnavailable
from slotmatch.domain.events import (
    AvailabilitySubmitted,
    BookingFinalized,
    RequestCreated,
)
from slotmatch.repos.memory import MemoryStore
from slotmatch.services.calendar import CalendarWriter
from slotmatch.services.notifier import NotificationKind, Notifier

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Wires notification and calendar side effects to the bus.

    Every handler runs after the triggering write has committed. Downstream
    failures are logged here; anything else is logged by the bus.
    """

    def __init__(
        self,
        bus: EventBus,
        store: MemoryStore,
        notifier: Notifier,
        calendar: CalendarWriter | None = None,
    ) -> None:
        self.bus = bus
        self.store = store
        self.notifier = notifier
        self.calendar = calendar
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(RequestCreated, self.on_request_created)
        self.bus.subscribe(AvailabilitySubmitted, self.on_availability_submitted)
        self.bus.subscribe(BookingFinalized, self.on_booking_finalized)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_request_created(self, event: RequestCreated) -> None:
        request = self.store.requests.get(event.request_id)
        if request is None:
            return
        team = self.store.teams.get(request.team_id)
        self._send(
            request.guest_email,
            NotificationKind.AVAILABILITY_REQUEST,
            {
                "guest_name": request.guest_name,
                "team_name": team.name if team else "",
                "capability_url": event.capability_url,
            },
        )

    def on_availability_submitted(self, event: AvailabilitySubmitted) -> None:
        request = self.store.requests.get(event.request_id)
        if request is None:
            return
        team = self.store.teams.get(request.team_id)
        owner = self.store.owners.get(team.owner_id) if team else None
        if owner is None:
            logger.warning("No owner to notify for request %s", request.id)
            return
        self._send(
            owner.email,
            NotificationKind.AVAILABILITY_SUBMITTED,
            {
                "guest_name": request.guest_name,
                "team_name": team.name,
                "overlap_count": event.overlap_count,
            },
        )

    def on_booking_finalized(self, event: BookingFinalized) -> None:
        reservation = self.store.reservations.get(event.reservation_id)
        if reservation is None:
            return
        team = self.store.teams.get(reservation.team_id)
        owner = self.store.owners.get(team.owner_id) if team else None
        payload = {
            "guest_name": reservation.guest_name,
            "guest_email": reservation.guest_email,
            "team_name": team.name if team else "",
            "booking_date": reservation.booking_date.strftime("%A, %B %d, %Y"),
            "booking_time": reservation.booking_time.strftime("%H:%M"),
            "reservation_id": reservation.id,
        }

        # 1. Guest confirmation
        self._send(reservation.guest_email, NotificationKind.BOOKING_CONFIRMATION, payload)

        # 2. Owner notice
        if owner is not None:
            self._send(owner.email, NotificationKind.BOOKING_OWNER_NOTICE, payload)

        # 3. External calendar
        if self.calendar is None:
            return
        attendees = [reservation.guest_email] + ([owner.email] if owner else [])
        try:
            event_id = self.calendar.create_event(
                summary=f"{payload['team_name']} / {reservation.guest_name}",
                start=reservation.slot_start,
                end=reservation.slot_end,
                attendees=attendees,
            )
        except DownstreamUnavailable as exc:
            logger.warning(
                "Calendar event for reservation %s not created: %s", reservation.id, exc
            )
            return
        logger.info("Calendar event %s created for reservation %s", event_id, reservation.id)

    def _send(self, address: str, kind: NotificationKind, payload: dict[str, Any]) -> None:
        try:
            self.notifier.send(address, kind, payload)
        except DownstreamUnavailable as exc:
            logger.warning("Notification %s to %s failed: %s", kind, address, exc)
