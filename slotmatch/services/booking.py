"""Service that turns one overlap slot into a confirmed reservation."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable

from slotmatch.domain.bus import EventBus
from slotmatch.domain.errors import StaleSelection
from slotmatch.domain.events import BookingFinalized
from slotmatch.domain.models import Reservation, RequestStatus
from slotmatch.repos.memory import MemoryStore
from slotmatch.services.availability import AvailabilityStore
from slotmatch.services.lifecycle import RequestLifecycle
from slotmatch.services.overlap import SLOT_MINUTES

logger = logging.getLogger(__name__)


class BookingFinalizer:
    def __init__(
        self,
        store: MemoryStore,
        availability: AvailabilityStore,
        lifecycle: RequestLifecycle,
        bus: EventBus,
        clock: Callable[[], datetime],
    ) -> None:
        self._store = store
        self._availability = availability
        self._lifecycle = lifecycle
        self._bus = bus
        self._clock = clock

    def finalize(self, token: str, on: date, at: time) -> Reservation:
        """Book the slot (*on*, *at*) for the request behind *token*.

        The slot must be in the overlap as it stands now, not as it was when
        it was displayed. The reservation and the ``booked`` transition
        commit together; notifications go out only after that.
        """
        request = self._lifecycle.resolve(token)
        self._lifecycle.require(
            request,
            RequestStatus.SUBMITTED,
            "Cannot book: availability not submitted or already booked",
        )

        now = self._clock()
        slot_start = datetime.combine(on, at, tzinfo=now.tzinfo)
        reservation = Reservation(
            team_id=request.team_id,
            request_id=request.id,
            guest_name=request.guest_name,
            guest_email=request.guest_email,
            guest_notes=request.guest_notes,
            booking_date=on,
            booking_time=at,
            slot_start=slot_start,
            slot_end=slot_start + timedelta(minutes=SLOT_MINUTES),
        )

        with self._store.transaction() as tx:
            # Window writes wait on the same lock, so the check holds at commit.
            overlap = self._availability.overlap_for(request, now.date())
            if not any(slot.matches(on, at) for slot in overlap):
                logger.info(
                    "Rejected stale selection %s %s for request %s",
                    on, at.strftime("%H:%M"), request.id,
                )
                raise StaleSelection()
            tx.reservations.add(reservation)
            self._lifecycle.mark_booked(request.id, on, at, reservation.id)

        logger.info("Reservation %s created for request %s", reservation.id, request.id)
        self._bus.publish(
            BookingFinalized(request_id=request.id, reservation_id=reservation.id)
        )
        return reservation
