"""Request state machine: resolution, lazy expiry and guarded transitions."""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Callable

from slotmatch.domain.errors import InvalidState, RequestExpired, RequestNotFound
from slotmatch.domain.models import AvailabilityRequest, RequestStatus
from slotmatch.repos.memory import RequestRepository
from slotmatch.services.tokens import redact

logger = logging.getLogger(__name__)


class RequestLifecycle:
    """Owns the status transitions of availability requests.

    pending -> submitted -> booked, and pending -> expired once the request's
    deadline has passed. Every write is a conditional update on the status
    the caller last saw; losing that race is reported as ``InvalidState``.
    """

    def __init__(
        self, requests: RequestRepository, clock: Callable[[], datetime]
    ) -> None:
        self._requests = requests
        self._clock = clock

    def resolve(self, token: str) -> AvailabilityRequest:
        """Return the live request behind *token*.

        Raises ``RequestNotFound`` for unknown tokens and ``RequestExpired``
        for expired requests, persisting the expiry first if it is due.
        """
        request = self._requests.get_by_token(token)
        if request is None:
            logger.info("No request for token %s", redact(token))
            raise RequestNotFound()
        request = self.refresh(request)
        if request.status == RequestStatus.EXPIRED:
            raise RequestExpired()
        return request

    def refresh(self, request: AvailabilityRequest) -> AvailabilityRequest:
        """Apply a due expiry to *request* and return its current version."""
        if request.status != RequestStatus.PENDING:
            return request
        if not request.is_past_deadline(self._clock()):
            return request

        expired = self._requests.transition(
            request.id, RequestStatus.PENDING, RequestStatus.EXPIRED
        )
        if expired is not None:
            logger.info("Request %s expired at %s", request.id, request.expires_at)
            return expired
        # Someone else moved it first; report whatever is stored now.
        return self._requests.get(request.id) or request

    @staticmethod
    def require(request: AvailabilityRequest, status: RequestStatus, message: str) -> None:
        if request.status != status:
            raise InvalidState(message)

    def mark_submitted(self, request_id: str) -> AvailabilityRequest:
        updated = self._requests.transition(
            request_id, RequestStatus.PENDING, RequestStatus.SUBMITTED
        )
        if updated is None:
            raise InvalidState("Availability already submitted")
        logger.info("Request %s submitted", request_id)
        return updated

    def mark_booked(
        self, request_id: str, booked_date: date, booked_time: time, reservation_id: str
    ) -> AvailabilityRequest:
        updated = self._requests.transition(
            request_id,
            RequestStatus.SUBMITTED,
            RequestStatus.BOOKED,
            booked_date=booked_date,
            booked_time=booked_time,
            reservation_id=reservation_id,
        )
        if updated is None:
            raise InvalidState("Cannot book: availability not submitted or already booked")
        logger.info("Request %s booked as reservation %s", request_id, reservation_id)
        return updated
