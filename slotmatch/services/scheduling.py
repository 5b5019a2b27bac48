"""Public operations of the availability matching core."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable

from slotmatch.domain.bus import EventBus
from slotmatch.domain.errors import InvalidState, Unauthorized
from slotmatch.domain.events import AvailabilitySubmitted, RequestCreated
from slotmatch.domain.models import (
    AvailabilityRequest,
    CreateRequestResponse,
    DashboardEntry,
    GuestIdentity,
    OverlapResponse,
    RequestDetail,
    RequestStatus,
    RequestSummary,
    Reservation,
    WeeklyWindow,
)
from slotmatch.repos.memory import MemoryStore
from slotmatch.services.availability import AvailabilityStore
from slotmatch.services.booking import BookingFinalizer
from slotmatch.services.lifecycle import RequestLifecycle
from slotmatch.services.tokens import capability_url, issue_token

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SchedulingService:
    """Facade wiring the issuer, availability store, lifecycle and finalizer."""

    def __init__(
        self,
        store: MemoryStore,
        bus: EventBus,
        public_base_url: str,
        request_expiry_hours: int = 0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.bus = bus
        self.public_base_url = public_base_url
        self.request_expiry_hours = request_expiry_hours
        self.clock = clock
        self.availability = AvailabilityStore(store)
        self.lifecycle = RequestLifecycle(store.requests, clock)
        self.finalizer = BookingFinalizer(
            store, self.availability, self.lifecycle, bus, clock
        )

    # ------------------------------------------------------------------
    # Owner side
    # ------------------------------------------------------------------

    def create_request(
        self, owner_id: str, team_id: str, guest: GuestIdentity
    ) -> CreateRequestResponse:
        """Issue a capability token for *guest* on a team *owner_id* owns."""
        team = self.store.teams.get(team_id)
        if team is None or team.owner_id != owner_id:
            logger.info("Denied request creation on team %s by %s", team_id, owner_id)
            raise Unauthorized()

        now = self.clock()
        expires_at = None
        if self.request_expiry_hours:
            expires_at = now + timedelta(hours=self.request_expiry_hours)

        request = AvailabilityRequest(
            team_id=team.id,
            guest_name=guest.name,
            guest_email=guest.email,
            guest_notes=guest.notes,
            token=issue_token(),
            created_at=now,
            expires_at=expires_at,
        )
        self.store.requests.add(request)
        url = capability_url(self.public_base_url, request.token)
        logger.info("Availability request %s created for team %s", request.id, team.id)

        self.bus.publish(RequestCreated(request_id=request.id, capability_url=url))
        return CreateRequestResponse(request=request, capability_url=url)

    def list_requests(self, owner_id: str) -> list[DashboardEntry]:
        """All requests across the owner's teams, newest first."""
        teams = {t.id: t for t in self.store.teams.list_for_owner(owner_id)}
        return [
            DashboardEntry(
                request=self.lifecycle.refresh(request),
                team_name=teams[request.team_id].name,
            )
            for request in self.store.requests.list_for_teams(list(teams))
        ]

    def set_owner_availability(
        self, owner_id: str, windows: list[WeeklyWindow]
    ) -> list[WeeklyWindow]:
        if self.store.owners.get(owner_id) is None:
            raise Unauthorized("Owner not found or access denied")
        self.availability.replace_owner_windows(owner_id, windows)
        logger.info("Owner %s stored %d weekly windows", owner_id, len(windows))
        return self.availability.owner_windows_sorted(owner_id)

    def get_owner_availability(self, owner_id: str) -> list[WeeklyWindow]:
        if self.store.owners.get(owner_id) is None:
            raise Unauthorized("Owner not found or access denied")
        return self.availability.owner_windows_sorted(owner_id)

    # ------------------------------------------------------------------
    # Guest side (token holders)
    # ------------------------------------------------------------------

    def get_request(self, token: str) -> RequestDetail:
        request = self.lifecycle.resolve(token)
        team = self.store.teams.get(request.team_id)
        owner = self.store.owners.get(team.owner_id) if team else None

        summary = RequestSummary(
            id=request.id,
            team_name=team.name if team else "",
            team_description=team.description if team else None,
            owner_name=owner.name if owner else "",
            guest_name=request.guest_name,
            status=request.status,
            created_at=request.created_at,
            expires_at=request.expires_at,
        )
        owner_windows = self.availability.owner_windows_sorted(team.owner_id) if team else []
        return RequestDetail(request=summary, owner_availability=owner_windows)

    def submit_availability(
        self, token: str, windows: list[WeeklyWindow]
    ) -> OverlapResponse:
        """Store the guest's windows and move the request to ``submitted``.

        Allowed once, while pending. The status check and the window write
        happen in one transaction, so a rejected call leaves stored windows
        untouched.
        """
        request = self.lifecycle.resolve(token)
        self.lifecycle.require(
            request, RequestStatus.PENDING, "Availability already submitted"
        )

        with self.store.transaction():
            self.lifecycle.mark_submitted(request.id)
            self.availability.replace_guest_windows(request.id, windows)

        response = self._overlap(request)
        self.bus.publish(
            AvailabilitySubmitted(request_id=request.id, overlap_count=response.count)
        )
        return response

    def get_overlap(self, token: str) -> OverlapResponse:
        request = self.lifecycle.resolve(token)
        if request.status == RequestStatus.PENDING:
            raise InvalidState("Guest has not submitted availability yet")
        return self._overlap(request)

    def finalize_booking(self, token: str, on: date, at: time) -> Reservation:
        return self.finalizer.finalize(token, on, at)

    def _overlap(self, request: AvailabilityRequest) -> OverlapResponse:
        overlap = self.availability.overlap_for(request, self.clock().date())
        return OverlapResponse(overlap=overlap, count=len(overlap))
