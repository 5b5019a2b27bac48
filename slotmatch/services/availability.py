"""Service for reading and replacing owner and guest weekly windows."""

from __future__ import annotations

from datetime import date

from slotmatch.domain.models import (
    AvailabilityRequest,
    GuestWindow,
    OverlapSlot,
    OwnerWindow,
    WeeklyWindow,
)
from slotmatch.repos.memory import MemoryStore
from slotmatch.services.overlap import compute_overlap


class AvailabilityStore:
    """Owner windows are keyed by owner id, guest windows by request id."""

    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    def replace_owner_windows(self, owner_id: str, windows: list[WeeklyWindow]) -> None:
        self._store.owner_windows.replace(
            owner_id,
            [OwnerWindow(owner_id=owner_id, **_fields(w)) for w in windows],
        )

    def replace_guest_windows(self, request_id: str, windows: list[WeeklyWindow]) -> None:
        self._store.guest_windows.replace(
            request_id,
            [GuestWindow(request_id=request_id, **_fields(w)) for w in windows],
        )

    def owner_windows(self, owner_id: str) -> list[WeeklyWindow]:
        """Owner windows in declaration order."""
        return self._store.owner_windows.list_for(owner_id)

    def owner_windows_sorted(self, owner_id: str) -> list[WeeklyWindow]:
        return sorted(
            self.owner_windows(owner_id), key=lambda w: (w.day_of_week, w.start_time)
        )

    def guest_windows(self, request_id: str) -> list[WeeklyWindow]:
        return self._store.guest_windows.list_for(request_id)

    def owner_id_for(self, request: AvailabilityRequest) -> str | None:
        team = self._store.teams.get(request.team_id)
        return team.owner_id if team else None

    def overlap_for(self, request: AvailabilityRequest, today: date) -> list[OverlapSlot]:
        """Recompute the request's overlap from the currently stored windows."""
        owner_id = self.owner_id_for(request)
        owner_windows = self.owner_windows(owner_id) if owner_id else []
        return compute_overlap(owner_windows, self.guest_windows(request.id), today)


def _fields(window: WeeklyWindow) -> dict:
    return {
        "day_of_week": window.day_of_week,
        "start_time": window.start_time,
        "end_time": window.end_time,
    }
