"""In-memory repositories for owners, teams, requests, windows and reservations."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import time
from typing import Any, Iterator

from slotmatch.domain.errors import PersistenceError, SchedulingError
from slotmatch.domain.models import (
    AvailabilityRequest,
    Owner,
    OwnerWindow,
    RequestStatus,
    Reservation,
    Team,
    WeeklyWindow,
)

logger = logging.getLogger(__name__)


class _Repository:
    """Dict-backed store guarded by a lock shared with sibling repositories.

    Stored models are never mutated in place; updates swap in a copy, so a
    shallow snapshot of ``_store`` is enough to roll a transaction back.
    """

    def __init__(self, lock: threading.RLock | None = None) -> None:
        self._lock = lock or threading.RLock()
        self._store: dict[str, Any] = {}

    def _snapshot(self) -> dict[str, Any]:
        return dict(self._store)

    def _restore(self, snapshot: dict[str, Any]) -> None:
        self._store.clear()
        self._store.update(snapshot)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()


class OwnerRepository(_Repository):
    def add(self, owner: Owner) -> None:
        with self._lock:
            self._store[owner.id] = owner

    def get(self, owner_id: str) -> Owner | None:
        with self._lock:
            return self._store.get(owner_id)


class TeamRepository(_Repository):
    def add(self, team: Team) -> None:
        with self._lock:
            self._store[team.id] = team

    def get(self, team_id: str) -> Team | None:
        with self._lock:
            return self._store.get(team_id)

    def list_for_owner(self, owner_id: str) -> list[Team]:
        with self._lock:
            return [t for t in self._store.values() if t.owner_id == owner_id]


class RequestRepository(_Repository):
    """Availability requests keyed by id, with a unique token index."""

    def add(self, request: AvailabilityRequest) -> None:
        with self._lock:
            if self.get_by_token(request.token) is not None:
                raise PersistenceError("Duplicate capability token")
            self._store[request.id] = request

    def get(self, request_id: str) -> AvailabilityRequest | None:
        with self._lock:
            return self._store.get(request_id)

    def get_by_token(self, token: str) -> AvailabilityRequest | None:
        with self._lock:
            for request in self._store.values():
                if request.token == token:
                    return request
            return None

    def list_for_teams(self, team_ids: list[str]) -> list[AvailabilityRequest]:
        """Return requests belonging to any of *team_ids*, newest first."""
        wanted = set(team_ids)
        with self._lock:
            matching = [r for r in self._store.values() if r.team_id in wanted]
        return sorted(matching, key=lambda r: r.created_at, reverse=True)

    def transition(
        self,
        request_id: str,
        expected: RequestStatus,
        new: RequestStatus,
        **changes: Any,
    ) -> AvailabilityRequest | None:
        """Set status to *new* only if the stored status is still *expected*.

        Returns the updated request, or ``None`` when nothing was updated
        (unknown id, or another writer moved the status first).
        """
        with self._lock:
            current = self._store.get(request_id)
            if current is None or current.status != expected:
                return None
            updated = current.model_copy(update={"status": new, **changes})
            self._store[request_id] = updated
            return updated


class WindowRepository(_Repository):
    """Weekly windows grouped by owner id or request id.

    A group is always replaced wholesale; insertion order is preserved so
    "the first window of a day" is the first one declared.
    """

    def replace(self, key: str, windows: list[WeeklyWindow]) -> None:
        with self._lock:
            self._store.pop(key, None)
            self._store[key] = list(windows)

    def list_for(self, key: str) -> list[WeeklyWindow]:
        with self._lock:
            return list(self._store.get(key, []))


class ReservationRepository(_Repository):
    def add(self, reservation: Reservation) -> None:
        with self._lock:
            if reservation.id in self._store:
                raise PersistenceError("Duplicate reservation id")
            self._store[reservation.id] = reservation

    def get(self, reservation_id: str) -> Reservation | None:
        with self._lock:
            return self._store.get(reservation_id)

    def list_for_request(self, request_id: str) -> list[Reservation]:
        with self._lock:
            return [r for r in self._store.values() if r.request_id == request_id]

    def list_all(self) -> list[Reservation]:
        with self._lock:
            return list(self._store.values())


class MemoryStore:
    """All repositories of one service instance, sharing a single lock."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.owners = OwnerRepository(self._lock)
        self.teams = TeamRepository(self._lock)
        self.requests = RequestRepository(self._lock)
        self.owner_windows = WindowRepository(self._lock)
        self.guest_windows = WindowRepository(self._lock)
        self.reservations = ReservationRepository(self._lock)

    @property
    def _repositories(self) -> list[_Repository]:
        return [
            self.owners,
            self.teams,
            self.requests,
            self.owner_windows,
            self.guest_windows,
            self.reservations,
        ]

    @contextmanager
    def transaction(self) -> Iterator[MemoryStore]:
        """Run a block of writes as one unit.

        Readers block until the unit commits or rolls back. Any exception
        restores every repository to its state at entry; unexpected ones
        are re-raised as ``PersistenceError``.
        """
        with self._lock:
            snapshots = [repo._snapshot() for repo in self._repositories]
            try:
                yield self
            except SchedulingError:
                self._rollback(snapshots)
                raise
            except Exception as exc:
                self._rollback(snapshots)
                logger.exception("Transaction rolled back")
                raise PersistenceError() from exc

    def _rollback(self, snapshots: list[dict[str, Any]]) -> None:
        for repo, snapshot in zip(self._repositories, snapshots):
            repo._restore(snapshot)

    def clear(self) -> None:
        for repo in self._repositories:
            repo.clear()


# ---------------------------------------------------------------------------
# Seed data – one owner with a team and weekday office hours
# ---------------------------------------------------------------------------


def _seed_demo(store: MemoryStore) -> None:
    owner = Owner(id="demo-owner", name="Dana Owner", email="dana@example.com")
    store.owners.add(owner)
    store.teams.add(
        Team(
            id="demo-team",
            owner_id=owner.id,
            name="Product Team",
            description="Weekly sync with external partners",
        )
    )
    store.owner_windows.replace(
        owner.id,
        [
            OwnerWindow(
                owner_id=owner.id,
                day_of_week=day,
                start_time=time(9, 0),
                end_time=time(17, 0),
            )
            for day in range(1, 6)
        ],
    )


def create_memory_store(seed: bool = False) -> MemoryStore:
    """Return a MemoryStore, optionally pre-loaded with sample data."""
    store = MemoryStore()
    if seed:
        _seed_demo(store)
    return store
