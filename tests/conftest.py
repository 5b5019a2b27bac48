"""Shared test fixtures and helpers."""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from typing import Any

import pytest

from slotmatch.domain.bus import EventBus
from slotmatch.domain.errors import DownstreamUnavailable
from slotmatch.domain.handlers import HandlerRegistry
from slotmatch.domain.models import Owner, Team, WeeklyWindow
from slotmatch.repos.memory import MemoryStore
from slotmatch.services.notifier import NotificationKind, Notifier
from slotmatch.services.scheduling import SchedulingService

# 2026-06-01 is a Monday.
NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)
BASE_URL = "https://slots.example.com"


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier(Notifier):
    def __init__(self) -> None:
        self.sent: list[tuple[str, NotificationKind, dict]] = []
        self.fail = False

    def send(self, address: str, kind: NotificationKind, payload: dict) -> None:
        if self.fail:
            raise DownstreamUnavailable("mail relay down")
        self.sent.append((address, kind, payload))

    def kinds_to(self, address: str) -> list[NotificationKind]:
        return [kind for to, kind, _ in self.sent if to == address]


def make_window(day: int, start: str, end: str) -> WeeklyWindow:
    return WeeklyWindow(
        day_of_week=day,
        start_time=time.fromisoformat(start),
        end_time=time.fromisoformat(end),
    )


@pytest.fixture()
def clock():
    return FixedClock(NOW)


@pytest.fixture()
def env(clock):
    """Fresh store + bus + service with one owner and one team."""
    store = MemoryStore()
    bus = EventBus()
    notifier = RecordingNotifier()
    registry = HandlerRegistry(bus=bus, store=store, notifier=notifier)
    service = SchedulingService(
        store=store,
        bus=bus,
        public_base_url=BASE_URL,
        request_expiry_hours=48,
        clock=clock,
    )

    owner = Owner(id="owner-1", name="Olive Owner", email="olive@example.com")
    team = Team(id="team-1", owner_id=owner.id, name="Design Crew")
    store.owners.add(owner)
    store.teams.add(team)

    class Env:
        pass

    e = Env()
    e.store = store
    e.bus = bus
    e.notifier = notifier
    e.registry = registry
    e.service = service
    e.clock = clock
    e.owner = owner
    e.team = team
    return e
