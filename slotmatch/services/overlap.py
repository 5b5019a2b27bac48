"""Service for intersecting two parties' weekly windows into bookable slots."""

from __future__ import annotations

from datetime import date, time

from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta

from slotmatch.domain.models import DAY_NAMES, OverlapSlot, WeeklyWindow

SLOT_MINUTES = 60

# Indexed by ISO weekday, 1 = Monday .. 7 = Sunday.
_WEEKDAYS = (None, MO, TU, WE, TH, FR, SA, SU)


def compute_overlap(
    owner_windows: list[WeeklyWindow],
    guest_windows: list[WeeklyWindow],
    today: date,
) -> list[OverlapSlot]:
    """Return the hour-long slots both parties can attend, next occurrence each.

    Only the first declared window per weekday is considered for each party.
    Slots are ordered by weekday, then by start time. Nothing here is cached:
    callers recompute whenever they need a current answer.
    """
    slots: list[OverlapSlot] = []
    for day in range(1, 8):
        owner = _first_for_day(owner_windows, day)
        guest = _first_for_day(guest_windows, day)
        if owner is None or guest is None:
            continue

        overlap_start = max(_minutes(owner.start_time), _minutes(guest.start_time))
        overlap_end = min(_minutes(owner.end_time), _minutes(guest.end_time))
        if overlap_start >= overlap_end:
            continue

        on = next_date_for_weekday(day, today)
        for minutes in range(overlap_start, overlap_end - SLOT_MINUTES + 1, SLOT_MINUTES):
            at = _clock(minutes)
            slots.append(
                OverlapSlot(
                    day_of_week=day,
                    day_name=DAY_NAMES[day],
                    date=on,
                    time=at,
                    time_display=format_12_hour(at),
                    duration_minutes=SLOT_MINUTES,
                )
            )
    return slots


def next_date_for_weekday(day_of_week: int, today: date) -> date:
    """Return the first date strictly after *today* falling on *day_of_week*.

    When today already is that weekday the result is a full week ahead.
    """
    return today + relativedelta(days=+1, weekday=_WEEKDAYS[day_of_week])


def format_12_hour(at: time) -> str:
    """Format a time as ``h:MM AM/PM`` (e.g. ``9:00 AM``, ``12:30 PM``)."""
    hour12 = at.hour % 12 or 12
    period = "PM" if at.hour >= 12 else "AM"
    return f"{hour12}:{at.minute:02d} {period}"


def _first_for_day(windows: list[WeeklyWindow], day: int) -> WeeklyWindow | None:
    for window in windows:
        if window.day_of_week == day:
            return window
    return None


def _minutes(at: time) -> int:
    return at.hour * 60 + at.minute


def _clock(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)
