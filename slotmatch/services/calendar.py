"""Optional writer for events in an external calendar."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime


class CalendarWriter(ABC):
    """Creates, moves and cancels events in an external calendar.

    Implementations raise ``DownstreamUnavailable`` when the provider is
    unreachable or refuses the call.
    """

    @abstractmethod
    def create_event(
        self, summary: str, start: datetime, end: datetime, attendees: list[str]
    ) -> str:
        """Create an event and return the provider's event id."""

    @abstractmethod
    def update_event(self, event_id: str, start: datetime, end: datetime) -> None:
        """Move an existing event."""

    @abstractmethod
    def cancel_event(self, event_id: str) -> None:
        """Cancel an existing event."""
