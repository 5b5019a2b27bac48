"""Exception hierarchy for the scheduling core.

Services raise these; only the HTTP layer translates them into responses.
"""

from __future__ import annotations


class SchedulingError(Exception):
    """Base class for all scheduling errors."""

    message = "Scheduling error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class RequestNotFound(SchedulingError):
    """Token or team does not resolve, or does not belong to the caller."""

    message = "Availability request not found"


class RequestExpired(RequestNotFound):
    """Token resolved, but the request is past its deadline."""

    message = "This availability request has expired"


class InvalidState(SchedulingError):
    """Action attempted outside the state it is permitted in."""

    message = "Action not permitted in the current request state"


class StaleSelection(SchedulingError):
    """Chosen slot is absent from the freshly recomputed overlap."""

    message = "Selected time is not in the available overlap"


class Unauthorized(SchedulingError):
    """Caller does not own the team. Same wording as a missing team."""

    message = "Team not found or access denied"


class DownstreamUnavailable(SchedulingError):
    """Notifier or external calendar is unconfigured or failing."""

    message = "Downstream service unavailable"


class PersistenceError(SchedulingError):
    """A store write failed; the transaction was rolled back."""

    message = "Internal storage error"
