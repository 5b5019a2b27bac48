"""Service for delivering best-effort notifications to owners and guests."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import StrEnum
from html import escape
from typing import Any

import requests

from slotmatch.domain.errors import DownstreamUnavailable

logger = logging.getLogger(__name__)


class NotificationKind(StrEnum):
    AVAILABILITY_REQUEST = "availability_request"
    AVAILABILITY_SUBMITTED = "availability_submitted"
    BOOKING_CONFIRMATION = "booking_confirmation"
    BOOKING_OWNER_NOTICE = "booking_owner_notice"


_SUBJECTS = {
    NotificationKind.AVAILABILITY_REQUEST: "{team_name} would like to find a time to meet",
    NotificationKind.AVAILABILITY_SUBMITTED: "{guest_name} shared their availability",
    NotificationKind.BOOKING_CONFIRMATION: "Booking Confirmed - {team_name}",
    NotificationKind.BOOKING_OWNER_NOTICE: "New Booking - {team_name}",
}

_BODIES = {
    NotificationKind.AVAILABILITY_REQUEST: (
        "<p>Hi {guest_name},</p>"
        "<p>{team_name} asked for your weekly availability.</p>"
        '<p><a href="{capability_url}">Share your availability</a></p>'
    ),
    NotificationKind.AVAILABILITY_SUBMITTED: (
        "<p>{guest_name} submitted availability for {team_name}.</p>"
        "<p>Matching times found: {overlap_count}</p>"
    ),
    NotificationKind.BOOKING_CONFIRMATION: (
        "<p>Hi {guest_name},</p>"
        "<p>Your meeting with {team_name} has been confirmed.</p>"
        "<p>Date: {booking_date}<br>Time: {booking_time}</p>"
        "<p>Booking ID: #{reservation_id}</p>"
    ),
    NotificationKind.BOOKING_OWNER_NOTICE: (
        "<p>You have a new booking for {team_name}.</p>"
        "<p>Name: {guest_name}<br>Email: {guest_email}<br>"
        "Date: {booking_date}<br>Time: {booking_time}</p>"
    ),
}


def render(kind: NotificationKind, payload: dict[str, Any]) -> tuple[str, str]:
    """Return ``(subject, html)`` for a notification of *kind*."""
    safe = {key: escape(str(value)) for key, value in payload.items()}
    try:
        return _SUBJECTS[kind].format(**payload), _BODIES[kind].format(**safe)
    except KeyError as exc:
        raise ValueError(f"Missing field {exc} for {kind} notification") from None


class Notifier(ABC):
    """Sends one templated message to one address."""

    @abstractmethod
    def send(self, address: str, kind: NotificationKind, payload: dict[str, Any]) -> None:
        """Deliver the message or raise ``DownstreamUnavailable``."""


class LogNotifier(Notifier):
    """Writes notifications to the log instead of delivering them."""

    def send(self, address: str, kind: NotificationKind, payload: dict[str, Any]) -> None:
        subject, _ = render(kind, payload)
        logger.info("Notification %s to %s: %s", kind, address, subject)


class ResendNotifier(Notifier):
    """Delivers notifications as email through the Resend HTTP API."""

    def __init__(
        self,
        api_key: str,
        from_email: str,
        url: str = "https://api.resend.com/emails",
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._from_email = from_email
        self._url = url
        self._timeout = timeout

    def send(self, address: str, kind: NotificationKind, payload: dict[str, Any]) -> None:
        subject, html = render(kind, payload)
        try:
            response = requests.post(
                self._url,
                headers={"Authorization": f"Bearer {self._api_key}"},
                json={
                    "from": self._from_email,
                    "to": [address],
                    "subject": subject,
                    "html": html,
                },
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise DownstreamUnavailable(f"Email delivery failed: {exc}") from exc

        if not response.ok:
            raise DownstreamUnavailable(
                f"Email provider returned {response.status_code}: {response.text[:200]}"
            )
        logger.info("Email %s sent to %s", kind, address)


def build_notifier(api_key: str | None, from_email: str, url: str, timeout: float) -> Notifier:
    """Return a Resend notifier when configured, otherwise a log-only one."""
    if not api_key:
        logger.warning("RESEND_API_KEY not set; notifications will only be logged")
        return LogNotifier()
    return ResendNotifier(api_key, from_email, url=url, timeout=timeout)
