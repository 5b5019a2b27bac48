"""FastAPI application — entry point for the availability matching service."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse

from slotmatch.config import settings
from slotmatch.domain.bus import EventBus
from slotmatch.domain.errors import (
    DownstreamUnavailable,
    InvalidState,
    RequestExpired,
    RequestNotFound,
    SchedulingError,
    StaleSelection,
    Unauthorized,
)
from slotmatch.domain.handlers import HandlerRegistry
from slotmatch.domain.models import (
    CreateRequestPayload,
    CreateRequestResponse,
    DashboardEntry,
    FinalizeBookingPayload,
    OverlapResponse,
    RequestDetail,
    Reservation,
    SetOwnerAvailabilityPayload,
    SubmitAvailabilityPayload,
    WeeklyWindow,
)
from slotmatch.logging_context import set_request_id
from slotmatch.repos.memory import create_memory_store
from slotmatch.services.notifier import build_notifier
from slotmatch.services.scheduling import SchedulingService

logger = logging.getLogger(__name__)

# ── Singletons (created at import time for simplicity) ────────────────
notify_executor = ThreadPoolExecutor(
    max_workers=settings.notify.workers, thread_name_prefix="notify"
)
event_bus = EventBus(executor=notify_executor)
store = create_memory_store(seed=settings.service.seed_demo_data)
notifier = build_notifier(
    settings.notify.resend_api_key,
    settings.notify.from_email,
    settings.notify.resend_url,
    settings.notify.timeout_sec,
)
handler_registry = HandlerRegistry(bus=event_bus, store=store, notifier=notifier)
scheduling = SchedulingService(
    store=store,
    bus=event_bus,
    public_base_url=settings.service.public_base_url,
    request_expiry_hours=settings.service.request_expiry_hours,
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    notify_executor.shutdown(wait=True)


app = FastAPI(title="Availability Matching Service", lifespan=lifespan)

# Most specific first: RequestExpired must win over RequestNotFound.
_STATUS_CODES: list[tuple[type[SchedulingError], int]] = [
    (RequestExpired, 410),
    (RequestNotFound, 404),
    (Unauthorized, 403),
    (InvalidState, 409),
    (StaleSelection, 409),
    (DownstreamUnavailable, 503),
]


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(_: Request, exc: SchedulingError) -> JSONResponse:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return JSONResponse(status_code=status_code, content={"detail": exc.message})
    logger.error("Unhandled scheduling error: %s", exc.message)
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.middleware("http")
async def correlate(request: Request, call_next):
    request_id = set_request_id(request.headers.get("X-Request-ID"))
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


def current_owner(x_owner_id: str = Header(...)) -> str:
    """Owner identity, as established by the product's auth layer."""
    return x_owner_id


# ── Owner routes ──────────────────────────────────────────────────────


@app.post(
    "/availability-requests",
    response_model=CreateRequestResponse,
    status_code=201,
)
def create_request(
    payload: CreateRequestPayload, owner_id: str = Depends(current_owner)
) -> CreateRequestResponse:
    """Issue a guest link for one of the caller's teams."""
    return scheduling.create_request(owner_id, payload.team_id, payload.guest)


@app.get("/availability-requests", response_model=list[DashboardEntry])
def list_requests(owner_id: str = Depends(current_owner)) -> list[DashboardEntry]:
    """Return every request across the caller's teams, newest first."""
    return scheduling.list_requests(owner_id)


@app.put("/owner/availability", response_model=list[WeeklyWindow])
def set_owner_availability(
    payload: SetOwnerAvailabilityPayload, owner_id: str = Depends(current_owner)
) -> list[WeeklyWindow]:
    return scheduling.set_owner_availability(owner_id, payload.windows)


@app.get("/owner/availability", response_model=list[WeeklyWindow])
def get_owner_availability(owner_id: str = Depends(current_owner)) -> list[WeeklyWindow]:
    return scheduling.get_owner_availability(owner_id)


# ── Guest routes (capability token in the path) ───────────────────────


@app.get("/availability-requests/{token}", response_model=RequestDetail)
def get_request(token: str) -> RequestDetail:
    """Return the request summary and the owner's weekly windows."""
    return scheduling.get_request(token)


@app.post("/availability-requests/{token}/submit", response_model=OverlapResponse)
def submit_availability(token: str, payload: SubmitAvailabilityPayload) -> OverlapResponse:
    """Store the guest's weekly windows and return the resulting overlap."""
    return scheduling.submit_availability(token, payload.windows)


@app.get("/availability-requests/{token}/overlap", response_model=OverlapResponse)
def get_overlap(token: str) -> OverlapResponse:
    return scheduling.get_overlap(token)


@app.post(
    "/availability-requests/{token}/book",
    response_model=Reservation,
    status_code=201,
)
def finalize_booking(token: str, payload: FinalizeBookingPayload) -> Reservation:
    """Book one slot from the current overlap."""
    return scheduling.finalize_booking(token, payload.date, payload.time)
