"""FastAPI application: entry point for the production scheduling service."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from scheduling.config import get_settings
from scheduling.domain.errors import (
    BookingNotFoundError,
    BookingRejectedError,
    InvalidBookingTransitionError,
    InvalidWindowError,
    OverbookingNotApprovedError,
)
from scheduling.domain.models import (
    Booking,
    BookingStatus,
    ConflictCheckRequest,
    ConflictReport,
    Event,
    ScheduleEventRequest,
)
from scheduling.logging import RequestIdMiddleware, setup_logging
from scheduling.repos.memory import (
    BookingRepository,
    ContactDirectory,
    CrewAvailabilityRepository,
    EquipmentCatalog,
    EventRepository,
    seed_demo_data,
)
from scheduling.services.aggregator import ConflictAggregator
from scheduling.services.alternatives import AlternativeSuggester
from scheduling.services.bookings import ScheduledEvent, schedule_event
from scheduling.services.crew import CrewAvailabilityResolver
from scheduling.services.equipment import EquipmentConflictDetector

settings = get_settings()
setup_logging()

app = FastAPI(title=settings.app_name)
app.add_middleware(RequestIdMiddleware)

# ── Singletons (created at import time for simplicity) ────────────────
event_repo = EventRepository()
booking_repo = BookingRepository()
availability_repo = CrewAvailabilityRepository()
contact_directory = ContactDirectory()
equipment_catalog = EquipmentCatalog()

if settings.seed_demo_data:
    seed_demo_data(
        event_repo, booking_repo, availability_repo, contact_directory, equipment_catalog
    )


def build_aggregator() -> ConflictAggregator:
    """Wire the conflict engine against the current stores."""
    suggester = AlternativeSuggester(
        contacts=contact_directory,
        catalog=equipment_catalog,
        crew_resolver=CrewAvailabilityResolver(availability_repo),
        equipment_detector=EquipmentConflictDetector(booking_repo),
    )
    return ConflictAggregator(
        event_repo=event_repo,
        booking_repo=booking_repo,
        availability_repo=availability_repo,
        suggester=suggester,
    )


# ── Error mapping ─────────────────────────────────────────────────────


@app.exception_handler(InvalidWindowError)
def _invalid_window(request: Request, exc: InvalidWindowError) -> JSONResponse:
    return JSONResponse(
        status_code=422, content={"detail": str(exc), "code": "invalid_window"}
    )


@app.exception_handler(OverbookingNotApprovedError)
def _overbooking_not_approved(
    request: Request, exc: OverbookingNotApprovedError
) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={
            "detail": str(exc),
            "code": "overbooking_not_approved",
            "blocking_conflicts": exc.blocking_conflicts,
        },
    )


@app.exception_handler(BookingRejectedError)
def _booking_rejected(request: Request, exc: BookingRejectedError) -> JSONResponse:
    # Distinct from the pre-check refusal: the availability snapshot was stale.
    return JSONResponse(
        status_code=409,
        content={
            "detail": str(exc),
            "code": "booking_rejected",
            "equipment_id": exc.request.equipment_id,
            "conflicting_booking_ids": [b.id for b in exc.conflicting],
        },
    )


@app.exception_handler(InvalidBookingTransitionError)
def _invalid_transition(
    request: Request, exc: InvalidBookingTransitionError
) -> JSONResponse:
    return JSONResponse(
        status_code=409, content={"detail": str(exc), "code": "invalid_transition"}
    )


@app.exception_handler(BookingNotFoundError)
def _booking_not_found(request: Request, exc: BookingNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": "Booking not found"})


# ── Routes ────────────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/conflicts/check", response_model=ConflictReport)
def check_conflicts(payload: ConflictCheckRequest) -> ConflictReport:
    """Report attendee, crew and equipment conflicts for a proposed selection."""
    return build_aggregator().check(payload.to_check())


@app.post("/events", response_model=ScheduledEvent, status_code=201)
def create_event(payload: ScheduleEventRequest) -> ScheduledEvent:
    """Create an event and reserve its equipment.

    Refused with 409 while crew/equipment conflicts exist and
    ``approve_overbooking`` is false.
    """
    return schedule_event(
        payload.to_event(),
        payload.crew,
        payload.equipment,
        aggregator=build_aggregator(),
        event_repo=event_repo,
        booking_repo=booking_repo,
        approve_overbooking=payload.approve_overbooking,
    )


@app.put("/events/{event_id}", response_model=ScheduledEvent)
def update_event(event_id: str, payload: ScheduleEventRequest) -> ScheduledEvent:
    """Edit an event in place; its own bookings never count as conflicts."""
    existing = event_repo.get(event_id)
    if existing is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return schedule_event(
        payload.to_event(id=event_id, created_at=existing.created_at),
        payload.crew,
        payload.equipment,
        aggregator=build_aggregator(),
        event_repo=event_repo,
        booking_repo=booking_repo,
        approve_overbooking=payload.approve_overbooking,
    )


@app.get("/events", response_model=list[Event])
def list_events() -> list[Event]:
    """Return all stored events."""
    return event_repo.list_all()


@app.get("/events/{event_id}", response_model=Event)
def get_event(event_id: str) -> Event:
    """Return a single event by id."""
    event = event_repo.get(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@app.get("/events/{event_id}/bookings", response_model=list[Booking])
def list_event_bookings(event_id: str) -> list[Booking]:
    """Return every booking (including cancelled ones) made for an event."""
    if event_repo.get(event_id) is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return booking_repo.list_by_event(event_id)


@app.post("/bookings/{booking_id}/confirm", response_model=Booking)
def confirm_booking(booking_id: str) -> Booking:
    return booking_repo.update_status(booking_id, BookingStatus.CONFIRMED)


@app.post("/bookings/{booking_id}/cancel", response_model=Booking)
def cancel_booking(booking_id: str) -> Booking:
    return booking_repo.update_status(booking_id, BookingStatus.CANCELLED)
