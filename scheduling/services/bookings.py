"""Service for saving a scheduled event together with its equipment bookings."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

import structlog
from pydantic import BaseModel, Field

from scheduling.domain.errors import BookingRejectedError
from scheduling.domain.models import (
    OVERBOOKING_NOTE,
    Booking,
    BookingRequest,
    BookingStatus,
    ConflictCheck,
    ConflictReport,
    Event,
)
from scheduling.repos.base import BookingStore, EventStore
from scheduling.services.aggregator import ConflictAggregator, ensure_can_save

logger = structlog.get_logger(__name__)


class ScheduledEvent(BaseModel):
    event: Event
    bookings: list[Booking] = Field(default_factory=list)
    report: ConflictReport


def commit_event_bookings(
    event: Event,
    equipment_ids: Iterable[str],
    booking_repo: BookingStore,
    approved_overbooking: bool = False,
) -> list[Booking]:
    """Bring the event's bookings in line with its equipment selection.

    All changes happen in one ``booking_repo.atomic()`` block: if any create
    is rejected, bookings created or cancelled earlier in the call are rolled
    back and the ``BookingRejectedError`` propagates.

    - an active booking for a still-selected item with the same window is kept
      (no duplicate booking per equipment/event pair);
    - any other active booking of the event is cancelled;
    - every selected item left without a booking gets a new Reserved one.

    Returns the event's active bookings.
    """
    selected = list(dict.fromkeys(equipment_ids))
    window = event.window
    notes = OVERBOOKING_NOTE if approved_overbooking else ""

    with booking_repo.atomic():
        kept: set[str] = set()
        for booking in booking_repo.list_by_event(event.id):
            if not booking.is_active:
                continue
            if (
                booking.equipment_id in selected
                and booking.equipment_id not in kept
                and booking.window == window
            ):
                kept.add(booking.equipment_id)
                continue
            booking_repo.update_status(booking.id, BookingStatus.CANCELLED)

        created = 0
        for equipment_id in selected:
            if equipment_id in kept:
                continue
            booking_repo.create(
                BookingRequest(
                    equipment_id=equipment_id,
                    event_id=event.id,
                    start_time=event.start_time,
                    end_time=event.end_time,
                    notes=notes,
                ),
                allow_overlap=approved_overbooking,
            )
            created += 1

    logger.info(
        "event_bookings_committed",
        event_id=event.id,
        created=created,
        kept=len(kept),
        overbooking=approved_overbooking,
    )
    return [b for b in booking_repo.list_by_event(event.id) if b.is_active]


def schedule_event(
    event: Event,
    crew: Iterable[str],
    equipment: Iterable[str],
    *,
    aggregator: ConflictAggregator,
    event_repo: EventStore,
    booking_repo: BookingStore,
    approve_overbooking: bool = False,
) -> ScheduledEvent:
    """Check, save and book an event (new or edited) as one unit.

    Raises ``OverbookingNotApprovedError`` before touching storage when crew or
    equipment conflicts exist without approval.  Raises
    ``BookingRejectedError`` when the booking store refuses an item despite a
    clean pre-check; the event is then restored to its previous state.
    """
    crew = list(dict.fromkeys(crew))
    equipment = list(dict.fromkeys(equipment))
    previous = event_repo.get(event.id)

    report = aggregator.check(
        ConflictCheck(
            window=event.window,
            attendees=event.attendees,
            crew=crew,
            equipment=equipment,
            exclude_id=event.id if previous is not None else None,
        )
    )
    ensure_can_save(report, approve_overbooking)

    stored = event.model_copy(
        update={
            "attendees": event.attendees | set(crew),
            "equipment_needed": set(equipment),
            "updated_at": datetime.now(timezone.utc),
        }
    )
    event_repo.add(stored)

    try:
        bookings = commit_event_bookings(
            stored, equipment, booking_repo, approved_overbooking=approve_overbooking
        )
    except BookingRejectedError as exc:
        if previous is None:
            event_repo.delete(stored.id)
        else:
            event_repo.add(previous)
        logger.warning(
            "event_booking_rejected",
            event_id=stored.id,
            equipment_id=exc.request.equipment_id,
            conflicting=[b.id for b in exc.conflicting],
        )
        raise

    return ScheduledEvent(event=stored, bookings=bookings, report=report)
