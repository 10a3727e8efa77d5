"""Service for detecting equipment booking conflicts."""

from __future__ import annotations

from scheduling.domain.models import Booking, BookingStatus, TimeWindow, overlaps
from scheduling.repos.base import BookingSource


class EquipmentConflictDetector:
    def __init__(self, booking_repo: BookingSource) -> None:
        self.booking_repo = booking_repo

    def detect(
        self,
        equipment_id: str,
        window: TimeWindow,
        exclude_event_id: str | None = None,
    ) -> list[Booking]:
        """Return active bookings of *equipment_id* that overlap *window*.

        Cancelled bookings are history and never block.  Bookings that belong
        to *exclude_event_id* (the event being edited) are ignored.  Unknown
        equipment simply has no bookings.
        """
        return [
            booking
            for booking in self.booking_repo.list_by_equipment(equipment_id)
            if booking.status != BookingStatus.CANCELLED
            and (exclude_event_id is None or booking.event_id != exclude_event_id)
            and overlaps(booking.window, window)
        ]

    def is_free(
        self,
        equipment_id: str,
        window: TimeWindow,
        exclude_event_id: str | None = None,
    ) -> bool:
        return not self.detect(equipment_id, window, exclude_event_id)
