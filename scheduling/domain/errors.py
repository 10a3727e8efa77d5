"""Exceptions raised by the scheduling domain.

Conflicts are never exceptions; they are returned as data in a
``ConflictReport``.  These errors cover invalid input, save-policy refusals and
storage-level rejections.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scheduling.domain.models import Booking, BookingRequest, BookingStatus


class SchedulingError(Exception):
    """Base class for every error raised by this package."""


class InvalidWindowError(SchedulingError):
    """A time window or date range whose end is not after its start."""


class OverbookingNotApprovedError(SchedulingError):
    """Save refused: crew/equipment conflicts exist and overbooking was not approved."""

    def __init__(self, blocking_conflicts: int) -> None:
        self.blocking_conflicts = blocking_conflicts
        super().__init__(
            f"{blocking_conflicts} resource conflict(s) detected; "
            "approve overbooking to save anyway"
        )


class BookingRejectedError(SchedulingError):
    """The booking store refused a create because the item is already booked.

    Raised at commit time, after the advisory pre-check passed on a snapshot
    that has since gone stale.
    """

    def __init__(self, request: BookingRequest, conflicting: list[Booking]) -> None:
        self.request = request
        self.conflicting = conflicting
        ids = ", ".join(b.id for b in conflicting)
        super().__init__(
            f"Equipment {request.equipment_id} is already booked for that window ({ids})"
        )


class InvalidBookingTransitionError(SchedulingError):
    def __init__(self, booking_id: str, current: BookingStatus, target: BookingStatus) -> None:
        self.booking_id = booking_id
        self.current = current
        self.target = target
        super().__init__(f"Booking {booking_id} cannot move from {current} to {target}")


class BookingNotFoundError(SchedulingError):
    def __init__(self, booking_id: str) -> None:
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} not found")
