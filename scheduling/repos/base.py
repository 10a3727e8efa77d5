"""Collaborator interfaces the conflict engine is wired against.

The engine only reads through these.  Booking creation is the one write, and
it happens after a conflict report has been accepted by the caller.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol

from scheduling.domain.models import (
    Booking,
    BookingRequest,
    BookingStatus,
    CrewAvailabilityRecord,
    DateRange,
    Equipment,
    Event,
    Person,
)


class EventSource(Protocol):
    def list_all(self) -> list[Event]:
        ...


class EventStore(EventSource, Protocol):
    def get(self, event_id: str) -> Event | None:
        ...

    def add(self, event: Event) -> None:
        ...

    def delete(self, event_id: str) -> None:
        ...


class BookingSource(Protocol):
    def list_by_equipment(self, equipment_id: str) -> list[Booking]:
        ...


class BookingStore(BookingSource, Protocol):
    def list_by_event(self, event_id: str) -> list[Booking]:
        ...

    def create(self, request: BookingRequest, *, allow_overlap: bool = False) -> Booking:
        """Persist a booking; raises ``BookingRejectedError`` if the item is taken."""
        ...

    def update_status(self, booking_id: str, status: BookingStatus) -> Booking:
        ...

    def atomic(self) -> AbstractContextManager[None]:
        """All writes inside the block commit together or not at all."""
        ...


class CrewAvailabilitySource(Protocol):
    def list_by_crew(
        self, crew_id: str, date_range: DateRange | None = None
    ) -> list[CrewAvailabilityRecord]:
        ...


class CrewDirectory(Protocol):
    def get(self, person_id: str) -> Person | None:
        ...

    def list_crew(self) -> list[Person]:
        ...


class EquipmentSource(Protocol):
    def get(self, equipment_id: str) -> Equipment | None:
        ...

    def list_all(self) -> list[Equipment]:
        ...
