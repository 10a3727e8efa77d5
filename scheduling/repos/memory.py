"""In-memory repositories for events, bookings, availability and resources."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

import structlog

from scheduling.domain.errors import (
    BookingNotFoundError,
    BookingRejectedError,
    InvalidBookingTransitionError,
)
from scheduling.domain.models import (
    BOOKING_TRANSITIONS,
    Booking,
    BookingRequest,
    BookingStatus,
    CrewAvailabilityRecord,
    CrewStatus,
    DateRange,
    Equipment,
    EquipmentCategory,
    EquipmentStatus,
    Event,
    EventType,
    Person,
    overlaps,
)

logger = structlog.get_logger(__name__)


class EventRepository:
    """Dict-backed store for Event instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Event] = {}

    def add(self, event: Event) -> None:
        self._store[event.id] = event

    def get(self, event_id: str) -> Event | None:
        return self._store.get(event_id)

    def list_all(self) -> list[Event]:
        return list(self._store.values())

    def delete(self, event_id: str) -> None:
        self._store.pop(event_id, None)


class BookingRepository:
    """Dict-backed booking store that enforces the no-overlap rule on write.

    Conflict checks elsewhere are advisory reads of a snapshot; this is where
    a double booking is actually refused.  Writes are serialized with a lock
    and bookings are replaced rather than mutated, so ``atomic`` can restore
    a shallow snapshot on failure.
    """

    def __init__(self) -> None:
        self._store: dict[str, Booking] = {}
        self._lock = threading.RLock()

    def add(self, booking: Booking) -> None:
        """Insert as-is, without the overlap check (imports and fixtures)."""
        with self._lock:
            self._store[booking.id] = booking

    def get(self, booking_id: str) -> Booking | None:
        return self._store.get(booking_id)

    def list_all(self) -> list[Booking]:
        return list(self._store.values())

    def list_by_equipment(self, equipment_id: str) -> list[Booking]:
        return [b for b in self._store.values() if b.equipment_id == equipment_id]

    def list_by_event(self, event_id: str) -> list[Booking]:
        return [b for b in self._store.values() if b.event_id == event_id]

    def create(self, request: BookingRequest, *, allow_overlap: bool = False) -> Booking:
        with self._lock:
            if not allow_overlap:
                clashing = [
                    b
                    for b in self.list_by_equipment(request.equipment_id)
                    if b.is_active and overlaps(b.window, request.window)
                ]
                if clashing:
                    raise BookingRejectedError(request, clashing)

            booking = Booking(
                equipment_id=request.equipment_id,
                event_id=request.event_id,
                start_time=request.start_time,
                end_time=request.end_time,
                status=request.status,
                notes=request.notes,
            )
            self._store[booking.id] = booking
            return booking

    def update_status(self, booking_id: str, status: BookingStatus) -> Booking:
        with self._lock:
            booking = self._store.get(booking_id)
            if booking is None:
                raise BookingNotFoundError(booking_id)
            if status not in BOOKING_TRANSITIONS[booking.status]:
                raise InvalidBookingTransitionError(booking_id, booking.status, status)

            updated = booking.model_copy(
                update={"status": status, "updated_at": datetime.now(timezone.utc)}
            )
            self._store[booking_id] = updated
            return updated

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            snapshot = dict(self._store)
            try:
                yield
            except BaseException:
                self._store = snapshot
                logger.warning("booking_transaction_rolled_back")
                raise


class CrewAvailabilityRepository:
    """List-backed store for CrewAvailabilityRecord instances."""

    def __init__(self) -> None:
        self._records: list[CrewAvailabilityRecord] = []

    def add(self, record: CrewAvailabilityRecord) -> None:
        self._records.append(record)

    def list_by_crew(
        self, crew_id: str, date_range: DateRange | None = None
    ) -> list[CrewAvailabilityRecord]:
        records = [r for r in self._records if r.crew_id == crew_id]
        if date_range is None:
            return records
        window = date_range.as_window()
        return [r for r in records if overlaps(r.window, window)]


class ContactDirectory:
    """Dict-backed store for people, with crew tracked separately from attendees."""

    def __init__(self) -> None:
        self._people: dict[str, Person] = {}
        self._crew_ids: list[str] = []

    def add(self, person: Person) -> None:
        self._people[person.id] = person

    def add_crew(self, person: Person) -> None:
        self.add(person)
        if person.id not in self._crew_ids:
            self._crew_ids.append(person.id)

    def get(self, person_id: str) -> Person | None:
        return self._people.get(person_id)

    def list_all(self) -> list[Person]:
        return list(self._people.values())

    def list_crew(self) -> list[Person]:
        """Active crew members, in the order they were added."""
        crew = (self._people[pid] for pid in self._crew_ids)
        return [p for p in crew if p.is_active]


class EquipmentCatalog:
    """Dict-backed store for Equipment instances, keyed by id."""

    def __init__(self) -> None:
        self._items: dict[str, Equipment] = {}

    def add(self, item: Equipment) -> None:
        self._items[item.id] = item

    def get(self, equipment_id: str) -> Equipment | None:
        return self._items.get(equipment_id)

    def list_all(self) -> list[Equipment]:
        return list(self._items.values())


# ---------------------------------------------------------------------------
# Seed data: one booked shoot plus spare crew and kit for conflict testing
# ---------------------------------------------------------------------------


def seed_demo_data(
    event_repo: EventRepository,
    booking_repo: BookingRepository,
    availability_repo: CrewAvailabilityRepository,
    contacts: ContactDirectory,
    catalog: EquipmentCatalog,
) -> None:
    now = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
    shoot_start = now + timedelta(days=1)

    for payload in (
        {"id": "crew-ana", "name": "Ana Ruiz", "role": "Camera Operator"},
        {"id": "crew-ben", "first_name": "Ben", "last_name": "Okafor", "position": "Camera Operator"},
        {"id": "crew-cleo", "name": "Cleo Park", "role": "Gaffer"},
    ):
        contacts.add_crew(Person.from_api(payload))
    contacts.add(Person(id="client-dana", name="Dana Whitfield", role="Client"))

    cam_a = Equipment(id="cam-a", name="Camera A", category=EquipmentCategory.CAMERA)
    cam_b = Equipment(id="cam-b", name="Camera B", category=EquipmentCategory.CAMERA)
    cam_c = Equipment(
        id="cam-c",
        name="Camera C",
        category=EquipmentCategory.CAMERA,
        status=EquipmentStatus.MAINTENANCE,
    )
    light_kit = Equipment(id="light-kit", name="LED light kit", category=EquipmentCategory.LIGHTING)
    for item in (cam_a, cam_b, cam_c, light_kit):
        catalog.add(item)

    shoot = Event(
        title="Product shoot",
        event_type=EventType.SHOOT,
        start_time=shoot_start,
        end_time=shoot_start + timedelta(hours=4),
        attendees={"client-dana", "crew-ana"},
        equipment_needed={cam_a.id},
    )
    event_repo.add(shoot)
    booking_repo.add(
        Booking(
            equipment_id=cam_a.id,
            event_id=shoot.id,
            start_time=shoot.start_time,
            end_time=shoot.end_time,
        )
    )
    availability_repo.add(
        CrewAvailabilityRecord.for_date("crew-ana", shoot_start.date(), CrewStatus.UNAVAILABLE)
    )
    availability_repo.add(
        CrewAvailabilityRecord.for_date("crew-cleo", shoot_start.date(), CrewStatus.TENTATIVE)
    )
