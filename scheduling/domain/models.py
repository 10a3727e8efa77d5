"""Domain models for production scheduling and resource-conflict detection."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from enum import StrEnum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from scheduling.domain.errors import InvalidWindowError
from scheduling.domain.timeutil import (
    default_tz,
    ensure_aware,
    parse_timestamp,
    start_of_day,
)


class EventType(StrEnum):
    SHOOT = "Shoot"
    MEETING = "Meeting"
    DEADLINE = "Deadline"
    MILESTONE = "Milestone"
    DELIVERY = "Delivery"


class EventStatus(StrEnum):
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class BookingStatus(StrEnum):
    RESERVED = "Reserved"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


class CrewStatus(StrEnum):
    AVAILABLE = "Available"
    TENTATIVE = "Tentative"
    UNAVAILABLE = "Unavailable"


class ContactStatus(StrEnum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    PROSPECT = "Prospect"


class EquipmentCategory(StrEnum):
    CAMERA = "Camera"
    LIGHTING = "Lighting"
    AUDIO = "Audio"
    GRIP = "Grip"
    POST_PRODUCTION = "Post-Production"


class EquipmentStatus(StrEnum):
    AVAILABLE = "Available"
    IN_USE = "In Use"
    MAINTENANCE = "Maintenance"
    RETIRED = "Retired"


# Legal booking status changes; nothing leaves Cancelled.
BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.RESERVED: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
}

OVERBOOKING_NOTE = "Approved overbooking"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------


class TimeWindow(BaseModel):
    """Half-open interval ``[start, end)``.

    Constructing a window whose end is not after its start raises
    ``InvalidWindowError``; zero-length windows are invalid.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _localize(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    @model_validator(mode="after")
    def _end_after_start(self) -> TimeWindow:
        if self.end <= self.start:
            raise InvalidWindowError(
                f"window end {self.end.isoformat()} must be after start {self.start.isoformat()}"
            )
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: TimeWindow) -> bool:
        return overlaps(self, other)


def overlaps(a: TimeWindow, b: TimeWindow) -> bool:
    """True when the two windows share at least one instant.

    Windows that only touch at a boundary (``a.end == b.start``) do not overlap.
    """
    for window in (a, b):
        # model_construct() skips validation, so re-check here
        if window.end <= window.start:
            raise InvalidWindowError(
                f"window end {window.end.isoformat()} must be after start {window.start.isoformat()}"
            )
    return a.start < b.end and b.start < a.end


class DateRange(BaseModel):
    """Inclusive range of calendar days, used for crew availability."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def _end_not_before_start(self) -> DateRange:
        if self.end < self.start:
            raise InvalidWindowError(
                f"date range end {self.end.isoformat()} is before start {self.start.isoformat()}"
            )
        return self

    @classmethod
    def from_window(cls, window: TimeWindow) -> DateRange:
        """Calendar days touched by *window* in the default zone, both ends included."""
        zone = default_tz()
        return cls(
            start=window.start.astimezone(zone).date(),
            end=window.end.astimezone(zone).date(),
        )

    def as_window(self) -> TimeWindow:
        return TimeWindow(
            start=start_of_day(self.start),
            end=start_of_day(self.end + timedelta(days=1)),
        )


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class _Windowed(BaseModel):
    """Shared start/end handling for records persisted with ISO-8601 times."""

    start_time: datetime
    end_time: datetime

    @field_validator("start_time", "end_time")
    @classmethod
    def _localize(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    @model_validator(mode="after")
    def _valid_window(self) -> _Windowed:
        TimeWindow(start=self.start_time, end=self.end_time)
        return self

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(start=self.start_time, end=self.end_time)


class Event(_Windowed):
    id: str = Field(default_factory=_new_id)
    title: str
    description: str | None = None
    event_type: EventType = EventType.MEETING
    project_id: str | None = None
    location_id: str | None = None
    status: EventStatus = EventStatus.SCHEDULED
    attendees: set[str] = Field(default_factory=set)
    equipment_needed: set[str] = Field(default_factory=set)
    notes: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Booking(_Windowed):
    id: str = Field(default_factory=_new_id)
    equipment_id: str
    event_id: str | None = None
    status: BookingStatus = BookingStatus.RESERVED
    notes: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_active(self) -> bool:
        return self.status != BookingStatus.CANCELLED


class BookingRequest(_Windowed):
    """Payload handed to the booking store when committing an event's equipment."""

    equipment_id: str
    event_id: str
    status: BookingStatus = BookingStatus.RESERVED
    notes: str = ""


class CrewAvailabilityRecord(_Windowed):
    id: str = Field(default_factory=_new_id)
    crew_id: str
    status: CrewStatus
    notes: str | None = None

    @classmethod
    def for_date(
        cls, crew_id: str, day: date, status: CrewStatus, notes: str | None = None
    ) -> CrewAvailabilityRecord:
        """Whole-day record, the granularity availability is tracked at."""
        return cls(
            crew_id=crew_id,
            start_time=start_of_day(day),
            end_time=start_of_day(day + timedelta(days=1)),
            status=status,
            notes=notes,
        )


class Person(BaseModel):
    """Canonical crew/contact record.

    The contacts API sends ``name``/``role``; the team API sends
    ``first_name``/``last_name`` with the production role in ``position``.
    Use ``from_api`` at the boundary so nothing downstream cares which.
    """

    id: str
    name: str
    role: str | None = None
    status: ContactStatus = ContactStatus.ACTIVE
    email: str | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == ContactStatus.ACTIVE

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> Person:
        if "first_name" in payload or "last_name" in payload:
            return cls._from_team_member(payload)
        return cls(
            id=str(payload["id"]),
            name=payload.get("name") or "Unknown Member",
            role=payload.get("role"),
            status=payload.get("status") or ContactStatus.ACTIVE,
            email=payload.get("email"),
            updated_at=_optional_timestamp(payload.get("updated_at")),
        )

    @classmethod
    def _from_team_member(cls, payload: Mapping[str, Any]) -> Person:
        parts = [payload.get("first_name"), payload.get("last_name")]
        name = payload.get("name") or " ".join(p for p in parts if p) or "Unknown Member"
        is_active = payload.get("is_active", True)
        return cls(
            id=str(payload["id"]),
            name=name,
            role=payload.get("position") or payload.get("role"),
            status=ContactStatus.ACTIVE if is_active else ContactStatus.INACTIVE,
            email=payload.get("email"),
            updated_at=_optional_timestamp(payload.get("updated_at")),
        )


def _optional_timestamp(raw: str | datetime | None) -> datetime | None:
    if not raw:
        return None
    return parse_timestamp(raw)


class Equipment(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    category: EquipmentCategory
    status: EquipmentStatus = EquipmentStatus.AVAILABLE
    description: str | None = None
    daily_rate: float | None = None


# ---------------------------------------------------------------------------
# Conflict-check inputs and outputs
# ---------------------------------------------------------------------------


class ConflictCheck(BaseModel):
    """One proposed selection to check: the window plus every chosen resource."""

    window: TimeWindow
    attendees: set[str] = Field(default_factory=set)
    crew: list[str] = Field(default_factory=list)
    equipment: list[str] = Field(default_factory=list)
    exclude_id: str | None = None


class CrewAvailability(BaseModel):
    crew_id: str
    is_available: bool
    status: CrewStatus
    conflicts: list[CrewAvailabilityRecord] = Field(default_factory=list)


class ConflictReport(BaseModel):
    """Result of one conflict check.  Recomputed on demand, never stored."""

    event_conflicts: list[Event] = Field(default_factory=list)
    crew_conflicts: dict[str, CrewAvailability] = Field(default_factory=dict)
    equipment_conflicts: dict[str, list[Booking]] = Field(default_factory=dict)
    crew_alternatives: dict[str, list[Person]] = Field(default_factory=dict)
    equipment_alternatives: dict[str, list[Equipment]] = Field(default_factory=dict)

    @computed_field
    @property
    def total_conflicts(self) -> int:
        return (
            len(self.event_conflicts)
            + len(self.crew_conflicts)
            + len(self.equipment_conflicts)
        )

    @computed_field
    @property
    def blocking_conflicts(self) -> int:
        """Crew and equipment conflicts; attendee conflicts are advisory only."""
        return len(self.crew_conflicts) + len(self.equipment_conflicts)

    @property
    def has_conflicts(self) -> bool:
        return self.total_conflicts > 0


# ---------------------------------------------------------------------------
# Request DTOs
# ---------------------------------------------------------------------------


class ConflictCheckRequest(BaseModel):
    start_time: datetime
    end_time: datetime
    attendees: list[str] = Field(default_factory=list)
    crew: list[str] = Field(default_factory=list)
    equipment: list[str] = Field(default_factory=list)
    exclude_id: str | None = None

    def to_check(self) -> ConflictCheck:
        """Raises ``InvalidWindowError`` for an empty or inverted window."""
        return ConflictCheck(
            window=TimeWindow(start=self.start_time, end=self.end_time),
            attendees=set(self.attendees),
            crew=self.crew,
            equipment=self.equipment,
            exclude_id=self.exclude_id,
        )


class ScheduleEventRequest(BaseModel):
    title: str
    description: str | None = None
    event_type: EventType = EventType.MEETING
    start_time: datetime
    end_time: datetime
    project_id: str | None = None
    location_id: str | None = None
    status: EventStatus = EventStatus.SCHEDULED
    attendees: list[str] = Field(default_factory=list)
    crew: list[str] = Field(default_factory=list)
    equipment: list[str] = Field(default_factory=list)
    notes: str | None = None
    approve_overbooking: bool = False

    def to_event(self, **overrides: Any) -> Event:
        """Raises ``InvalidWindowError`` for an empty or inverted window."""
        fields = self.model_dump(exclude={"crew", "equipment", "approve_overbooking"})
        fields["attendees"] = set(self.attendees)
        fields.update(overrides)
        return Event(**fields)
