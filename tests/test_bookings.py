"""Tests for the booking store, atomic booking commits and event scheduling."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from scheduling.domain.errors import (
    BookingNotFoundError,
    BookingRejectedError,
    InvalidBookingTransitionError,
    OverbookingNotApprovedError,
)
from scheduling.domain.models import (
    OVERBOOKING_NOTE,
    Booking,
    BookingRequest,
    BookingStatus,
    CrewAvailabilityRecord,
    CrewStatus,
    Event,
)
from scheduling.repos.memory import (
    BookingRepository,
    CrewAvailabilityRepository,
    EventRepository,
)
from scheduling.services.aggregator import ConflictAggregator
from scheduling.services.bookings import commit_event_bookings, schedule_event

_NOW = datetime(2026, 8, 3, 9, 0, tzinfo=timezone.utc)


@pytest.fixture()
def env():
    """Fresh repos + aggregator for each test."""
    event_repo = EventRepository()
    booking_repo = BookingRepository()
    availability_repo = CrewAvailabilityRepository()

    class Env:
        pass

    e = Env()
    e.event_repo = event_repo
    e.booking_repo = booking_repo
    e.availability_repo = availability_repo
    e.aggregator = ConflictAggregator(
        event_repo=event_repo,
        booking_repo=booking_repo,
        availability_repo=availability_repo,
    )
    return e


def _make_event(**overrides) -> Event:
    defaults = dict(
        title="Studio shoot",
        start_time=_NOW,
        end_time=_NOW + timedelta(hours=3),
    )
    defaults.update(overrides)
    return Event(**defaults)


def _request(equipment_id: str = "cam-a", event_id: str = "ev-1", **overrides) -> BookingRequest:
    return BookingRequest(
        equipment_id=equipment_id,
        event_id=event_id,
        start_time=overrides.pop("start_time", _NOW),
        end_time=overrides.pop("end_time", _NOW + timedelta(hours=3)),
        **overrides,
    )


def _schedule(env, event: Event, crew=(), equipment=(), approve_overbooking=False):
    return schedule_event(
        event,
        crew,
        equipment,
        aggregator=env.aggregator,
        event_repo=env.event_repo,
        booking_repo=env.booking_repo,
        approve_overbooking=approve_overbooking,
    )


# ---------------------------------------------------------------------------
# Booking store
# ---------------------------------------------------------------------------


def test_create_rejects_overlapping_active_booking():
    repo = BookingRepository()
    existing = repo.create(_request(event_id="ev-1"))

    with pytest.raises(BookingRejectedError) as exc_info:
        repo.create(_request(event_id="ev-2", start_time=_NOW + timedelta(hours=1)))
    assert exc_info.value.conflicting == [existing]


def test_create_allows_back_to_back_and_cancelled():
    repo = BookingRepository()
    first = repo.create(_request(event_id="ev-1"))
    repo.create(
        _request(
            event_id="ev-2",
            start_time=_NOW + timedelta(hours=3),
            end_time=_NOW + timedelta(hours=4),
        )
    )
    repo.update_status(first.id, BookingStatus.CANCELLED)
    repo.create(_request(event_id="ev-3"))

    assert len(repo.list_by_equipment("cam-a")) == 3


def test_create_with_allow_overlap_overbooks():
    repo = BookingRepository()
    repo.create(_request(event_id="ev-1"))
    repo.create(_request(event_id="ev-2"), allow_overlap=True)
    assert len(repo.list_by_equipment("cam-a")) == 2


@pytest.mark.parametrize(
    ("start", "target"),
    [
        (BookingStatus.RESERVED, BookingStatus.CONFIRMED),
        (BookingStatus.RESERVED, BookingStatus.CANCELLED),
        (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
    ],
)
def test_legal_transitions(start, target):
    repo = BookingRepository()
    booking = Booking(
        equipment_id="cam-a", start_time=_NOW, end_time=_NOW + timedelta(hours=1), status=start
    )
    repo.add(booking)

    updated = repo.update_status(booking.id, target)
    assert updated.status == target
    assert repo.get(booking.id).status == target


@pytest.mark.parametrize(
    ("start", "target"),
    [
        (BookingStatus.CANCELLED, BookingStatus.RESERVED),
        (BookingStatus.CANCELLED, BookingStatus.CONFIRMED),
        (BookingStatus.CONFIRMED, BookingStatus.RESERVED),
        (BookingStatus.RESERVED, BookingStatus.RESERVED),
    ],
)
def test_illegal_transitions(start, target):
    repo = BookingRepository()
    booking = Booking(
        equipment_id="cam-a", start_time=_NOW, end_time=_NOW + timedelta(hours=1), status=start
    )
    repo.add(booking)

    with pytest.raises(InvalidBookingTransitionError):
        repo.update_status(booking.id, target)
    assert repo.get(booking.id).status == start


def test_update_unknown_booking():
    with pytest.raises(BookingNotFoundError):
        BookingRepository().update_status("missing", BookingStatus.CONFIRMED)


def test_atomic_rolls_back_on_error():
    repo = BookingRepository()
    kept = repo.create(_request(equipment_id="light"))

    with pytest.raises(RuntimeError):
        with repo.atomic():
            repo.create(_request(equipment_id="cam-a"))
            repo.update_status(kept.id, BookingStatus.CANCELLED)
            raise RuntimeError("boom")

    assert repo.list_all() == [kept]
    assert repo.get(kept.id).status == BookingStatus.RESERVED


# ---------------------------------------------------------------------------
# commit_event_bookings
# ---------------------------------------------------------------------------


def test_commit_creates_reserved_bookings(env):
    event = _make_event()
    bookings = commit_event_bookings(event, ["cam-a", "light"], env.booking_repo)

    assert sorted(b.equipment_id for b in bookings) == ["cam-a", "light"]
    assert all(b.status == BookingStatus.RESERVED for b in bookings)
    assert all(b.event_id == event.id for b in bookings)
    assert all(b.notes == "" for b in bookings)


def test_commit_is_all_or_nothing(env):
    """If the second item is taken, the first item's booking is rolled back."""
    env.booking_repo.create(_request(equipment_id="light", event_id="someone-else"))
    event = _make_event()

    with pytest.raises(BookingRejectedError):
        commit_event_bookings(event, ["cam-a", "light"], env.booking_repo)

    assert env.booking_repo.list_by_event(event.id) == []
    assert env.booking_repo.list_by_equipment("cam-a") == []


def test_recommit_does_not_duplicate_bookings(env):
    event = _make_event()
    first = commit_event_bookings(event, ["cam-a"], env.booking_repo)
    second = commit_event_bookings(event, ["cam-a"], env.booking_repo)

    assert [b.id for b in second] == [b.id for b in first]
    assert len(env.booking_repo.list_by_event(event.id)) == 1


def test_recommit_cancels_deselected_and_moved_bookings(env):
    event = _make_event()
    commit_event_bookings(event, ["cam-a", "light"], env.booking_repo)

    moved = event.model_copy(
        update={"start_time": _NOW + timedelta(days=1), "end_time": _NOW + timedelta(days=1, hours=2)}
    )
    active = commit_event_bookings(moved, ["cam-a"], env.booking_repo)

    assert [b.equipment_id for b in active] == ["cam-a"]
    assert active[0].start_time == moved.start_time
    statuses = sorted(b.status for b in env.booking_repo.list_by_event(event.id))
    assert statuses == [BookingStatus.CANCELLED, BookingStatus.CANCELLED, BookingStatus.RESERVED]


def test_commit_with_overbooking_notes_and_overlaps(env):
    env.booking_repo.create(_request(equipment_id="cam-a", event_id="someone-else"))
    event = _make_event()

    bookings = commit_event_bookings(
        event, ["cam-a"], env.booking_repo, approved_overbooking=True
    )
    assert bookings[0].notes == OVERBOOKING_NOTE


# ---------------------------------------------------------------------------
# schedule_event
# ---------------------------------------------------------------------------


def test_schedule_event_saves_event_and_bookings(env):
    event = _make_event(attendees={"client-1"})
    result = _schedule(env, event, crew=["crew-1"], equipment=["cam-a"])

    stored = env.event_repo.get(event.id)
    assert stored.attendees == {"client-1", "crew-1"}
    assert stored.equipment_needed == {"cam-a"}
    assert [b.equipment_id for b in result.bookings] == ["cam-a"]
    assert result.report.total_conflicts == 0


def test_schedule_event_blocks_unapproved_crew_conflict(env):
    env.availability_repo.add(
        CrewAvailabilityRecord.for_date("crew-1", _NOW.date(), CrewStatus.TENTATIVE)
    )
    event = _make_event()

    with pytest.raises(OverbookingNotApprovedError):
        _schedule(env, event, crew=["crew-1"], equipment=["cam-a"])

    assert env.event_repo.get(event.id) is None
    assert env.booking_repo.list_all() == []


def test_schedule_event_allows_attendee_conflicts(env):
    env.event_repo.add(_make_event(title="Client call", attendees={"client-1"}))
    event = _make_event(attendees={"client-1"})

    result = _schedule(env, event)
    assert len(result.report.event_conflicts) == 1
    assert env.event_repo.get(event.id) is not None


def test_schedule_event_with_approved_overbooking(env):
    other = _make_event(title="Other shoot")
    _schedule(env, other, equipment=["cam-a"])
    event = _make_event()

    result = _schedule(env, event, equipment=["cam-a"], approve_overbooking=True)
    assert result.report.blocking_conflicts == 1
    assert result.bookings[0].notes == OVERBOOKING_NOTE


def test_stale_precheck_rejection_removes_new_event(env, monkeypatch):
    """A booking refused at commit time leaves neither the event nor any booking."""
    event = _make_event()
    real_create = env.booking_repo.create

    def racing_create(request, *, allow_overlap=False):
        # another user grabs the light between pre-check and commit
        if request.equipment_id == "light" and not env.booking_repo.list_by_equipment("light"):
            env.booking_repo.add(
                Booking(
                    equipment_id="light",
                    event_id="someone-else",
                    start_time=request.start_time,
                    end_time=request.end_time,
                )
            )
        return real_create(request, allow_overlap=allow_overlap)

    monkeypatch.setattr(env.booking_repo, "create", racing_create)

    with pytest.raises(BookingRejectedError):
        _schedule(env, event, equipment=["cam-a", "light"])

    assert env.event_repo.get(event.id) is None
    assert env.booking_repo.list_by_event(event.id) == []


def test_editing_event_excludes_itself(env):
    event = _make_event(attendees={"client-1"})
    _schedule(env, event, equipment=["cam-a"])

    edited = event.model_copy(update={"title": "Studio shoot (extended)", "end_time": _NOW + timedelta(hours=4)})
    result = _schedule(env, edited, equipment=["cam-a"])

    assert result.report.total_conflicts == 0
    assert env.event_repo.get(event.id).title == "Studio shoot (extended)"
    active = [b for b in env.booking_repo.list_by_event(event.id) if b.is_active]
    assert len(active) == 1
    assert active[0].end_time == _NOW + timedelta(hours=4)
