"""Service for detecting attendee scheduling conflicts between events."""

from __future__ import annotations

from collections.abc import Iterable

from scheduling.domain.models import Event, TimeWindow, overlaps
from scheduling.repos.base import EventSource


def find_conflicts(
    window: TimeWindow,
    attendees: Iterable[str],
    existing_events: Iterable[Event],
    exclude_id: str | None = None,
) -> list[Event]:
    """Return existing events that share an attendee and overlap *window*.

    Overlap rule: conflict if window.start < existing.end_time AND
    existing.start_time < window.end.  Exact boundary touches (end == start)
    are NOT considered conflicts.  The event being edited (*exclude_id*) is
    skipped.  Results keep the order of *existing_events*.
    """
    wanted = set(attendees)
    if not wanted:
        return []
    return [
        event
        for event in existing_events
        if event.id != exclude_id
        and event.attendees & wanted
        and overlaps(event.window, window)
    ]


class EventConflictDetector:
    def __init__(self, event_repo: EventSource) -> None:
        self.event_repo = event_repo

    def detect(
        self,
        window: TimeWindow,
        attendees: Iterable[str],
        exclude_id: str | None = None,
    ) -> list[Event]:
        return find_conflicts(window, attendees, self.event_repo.list_all(), exclude_id)
