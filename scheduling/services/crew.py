"""Service for resolving crew availability over a range of days."""

from __future__ import annotations

from collections.abc import Iterable

from scheduling.domain.models import (
    CrewAvailability,
    CrewAvailabilityRecord,
    CrewStatus,
    DateRange,
    Person,
    overlaps,
)
from scheduling.repos.base import CrewAvailabilitySource

# Higher wins when several records cover the same range.
_STATUS_PRECEDENCE = {
    CrewStatus.AVAILABLE: 0,
    CrewStatus.TENTATIVE: 1,
    CrewStatus.UNAVAILABLE: 2,
}


def worst_status(records: Iterable[CrewAvailabilityRecord]) -> CrewStatus:
    """Most restrictive status among *records*; Available when there are none."""
    return max(
        (r.status for r in records),
        key=_STATUS_PRECEDENCE.__getitem__,
        default=CrewStatus.AVAILABLE,
    )


class CrewAvailabilityResolver:
    """Resolves a crew member's status from their availability records.

    A crew member with no records at all resolves to Available.  That means
    "nothing on file", not "confirmed free"; incomplete data must not block
    scheduling.
    """

    def __init__(self, availability_repo: CrewAvailabilitySource) -> None:
        self.availability_repo = availability_repo

    def resolve(self, crew_id: str, date_range: DateRange) -> CrewAvailability:
        window = date_range.as_window()
        overlapping = [
            record
            for record in self.availability_repo.list_by_crew(crew_id, date_range)
            if overlaps(record.window, window)
        ]
        status = worst_status(overlapping)
        return CrewAvailability(
            crew_id=crew_id,
            is_available=status == CrewStatus.AVAILABLE,
            status=status,
            conflicts=overlapping,
        )

    def available_crew(self, candidates: Iterable[Person], date_range: DateRange) -> list[Person]:
        """Candidates that resolve to Available, in candidate order."""
        return [p for p in candidates if self.resolve(p.id, date_range).is_available]
