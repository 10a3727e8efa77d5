"""Runs every conflict detector over one proposed selection."""

from __future__ import annotations

import structlog

from scheduling.domain.errors import OverbookingNotApprovedError
from scheduling.domain.models import (
    Booking,
    ConflictCheck,
    ConflictReport,
    CrewAvailability,
    DateRange,
)
from scheduling.repos.base import BookingSource, CrewAvailabilitySource, EventSource
from scheduling.services.alternatives import AlternativeSuggester
from scheduling.services.conflicts import EventConflictDetector
from scheduling.services.crew import CrewAvailabilityResolver
from scheduling.services.equipment import EquipmentConflictDetector

logger = structlog.get_logger(__name__)


class ConflictAggregator:
    """Builds a fresh ``ConflictReport`` for a proposed selection.

    Nothing is cached between calls; the caller re-runs ``check`` whenever
    the window or any selection changes and keeps the latest report.
    """

    def __init__(
        self,
        event_repo: EventSource,
        booking_repo: BookingSource,
        availability_repo: CrewAvailabilitySource,
        suggester: AlternativeSuggester | None = None,
    ) -> None:
        self.event_detector = EventConflictDetector(event_repo)
        self.crew_resolver = CrewAvailabilityResolver(availability_repo)
        self.equipment_detector = EquipmentConflictDetector(booking_repo)
        self.suggester = suggester

    def check(self, selection: ConflictCheck) -> ConflictReport:
        window = selection.window
        date_range = DateRange.from_window(window)

        event_conflicts = self.event_detector.detect(
            window, selection.attendees, selection.exclude_id
        )

        # Tentative blocks like Unavailable; only a clean Available passes.
        crew_conflicts: dict[str, CrewAvailability] = {}
        for crew_id in selection.crew:
            result = self.crew_resolver.resolve(crew_id, date_range)
            if not result.is_available:
                crew_conflicts[crew_id] = result

        equipment_conflicts: dict[str, list[Booking]] = {}
        for equipment_id in selection.equipment:
            bookings = self.equipment_detector.detect(
                equipment_id, window, selection.exclude_id
            )
            if bookings:
                equipment_conflicts[equipment_id] = bookings

        report = ConflictReport(
            event_conflicts=event_conflicts,
            crew_conflicts=crew_conflicts,
            equipment_conflicts=equipment_conflicts,
        )

        if self.suggester is not None:
            for crew_id in crew_conflicts:
                report.crew_alternatives[crew_id] = self.suggester.suggest_crew(
                    crew_id, date_range
                )
            for equipment_id in equipment_conflicts:
                report.equipment_alternatives[equipment_id] = (
                    self.suggester.suggest_equipment(
                        equipment_id, window, selection.exclude_id
                    )
                )

        logger.info(
            "conflict_check_completed",
            exclude_id=selection.exclude_id,
            event_conflicts=len(event_conflicts),
            crew_conflicts=len(crew_conflicts),
            equipment_conflicts=len(equipment_conflicts),
            total_conflicts=report.total_conflicts,
        )
        return report


def ensure_can_save(report: ConflictReport, approve_overbooking: bool) -> None:
    """Refuse a save while crew or equipment is double-booked.

    Attendee conflicts are advisory and never block.  Crew and equipment
    conflicts block unless the user explicitly approved overbooking.
    """
    if report.blocking_conflicts and not approve_overbooking:
        raise OverbookingNotApprovedError(report.blocking_conflicts)
