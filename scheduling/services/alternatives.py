"""Suggest substitute crew and equipment for resources that are conflicted."""

from __future__ import annotations

from scheduling.config import get_settings
from scheduling.domain.models import (
    DateRange,
    Equipment,
    EquipmentStatus,
    Person,
    TimeWindow,
)
from scheduling.repos.base import CrewDirectory, EquipmentSource
from scheduling.services.crew import CrewAvailabilityResolver
from scheduling.services.equipment import EquipmentConflictDetector


class AlternativeSuggester:
    """Offers up to ``limit`` free substitutes of the same role or category.

    This is a filter, not a ranking: candidates come back in directory or
    catalog order.
    """

    def __init__(
        self,
        contacts: CrewDirectory,
        catalog: EquipmentSource,
        crew_resolver: CrewAvailabilityResolver,
        equipment_detector: EquipmentConflictDetector,
        limit: int | None = None,
    ) -> None:
        self.contacts = contacts
        self.catalog = catalog
        self.crew_resolver = crew_resolver
        self.equipment_detector = equipment_detector
        self.limit = get_settings().max_suggestions if limit is None else limit

    def suggest_crew(self, crew_id: str, date_range: DateRange) -> list[Person]:
        original = self.contacts.get(crew_id)
        # no role means nothing to match on
        if original is None or original.role is None:
            return []

        same_role = [
            p for p in self.contacts.list_crew() if p.id != crew_id and p.role == original.role
        ]
        available = self.crew_resolver.available_crew(same_role, date_range)
        return available[: self.limit]

    def suggest_equipment(
        self,
        equipment_id: str,
        window: TimeWindow,
        exclude_event_id: str | None = None,
    ) -> list[Equipment]:
        original = self.catalog.get(equipment_id)
        if original is None:
            return []

        suggestions: list[Equipment] = []
        for item in self.catalog.list_all():
            if len(suggestions) >= self.limit:
                break
            if (
                item.id != equipment_id
                and item.category == original.category
                and item.status == EquipmentStatus.AVAILABLE
                and self.equipment_detector.is_free(item.id, window, exclude_event_id)
            ):
                suggestions.append(item)
        return suggestions
