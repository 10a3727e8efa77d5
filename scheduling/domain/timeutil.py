"""Timezone helpers shared by the domain models."""

from __future__ import annotations

from datetime import date, datetime, time, tzinfo

from dateutil import parser, tz

from scheduling.config import get_settings


def default_tz() -> tzinfo:
    return tz.gettz(get_settings().default_timezone) or tz.UTC


def ensure_aware(value: datetime) -> datetime:
    """Attach the configured default timezone to a naive datetime."""
    if value.tzinfo is None:
        return value.replace(tzinfo=default_tz())
    return value


def parse_timestamp(raw: str | datetime) -> datetime:
    """Parse an ISO-8601 date-time string into an aware datetime."""
    if isinstance(raw, datetime):
        return ensure_aware(raw)
    return ensure_aware(parser.isoparse(raw))


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=default_tz())
