"""Tests for normalizing contact and team-member payloads into Person records."""

from __future__ import annotations

from datetime import datetime, timezone

from scheduling.domain.models import ContactStatus, Person


def test_contact_shape():
    person = Person.from_api(
        {
            "id": "c-1",
            "name": "Rosa Diaz",
            "role": "Freelancer",
            "status": "Active",
            "email": "rosa@example.com",
        }
    )
    assert person.name == "Rosa Diaz"
    assert person.role == "Freelancer"
    assert person.is_active is True


def test_team_member_shape_uses_position_as_role():
    person = Person.from_api(
        {
            "id": "u-7",
            "first_name": "Sam",
            "last_name": "Lee",
            "role": "member",
            "position": "Camera Operator",
            "is_active": True,
            "updated_at": "2026-02-01T08:30:00Z",
        }
    )
    assert person.name == "Sam Lee"
    assert person.role == "Camera Operator"
    assert person.updated_at == datetime(2026, 2, 1, 8, 30, tzinfo=timezone.utc)


def test_team_member_with_first_name_only():
    person = Person.from_api({"id": "u-8", "first_name": "Kai", "position": "Gaffer"})
    assert person.name == "Kai"


def test_inactive_team_member():
    person = Person.from_api(
        {"id": "u-9", "first_name": "Jo", "last_name": "March", "is_active": False}
    )
    assert person.status == ContactStatus.INACTIVE
    assert person.is_active is False


def test_missing_name_falls_back():
    assert Person.from_api({"id": "c-2"}).name == "Unknown Member"
    assert Person.from_api({"id": "u-10", "first_name": "", "last_name": None}).name == (
        "Unknown Member"
    )


def test_both_shapes_normalize_to_same_record():
    contact = Person.from_api({"id": "p-1", "name": "Ada Obi", "role": "Editor"})
    member = Person.from_api(
        {"id": "p-1", "first_name": "Ada", "last_name": "Obi", "position": "Editor"}
    )
    assert contact == member
