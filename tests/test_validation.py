from datetime import datetime, timezone

import pytest

from app.core.errors import ValidationFailed
from app.services.validation import (
    ensure_valid,
    validate_appointment,
    validate_contact,
    validate_lead,
    validate_message,
    validate_property,
)


def fields(errors):
    return {e["field"] for e in errors}


def valid_property(**overrides):
    doc = {"title": "Cabin", "price": 1000, "propertyType": "house", "address": {"city": "Reno"},
           "bedrooms": 1, "bathrooms": 1, "area": 500}
    doc.update(overrides)
    return doc


def test_valid_property_passes():
    assert validate_property(valid_property()) == []


def test_property_requires_core_fields():
    errors = validate_property({"title": "  "})
    assert {"title", "price", "propertyType", "address.city", "bedrooms", "bathrooms", "area"} <= fields(errors)


def test_property_rejects_unknown_enum_and_negative_price():
    errors = validate_property(valid_property(propertyType="castle", price=-5))
    assert fields(errors) == {"propertyType", "price"}


def test_property_title_length():
    assert validate_property(valid_property(title="x" * 100)) == []
    assert fields(validate_property(valid_property(title="x" * 101))) == {"title"}


@pytest.mark.parametrize("length, ok", [(2000, True), (2001, False)])
def test_lead_message_limit(length, ok):
    errors = validate_lead({"name": "Ann", "email": "ann@example.com", "message": "m" * length})
    assert (errors == []) is ok


@pytest.mark.parametrize("length, ok", [(2000, True), (2001, False)])
def test_contact_message_limit(length, ok):
    doc = {"name": "Ann", "email": "ann@example.com", "phone": "555", "message": "m" * length}
    assert (validate_contact(doc) == []) is ok


@pytest.mark.parametrize("length, ok", [(5000, True), (5001, False)])
def test_message_content_limit(length, ok):
    doc = {"conversation": "c1", "sender": "client", "content": "m" * length}
    assert (validate_message(doc) == []) is ok


def test_lead_email_format():
    assert fields(validate_lead({"name": "Ann", "email": "not-an-email"})) == {"email"}


def test_lead_budget_order():
    errors = validate_lead({"name": "Ann", "email": "a@b.com", "budget": {"min": 10, "max": 5}})
    assert fields(errors) == {"budget"}


def test_appointment_rules():
    base = {"title": "Viewing", "date": datetime(2025, 1, 1, tzinfo=timezone.utc), "startTime": "10:00"}
    assert validate_appointment(base) == []
    assert fields(validate_appointment({**base, "startTime": None})) == {"startTime"}
    assert fields(validate_appointment({**base, "isVirtual": True})) == {"meetingLink"}
    assert fields(validate_appointment({**base, "status": "maybe"})) == {"status"}


def test_message_sender_must_be_known_role():
    errors = validate_message({"conversation": "c1", "sender": "bot", "content": "hi"})
    assert fields(errors) == {"sender"}


def test_ensure_valid_raises_with_all_failures():
    with pytest.raises(ValidationFailed) as exc:
        ensure_valid(validate_contact({}))
    assert {"name", "email", "phone", "message"} <= fields(exc.value.errors)
    ensure_valid([])
