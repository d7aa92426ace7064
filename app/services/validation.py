"""
Per-entity validation rules.

Each validate_* function takes a complete document (wire field names) and
returns a list of {"field": ..., "message": ...} failures; an empty list
means the document may be persisted. Update handlers validate the merged
(existing + changes) document, so the same rules run on create and update.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List
import re

from app.core.errors import ValidationFailed
from app.db import models
from app.db.models import (
    AppointmentStatus,
    AppointmentType,
    ContactStatus,
    ContactSubject,
    ConversationStatus,
    LeadInterest,
    LeadPriority,
    LeadSource,
    LeadStatus,
    LeadTimeline,
    ListingType,
    PropertyStatus,
    PropertyType,
    RecurrenceFrequency,
    SenderRole,
)

FieldErrors = List[Dict[str, str]]

EMAIL_PATTERN = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$")


def _get(doc: Dict[str, Any], path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class _Checker:
    """Collects failures for one document."""

    def __init__(self, doc: Dict[str, Any]):
        self.doc = doc
        self.errors: FieldErrors = []

    def fail(self, field: str, message: str) -> None:
        self.errors.append({"field": field, "message": message})

    def required(self, field: str, message: str) -> bool:
        if _missing(_get(self.doc, field)):
            self.fail(field, message)
            return False
        return True

    def max_length(self, field: str, limit: int, message: str) -> None:
        value = _get(self.doc, field)
        if isinstance(value, str) and len(value) > limit:
            self.fail(field, message)

    def one_of(self, field: str, allowed: Iterable[str]) -> None:
        value = _get(self.doc, field)
        allowed = list(allowed)
        if value is not None and value not in allowed:
            self.fail(field, f"'{value}' is not a valid {field}; expected one of: {', '.join(allowed)}")

    def non_negative(self, field: str) -> None:
        value = _get(self.doc, field)
        if value is None:
            return
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            self.fail(field, f"{field} must be a number")
        elif value < 0:
            self.fail(field, f"{field} cannot be negative")

    def email(self, field: str) -> None:
        value = _get(self.doc, field)
        if isinstance(value, str) and value and not EMAIL_PATTERN.match(value):
            self.fail(field, "Please provide a valid email")

    def is_date(self, field: str) -> None:
        value = _get(self.doc, field)
        if value is not None and not isinstance(value, datetime):
            self.fail(field, f"{field} must be a date")


def ensure_valid(errors: FieldErrors) -> None:
    """Raise ValidationFailed when any rule failed."""
    if errors:
        raise ValidationFailed(errors)


def validate_property(doc: Dict[str, Any]) -> FieldErrors:
    check = _Checker(doc)
    check.required("title", "Please provide a property title")
    check.max_length("title", 100, "Title cannot be more than 100 characters")
    check.max_length("description", 5000, "Description cannot be more than 5000 characters")
    check.required("price", "Please provide a price")
    check.required("propertyType", "Please specify property type")
    check.one_of("propertyType", models.values(PropertyType))
    check.one_of("status", models.values(PropertyStatus))
    check.one_of("listingType", models.values(ListingType))
    check.required("address.city", "Please provide a city")
    check.required("bedrooms", "Please specify number of bedrooms")
    check.required("bathrooms", "Please specify number of bathrooms")
    check.required("area", "Please specify property area in sqft")
    for field in ("price", "bedrooms", "bathrooms", "area", "lotSize", "parking", "hoaFee", "taxAmount"):
        check.non_negative(field)
    location = _get(doc, "location")
    if location is not None:
        coords = location.get("coordinates") if isinstance(location, dict) else None
        if not (isinstance(coords, list) and len(coords) == 2):
            check.fail("location.coordinates", "Location must be a [longitude, latitude] pair")
    return check.errors


def validate_lead(doc: Dict[str, Any]) -> FieldErrors:
    check = _Checker(doc)
    check.required("name", "Please provide a name")
    if check.required("email", "Please provide an email"):
        check.email("email")
    check.one_of("source", models.values(LeadSource))
    check.one_of("status", models.values(LeadStatus))
    check.one_of("priority", models.values(LeadPriority))
    check.one_of("interestedIn", models.values(LeadInterest))
    check.one_of("timeline", models.values(LeadTimeline))
    check.max_length("message", models.LEAD_MESSAGE_MAX,
                     f"Message cannot exceed {models.LEAD_MESSAGE_MAX} characters")
    check.non_negative("budget.min")
    check.non_negative("budget.max")
    low, high = _get(doc, "budget.min"), _get(doc, "budget.max")
    if isinstance(low, (int, float)) and isinstance(high, (int, float)) and low > high:
        check.fail("budget", "Minimum budget cannot exceed maximum budget")
    return check.errors


def validate_appointment(doc: Dict[str, Any]) -> FieldErrors:
    check = _Checker(doc)
    check.required("title", "Please provide appointment title")
    if check.required("date", "Please provide appointment date"):
        check.is_date("date")
    check.required("startTime", "Please provide start time")
    check.one_of("type", models.values(AppointmentType))
    check.one_of("status", models.values(AppointmentStatus))
    duration = _get(doc, "duration")
    if duration is not None and (not isinstance(duration, (int, float)) or duration <= 0):
        check.fail("duration", "Duration must be a positive number of minutes")
    check.non_negative("reminderTime")
    check.email("client.email")
    if _get(doc, "isRecurring"):
        check.required("recurrence.frequency", "Recurring appointments need a frequency")
    check.one_of("recurrence.frequency", models.values(RecurrenceFrequency))
    check.is_date("recurrence.endDate")
    if _get(doc, "isVirtual") and _missing(_get(doc, "meetingLink")):
        check.fail("meetingLink", "Virtual appointments need a meeting link")
    return check.errors


def validate_conversation(doc: Dict[str, Any]) -> FieldErrors:
    check = _Checker(doc)
    check.required("client.name", "Client name is required")
    if check.required("client.email", "Client email is required"):
        check.email("client.email")
    check.required("agent", "Conversation must be assigned to an agent")
    check.one_of("status", models.values(ConversationStatus))
    return check.errors


def validate_message(doc: Dict[str, Any]) -> FieldErrors:
    check = _Checker(doc)
    check.required("conversation", "Message must belong to a conversation")
    if check.required("sender", "Sender is required"):
        check.one_of("sender", models.values(SenderRole))
    check.required("content", "Message content is required")
    check.max_length("content", models.MESSAGE_CONTENT_MAX,
                     f"Message cannot be more than {models.MESSAGE_CONTENT_MAX} characters")
    return check.errors


def validate_contact(doc: Dict[str, Any]) -> FieldErrors:
    check = _Checker(doc)
    check.required("name", "Name is required")
    if check.required("email", "Valid email is required"):
        check.email("email")
    check.required("phone", "Phone is required")
    check.one_of("subject", models.values(ContactSubject))
    check.one_of("status", models.values(ContactStatus))
    check.required("message", "Message is required")
    check.max_length("message", models.CONTACT_MESSAGE_MAX,
                     f"Message cannot exceed {models.CONTACT_MESSAGE_MAX} characters")
    return check.errors
