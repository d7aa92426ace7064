"""
Entity definitions for the document store.

Documents are plain dicts whose keys are the wire (camelCase) names, so a
query-string filter such as ?address.city=Austin addresses a stored field
directly. This module holds what every layer agrees on:

- the enumerations each entity allows
- the defaults filled in at creation time
- derived values (slug, full address, price per sqft)
- the output shape of a stored document
"""

from typing import Any, Dict, List, Optional
import enum
import re


def values(enum_cls) -> List[str]:
    """All allowed string values of an enum class."""
    return [member.value for member in enum_cls]


# ---------------------------------------------------------------------------
# Property
# ---------------------------------------------------------------------------

class PropertyType(str, enum.Enum):
    HOUSE = "house"
    APARTMENT = "apartment"
    VILLA = "villa"
    PENTHOUSE = "penthouse"
    CONDO = "condo"
    TOWNHOUSE = "townhouse"
    LAND = "land"
    COMMERCIAL = "commercial"
    ESTATE = "estate"
    PLOT = "plot"
    OFFICE = "office"
    SHOP = "shop"
    WAREHOUSE = "warehouse"
    ROOM = "room"
    STUDIO = "studio"
    FARMHOUSE = "farmhouse"


class PropertyStatus(str, enum.Enum):
    FOR_SALE = "for-sale"
    FOR_RENT = "for-rent"
    SOLD = "sold"
    PENDING = "pending"      # Public listing submissions wait here for review
    OFF_MARKET = "off-market"


class ListingType(str, enum.Enum):
    SALE = "sale"
    RENT = "rent"


PROPERTY_DEFAULTS: Dict[str, Any] = {
    "status": PropertyStatus.FOR_SALE.value,
    "listingType": ListingType.SALE.value,
    "featured": False,
    "parking": 0,
    "features": [],
    "amenities": [],
    "images": [],
    "views": 0,
    "favorites": 0,
    "inquiries": 0,
}


def slugify(title: str, doc_id: str) -> str:
    """
    URL slug for a property.

    "Modern Apartment A!" + "65f0..." -> "modern-apartment-a-65f0..."
    """
    base = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return f"{base}-{doc_id}" if base else doc_id


def full_address(address: Optional[Dict[str, Any]]) -> str:
    address = address or {}
    parts = [address.get(k) for k in ("street", "city", "state", "zipCode")]
    return ", ".join(str(p) for p in parts if p)


def price_per_sqft(price: Any, area: Any) -> int:
    try:
        return round(price / area) if area and area > 0 else 0
    except TypeError:
        return 0


# ---------------------------------------------------------------------------
# Lead
# ---------------------------------------------------------------------------

class LeadSource(str, enum.Enum):
    WEBSITE = "website"
    REFERRAL = "referral"
    SOCIAL_MEDIA = "social_media"
    ZILLOW = "zillow"
    REALTOR = "realtor"
    OPEN_HOUSE = "open_house"
    COLD_CALL = "cold_call"
    OTHER = "other"


class LeadStatus(str, enum.Enum):
    """Pipeline stages; any stage may follow any other."""
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    NEGOTIATING = "negotiating"
    CLOSED = "closed"
    LOST = "lost"


class LeadPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class LeadInterest(str, enum.Enum):
    BUYING = "buying"
    SELLING = "selling"
    RENTING = "renting"
    INVESTING = "investing"
    GENERAL = "general"


class LeadTimeline(str, enum.Enum):
    IMMEDIATE = "immediate"
    ONE_TO_THREE_MONTHS = "1-3_months"
    THREE_TO_SIX_MONTHS = "3-6_months"
    SIX_TO_TWELVE_MONTHS = "6-12_months"
    JUST_BROWSING = "just_browsing"


class ActivityType(str, enum.Enum):
    CREATED = "created"
    STATUS_CHANGE = "status_change"
    NOTE = "note"
    CALL = "call"
    EMAIL = "email"
    MEETING = "meeting"


LEAD_DEFAULTS: Dict[str, Any] = {
    "source": LeadSource.WEBSITE.value,
    "status": LeadStatus.NEW.value,
    "priority": LeadPriority.MEDIUM.value,
    "interestedIn": LeadInterest.BUYING.value,
    "timeline": LeadTimeline.JUST_BROWSING.value,
    "preferredPropertyType": [],
    "preferredLocations": [],
    "activities": [],
    "notes": [],
    "tags": [],
}

LEAD_MESSAGE_MAX = 2000


# ---------------------------------------------------------------------------
# Appointment
# ---------------------------------------------------------------------------

class AppointmentType(str, enum.Enum):
    VIEWING = "viewing"
    MEETING = "meeting"
    OPEN_HOUSE = "open-house"
    FOLLOW_UP = "follow-up"
    CLOSING = "closing"
    INSPECTION = "inspection"
    OTHER = "other"


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"
    RESCHEDULED = "rescheduled"


class RecurrenceFrequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


APPOINTMENT_DEFAULTS: Dict[str, Any] = {
    "type": AppointmentType.VIEWING.value,
    "duration": 60,  # minutes
    "location": "Property Address",
    "isVirtual": False,
    "status": AppointmentStatus.SCHEDULED.value,
    "reminderSent": False,
    "reminderTime": 60,  # minutes before
    "isRecurring": False,
}


# ---------------------------------------------------------------------------
# Conversation / Message
# ---------------------------------------------------------------------------

class ConversationStatus(str, enum.Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    SPAM = "spam"


class SenderRole(str, enum.Enum):
    CLIENT = "client"
    AGENT = "agent"


CONVERSATION_DEFAULTS: Dict[str, Any] = {
    "unreadCount": 0,
    "status": ConversationStatus.ACTIVE.value,
    "lastMessage": None,
}

MESSAGE_CONTENT_MAX = 5000


# ---------------------------------------------------------------------------
# Contact submission
# ---------------------------------------------------------------------------

class ContactSubject(str, enum.Enum):
    BUYING = "buying"
    SELLING = "selling"
    RENTING = "renting"
    GENERAL = "general"
    FEEDBACK = "feedback"


class ContactStatus(str, enum.Enum):
    NEW = "new"
    READ = "read"
    REPLIED = "replied"
    ARCHIVED = "archived"


CONTACT_DEFAULTS: Dict[str, Any] = {
    "subject": ContactSubject.GENERAL.value,
    "status": ContactStatus.NEW.value,
}

CONTACT_MESSAGE_MAX = 2000


# ---------------------------------------------------------------------------
# Users and roles
# ---------------------------------------------------------------------------

class Role(str, enum.Enum):
    ADMIN = "admin"
    AGENT = "agent"
    USER = "user"


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

def with_defaults(defaults: Dict[str, Any], doc: Dict[str, Any]) -> Dict[str, Any]:
    """Fill unset fields from defaults (list defaults are copied)."""
    filled = {k: list(v) if isinstance(v, list) else v for k, v in defaults.items()}
    filled.update({k: v for k, v in doc.items() if v is not None})
    return filled


def serialize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Stored document -> response document (adds the id alias of _id)."""
    if doc is None:
        return None
    out = dict(doc)
    if "_id" in out:
        out["_id"] = str(out["_id"])
        out["id"] = out["_id"]
    return out


def serialize_property(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Property output, including the fullAddress and pricePerSqft virtuals."""
    out = serialize(doc)
    if out is None:
        return None
    if "address" in out:
        out["fullAddress"] = full_address(out.get("address"))
    if "price" in out and "area" in out:
        out["pricePerSqft"] = price_per_sqft(out.get("price"), out.get("area"))
    return out
