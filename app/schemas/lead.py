"""
Lead schemas for validation.

These Pydantic models validate incoming data.
They accept camelCase from the API (and snake_case field names too).
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from app.schemas.common import InputModel, as_utc


class Budget(InputModel):
    min: Optional[float] = None
    max: Optional[float] = None


class LeadBase(InputModel):
    """
    Base schema with common lead fields.

    This is the parent class for the create/update schemas.
    """

    # Basic information
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    # Pipeline
    source: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None

    # Interest
    interested_in: Optional[str] = Field(None, alias="interestedIn")
    budget: Optional[Budget] = None
    preferred_property_type: Optional[List[str]] = Field(None, alias="preferredPropertyType")
    preferred_locations: Optional[List[str]] = Field(None, alias="preferredLocations")
    timeline: Optional[str] = None

    # Related property (inquiry from a property page)
    property_id: Optional[str] = Field(None, alias="property")
    message: Optional[str] = None

    # Follow-up
    last_contacted_at: Optional[datetime] = Field(None, alias="lastContactedAt")
    next_follow_up_at: Optional[datetime] = Field(None, alias="nextFollowUpAt")

    # Assignment, tags, conversion
    assigned_to: Optional[str] = Field(None, alias="assignedTo")
    tags: Optional[List[str]] = None
    lost_reason: Optional[str] = Field(None, alias="lostReason")

    @field_validator("name", "phone")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        """Emails are stored lower-case."""
        return v.strip().lower() if v else v

    @field_validator("last_contacted_at", "next_follow_up_at")
    @classmethod
    def utc_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class LeadCreate(LeadBase):
    """Schema for an agent creating a lead."""
    pass


class LeadUpdate(LeadBase):
    """
    Schema for updating an existing lead.

    All fields are optional - only update what's provided.
    """
    pass


class LeadStatusUpdate(InputModel):
    status: Optional[str] = None


class LeadActivityCreate(InputModel):
    """One entry for the lead's activity log."""
    activity_type: str = Field("note", alias="type")
    description: Optional[str] = None


class PublicLeadCreate(InputModel):
    """
    Inquiry from the public website (no auth).

    Example:
        {"name": "Ann", "email": "ann@example.com", "propertyId": "65f..."}
    """
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None
    property_id: Optional[str] = Field(None, alias="propertyId")
    source: Optional[str] = None
    interested_in: Optional[str] = Field(None, alias="interestedIn")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v


class ListingSubmission(InputModel):
    """
    Public "list my property" form.

    Creates a pending property plus a follow-up lead.
    """
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    property_type: Optional[str] = Field(None, alias="propertyType")
    purpose: str = "sale"  # "sale" or "rent"
    title: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    price: Optional[float] = None
    area: Optional[float] = None
    area_unit: str = Field("sqft", alias="areaUnit")
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    description: Optional[str] = None
    features: Optional[List[str]] = None
    images: Optional[List[str]] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v
