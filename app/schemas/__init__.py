"""
Pydantic schemas for request validation.

This module exports all schemas for easy importing.
"""

from app.schemas.appointment import AppointmentCreate, AppointmentStatusUpdate, AppointmentUpdate
from app.schemas.contact import ContactCreate, ContactUpdate
from app.schemas.lead import (
    LeadActivityCreate,
    LeadCreate,
    LeadStatusUpdate,
    LeadUpdate,
    ListingSubmission,
    PublicLeadCreate,
)
from app.schemas.message import ConversationCreate, MessageCreate
from app.schemas.property import PropertyCreate, PropertyImagesAdd, PropertyUpdate

# Export all schemas
__all__ = [
    "AppointmentCreate",
    "AppointmentStatusUpdate",
    "AppointmentUpdate",
    "ContactCreate",
    "ContactUpdate",
    "ConversationCreate",
    "LeadActivityCreate",
    "LeadCreate",
    "LeadStatusUpdate",
    "LeadUpdate",
    "ListingSubmission",
    "MessageCreate",
    "PropertyCreate",
    "PropertyImagesAdd",
    "PropertyUpdate",
    "PublicLeadCreate",
]
