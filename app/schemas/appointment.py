"""
Appointment schemas.

These handle appointment data validation.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from app.schemas.common import ClientInfo, InputModel, as_utc


class Recurrence(InputModel):
    frequency: Optional[str] = None  # daily, weekly, monthly
    end_date: Optional[datetime] = Field(None, alias="endDate")

    @field_validator("end_date")
    @classmethod
    def utc_end_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class AppointmentBase(InputModel):
    """
    Common fields for appointments.

    date is the day of the appointment; startTime/endTime are free-form
    clock strings such as "14:30".
    """

    title: Optional[str] = None
    appointment_type: Optional[str] = Field(None, alias="type")
    description: Optional[str] = None

    # Date & time
    date: Optional[datetime] = None
    start_time: Optional[str] = Field(None, alias="startTime")
    end_time: Optional[str] = Field(None, alias="endTime")
    duration: Optional[int] = None  # minutes

    # Related entities
    property_id: Optional[str] = Field(None, alias="property")
    lead_id: Optional[str] = Field(None, alias="lead")
    client: Optional[ClientInfo] = None

    # Location
    location: Optional[str] = None
    address: Optional[str] = None
    is_virtual: Optional[bool] = Field(None, alias="isVirtual")
    meeting_link: Optional[str] = Field(None, alias="meetingLink")

    status: Optional[str] = None

    # Reminders
    reminder_time: Optional[int] = Field(None, alias="reminderTime")  # minutes before

    notes: Optional[str] = None
    outcome: Optional[str] = None

    # Recurrence
    is_recurring: Optional[bool] = Field(None, alias="isRecurring")
    recurrence: Optional[Recurrence] = None

    @field_validator("date")
    @classmethod
    def utc_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class AppointmentCreate(AppointmentBase):
    """Schema for booking an appointment."""
    pass


class AppointmentUpdate(AppointmentBase):
    """All fields optional - only update what's provided."""
    pass


class AppointmentStatusUpdate(InputModel):
    status: Optional[str] = None
