"""
Contact form schemas.
"""

from typing import Optional

from pydantic import AliasChoices, Field, field_validator

from app.schemas.common import InputModel


class ContactCreate(InputModel):
    """
    Public contact form.

    subject is also accepted as inquiryType, property as propertyId.
    """
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    subject: Optional[str] = Field(None, validation_alias=AliasChoices("subject", "inquiryType"))
    message: Optional[str] = None
    property_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("property", "propertyId"),
        serialization_alias="property",
    )
    page: Optional[str] = None  # page the form was submitted from

    @field_validator("name", "phone")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v

    @field_validator("subject")
    @classmethod
    def normalize_subject(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v


class ContactUpdate(InputModel):
    status: Optional[str] = None
    notes: Optional[str] = None
