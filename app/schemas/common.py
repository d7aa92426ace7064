"""
Shared schema pieces and helpers.

Request models only shape and coerce input; the business rules live in
app.services.validation.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class InputModel(BaseModel):
    """Base for request bodies: camelCase or snake_case accepted, unknown keys dropped."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
    )


class Address(InputModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = Field(None, alias="zipCode")
    country: Optional[str] = None


class GeoPoint(InputModel):
    """GeoJSON point: coordinates are [longitude, latitude]."""
    type: str = "Point"
    coordinates: List[float]


class ClientInfo(InputModel):
    """Contact snapshot of a client who is not (necessarily) a lead."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None


def to_document(model: BaseModel) -> Dict[str, Any]:
    """Fields the caller actually sent, under their stored (wire) names."""
    return model.model_dump(by_alias=True, exclude_unset=True)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes from the wire are taken as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
