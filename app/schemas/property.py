"""
Property schemas for request validation.
"""

from typing import List, Optional

from pydantic import Field, field_validator

from app.schemas.common import Address, GeoPoint, InputModel


class VirtualTour(InputModel):
    enabled: Optional[bool] = None
    url: Optional[str] = None


class Video(InputModel):
    url: Optional[str] = None
    thumbnail: Optional[str] = None


class PropertyBase(InputModel):
    """
    Fields a client may set on a property.

    views/favorites/inquiries, slug and agent are managed by the server
    and are not accepted here.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    property_type: Optional[str] = Field(None, alias="propertyType")
    status: Optional[str] = None
    listing_type: Optional[str] = Field(None, alias="listingType")
    featured: Optional[bool] = None

    # Location
    address: Optional[Address] = None
    location: Optional[GeoPoint] = None

    # Details
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    area: Optional[float] = None
    lot_size: Optional[float] = Field(None, alias="lotSize")
    year_built: Optional[int] = Field(None, alias="yearBuilt")
    parking: Optional[int] = None

    # Features, media
    features: Optional[List[str]] = None
    amenities: Optional[List[str]] = None
    images: Optional[List[str]] = None
    virtual_tour: Optional[VirtualTour] = Field(None, alias="virtualTour")
    video: Optional[Video] = None

    # Additional info
    hoa_fee: Optional[float] = Field(None, alias="hoaFee")
    tax_amount: Optional[float] = Field(None, alias="taxAmount")
    mls_number: Optional[str] = Field(None, alias="mlsNumber")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    @field_validator("property_type")
    @classmethod
    def normalize_property_type(cls, v: Optional[str]) -> Optional[str]:
        """Property types are stored lower-case ("House" -> "house")."""
        return v.strip().lower() if v else v


class PropertyCreate(PropertyBase):
    """Schema for creating a property."""
    pass


class PropertyUpdate(PropertyBase):
    """
    Schema for updating a property.

    All fields are optional - only update what's provided.
    """
    pass


class PropertyImagesAdd(InputModel):
    """Image URLs appended to a property's gallery."""
    images: Optional[List[str]] = None
