"""
Pydantic models for property listings and search.

These models define the data structures used throughout the application
for API requests, responses, and the documents stored in MongoDB. Field
names are snake_case in Python and camelCase on the wire and in storage.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PropertyType(str, Enum):
    HOUSE = "house"
    APARTMENT = "apartment"
    CONDO = "condo"
    TOWNHOUSE = "townhouse"
    VILLA = "villa"
    COMMERCIAL = "commercial"
    LAND = "land"


class ListingType(str, Enum):
    SALE = "sale"
    RENT = "rent"


class ListingStatus(str, Enum):
    ACTIVE = "active"
    SOLD = "sold"
    RENTED = "rented"
    PENDING = "pending"
    INACTIVE = "inactive"


class Coordinates(CamelModel):
    lat: Optional[float] = None
    lng: Optional[float] = None


class Location(CamelModel):
    address: str = Field(min_length=1, description="Street address")
    city: str = Field(min_length=1, description="City name")
    state: str = Field(min_length=1, description="State or region")
    zip_code: str = Field(min_length=1, description="Postal code")
    coordinates: Optional[Coordinates] = None


class Features(CamelModel):
    bedrooms: int = Field(ge=0, description="Number of bedrooms")
    bathrooms: float = Field(ge=0, description="Number of bathrooms")
    area: float = Field(ge=1, description="Floor area in sq ft")
    year_built: Optional[int] = Field(default=None, ge=1800, description="Year of construction")
    parking: int = Field(default=0, ge=0, description="Parking spaces")
    amenities: List[str] = Field(default_factory=list)

    @field_validator("year_built")
    @classmethod
    def year_not_in_future(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value > datetime.now(timezone.utc).year:
            raise ValueError("Year built cannot be in the future")
        return value


class PropertyImage(CamelModel):
    url: str = Field(min_length=1)
    alt: str = "Property image"
    is_primary: bool = False


class Agent(CamelModel):
    name: str = Field(min_length=1)
    email: EmailStr
    phone: str = Field(min_length=1)


class PropertyCreate(CamelModel):
    """Request body for creating or replacing a listing."""

    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=1000)
    price: float = Field(ge=0, description="Asking price or monthly rent")
    location: Location
    property_type: PropertyType
    listing_type: ListingType
    features: Features
    images: List[PropertyImage] = Field(default_factory=list)
    agent: Agent
    status: ListingStatus = ListingStatus.ACTIVE
    featured: bool = False


class Property(PropertyCreate):
    """A stored listing as returned by the API."""

    id: str = Field(description="Listing identifier (ObjectId hex)")
    views: int = 0
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Property":
        """Build a Property from a raw MongoDB document."""
        data = dict(doc)
        data["id"] = str(data.pop("_id"))
        if data.get("createdBy") is not None:
            data["createdBy"] = str(data["createdBy"])
        return cls.model_validate(data)


class NumericRange(BaseModel):
    """Inclusive numeric bounds, either of which may be missing."""

    model_config = ConfigDict(frozen=True)

    min: Optional[Union[int, float]] = None
    max: Optional[Union[int, float]] = None

    @property
    def is_empty(self) -> bool:
        return self.min is None and self.max is None


class SearchCriteria(BaseModel):
    """Normalized, validated representation of a public search request."""

    model_config = ConfigDict(frozen=True)

    query: Optional[str] = None
    city: Optional[str] = None
    property_type: Optional[str] = None
    listing_type: Optional[str] = None
    price: NumericRange = NumericRange()
    bedrooms: NumericRange = NumericRange()
    bathrooms: NumericRange = NumericRange()
    area: NumericRange = NumericRange()
    page: int = 1
    limit: int = 12


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_count: int
    has_next_page: bool
    has_previous_page: bool
    limit: int


class PropertyListResponse(CamelModel):
    properties: List[Property] = Field(default_factory=list)
    pagination: Pagination


class PropertyResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    property: Property


class MessageResponse(CamelModel):
    success: bool = True
    message: str
