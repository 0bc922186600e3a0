from .property import (
    Agent,
    Features,
    ListingStatus,
    ListingType,
    Location,
    MessageResponse,
    NumericRange,
    Pagination,
    Property,
    PropertyCreate,
    PropertyImage,
    PropertyListResponse,
    PropertyResponse,
    PropertyType,
    SearchCriteria,
)

__all__ = [
    "Agent",
    "Features",
    "ListingStatus",
    "ListingType",
    "Location",
    "MessageResponse",
    "NumericRange",
    "Pagination",
    "Property",
    "PropertyCreate",
    "PropertyImage",
    "PropertyListResponse",
    "PropertyResponse",
    "PropertyType",
    "SearchCriteria",
]
