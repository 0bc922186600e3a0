"""
API routes for property search and listing management.
"""

import logging
from typing import Annotated, NamedTuple, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pymongo.errors import PyMongoError

from app.config import Settings, get_settings
from app.models.property import (
    ListingStatus,
    MessageResponse,
    PropertyCreate,
    PropertyListResponse,
    PropertyResponse,
)
from app.services.property_service import (
    InvalidPropertyIdError,
    PropertyNotFoundError,
    PropertyService,
    get_property_service,
)
from app.services.search_resolver import (
    SearchConfig,
    SearchCriteriaResolver,
    build_pagination,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

STORAGE_UNAVAILABLE = "The property database is unavailable. Please try again later."

ADMIN_STATUS_PATTERN = "^(all|" + "|".join(s.value for s in ListingStatus) + ")$"

MAX_ADMIN_PAGE = 1_000_000


class Services(NamedTuple):
    """Container for injected services."""

    resolver: SearchCriteriaResolver
    properties: PropertyService
    settings: Settings


def get_services(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Services:
    """Dependency that provides all required services."""
    return Services(
        resolver=SearchCriteriaResolver(SearchConfig.from_settings(settings)),
        properties=get_property_service(settings),
        settings=settings,
    )


def _storage_error(e: PyMongoError) -> HTTPException:
    logger.error("MongoDB error: %s", e)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=STORAGE_UNAVAILABLE,
    )


def _unexpected_error(e: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"An unexpected error occurred: {type(e).__name__}: {e}",
    )


@router.get(
    "/properties",
    response_model=PropertyListResponse,
    tags=["search"],
    summary="Search active listings",
    description=(
        "Filter active listings by free text, city, property and listing type, "
        "and price/bedroom/bathroom/area ranges. Featured and newest listings come first."
    ),
)
async def search_properties(
    request: Request,
    services: Annotated[Services, Depends(get_services)],
) -> PropertyListResponse:
    """
    Search active property listings.

    Accepted query parameters: query, city, propertyType, listingType,
    minPrice, maxPrice, minBedrooms, maxBedrooms, minBathrooms,
    maxBathrooms, minArea, maxArea, page, limit.

    Raises:
        HTTPException: 400 for invalid parameters, 503 if MongoDB is unreachable.
    """
    result = services.resolver.resolve(request.query_params)
    if result.is_err():
        error = result.error
        logger.info("Invalid search parameters: %s", error.fields)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid search parameters", "details": error.to_details()},
        )
    compiled = result.value

    try:
        properties, total_count = await services.properties.search(compiled)

    except PyMongoError as e:
        raise _storage_error(e) from e

    except Exception as e:
        logger.exception("Unexpected error during search")
        raise _unexpected_error(e) from e

    return PropertyListResponse(
        properties=properties,
        pagination=build_pagination(total_count, compiled.page, compiled.limit),
    )


@router.post(
    "/properties",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["properties"],
    summary="Create a listing",
)
async def create_property(
    payload: PropertyCreate,
    services: Annotated[Services, Depends(get_services)],
) -> PropertyResponse:
    try:
        created = await services.properties.create_property(
            payload, owner_id=services.settings.listing_owner_id
        )

    except PyMongoError as e:
        raise _storage_error(e) from e

    return PropertyResponse(message="Property created successfully", property=created)


@router.get(
    "/properties/{property_id}",
    response_model=PropertyResponse,
    tags=["properties"],
    summary="Get a listing",
    description="Fetch a single listing by id. Each successful fetch counts as a view.",
)
async def get_property(
    property_id: str,
    services: Annotated[Services, Depends(get_services)],
) -> PropertyResponse:
    try:
        found = await services.properties.get_property(property_id)

    except InvalidPropertyIdError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid property ID",
        ) from e

    except PropertyNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Property not found",
        ) from e

    except PyMongoError as e:
        raise _storage_error(e) from e

    return PropertyResponse(property=found)


@router.put(
    "/properties/{property_id}",
    response_model=PropertyResponse,
    tags=["properties"],
    summary="Update a listing",
)
async def update_property(
    property_id: str,
    payload: PropertyCreate,
    services: Annotated[Services, Depends(get_services)],
) -> PropertyResponse:
    try:
        updated = await services.properties.update_property(property_id, payload)

    except InvalidPropertyIdError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid property ID",
        ) from e

    except PropertyNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Property not found",
        ) from e

    except PyMongoError as e:
        raise _storage_error(e) from e

    return PropertyResponse(message="Property updated successfully", property=updated)


@router.delete(
    "/properties/{property_id}",
    response_model=MessageResponse,
    tags=["properties"],
    summary="Delete a listing",
)
async def delete_property(
    property_id: str,
    services: Annotated[Services, Depends(get_services)],
) -> MessageResponse:
    try:
        await services.properties.delete_property(property_id)

    except InvalidPropertyIdError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid property ID",
        ) from e

    except PropertyNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Property not found",
        ) from e

    except PyMongoError as e:
        raise _storage_error(e) from e

    return MessageResponse(message="Property deleted successfully")


@router.get(
    "/admin/properties",
    response_model=PropertyListResponse,
    tags=["admin"],
    summary="List listings for the admin dashboard",
    description="List listings in any status, newest first, with optional title/city search.",
)
async def list_admin_properties(
    services: Annotated[Services, Depends(get_services)],
    search: Optional[str] = None,
    listing_status: Annotated[str, Query(alias="status", pattern=ADMIN_STATUS_PATTERN)] = "all",
    page: Annotated[int, Query(ge=1, le=MAX_ADMIN_PAGE)] = 1,
    limit: Annotated[Optional[int], Query(ge=1)] = None,
) -> PropertyListResponse:
    """
    List listings for administration.

    Args:
        services: Injected services.
        search: Optional text matched against title or city.
        listing_status: "all" or a single listing status.
        page: 1-based page number.
        limit: Page size; defaults to admin_default_limit, capped at admin_max_limit.
    """
    settings = services.settings
    page_size = min(limit or settings.admin_default_limit, settings.admin_max_limit)

    try:
        properties, total_count = await services.properties.list_for_admin(
            search=search.strip() if search else None,
            status=listing_status,
            page=page,
            limit=page_size,
        )

    except PyMongoError as e:
        raise _storage_error(e) from e

    except Exception as e:
        logger.exception("Unexpected error listing admin properties")
        raise _unexpected_error(e) from e

    return PropertyListResponse(
        properties=properties,
        pagination=build_pagination(total_count, page, page_size),
    )
